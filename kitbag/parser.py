"""
Kitbag positional-capture parser.

Scope
- CommandParser wraps the switch Scanner with a policy for the tokens that are
  not switches (the positional arguments):
  • where they land          capture sink: DefaultSink() | SlotSink(key) | CallbackSink(callback)
  • how many are acceptable  cardinality rule (see kitbag.cardinality)
  • how each one is mapped   value mapper (identity unless configured)
  • when the sink is bound   precapture: before scanning (the mapper can observe
                             the positionals captured so far) or after it.

Lifecycle
- Configure once (on, expect_positional_cardinality, capture_positionals,
  map_positional_args), then parse as many times as needed. Configuration calls
  replace earlier ones; nothing is merged.
- parse(tokens, into=scratch) replays the parser against a substitute
  destination; the completion layer uses this to classify partial command lines
  without touching the live destination.

Sinks
- DefaultSink: mapping destinations receive the positionals under the None key,
  mutable sequences are extended with them, other destinations are left alone
  (the returned list still carries the positionals).
- SlotSink(key): mapping destinations receive destination[key], other objects
  get the attribute `key`.
- CallbackSink(callback): callback(positionals).

Example
    >>> parser = CommandParser()
    >>> parser.on("-m", "--message", metavar="TEXT")
    Switch('-m', '--message')
    >>> parser.no_positional_args()
    >>> parser.parse(["-m", "foo"])
    []
    >>> parser.destination
    {'message': 'foo', None: []}
"""
import builtins
from collections.abc import Callable, MutableMapping, MutableSequence
from typing import NamedTuple

from .cardinality import *
from .faults import *
from .switches import *
from .utils import *


class DefaultSink(NamedTuple):
    """Positionals go wherever the destination's kind suggests."""


class SlotSink(NamedTuple):
    """Positionals are stored under `key` (item or attribute)."""
    key: object


class CallbackSink(NamedTuple):
    """Positionals are handed to `callback`."""
    callback: Callable[[list], object]


@rename("identity")
def _identity(value):
    return value


class CommandParser:
    """
    Switch scanner plus positional argument policy for one command.

    The parser holds no per-parse state: every parse works on its own
    positionals list, so replays never leak into each other.
    """

    def __init__(self, destination=Unset, /):
        self._destination = coalesce(destination, {})
        self._scanner = Scanner()
        self._cardinality = Unconstrained()
        self._explanation = None
        self._sink = DefaultSink()
        self._precapture = False
        self._mapper = _identity

    @property
    def destination(self):
        """The live destination object (not a copy)."""
        return self._destination

    @property
    def switches(self):
        return self._scanner.switches

    @property
    def positional_cardinality(self):
        return self._cardinality

    @property
    def positional_arguments_allowed(self):
        """
        False only when positionals were prohibited with an exact count of zero.

        A predicate that happens to accept only zero is not detected.
        """
        return self._cardinality != Exact(0)

    @property
    def capture_sink(self):
        return self._sink

    @property
    def precapture(self):
        return self._precapture

    @property
    def mapper(self):
        return self._mapper

    def on(self, *names, **metadata):
        """
        Register a switch and return it.

        Accepts the same arguments as Switch; a later switch reusing a spelling
        takes it over.
        """
        return self._scanner.add(Switch(*names, **metadata))

    def expect_positional_cardinality(self, rule, explanation=None, /):
        """
        Constrain the number of positional arguments.

        `rule` accepts every shorthand of kitbag.cardinality.normalize (int,
        range, (low, high), shorthand name, callable or a rule). `explanation`
        replaces the generated help sentence; it is reset by every call.
        """
        if explanation is not None and not isinstance(explanation, str):
            raise TypeError("expect_positional_cardinality() explanation must be a string")
        self._cardinality = normalize(rule)
        self._explanation = explanation

    def no_positional_args(self):
        self.expect_positional_cardinality(0)

    def capture_positionals(self, key=Unset, /, *, callback=Unset, precapture=False):
        """
        Choose where positionals are captured.

        - key: store them under this key (mapping item or attribute).
        - callback: call it with the positionals list.
        - precapture: bind the (empty) list before scanning, so that the list a
          callback or slot receives fills up while the command line is scanned.

        key and callback are mutually exclusive. The last call wins.
        """
        if key is not Unset and callback is not Unset:
            raise TypeError("capture_positionals() takes either a key or a callback, not both")
        if callback is not Unset:
            if not builtins.callable(callback):
                raise TypeError("capture_positionals() callback must be callable")
            self._sink = CallbackSink(callback)
        elif key is not Unset:
            self._sink = SlotSink(key)
        else:
            self._sink = DefaultSink()
        self._precapture = bool(precapture)

    def map_positional_args(self, mapper, /):
        """
        Set the function applied to each positional before it is captured.

        Returns the mapper so this can decorate it.
        """
        if not builtins.callable(mapper):
            raise TypeError("map_positional_args() argument must be callable")
        self._mapper = mapper
        return mapper

    def invalid_args(self, message, /):
        raise InvalidCommandLineError(message)

    def candidates(self, prefix, /):
        return self._scanner.candidates(prefix)

    def cardinality_satisfied(self, count, /):
        """
        Whether `count` positionals would be acceptable.

        A predicate that raises counts as satisfied: it may depend on state that
        only exists once a full command line has been parsed.
        """
        try:
            return satisfied(self._cardinality, count)
        except Exception:
            return True

    def describe_cardinality(self):
        if self._explanation is not None:
            return self._explanation
        return explain(self._cardinality)

    def _capture(self, positionals, destination):
        match self._sink:
            case CallbackSink(callback):
                callback(positionals)
            case SlotSink(key) if isinstance(destination, MutableMapping):
                destination[key] = positionals
            case SlotSink(key):
                setattr(destination, key, positionals)
            case DefaultSink() if isinstance(destination, MutableMapping):
                destination[None] = positionals
            case DefaultSink() if isinstance(destination, MutableSequence):
                destination.extend(positionals)

    def parse(self, tokens, /, *, into=Unset):
        """
        parse a command line under the configured policy.

        parameters
        - tokens: Iterable[str]
          the arguments after the command name; not mutated.
        - into: Unset | object
          substitute destination for this parse only (scratch replay).

        returns
        - list[str]: the mapped positionals in encounter order, followed by the
          tokens after "--" as given. without precapture this is the very list
          handed to the sink; with precapture it is a separate list and the sink
          only ever sees the mapped positionals.

        behavior
        - switch values are stored under their key when the destination is a
          mapping, then the switch callbacks run, left to right, once per occurrence.
        - with precapture and a DefaultSink over a sequence destination, the
          destination itself accumulates the positionals.
        - tokens after "--" skip the mapper and do not count toward the rule.
        - the rule is checked last: WrongArgumentCountError(rule, count) when it
          fails; exceptions raised by a predicate propagate.
        - scanner faults propagate unchanged.
        """
        if isinstance(tokens, str):
            raise TypeError("parse() tokens must be an iterable of strings, not a string")
        destination = coalesce(into, self._destination)

        if not self._precapture:
            positionals = []
        elif isinstance(self._sink, DefaultSink) and isinstance(destination, MutableSequence):
            positionals = destination
        else:
            positionals = []
            self._capture(positionals, destination)
        start = len(positionals)

        def positional(token):
            positionals.append(self._mapper(token))

        store = destination.__setitem__ if isinstance(destination, MutableMapping) else None
        remainder = self._scanner.scan(list(tokens), positional=positional, store=store)
        count = len(positionals) - start

        if self._precapture:
            result = positionals[start:] + remainder
        else:
            result = positionals + remainder
            self._capture(result, destination)

        if not satisfied(self._cardinality, count):
            raise WrongArgumentCountError(
                self._cardinality,
                count,
                hint=self.describe_cardinality(),
            )
        return result


__all__ = (
    "DefaultSink",
    "SlotSink",
    "CallbackSink",
    "CommandParser",
)
