r"""
Kitbag switches: option/flag specifications and the left-to-right scanner.

Overview
- Switch: immutable description of one option or flag.
  • names: one or more spellings
      short   "-x"               one letter or digit
      long    "--name"           hyphen-separated segments, no underscores
      toggle  "--[no-]name"      on/off switch; "--name" gives True, "--no-name" False
  • arity, derived from the metadata:
      "none"      no metavar                      value is True (or False when negated)
      "required"  metavar given                   value from "--x=v", "-xv" or the next token
      "optional"  metavar given, optional=True    value only inline, else None
  • type / choices: converter and allowed values applied to the raw value.
  • callback: invoked with the (converted) value once per occurrence.
  • key: destination key, derived from the first long name ("--dry-run" → "dry_run").

- Scanner: catalog of switches plus the scanning routine.
  • add(switch): register all of a switch's spellings; a later switch reusing a
    spelling takes it over.
  • scan(tokens, *, positional, store=None): consume switches (and their values),
    hand every other token to `positional`, and return the tokens that follow "--".
  • candidates(prefix): registered spellings starting with prefix, in registration
    order; toggles are reported as "--[no-]name".

Faults (all InvalidCommandLineError subclasses, see kitbag.faults)
- UnknownSwitchError      no switch matches (carries difflib suggestions)
- AmbiguousSwitchError    an abbreviation matches several switches
- MissingValueError       a required value is absent at the end of the tokens
- NeedlessValueError      an inline value was given to a switch that takes none
- InvalidValueError       the converter rejected the value, or it is not a choice

Quick example:
    >>> scanner = Scanner()
    >>> scanner.add(Switch("-m", "--message", metavar="TEXT"))
    >>> scanner.add(Switch("--[no-]formatted"))
    >>> seen = []
    >>> scanner.scan(["--mess=hi", "file", "--no-f", "--", "-m"], positional=seen.append)
    ['-m']
    >>> seen
    ['file']
"""
import builtins
import difflib
import re
from collections import deque
from collections.abc import Iterable, Set

from .faults import *
from .utils import *

SHORT = re.compile(r"-[^\W_]")
LONG = re.compile(r"--[^\W\d_](-?[^\W_]+)*")
TOGGLE = re.compile(r"--\[no-\](?P<base>[^\W\d_](-?[^\W_]+)*)")


class Switch:
    """
    Named option or flag specification.

    A Switch only describes what to recognize and what to do with it; the
    Scanner owns the recognition. Every field is fixed at construction and is
    exposed through read-only properties.
    """

    __introspectable__ = (
        "names",
        "metavar",
        "optional",
        "type",
        "choices",
        "callback",
        "key",
        "descr",
        "hidden",
    )

    def __init__(
            self,
            *names,
            metavar=Unset,
            optional=False,
            type=str,
            choices=(),
            callback=Unset,
            key=Unset,
            descr=Unset,
            hidden=False
    ):
        """
        Construct a Switch with the provided metadata.

        Parameters
        - names: one or more str
          Spellings of the switch ("-x", "--name", "--[no-]name"). Duplicates are rejected.
        - metavar: Unset | str
          Label of the value in help. Giving one makes the switch value-bearing.
        - optional: bool
          The value may be omitted. Only meaningful with a metavar.
        - type: Callable
          Converter applied to the raw value string.
        - choices: Iterable
          Allowed (converted) values; empty means anything goes.
        - callback: Unset | Callable
          Called with the value of every occurrence.
        - key: Unset | str
          Destination key; derived from the names when Unset.
        - descr: Unset | str
          Short description for help.
        - hidden: bool
          Suppress from help output.

        Raises
        - TypeError: wrong metadata types, toggles with a value, optional without metavar.
        - ValueError: malformed or duplicated names, empty metavar/descr/key.
        """
        if not names:
            raise TypeError("switch must specify at least one name")

        spellings = []
        for name in names:
            if not isinstance(name, str):
                raise TypeError("switch names must be strings")
            elif not (SHORT.fullmatch(name) or LONG.fullmatch(name) or TOGGLE.fullmatch(name)):
                raise ValueError("switch name %r is not a valid spelling (expected -x, --name or --[no-]name)" % name)
            elif name in spellings:
                raise ValueError("switch names cannot contain duplicates (got %r twice)" % name)
            spellings.append(name)

        if metavar is not Unset:
            if not isinstance(metavar, str):
                raise TypeError("switch metavar must be a string")
            elif not (metavar := metavar.strip()):
                raise ValueError("switch metavar cannot be an empty-string")
        if optional and metavar is Unset:
            raise TypeError("optional switch must specify a metavar")
        if metavar is not Unset and any(TOGGLE.fullmatch(name) for name in spellings):
            raise TypeError("toggle switch cannot take a value")

        if not builtins.callable(type):
            raise TypeError("switch type must be callable")
        if callback is not Unset and not builtins.callable(callback):
            raise TypeError("switch callback must be callable")

        if not isinstance(choices, Iterable) or isinstance(choices, str):
            raise TypeError("switch choices must be a non-string iterable")
        if not isinstance(choices, Set) and len(choices := tuple(choices)) != len(set(choices)):
            raise ValueError("switch choices cannot contain duplicates")

        for name, value in (("descr", descr), ("key", key)):
            if value is Unset:
                continue
            if not isinstance(value, str):
                raise TypeError("switch %s must be a string" % name)
            elif not value.strip():
                raise ValueError("switch %s cannot be an empty-string" % name)

        self._names = tuple(spellings)
        self._metavar = coalesce(metavar)
        self._optional = bool(optional)
        self._type = type
        self._choices = tuple(choices)
        self._callback = coalesce(callback)
        self._key = coalesce(key) or _derive_key(self._names)
        self._descr = coalesce(descr)
        self._hidden = bool(hidden)

    names = mirror("names")
    metavar = mirror("metavar")
    optional = mirror("optional")
    type = mirror("type")
    choices = mirror("choices")
    callback = mirror("callback")
    key = mirror("key")
    descr = mirror("descr")
    hidden = mirror("hidden")

    @property
    def arity(self):
        if self._metavar is None:
            return "none"
        return "optional" if self._optional else "required"

    @property
    def toggle(self):
        return any(TOGGLE.fullmatch(name) for name in self._names)

    def spellings(self):
        """
        Concrete spellings mapped to whether they negate the switch.

        "--[no-]name" contributes "--name" (False) and "--no-name" (True);
        every other name maps to False.
        """
        spellings = {}
        for name in self._names:
            if match := TOGGLE.fullmatch(name):
                spellings["--" + match["base"]] = False
                spellings["--no-" + match["base"]] = True
            else:
                spellings[name] = False
        return spellings

    def convert(self, raw, /):
        """
        Apply the converter and the choices check to a raw value.

        Raises ValueError/TypeError from the converter unchanged, and ValueError
        when the converted value is not among the choices.
        """
        value = self._type(raw)
        if self._choices and value not in self._choices:
            raise ValueError("%r is not one of %s" % (value, ", ".join(map(repr, self._choices))))
        return value

    def __repr__(self):
        return "%s(%s)" % (builtins.type(self).__name__, ", ".join(map(repr, self._names)))

    def __rich_repr__(self):
        yield from self._names
        for name in ("metavar", "key", "descr"):
            if (value := getattr(self, "_" + name)) is not None:
                yield name, value


def _derive_key(names):
    for name in names:
        if match := TOGGLE.fullmatch(name):
            return match["base"].replace("-", "_")
        if LONG.fullmatch(name):
            return name[2:].replace("-", "_")
    return names[0][1:]


class Scanner:
    """
    Switch catalog and left-to-right scanning routine.

    The scanner never prints and never exits: faults are raised and left for
    the caller to surface.
    """

    def __init__(self):
        self._spellings = {}  # concrete spelling -> (switch, negated)
        self._switches = []

    @property
    def switches(self):
        """Registered switches still owning at least one spelling, in registration order."""
        owners = {id(switch) for switch, _ in self._spellings.values()}
        return tuple(switch for switch in self._switches if id(switch) in owners)

    def add(self, switch, /):
        if not isinstance(switch, Switch):
            raise TypeError("add() argument must be a switch")
        for spelling, negated in switch.spellings().items():
            self._spellings[spelling] = switch, negated
        self._switches.append(switch)
        return switch

    def candidates(self, prefix, /):
        """
        Spellings starting with `prefix`.

        A toggle is offered once, as "--[no-]name", when either of its concrete
        forms matches. Spellings taken over by a later switch are skipped.
        """
        if not isinstance(prefix, str):
            raise TypeError("candidates() argument must be a string")
        candidates = []
        for switch in self.switches:
            for name in switch.names:
                if match := TOGGLE.fullmatch(name):
                    forms = ["--" + match["base"], "--no-" + match["base"]]
                else:
                    forms = [name]
                owned = [form for form in forms if self._spellings.get(form, (None,))[0] is switch]
                if any(form.startswith(prefix) for form in owned) and name not in candidates:
                    candidates.append(name)
        return candidates

    def _resolve_long(self, input, position):
        """
        find the switch for a long spelling, accepting unique abbreviations.

        returns (switch, negated, spelling) where spelling is the full concrete form.
        """
        try:
            return *self._spellings[input], input
        except KeyError:
            pass

        # "--=value" names no switch at all
        matches = sorted(
            spelling for spelling in self._spellings if spelling.startswith(input) and spelling.startswith("--")
        ) if input != "--" else []
        targets = {self._spellings[spelling] for spelling in matches}
        if len(targets) == 1:
            return *targets.pop(), matches[0]

        if matches:
            raise AmbiguousSwitchError(
                "ambiguous option or flag %r at %s position" % (input, ordinal(position)),
                input=input,
                matches=tuple(matches),
                hint="it could be any of %s; type more of the name" % ", ".join(matches),
            )

        suggestions = difflib.get_close_matches(input, [s for s in self._spellings if s.startswith("--")], 5)
        raise UnknownSwitchError(
            "unknown option or flag %r at %s position" % (input, ordinal(position)),
            input=input,
            suggestions=tuple(suggestions),
            hint="did you mean %r?" % suggestions[0] if suggestions else None,
        )

    def _resolve_short(self, input, position):
        try:
            switch, negated = self._spellings[input]
        except KeyError:
            suggestions = difflib.get_close_matches(input, [s for s in self._spellings if not s.startswith("--")], 5)
            raise UnknownSwitchError(
                "unknown option or flag %r at %s position" % (input, ordinal(position)),
                input=input,
                suggestions=tuple(suggestions),
                hint="did you mean %r?" % suggestions[0] if suggestions else None,
            ) from None
        return switch, negated, input

    def _apply(self, switch, spelling, raw, position, store):
        if raw is not None:
            try:
                value = switch.convert(raw)
            except (ValueError, TypeError) as error:
                raise InvalidValueError(
                    "invalid value %r for option %r at %s position" % (raw, spelling, ordinal(position)),
                    input=spelling,
                    switch=switch,
                    hint=str(error) or None,
                ) from error
        else:
            value = None
        self._emit(switch, value, store)

    @staticmethod
    def _emit(switch, value, store):
        if store is not None:
            store(switch.key, value)
        if switch.callback is not None:
            switch.callback(value)

    def scan(self, tokens, /, *, positional, store=None):
        """
        scan tokens left to right, consuming switches and their values.

        parameters
        - tokens: Iterable[str]
          the command line (not mutated).
        - positional: Callable[[str], object]
          receives every token that is neither a switch nor a switch value, in order.
        - store: None | Callable[[str, object], object]
          called as store(switch.key, value) for every occurrence, before the
          switch's own callback.

        returns
        - list[str]: the tokens after the first "--" (handed back untouched).

        behavior
        - "--" stops switch recognition.
        - "--name" / "--name=value": exact spelling or unique abbreviation.
        - "-x", "-xVALUE", "-x=VALUE", "-abc": short switch, value or cluster.
        - a required value missing inline is taken from the next token, whatever it looks like.
        - a lone "-" is a positional.
        """
        if isinstance(tokens, str):
            raise TypeError("scan() tokens must be an iterable of strings, not a string")
        if not builtins.callable(positional):
            raise TypeError("scan() positional must be callable")

        queue = deque(tokens)
        position = 0

        while queue:
            token = queue.popleft()
            position += 1

            if not isinstance(token, str):
                raise TypeError("scan() tokens must be strings (got %r)" % builtins.type(token).__name__)

            if token == "--":
                return list(queue)

            if token.startswith("--"):
                input, sep, inline = token.partition("=")
                switch, negated, spelling = self._resolve_long(input, position)
                match switch.arity:
                    case "none":
                        if sep:
                            raise NeedlessValueError(
                                "flag %r at %s position cannot have an inline value" % (spelling, ordinal(position)),
                                input=spelling,
                                switch=switch,
                                hint="remove everything from '=' (for example: %s)" % input,
                            )
                        self._emit(switch, not negated, store)
                    case "required":
                        if not sep:
                            if not queue:
                                raise MissingValueError(
                                    "missing value for option %r at %s position" % (spelling, ordinal(position)),
                                    input=spelling,
                                    switch=switch,
                                    hint="add a value (for example: %s %s)" % (spelling, switch.metavar),
                                )
                            inline = queue.popleft()
                            position += 1
                        self._apply(switch, spelling, inline, position, store)
                    case "optional":
                        self._apply(switch, spelling, inline if sep else None, position, store)
                continue

            if token.startswith("-") and len(token) > 1:
                cluster = token[1:]
                while cluster:
                    switch, negated, spelling = self._resolve_short("-" + cluster[0], position)
                    cluster = cluster[1:]
                    if switch.arity == "none":
                        if cluster.startswith("="):
                            raise NeedlessValueError(
                                "flag %r at %s position cannot have an inline value" % (spelling, ordinal(position)),
                                input=spelling,
                                switch=switch,
                                hint="remove everything from '=' (for example: %s)" % spelling,
                            )
                        self._emit(switch, not negated, store)
                        continue
                    raw = cluster.removeprefix("=") if cluster else None
                    if raw is None and switch.arity == "required":
                        if not queue:
                            raise MissingValueError(
                                "missing value for option %r at %s position" % (spelling, ordinal(position)),
                                input=spelling,
                                switch=switch,
                                hint="add a value (for example: %s %s)" % (spelling, switch.metavar),
                            )
                        raw = queue.popleft()
                        position += 1
                    self._apply(switch, spelling, raw, position, store)
                    break
                continue

            positional(token)

        return []


__all__ = (
    "Switch",
    "Scanner",
)
