"""
Kitbag positional cardinality rules.

Scope
- A closed set of rule shapes describing how many positional arguments a
  command accepts:
  • Unconstrained()            any count
  • Exact(count)               exactly `count`
  • Between(low, high)         low..high, both ends included
  • Predicate(test, explanation)
                               arbitrary test over the count; `test` may consult
                               outside state (captured values, parsed flags), so
                               its verdict is only meaningful once scanning is done.

- normalize(spec) turns the declarative shorthands accepted by
  CommandParser.expect_positional_cardinality into one of the shapes above:
    None            → Unconstrained()
    int             → Exact(int)
    range / (lo, hi)→ Between(lo, hi)       (ranges are converted to inclusive bounds)
    "even", "odd",
    "nonzero",
    "positive"      → Predicate with a generated explanation
    callable        → Predicate(callable)
    a rule          → itself

- satisfied(rule, count) and explain(rule) dispatch over the shapes with
  exhaustive matching.

Example
    >>> satisfied(normalize(range(1, 3)), 2)
    True
    >>> explain(normalize(2))
    'Requires 2 positional arguments.'
"""
from collections.abc import Callable
from typing import NamedTuple

from .utils import *


class Unconstrained(NamedTuple):
    """Any number of positional arguments is acceptable."""


class Exact(NamedTuple):
    """Exactly `count` positional arguments."""
    count: int


class Between(NamedTuple):
    """From `low` to `high` positional arguments, both ends included."""
    low: int
    high: int


class Predicate(NamedTuple):
    """
    Arbitrary test over the positional count.

    `explanation` is the sentence shown in help when no explicit explanation
    was configured on the parser; None falls back to a generic sentence.
    """
    test: Callable[[int], object]
    explanation: str | None = None


SHORTHANDS = {
    "even": lambda count: count % 2 == 0,
    "odd": lambda count: count % 2 == 1,
    "nonzero": lambda count: count != 0,
    "positive": lambda count: count > 0,
}

OBSCURE_EXPLANATION = "A rule exists about the number of positional arguments."


def normalize(spec, /):
    """
    Convert a declarative cardinality specification into a rule.

    Raises
    - ValueError: negative counts, unknown shorthand names, malformed ranges.
    - TypeError: anything that is not one of the accepted shapes.
    """
    match spec:
        case Unconstrained() | Exact() | Between() | Predicate():
            return spec
        case None:
            return Unconstrained()
        case bool():
            raise TypeError("cardinality cannot be a boolean")
        case int():
            if spec < 0:
                raise ValueError("cardinality count cannot be negative (got %d)" % spec)
            return Exact(spec)
        case range() | (int(), int()):
            low, high = inclusive(spec)
            if low < 0:
                raise ValueError("cardinality bounds cannot be negative (got %d..%d)" % (low, high))
            return Between(low, high)
        case str():
            try:
                test = SHORTHANDS[spec]
            except KeyError:
                raise ValueError("unknown cardinality shorthand %r (expected one of %s)" % (
                    spec, ", ".join(map(repr, SHORTHANDS))
                )) from None
            return Predicate(
                rename(test, spec),
                "Positional argument count must be %s." % spec.replace("_", " ")
            )
        case _ if callable(spec):
            return Predicate(spec)
        case _:
            raise TypeError("cardinality must be an integer, a range, a shorthand name or a callable")


def satisfied(rule, count, /):
    """
    Return whether `count` positional arguments satisfy `rule`.

    Exceptions raised by a Predicate's test propagate; callers that need a
    permissive verdict decide on their own (see CommandParser.cardinality_satisfied).
    """
    match rule:
        case Unconstrained():
            return True
        case Exact(expected):
            return count == expected
        case Between(low, high):
            return low <= count <= high
        case Predicate(test):
            return bool(test(count))
    raise TypeError("unexpected cardinality rule %r" % (rule,))


def explain(rule, /):
    """
    Sentence describing `rule` for help output, or None when nothing needs saying.
    """
    match rule:
        case Unconstrained() | Exact(0):
            return None
        case Exact(count):
            return "Requires %s." % counted(count, "positional argument")
        case Between(low, high):
            return "Requires %d..%d (inclusive) positional arguments." % (low, high)
        case Predicate(_, explanation):
            return explanation or OBSCURE_EXPLANATION
    raise TypeError("unexpected cardinality rule %r" % (rule,))


__all__ = (
    "Unconstrained",
    "Exact",
    "Between",
    "Predicate",
    "normalize",
    "satisfied",
    "explain",
)
