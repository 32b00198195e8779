"""
Kitbag faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for all user-facing issues
  (errors and warnings). Codes are grouped by domain to keep copy consistent
  and make logs/searches predictable.
- CommandException / CommandWarning: base types that carry message + options and
  know how to render themselves in a friendly, lowercased, and actionable way.
- trigger(): central entry point to surface any fault (print + exit for errors,
  warnings.warn or print for warnings).
- getdoc(): optional description lookup for a code from the host application.

Hierarchy
- CommandException
  • UnknownCommandError, MissingCommandError      (routing, exit status 2)
  • InvalidCommandLineError                       (exit status 2)
      – WrongArgumentCountError(rule, count)      positional cardinality violated
      – ScanError                                 raised by the flag scanner
          UnknownSwitchError, AmbiguousSwitchError, MissingValueError,
          InvalidValueError, NeedlessValueError
  • DelegatedCommandError                         handler failure (exit status 1)
- CommandWarning
  • DuplicatedCommandWarning

Integration
- The parsing and completion layers only raise; they never print or exit.
- Program.main() catches CommandException and calls trigger(fault, prog=..., colorful=...),
  which renders the fault via rich on stderr and exits with the fault's exit code.
"""
import copy
import sys
import warnings
from abc import ABC
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.text import Text

from .cardinality import Exact, Between
from .utils import *

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the toolkit (stable identifiers).

    grouping (by high-level domain)
    - routing (1110x)
      • UNKNOWN_COMMAND, MISSING_COMMAND
    - command line (1111x / 1112x)
      • INVALID_COMMAND_LINE, UNKNOWN_SWITCH, AMBIGUOUS_SWITCH, NEEDLESS_VALUE,
        MISSING_VALUE, INVALID_VALUE, WRONG_ARGUMENT_COUNT
    - delegated errors (11131)
      • DELEGATED_ERROR
    - warnings (12xxx)
      • DUPLICATED_COMMAND

    normalize() allows host remapping to custom labels while keeping code-stability.
    """
    # --- routing errors (11xxx) ---
    UNKNOWN_COMMAND      = 11101
    MISSING_COMMAND      = 11102

    # --- command line errors (11xxx) ---
    INVALID_COMMAND_LINE = 11110
    UNKNOWN_SWITCH       = 11112
    AMBIGUOUS_SWITCH     = 11113
    NEEDLESS_VALUE       = 11114
    MISSING_VALUE        = 11117
    WRONG_ARGUMENT_COUNT = 11121
    INVALID_VALUE        = 11124

    # --- delegated errors (11xxx) ---
    DELEGATED_ERROR      = 11131

    # --- warnings (12xxx) ---
    DUPLICATED_COMMAND   = 12101

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _renderer(fault, palette):
    """
    build the (styler, text) helpers shared by the rich renderers.

    styles start from `palette`, are overridden by a __styles__ mapping in
    __main__, and are dropped entirely when the fault is rendered without color.
    """
    styles = defaultdict(str, palette | getattr(__import__("__main__"), "__styles__", {}))
    colorful = fault.options.get("colorful", True)

    def styler(style):
        return styles[style] if colorful else ""

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if isinstance(fragment, Text):
            return fragment if colorful else Text(fragment.plain)
        return Text(str(fragment), style if colorful else "")

    return styler, text


def _render(fault, palette, kind):
    styler, text = _renderer(fault, palette)
    main = __import__("__main__")

    prog = text(fault.options.get("prog") or getattr(main, "__prog__", "kitbag"), styler("prog-name"))
    header = Text.assemble(
        "[ ",
        prog,
        " — ",
        text(fault.code.normalize(), styler("code")),
        " | ",
        text(fault.title.title(), styler(kind + "-title")),
        " ]"
    )
    parts = [header, text(fault.message, styler(kind + "-message"))]
    if hint := fault.hint:
        parts.append(Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))
    if docs := getdoc(fault.code):
        parts.append(text(docs, styler("docs")))
    return Group(*parts)


class CommandException(Exception):
    """
    base of every fault raised by the toolkit.

    - message: one-sentence, lowercased description.
    - options: read-only mapping of context (prog, colorful, hint, input, ...).
    - class-level defaults: exit_code, code and title; `hint` and `title` may be
      overridden per instance through options.
    """
    exit_code = 1
    code = FaultCode.DELEGATED_ERROR
    title = "error"

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, ""))
        self.message = coalesce(message, "")
        self.options = MappingProxyType(options)
        if "title" in options:
            self.title = options["title"]

    @property
    def hint(self):
        return self.options.get("hint")

    def __str__(self):
        return self.message

    def __rich__(self):
        return _render(self, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
            "docs": "underline #00E5FF dim",
        }, "error")

    def __trigger__(self) -> None:
        console.print(self)
        sys.exit(self.exit_code)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        replica = type(self).__new__(type(self))
        replica.__dict__.update(self.__dict__)
        replica.args = self.args
        replica.options = MappingProxyType(self.options | overrides)
        if "title" in overrides:
            replica.title = overrides["title"]
        return replica


class UnknownCommandError(CommandException):
    exit_code = 2
    code = FaultCode.UNKNOWN_COMMAND
    title = "unknown command"

    def __init__(self, name, /, **options):
        super().__init__("the command %r is not known" % str(name), **options)
        self.name = str(name)


class MissingCommandError(CommandException):
    exit_code = 2
    code = FaultCode.MISSING_COMMAND
    title = "missing command"

    def __init__(self, message="a command is required", /, **options):
        super().__init__(message, **options)


class InvalidCommandLineError(CommandException):
    exit_code = 2
    code = FaultCode.INVALID_COMMAND_LINE
    title = "invalid command line"


class WrongArgumentCountError(InvalidCommandLineError):
    """
    the positional count does not satisfy the configured cardinality rule.

    carries the rule and the observed count so presentation layers can word
    their own message; the default message follows the rule's shape.
    """
    code = FaultCode.WRONG_ARGUMENT_COUNT
    title = "wrong argument count"

    def __init__(self, rule, count, /, **options):
        match rule:
            case Exact(expected):
                message = "expected %d arguments, got %d" % (expected, count)
            case Between(low, high):
                message = "expected %d..%d (inclusive) arguments, got %d" % (low, high, count)
            case _:
                message = "%d arguments given" % count
        super().__init__(message, **options)
        self.rule = rule
        self.count = count


class ScanError(InvalidCommandLineError):
    """
    base for faults raised while recognizing switches.

    common options
    - input: the switch spelling (or token) that failed.
    - switch: the resolved Switch, when there is one.
    """

    @property
    def input(self):
        return self.options.get("input")


class UnknownSwitchError(ScanError):
    code = FaultCode.UNKNOWN_SWITCH
    title = "unknown option or flag"

    @property
    def suggestions(self):
        return self.options.get("suggestions", ())


class AmbiguousSwitchError(ScanError):
    code = FaultCode.AMBIGUOUS_SWITCH
    title = "ambiguous option or flag"

    @property
    def matches(self):
        return self.options.get("matches", ())


class MissingValueError(ScanError):
    code = FaultCode.MISSING_VALUE
    title = "missing value"


class InvalidValueError(ScanError):
    code = FaultCode.INVALID_VALUE
    title = "invalid value"


class NeedlessValueError(ScanError):
    code = FaultCode.NEEDLESS_VALUE
    title = "flag cannot take a value"


class DelegatedCommandError(CommandException):
    code = FaultCode.DELEGATED_ERROR
    title = "delegated error"

    @property
    def exception(self):
        return self.options.get("exception")


class CommandWarning(ABC, Warning):
    code = FaultCode.DUPLICATED_COMMAND
    title = "warning"

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, ""))
        self.message = coalesce(message, "")
        self.options = MappingProxyType(options)

    @property
    def hint(self):
        return self.options.get("hint")

    def __str__(self):
        return self.message

    def __rich__(self):
        return _render(self, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #FFB400",  # amber fault code for warnings
            "warning-title": "bold #FFC2E0",  # softer pinky title for warnings

            # body
            "warning-message": "#D6D6DE",  # slightly lighter gray body
            "hint-arrow": "#B8EFAF dim",  # softer green arrow
            "hint": "italic #B8EFAF",  # softer green hint text
            "docs": "underline #FFB400 dim",
        }, "warning")

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=self.options.get("stacklevel", 2))
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class DuplicatedCommandWarning(CommandWarning):
    code = FaultCode.DUPLICATED_COMMAND
    title = "duplicated command"


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via copy.replace() before triggering.
    - exceptions print on stderr and exit with their exit_code; warnings go
      through warnings.warn unless `shell=True`, in which case they print.

    typical options
    - prog, colorful, shell, hint, and any other context the reporter may want
      to show (input, suggestions, ...).
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys
    are FaultCode instances and values are short documentation strings.
    when not found, returns None (renderers treat docs as optional).
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    return getattr(__import__("__main__"), "__docs__", {}).get(code)


__all__ = (
    "CommandException",
    "UnknownCommandError",
    "MissingCommandError",
    "InvalidCommandLineError",
    "WrongArgumentCountError",
    "ScanError",
    "UnknownSwitchError",
    "AmbiguousSwitchError",
    "MissingValueError",
    "InvalidValueError",
    "NeedlessValueError",
    "DelegatedCommandError",
    "CommandWarning",
    "DuplicatedCommandWarning",
    "FaultCode",
    "trigger",
    "getdoc",
)
