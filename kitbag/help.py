"""
Kitbag help rendering.

Scope
- HelpStyling: the four help styles (title, code, param, error-marker) as rich
  style strings, overridable per program or through a __styles__ mapping in
  __main__, and switched off entirely with colorful=False.
- overview(program): program title, usage, the listable commands and a hint.
- details(program, command): title, usage derived from the command's switches
  and cardinality rule, description, cardinality explanation and the options.

Both renderers return a rich Group; the caller decides where to print it.
"""
from collections import defaultdict

from rich.box import ROUNDED
from rich.console import Group
from rich.table import Table
from rich.text import Text

from .cardinality import *
from .utils import *


class HelpStyling:
    """
    Styles applied to generated help.

    Each style method renders a string as a rich Text with its style; the
    palette is the constructor overrides on top of __styles__ in __main__ on top
    of the defaults below.
    """

    palette = {
        "title": "bold bright_white on blue",
        "code": "bold",
        "param": "italic",
        "error-marker": "bold red on black",
    }

    def __init__(self, *, colorful=True, **overrides):
        unknown = set(overrides) - {key.replace("-", "_") for key in self.palette}
        if unknown:
            raise TypeError("HelpStyling() got unexpected styles: %s" % ", ".join(sorted(unknown)))
        self._colorful = bool(colorful)
        self._overrides = {key.replace("_", "-"): value for key, value in overrides.items()}

    colorful = mirror("colorful")

    @property
    def styles(self):
        return defaultdict(
            str,
            self.palette | getattr(__import__("__main__"), "__styles__", {}) | self._overrides
        )

    def _style(self, name, fragment):
        return Text(str(fragment), self.styles[name] if self._colorful else "")

    def title(self, fragment, /):
        return self._style("title", "*** %s ***" % fragment)

    def code(self, fragment, /):
        return self._style("code", fragment)

    def param(self, fragment, /):
        return self._style("param", fragment)

    def error_marker(self, fragment, /):
        return self._style("error-marker", fragment)


def _usage_arguments(style, parser):
    """Positional part of a usage line, shaped after the cardinality rule."""
    generic = Text.assemble("[", style.param("ARG"), " ...]")
    if parser is None:
        return [generic]
    match parser.positional_cardinality:
        case Exact(0):
            return []
        case Exact(count):
            return [style.param("ARG") for _ in range(count)]
        case Between(0, 1):
            return [Text.assemble("[", style.param("ARG"), "]")]
        case Between(low, _) if low > 0:
            return [Text.assemble(style.param("ARG"), " ...")]
        case _:
            return [generic]


def _spelling(style, switch):
    names = Text(", ").join(style.code(name) for name in switch.names)
    match switch.arity:
        case "required":
            return Text.assemble(names, " ", style.param(switch.metavar))
        case "optional":
            return Text.assemble(names, " [", style.param(switch.metavar), "]")
        case _:
            return names


def overview(program, /):
    style = program.styling
    name = program.script_name()
    options = Text.assemble("[", style.param("OPTION ..."), "]")

    renders = [
        Text(""),
        style.title(program.title),
        Text(""),
        Text.assemble("Usage: ", style.code(name), " ", style.param("COMMAND"), " ", options),
        Text(""),
        Text("Available options vary depending on the command given. For details\nof a particular command, use:"),
        Text(""),
        Text.assemble("    ", style.code(name), " ", style.code("help"), " ", style.param("COMMAND")),
        Text(""),
    ]

    commands = program.available_commands(include="listable")
    if commands:
        table = Table(
            "command", "description",
            title="Commands",
            box=ROUNDED,
            show_header=False,
        )
        for command in commands:
            table.add_row(style.code(command.name), Text(command.summary))
        renders.append(table)

    renders.append(Text.assemble(
        "Use ", style.code("help"), " ", style.param("COMMAND"), " to get more help on a specific command.\n"
    ))
    return Group(*renders)


def details(program, command, /):
    style = program.styling
    parser = command.build()

    usage = [style.code(program.script_name()), style.code(command.name)]
    switches = [switch for switch in (parser.switches if parser else ()) if not switch.hidden]
    if parser is None or switches:
        usage.append(Text.assemble("[", style.param("OPTION ..."), "]"))
    usage.extend(_usage_arguments(style, parser))

    renders = [
        Text(""),
        style.title(program.title),
        Text(""),
        Text.assemble("Usage: ", Text(" ").join(usage)),
        Text(""),
    ]
    if command.descr:
        renders.extend([Text(command.descr), Text("")])

    if parser is not None and (explanation := parser.describe_cardinality()):
        renders.extend([Text(explanation), Text("")])

    if switches:
        table = Table(
            "option", "description",
            title="Options",
            box=ROUNDED,
            show_header=False,
        )
        for switch in switches:
            table.add_row(_spelling(style, switch), Text(switch.descr or ""))
        renders.append(table)

    return Group(*renders)


__all__ = (
    "HelpStyling",
    "overview",
    "details",
)
