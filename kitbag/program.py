"""
Kitbag toolkit programs: a registry of named commands and their dispatch.

Overview
- Program: owns the commands of one CLI script.
  • command(name, descr=...) decorator registers a handler as a Command.
  • run(argv) picks the command from the first word, parses the remaining words
    with the command's parser and calls the handler with the parsed context.
  • main(argv) is run() plus fault reporting: faults are rendered on stderr and
    the process exits with the fault's exit status (2 for command-line errors).
  • built-in commands: help (also -h / --help), --commands, --flag-completion,
    --install-completions.

- Command: one registered handler plus its optional argument-parsing setup.
  • parse_args(into=factory) decorator registers setup(parser, destination).
  • prohibit_args() accepts no positional arguments.
  • build() returns a freshly configured CommandParser (None without setup).

Handlers receive their context explicitly: the parser destination for commands
that parse arguments, the raw list of words otherwise.

Example
    >>> program = Program("greeter")
    >>> @program.command("greet", descr="Greet somebody")
    ... def greet(args):
    ...     return "hello %s" % " ".join(args[None])
    >>> @greet.parse_args()
    ... def _(parser, args):
    ...     parser.expect_positional_cardinality(range(1, 3))
    >>> program.run(["greet", "world"])
    'hello world'
"""
import inspect
import os
import sys
from pathlib import Path

from rich.console import Console
from rich.text import Text

from .completion import *
from .faults import *
from .help import *
from .parser import *
from .utils import *


def _prohibit(parser, destination):
    parser.no_positional_args()


def _echo(text):
    Console(highlight=False, soft_wrap=True).print(Text(text))


class Command:
    """
    Named handler of a toolkit program.

    The handler is called with a single context argument; the argument parsing
    setup, when there is one, decides what that context looks like.
    """

    def __init__(self, program, name, handler, descr=None):
        if not callable(handler):
            raise TypeError("command handler must be callable")
        self._program = program
        self._name = name
        self._handler = handler
        self._descr = descr
        self._setup = None
        self._factory = Unset

    name = mirror("name")
    handler = mirror("handler")
    descr = mirror("descr")

    @property
    def summary(self):
        """First line of the description (empty when there is none)."""
        return (self._descr or "").strip().partition("\n")[0]

    @property
    def parses_args(self):
        return self._setup is not None

    def parse_args(self, into=Unset):
        """
        Decorator registering the argument-parsing setup of this command.

        The decorated function is called as setup(parser, destination) every
        time a parser is built. `into` is a destination factory; it defaults to
        the program's default_parsed_args factory (dict unless configured).
        """
        if into is not Unset and not callable(into):
            raise TypeError("parse_args() into must be a destination factory")

        def wrapper(setup, /):
            if not callable(setup):
                raise TypeError("@parse_args() must be applied to a callable")
            self._setup = setup
            self._factory = into
            return setup

        return rename(wrapper, "parse_args")

    def prohibit_args(self):
        """Accept no positional arguments (switches may still be declared elsewhere)."""
        self._setup = _prohibit
        self._factory = list
        return self

    def invalid_args(self, message, /):
        raise InvalidCommandLineError(message)

    def build(self, destination=Unset):
        """
        Return a new CommandParser configured by the setup function.

        Each call builds a new parser over a new destination (unless one is
        given), so builds never share state.
        """
        if self._setup is None:
            return None
        if destination is Unset:
            destination = coalesce(self._factory, self._program.new_default_parsed_args)()
        parser = CommandParser(destination)
        self._setup(parser, destination)
        return parser

    def __call__(self, context, /):
        return self._handler(context)

    def __repr__(self):
        return "%s(%r)" % (type(self).__name__, self._name)


class Program:
    """
    Toolkit program: named commands, help, completion and dispatch.

    Options
    - name: script name; defaults to sys.argv[0], then $THIS_SCRIPT.
    - title: help title; defaults to "<Script> Toolkit Program".
    - styling: HelpStyling used by the help command.
    - colorful: render help and faults with colors.
    """

    def __init__(self, name=Unset, /, *, title=Unset, styling=Unset, colorful=True):
        if name is not Unset and not (isinstance(name, str) and name.strip()):
            raise TypeError("program name must be a non-empty string")
        if title is not Unset and not isinstance(title, str):
            raise TypeError("program title must be a string")
        if styling is not Unset and not isinstance(styling, HelpStyling):
            raise TypeError("program styling must be a HelpStyling")

        self._name = name
        self._title = title
        self._colorful = bool(colorful)
        self._styling = coalesce(styling, HelpStyling(colorful=colorful))
        self._commands = {}
        self._default_parsed_args = dict

        self._register("help", self._help, descr=inspect.getdoc(self._help))
        self._register("-h", self._help)
        self._register("--help", self._help)
        self._register("--commands", self._list_commands)
        self._register("--flag-completion", self._complete_flags)
        self._register("--install-completions", self._install_completions)

    styling = mirror("styling")
    colorful = mirror("colorful")

    @property
    def title(self):
        return coalesce(self._title, "%s Toolkit Program" % Path(self.script_name()).name.capitalize())

    def script_name(self, *, placeholder=True):
        """
        Name the script was invoked by.

        Falls back to $THIS_SCRIPT when sys.argv[0] is "-" (script read from
        stdin), then to "<script-name>" unless placeholder is False, in which
        case RuntimeError is raised.
        """
        if self._name is not Unset:
            return self._name
        if sys.argv and sys.argv[0] not in ("", "-"):
            return sys.argv[0]
        if script := os.environ.get("THIS_SCRIPT"):
            return script
        if placeholder:
            return "<script-name>"
        raise RuntimeError("script name unknown (set THIS_SCRIPT when running from stdin)")

    def default_parsed_args(self, factory, /):
        """
        Set the destination factory used by commands that do not name one.

        Returns the factory so this can decorate it.
        """
        if not callable(factory):
            raise TypeError("default_parsed_args() argument must be callable")
        self._default_parsed_args = factory
        return factory

    def new_default_parsed_args(self):
        return self._default_parsed_args()

    def _register(self, name, handler, descr=None):
        command = Command(self, name, handler, descr)
        self._commands[name] = command
        return command

    def command(self, name=Unset, /, descr=Unset):
        """
        Decorator registering a handler as a command.

        The name defaults to the handler's name (underscores become hyphens),
        the description to its docstring. Commands without description are
        callable but not listed. Registering a name again replaces the
        command and emits DuplicatedCommandWarning.
        """
        if name is not Unset and not (isinstance(name, str) and name.strip()):
            raise TypeError("command name must be a non-empty string")
        if descr is not Unset and not isinstance(descr, str):
            raise TypeError("command description must be a string")

        def wrapper(handler, /):
            if not callable(handler):
                raise TypeError("@command() must be applied to a callable")
            command = coalesce(name, handler.__name__.replace("_", "-"))
            if command in self._commands:
                trigger(DuplicatedCommandWarning(
                    "the command %r is defined more than once" % command,
                    hint="the last definition replaces the earlier ones",
                    name=command,
                ), stacklevel=4)
            return self._register(command, handler, coalesce(descr, inspect.getdoc(handler)))

        return rename(wrapper, "command")

    def known_command(self, name, /):
        return name is not None and name in self._commands

    def find(self, name, /, *, strict=False):
        """Command registered under `name`; None (or UnknownCommandError when strict) otherwise."""
        if self.known_command(name):
            return self._commands[name]
        if strict:
            raise UnknownCommandError(
                name,
                hint="try '%s help' to list the available commands" % self.script_name(),
            )
        return None

    def available_commands(self, *, include="all"):
        match include:
            case "all":
                return list(self._commands.values())
            case "listable":
                return [command for command in self._commands.values() if command.descr]
            case _:
                raise ValueError("%r is not valid for include (expected 'all' or 'listable')" % (include,))

    @staticmethod
    def _help_requested(args):
        if args[:1] == ["help"]:
            return True
        for arg in args:
            if arg == "--":
                return False
            if arg in ("-h", "--help"):
                return True
        return False

    def run(self, argv=Unset, /):
        """
        Dispatch a command line (defaults to sys.argv[1:]).

        The first word names the command; "-h" / "--help" (before "--") or a
        "help" second word turn the request into "help <command>". Returns
        whatever the handler returns.
        """
        argv = list(coalesce(argv, sys.argv[1:]))
        if not argv:
            raise MissingCommandError(hint="try '%s help' to list the available commands" % self.script_name())

        name, *args = argv
        if self._help_requested(args):
            name, args = "help", [name, *args[1:]]

        command = self.find(name, strict=True)
        parser = command.build()
        if parser is None:
            return command(args)
        parser.parse(args)
        return command(parser.destination)

    def main(self, argv=Unset, /):
        """
        run() with fault reporting.

        Command faults are rendered on stderr and exit with their status; any
        other exception becomes a DelegatedCommandError (exit status 1).
        """
        try:
            return self.run(argv)
        except CommandException as fault:
            trigger(fault, prog=self.script_name(), colorful=self._colorful)
        except Exception as error:
            trigger(DelegatedCommandError(
                "%s: %s" % (type(error).__name__, error),
                exception=error,
            ), prog=self.script_name(), colorful=self._colorful)

    def _help(self, args):
        """
        Show a list of commands or details of one command

        To get help on a specific command, put the command's name as the first
        argument after 'help' or use '-h' or '--help' after the command's name.
        """
        command = self.find(args[0]) if args else None
        renderable = details(self, command) if command else overview(self)
        Console(highlight=False).print(renderable)

    def _list_commands(self, args):
        _echo(" ".join(command.name for command in self.available_commands(include="listable")))

    def _complete_flags(self, words):
        # words: program, command, preceding words..., word being completed
        try:
            _, name, *preceding = words
            if not preceding:
                return None
            incomplete = preceding.pop()
            command = self.find(name)
            completions = generate(command.build() if command else None, preceding, incomplete)
        except Exception:
            # a failing completion request prints nothing
            return None
        if text := render(completions):
            _echo(text)
        return completions

    def _install_completions(self, args):
        installation = install(self.script_name(placeholder=False))
        if not installation.added:
            _echo("Completions already installed in %s" % installation.profile)
        else:
            _echo("Completions installed in %s" % installation.profile)
            _echo("Source %s for immediate availability." % installation.script)
        return installation


__all__ = (
    "Command",
    "Program",
)
