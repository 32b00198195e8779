r"""
Kitbag shell completion: candidate generation and the bash shim.

Overview
- generate(parser, preceding, incomplete) -> Completions(candidates, suppressed)
  Replays the words typed so far against a command's parser (on a scratch copy
  of its destination) and decides what to offer for the word being typed:
  • missing switch value          nothing, filesystem completion allowed
  • wrong positional count        nothing, filesystem completion allowed
  • any other command-line fault  nothing, filesystem completion suppressed
  • success                       long switch spellings matching the word (toggles
                                  expanded to both forms); filesystem completion is
                                  suppressed when the word is empty and one more
                                  positional would break the cardinality rule.

- render(completions): line protocol understood by the shell function. When
  filesystem completion is suppressed the first line is SENTINEL ("!NOFSCOMP!")
  and the remaining lines are the candidates; otherwise every line is a candidate.

- script_lines(...) / script(program) / install(program, ...): the bash
  completion function and its installation into a profile.

Example
    >>> parser = CommandParser()
    >>> parser.on("--[no-]formatted")
    Switch('--[no-]formatted')
    >>> generate(parser, [], "")
    Completions(candidates=('--formatted', '--no-formatted'), suppressed=False)
    >>> render(generate(parser, ["--bork"], ""))
    '!NOFSCOMP!'
"""
import copy
import os
import re
import secrets
import shlex
import textwrap
from pathlib import Path
from typing import NamedTuple

from .faults import *
from .utils import *

SENTINEL = "!NOFSCOMP!"

TOGGLE = re.compile(r"--\[(?P<negation>[^\W\d_][^\W_]*-)\](?P<base>.*)")


class Completions(NamedTuple):
    """Outcome of one completion request."""
    candidates: tuple[str, ...]
    suppressed: bool


class Installation(NamedTuple):
    """Where install() put things and whether the profile was changed."""
    script: Path
    profile: Path
    added: bool


def _expand(spelling):
    if match := TOGGLE.fullmatch(spelling):
        return "--" + match["base"], "--" + match["negation"] + match["base"]
    return spelling,


def generate(parser, preceding, incomplete, /):
    """
    Completion candidates for `incomplete`, given the `preceding` words.

    parser is the command's CommandParser, or None when the command is not
    known (or parses no arguments); preceding are the words after the command
    name and before the one being completed.

    The parser's live destination is never touched: the replay parses into a
    shallow copy of it. Switch callbacks do run during the replay; any error
    other than a command-line fault raised by the replay yields no candidates.
    """
    if parser is None:
        return Completions((), False)
    if not isinstance(incomplete, str):
        raise TypeError("generate() incomplete word must be a string")

    raw = parser.candidates(incomplete or "-")
    scratch = copy.copy(parser.destination)

    try:
        positionals = parser.parse(list(preceding), into=scratch)
    except (MissingValueError, WrongArgumentCountError):
        return Completions((), False)
    except InvalidCommandLineError:
        return Completions((), True)
    except Exception:
        # raised by a cardinality predicate or a switch callback
        return Completions((), False)

    suppressed = not incomplete and not parser.cardinality_satisfied(len(positionals) + 1)

    candidates = []
    for spelling in raw:
        if not spelling.startswith("--"):
            continue
        for form in _expand(spelling):
            if form.startswith(incomplete) and form not in candidates:
                candidates.append(form)

    return Completions(tuple(candidates), suppressed)


def render(completions, /):
    """Serialize completions for the shell function (one word per line)."""
    lines = [SENTINEL] if completions.suppressed else []
    lines.extend(completions.candidates)
    return "\n".join(lines)


def script_lines(*, static_options=None, static_flags=None):
    """
    Yield the body lines of the bash completion function.

    The function asks the program for its commands (`--commands`) and for
    switch candidates (`--flag-completion`); static_options / static_flags
    replace those queries with fixed words.
    """
    options = static_options or '$("$1" --commands)'
    if static_flags:
        flags = shlex.quote(static_flags)
    elif static_options:
        flags = "''"
    else:
        flags = '$("$1" --flag-completion "${COMP_WORDS[@]}")'

    body = textwrap.dedent(r"""
        COMPREPLY=()
        MY_WORDNUM=1
        if [ "${COMP_CWORD}" = 2 ] && [ "${COMP_WORDS[1]}" = help ]; then
          MY_WORDNUM=2
        elif [ "${COMP_CWORD}" != "1" ]; then
          HELP_FLAG="--help"
          if [ -n "${COMP_WORDS[$COMP_CWORD]}" ] && [ "${HELP_FLAG#${COMP_WORDS[$COMP_CWORD]}}" = "$HELP_FLAG" ]; then
            # word being completed is not a prefix of --help
            :
          elif ! { echo " ${COMP_WORDS[*]}" | grep -Eq '\s(--help|-h|--\s)'; }; then
            COMPREPLY=("--help")
          fi
          DO_COMPGEN=true
          if ! { echo " ${COMP_WORDS[*]}" | grep -Eq '\s(--help|-h|--\s)'; }; then
            FLAGS_CANDIDATE=%(flags)s
            if [ "$(echo "$FLAGS_CANDIDATE" | head -n1)" == '%(sentinel)s' ]; then
              DO_COMPGEN=false
              COMPREPLY+=($(echo "$FLAGS_CANDIDATE" | tail -n+2))
            else
              COMPREPLY+=($FLAGS_CANDIDATE)
            fi
          fi
          if $DO_COMPGEN && [ "${COMP_WORDS[$COMP_CWORD]}" != "--" ] && ! { echo " ${COMP_WORDS[*]}" | grep -Eq '\s(--help|-h)'; }; then
            COMPREPLY+=($(compgen -f -d -- "${COMP_WORDS[$COMP_CWORD]}"))
          fi
          return
        fi
        COMPREPLY=($(compgen -W "%(options)s" -- "${COMP_WORDS[$MY_WORDNUM]}"))
    """).strip("\n") % {"flags": flags, "sentinel": SENTINEL, "options": options}

    for line in body.splitlines():
        yield "  " + line


def script(program, /, *, function=Unset, **options):
    """
    Full bash completion script for `program` (a path or a name).

    The function name defaults to a random, collision-free identifier;
    options are forwarded to script_lines().
    """
    name = Path(program).name
    function = coalesce(function, "_" + secrets.token_hex(20))
    lines = ["%s() {" % function, *script_lines(**options), "}"]
    lines.append("complete -F %s -o bashdefault %s" % (function, shlex.quote(name)))
    return "\n".join(lines) + "\n"


def _locations():
    if os.geteuid() == 0:
        return Path("/etc/profile"), Path("/usr/local/lib/")
    return Path("~/.bash_profile").expanduser(), Path("~/.bash-complete").expanduser()


def _sourced(profile, words):
    try:
        with open(profile) as stream:
            for line in stream:
                try:
                    if shlex.split(line, comments=True) == words:
                        return True
                except ValueError:
                    continue
    except FileNotFoundError:
        return False
    return False


def install(program, /, *, profile=Unset, directory=Unset):
    """
    Write the completion script for `program` and source it from a profile.

    defaults
    - root: /etc/profile and /usr/local/lib/
    - others: ~/.bash_profile and ~/.bash-complete

    The completion file is always (re)written as "<name>-completions" in the
    directory. The `source` line is appended to the profile unless an
    equivalent one (same words, comments ignored) is already there.
    """
    default_profile, default_directory = _locations()
    profile = Path(coalesce(profile, default_profile)).expanduser()
    directory = Path(coalesce(directory, default_directory)).expanduser()

    target = directory / ("%s-completions" % Path(program).name)
    directory.mkdir(parents=True, exist_ok=True)
    target.write_text(script(program))
    target.chmod(0o644)

    words = ["source", str(target)]
    if _sourced(profile, words):
        return Installation(target, profile, False)

    with open(profile, "a") as stream:
        stream.write(shlex.join(words) + "\n")
    return Installation(target, profile, True)


__all__ = (
    "SENTINEL",
    "Completions",
    "Installation",
    "generate",
    "render",
    "script_lines",
    "script",
    "install",
)
