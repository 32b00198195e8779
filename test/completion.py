"""
Completion module tests (candidate generation, protocol, shell script).

Scope
- generate(): classification of the replayed command line, toggle expansion,
  prefix filtering, filesystem suppression and idempotence.
- render(): sentinel line protocol.
- script()/script_lines(): generated bash function.
- install(): completion file and profile update (temporary directories only).

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
from unittest import TestCase

from kitbag.completion import *
from kitbag.parser import CommandParser


class TestGenerate(TestCase):
    """Candidate generation against a command parser."""

    def testMissingValueDefersToFilesystem(self):
        parser = CommandParser()
        parser.on("--message", metavar="TEXT")
        parser.on("--to", metavar="ADDR")
        self.assertEqual(generate(parser, ["--message"], ""), Completions((), False))

    def testToggleExpandedToBothForms(self):
        parser = CommandParser()
        parser.on("--[no-]formatted")
        self.assertEqual(generate(parser, [], ""), Completions(("--formatted", "--no-formatted"), False))

    def testUnknownSwitchSuppresses(self):
        parser = CommandParser()
        parser.on("--message", metavar="TEXT")
        self.assertEqual(generate(parser, ["--bork"], ""), Completions((), True))

    def testInvalidValueSuppresses(self):
        parser = CommandParser()
        parser.on("--count", metavar="N", type=int)
        self.assertEqual(generate(parser, ["--count", "many"], ""), Completions((), True))

    def testWrongCountDefersToFilesystem(self):
        parser = CommandParser()
        parser.on("--verbose")
        parser.no_positional_args()
        self.assertEqual(generate(parser, ["extra"], ""), Completions((), False))

    def testRaisingPredicateYieldsNothing(self):
        parser = CommandParser()
        parser.on("--verbose")
        parser.expect_positional_cardinality(lambda count: {}["missing"])
        self.assertEqual(generate(parser, ["foo"], ""), Completions((), False))
        self.assertEqual(generate(parser, ["foo"], "--v"), Completions((), False))

    def testNoParser(self):
        self.assertEqual(generate(None, ["a"], "--x"), Completions((), False))

    def testShortSpellingsNeverOffered(self):
        parser = CommandParser()
        parser.on("-m", "--message", metavar="TEXT")
        self.assertEqual(generate(parser, [], "").candidates, ("--message",))
        self.assertEqual(generate(parser, [], "-").candidates, ("--message",))

    def testPrefixFiltersExpandedForms(self):
        parser = CommandParser()
        parser.on("--[no-]formatted")
        parser.on("--follow")
        self.assertEqual(generate(parser, [], "--f").candidates, ("--formatted", "--follow"))
        self.assertEqual(generate(parser, [], "--no").candidates, ("--no-formatted",))

    def testFullPositionalsSuppressFilesystemButKeepCandidates(self):
        parser = CommandParser()
        parser.on("--verbose")
        parser.expect_positional_cardinality(range(0, 2))
        self.assertEqual(generate(parser, [], ""), Completions(("--verbose",), False))
        self.assertEqual(generate(parser, ["one"], ""), Completions(("--verbose",), True))

    def testPartialWordNeverSuppresses(self):
        parser = CommandParser()
        parser.no_positional_args()
        self.assertEqual(generate(parser, [], "fi"), Completions((), False))
        self.assertEqual(generate(parser, [], ""), Completions((), True))

    def testSwitchValuesDoNotCountAsPositionals(self):
        parser = CommandParser()
        parser.on("--to", metavar="ADDR")
        parser.expect_positional_cardinality(1)
        self.assertFalse(generate(parser, ["--to", "me"], "").suppressed)
        self.assertTrue(generate(parser, ["--to", "me", "file"], "").suppressed)

    def testLiveDestinationUntouched(self):
        parser = CommandParser()
        parser.on("--message", metavar="TEXT")
        parser.capture_positionals("files")
        generate(parser, ["--message", "hi", "file"], "")
        self.assertEqual(parser.destination, {})

    def testIdempotent(self):
        parser = CommandParser()
        parser.on("--[no-]formatted")
        parser.on("--to", metavar="ADDR")
        parser.expect_positional_cardinality(1)
        for preceding, incomplete in ((["a"], ""), ([], "--"), (["--to"], ""), (["--bork"], "")):
            self.assertEqual(generate(parser, preceding, incomplete), generate(parser, preceding, incomplete))


class TestRender(TestCase):
    """Line protocol for the shell function."""

    def testSuppressedStartsWithSentinel(self):
        self.assertEqual(render(Completions(("--a", "--b"), True)), "!NOFSCOMP!\n--a\n--b")
        self.assertEqual(render(Completions((), True)), SENTINEL)

    def testNotSuppressedIsJustCandidates(self):
        self.assertEqual(render(Completions(("--a", "--b"), False)), "--a\n--b")
        self.assertEqual(render(Completions((), False)), "")


class TestScript(TestCase):
    """Generated bash completion function."""

    def testScript(self):
        text = script("/usr/local/bin/tool", function="_complete_tool")
        self.assertTrue(text.startswith("_complete_tool() {\n"))
        self.assertTrue(text.endswith("}\ncomplete -F _complete_tool -o bashdefault tool\n"))
        self.assertIn('$("$1" --flag-completion "${COMP_WORDS[@]}")', text)
        self.assertIn('$("$1" --commands)', text)
        self.assertIn("'!NOFSCOMP!'", text)
        self.assertIn("compgen -f -d", text)

    def testRandomFunctionName(self):
        self.assertNotEqual(script("tool").splitlines()[0], script("tool").splitlines()[0])

    def testIndentedLines(self):
        for line in script_lines():
            self.assertTrue(line.startswith("  "))

    def testStaticValues(self):
        lines = list(script_lines(static_options="build test"))
        self.assertIn("  COMPREPLY=($(compgen -W \"build test\" -- \"${COMP_WORDS[$MY_WORDNUM]}\"))", lines)
        self.assertTrue(any(line.strip() == "FLAGS_CANDIDATE=''" for line in lines))

        lines = list(script_lines(static_options="build", static_flags="--a --b"))
        self.assertTrue(any(line.strip() == "FLAGS_CANDIDATE='--a --b'" for line in lines))


class TestInstall(TestCase):
    """install() writes the script and sources it once."""

    def setUp(self):
        self.directory = tempfile.TemporaryDirectory()
        self.root = Path(self.directory.name)
        self.profile = self.root / "profile"
        self.completions = self.root / "completions"

    def tearDown(self):
        self.directory.cleanup()

    def testInstallTwice(self):
        first = install("/usr/bin/tool", profile=self.profile, directory=self.completions)
        self.assertTrue(first.added)
        self.assertEqual(first.script, self.completions / "tool-completions")
        self.assertIn("complete -F", first.script.read_text())
        self.assertEqual(self.profile.read_text(), "source %s\n" % first.script)

        second = install("/usr/bin/tool", profile=self.profile, directory=self.completions)
        self.assertFalse(second.added)
        self.assertEqual(self.profile.read_text().count("source"), 1)

    def testExistingLineWithCommentRecognized(self):
        target = self.completions / "tool-completions"
        self.profile.write_text("export PATH=$PATH:~/bin\nsource %s  # tool completions\n" % target)
        self.assertFalse(install("tool", profile=self.profile, directory=self.completions).added)
        self.assertTrue(target.exists())

    def testUnparsableProfileLinesIgnored(self):
        self.profile.write_text("echo 'unterminated\n")
        self.assertTrue(install("tool", profile=self.profile, directory=self.completions).added)


if __name__ == '__main__':
    unittest.main()
