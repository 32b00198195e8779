"""
Utilities module tests (sentinel, naming, mirroring, wording helpers).

Scope
- Unset sentinel semantics and coalesce().
- rename() forms and mirror() read-only copies.
- pluralize(), counted() and ordinal() wording used by fault messages.
- inclusive() bounds used by cardinality ranges.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import copy
import pickle
import unittest
from unittest import TestCase

from kitbag.utils import *


class TestUnset(TestCase):
    """Behavior of the Unset sentinel."""

    def testSingleton(self):
        self.assertIs(UnsetType(), Unset)

    def testFalseyAndRepr(self):
        self.assertFalse(Unset)
        self.assertEqual(repr(Unset), "Unset")

    def testDistinctFromNone(self):
        self.assertIsNot(Unset, None)
        self.assertNotEqual(Unset, None)

    def testCopyAndPicklePreserveIdentity(self):
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)
        self.assertIs(pickle.loads(pickle.dumps(Unset)), Unset)

    def testFinal(self):
        with self.assertRaises(TypeError):
            type("Derived", (UnsetType,), {})

    def testUnionWithTypes(self):
        self.assertIsInstance(Unset, str | Unset)
        self.assertIsInstance("text", str | Unset)


class TestCoalesce(TestCase):
    """coalesce() only replaces Unset."""

    def testUnsetReplaced(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")

    def testFalseyValuesKept(self):
        for value in (None, 0, "", []):
            self.assertEqual(coalesce(value, "fallback"), value)

    def testDefaultIsNone(self):
        self.assertIsNone(coalesce(Unset))


class TestRename(TestCase):
    """rename() direct and decorator forms."""

    def testDirectForm(self):
        def function():
            pass

        self.assertIs(rename(function, "renamed"), function)
        self.assertEqual(function.__name__, "renamed")
        self.assertEqual(function.__qualname__, "renamed")

    def testDecoratorForm(self):
        @rename("decorated")
        def function():
            pass

        self.assertEqual(function.__name__, "decorated")

    def testRejectsBadArguments(self):
        with self.assertRaises(TypeError):
            rename(42, "name")
        with self.assertRaises(TypeError):
            rename(lambda: None, 42)
        with self.assertRaises(TypeError):
            rename()


class TestMirror(TestCase):
    """mirror() exposes copies of private containers."""

    def testReadOnlyCopies(self):
        class Holder:
            items = mirror("items")
            pair = mirror("pair")

            def __init__(self):
                self._items = ["a", "b"]
                self._pair = ("x", ["y"])

        holder = Holder()
        holder.items.append("c")
        self.assertEqual(holder.items, ["a", "b"])
        self.assertIsInstance(holder.pair, tuple)
        holder.pair[1].append("z")
        self.assertEqual(holder.pair, ("x", ["y"]))
        with self.assertRaises(AttributeError):
            holder.items = []


class TestWording(TestCase):
    """pluralize(), counted() and ordinal()."""

    def testPluralize(self):
        self.assertEqual(pluralize("argument"), "arguments")
        self.assertEqual(pluralize("positional argument"), "positional arguments")
        self.assertEqual(pluralize("switch"), "switches")
        self.assertEqual(pluralize("entry"), "entries")
        self.assertEqual(pluralize("Box"), "Boxes")

    def testCounted(self):
        self.assertEqual(counted(1, "positional argument"), "1 positional argument")
        self.assertEqual(counted(0, "positional argument"), "0 positional arguments")
        self.assertEqual(counted(3, "positional argument"), "3 positional arguments")

    def testOrdinalWords(self):
        self.assertEqual(ordinal(1), "first")
        self.assertEqual(ordinal(3), "third")
        self.assertEqual(ordinal(10), "tenth")

    def testOrdinalSuffixes(self):
        self.assertEqual(ordinal(11), "11th")
        self.assertEqual(ordinal(12), "12th")
        self.assertEqual(ordinal(21), "21st")
        self.assertEqual(ordinal(22), "22nd")
        self.assertEqual(ordinal(23), "23rd")
        self.assertEqual(ordinal(112), "112th")


class TestInclusive(TestCase):
    """inclusive() converts ranges and pairs."""

    def testRange(self):
        self.assertEqual(inclusive(range(2, 4)), (2, 3))

    def testPair(self):
        self.assertEqual(inclusive((2, 3)), (2, 3))

    def testRejectsSteppedOrEmptyRanges(self):
        with self.assertRaises(ValueError):
            inclusive(range(0, 10, 2))
        with self.assertRaises(ValueError):
            inclusive(range(3, 3))

    def testRejectsNonIntegers(self):
        with self.assertRaises(TypeError):
            inclusive("1..2")
        with self.assertRaises(TypeError):
            inclusive((1.0, 2))
        with self.assertRaises(TypeError):
            inclusive((True, 2))


if __name__ == '__main__':
    unittest.main()
