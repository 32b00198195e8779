"""
Cardinality rule tests (normalization, verdicts, explanations).

Scope
- normalize() maps every accepted shorthand to a closed rule shape.
- satisfied() implements inclusive ranges and exact counts.
- explain() produces the help sentences.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from kitbag.cardinality import *
from kitbag.cardinality import OBSCURE_EXPLANATION


class TestNormalize(TestCase):
    """normalize() accepted inputs and rejections."""

    def testNoneIsUnconstrained(self):
        self.assertEqual(normalize(None), Unconstrained())

    def testIntegerIsExact(self):
        self.assertEqual(normalize(0), Exact(0))
        self.assertEqual(normalize(2), Exact(2))

    def testRangeAndPairAreInclusive(self):
        self.assertEqual(normalize(range(1, 4)), Between(1, 3))
        self.assertEqual(normalize((1, 3)), Between(1, 3))

    def testShorthandBecomesExplainedPredicate(self):
        rule = normalize("even")
        self.assertIsInstance(rule, Predicate)
        self.assertEqual(rule.explanation, "Positional argument count must be even.")
        self.assertTrue(rule.test(2))
        self.assertFalse(rule.test(3))

    def testCallableBecomesPredicate(self):
        def test(count):
            return count > 1

        self.assertEqual(normalize(test), Predicate(test))

    def testRulesPassThrough(self):
        rule = Between(2, 5)
        self.assertIs(normalize(rule), rule)

    def testRejections(self):
        with self.assertRaises(TypeError):
            normalize(True)
        with self.assertRaises(TypeError):
            normalize(1.5)
        with self.assertRaises(ValueError):
            normalize(-1)
        with self.assertRaises(ValueError):
            normalize(range(-1, 2))
        with self.assertRaises(ValueError):
            normalize("bogus")


class TestSatisfied(TestCase):
    """satisfied() verdicts per rule shape."""

    def testUnconstrained(self):
        for count in range(5):
            self.assertTrue(satisfied(Unconstrained(), count))

    def testExact(self):
        for expected in range(4):
            for count in range(6):
                self.assertEqual(satisfied(Exact(expected), count), count == expected)

    def testBetweenIsInclusive(self):
        rule = normalize(range(2, 5))
        for count in range(8):
            self.assertEqual(satisfied(rule, count), 2 <= count <= 4)

    def testPredicate(self):
        rule = normalize("odd")
        self.assertTrue(satisfied(rule, 3))
        self.assertFalse(satisfied(rule, 4))

    def testPredicateErrorsPropagate(self):
        with self.assertRaises(ZeroDivisionError):
            satisfied(Predicate(lambda count: 1 / 0), 1)


class TestExplain(TestCase):
    """explain() sentences."""

    def testNothingToSay(self):
        self.assertIsNone(explain(Unconstrained()))
        self.assertIsNone(explain(Exact(0)))

    def testExact(self):
        self.assertEqual(explain(Exact(1)), "Requires 1 positional argument.")
        self.assertEqual(explain(Exact(3)), "Requires 3 positional arguments.")

    def testBetween(self):
        self.assertEqual(explain(Between(1, 3)), "Requires 1..3 (inclusive) positional arguments.")

    def testPredicate(self):
        self.assertEqual(explain(normalize("nonzero")), "Positional argument count must be nonzero.")
        self.assertEqual(explain(Predicate(bool)), OBSCURE_EXPLANATION)
        self.assertEqual(explain(Predicate(bool, "Bring friends.")), "Bring friends.")


if __name__ == '__main__':
    unittest.main()
