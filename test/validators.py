"""
Built-in parsers and validators.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from cap import optional, parsers, validators


class TestParsers(TestCase):

    def testInteger(self):
        self.assertEqual(parsers.integer(" 42 "), 42)
        self.assertEqual(parsers.integer("-3"), -3)
        with self.assertRaises(ValueError):
            parsers.integer("4.2")

    def testDecimal(self):
        self.assertEqual(parsers.decimal("0.5"), 0.5)
        for raw in ("nan", "inf", "-inf", "half"):
            with self.subTest(raw=raw), self.assertRaises(ValueError):
                parsers.decimal(raw)

    def testBoolean(self):
        self.assertIs(parsers.boolean("Yes"), True)
        self.assertIs(parsers.boolean("off"), False)
        with self.assertRaises(ValueError):
            parsers.boolean("maybe")

    def testValueless(self):
        parser = parsers.valueless(False)
        self.assertIs(parser("anything"), False)
        self.assertIs(parser.value, False)


class TestValidators(TestCase):

    def setUp(self):
        self.argument = optional("n", parser=parsers.integer)

    def testMinimumIsExclusive(self):
        validator = validators.minimum(10)
        self.assertFalse(validator(None, self.argument, 10))
        self.assertTrue(validator(None, self.argument, 11))
        self.assertEqual(validator.describe(None, self.argument), "> 10")

    def testMaximumIsExclusive(self):
        validator = validators.maximum(10)
        self.assertFalse(validator(None, self.argument, 10))
        self.assertTrue(validator(None, self.argument, 9))
        self.assertEqual(validator.describe(None, self.argument), "< 10")

    def testBetweenIsInclusive(self):
        validator = validators.between(1, 3)
        self.assertTrue(validator(None, self.argument, 1))
        self.assertTrue(validator(None, self.argument, 3))
        self.assertFalse(validator(None, self.argument, 4))
        self.assertEqual(validator.describe(None, self.argument), "between 1 and 3")

    def testChoices(self):
        validator = validators.choices(["north", "south"])
        self.assertTrue(validator(None, self.argument, "north"))
        self.assertFalse(validator(None, self.argument, "east"))
        self.assertEqual(validator.describe(None, self.argument), "one of north, south")

    def testChoicesNeedsValues(self):
        with self.assertRaises(ValueError):
            validators.choices([])

    def testBoundsMayDependOnSender(self):
        limits = {"admin": 100, "guest": 5}
        validator = validators.maximum(lambda sender, argument: limits[sender])
        self.assertTrue(validator("admin", self.argument, 50))
        self.assertFalse(validator("guest", self.argument, 50))
        self.assertEqual(validator.describe("guest", self.argument), "< 5")


if __name__ == "__main__":
    unittest.main()
