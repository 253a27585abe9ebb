"""
Settings validation.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import dataclasses
import unittest
from unittest import TestCase

from cap import Settings


class TestSettings(TestCase):

    def testDefaults(self):
        settings = Settings()
        self.assertEqual(settings.separator, "=")
        self.assertFalse(settings.case_sensitive)
        self.assertFalse(settings.whitespace_separated)
        self.assertEqual(settings.first_page_size, settings.help_page_size)

    def testInvalidSeparators(self):
        for separator in ("", "==", "-", '"', "'", "\\"):
            with self.subTest(separator=separator), self.assertRaises(ValueError):
                Settings(separator=separator)

    def testWhitespaceSeparator(self):
        self.assertTrue(Settings(separator=" ").whitespace_separated)

    def testNonPositiveNumbersRaise(self):
        for field in ("completion_ttl", "completion_sweep", "completion_capacity", "help_page_size",
                      "help_first_page_size"):
            with self.subTest(field=field), self.assertRaises(ValueError):
                Settings(**{field: 0})

    def testReplaceReturnsModifiedCopy(self):
        settings = Settings()
        changed = settings.replace(case_sensitive=True)
        self.assertTrue(changed.case_sensitive)
        self.assertFalse(settings.case_sensitive)

    def testFrozen(self):
        with self.assertRaises(dataclasses.FrozenInstanceError):
            Settings().debug = True


if __name__ == "__main__":
    unittest.main()
