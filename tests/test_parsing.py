#!/usr/bin/env python
# tests/test_parsing.py

import os
import sys
import unittest

# Add project root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from poultry_ops.core.parsing import parse_bool, parse_number, parse_optional_bool


class TestParseBool(unittest.TestCase):
    """Flags written by the firmware and the dashboard."""

    def test_true_values(self):
        for value in (True, "true", 1, "1", 1.0):
            self.assertTrue(parse_bool(value), value)

    def test_everything_else_is_false(self):
        for value in (False, "false", 0, "0", None, "TRUE", "yes", 2, [], {}):
            self.assertFalse(parse_bool(value), value)

    def test_optional_keeps_none(self):
        self.assertIsNone(parse_optional_bool(None))
        self.assertTrue(parse_optional_bool("true"))
        self.assertFalse(parse_optional_bool("nope"))


class TestParseNumber(unittest.TestCase):

    def test_numbers_and_numeric_strings(self):
        self.assertEqual(parse_number(12), 12.0)
        self.assertEqual(parse_number(3.5), 3.5)
        self.assertEqual(parse_number(" 42.5 "), 42.5)
        self.assertEqual(parse_number("-1"), -1.0)

    def test_invalid_values(self):
        for value in (None, "", "  ", "abc", True, False, float("nan"), float("inf"), "nan", [1], {"v": 1}):
            self.assertIsNone(parse_number(value), value)


if __name__ == "__main__":
    unittest.main()
