import datetime

import numpy as np
from django.test import SimpleTestCase

from apps.analytics.utils import (
    convert_numpy,
    get_columns,
    is_date,
    is_missing,
    is_numeric,
    parse_boolean,
    parse_date,
    to_float,
    to_number,
)


class TestCellHelpers(SimpleTestCase):
    def test_missing_cells(self):
        for value in [None, float("nan"), "", "   "]:
            with self.subTest(value=value):
                self.assertTrue(is_missing(value))
        for value in [0, "0", False, "null"]:
            with self.subTest(value=value):
                self.assertFalse(is_missing(value))

    def test_numeric_detection(self):
        self.assertTrue(is_numeric(" 12.5 "))
        self.assertTrue(is_numeric(3))
        self.assertFalse(is_numeric(True))
        self.assertFalse(is_numeric("12kg"))
        self.assertFalse(is_numeric("inf"))
        self.assertFalse(is_numeric("1_000"))

    def test_number_coercion(self):
        self.assertEqual(to_float("12.5kg"), 12.5)
        self.assertIsNone(to_float("kg"))
        self.assertEqual(to_number("$1,200.50"), 1200.5)
        self.assertEqual(to_number("45%"), 45.0)
        self.assertEqual(to_number("n/a"), 0.0)
        self.assertEqual(to_number(None), 0.0)

    def test_overflow_is_not_a_number(self):
        for value in ["1e999", "-1e999", float("inf")]:
            with self.subTest(value=value):
                self.assertIsNone(to_float(value))
                self.assertEqual(to_number(value), 0.0)

    def test_dates(self):
        self.assertTrue(is_date("2024-05-01"))
        self.assertTrue(is_date(datetime.date(2024, 5, 1)))
        self.assertFalse(is_date("1850-01-01"))
        self.assertFalse(is_date("42"))
        self.assertEqual(parse_date("05-01-2024"), "2024-05-01T00:00:00")
        self.assertIsNone(parse_date("not a date"))

    def test_boolean_tokens(self):
        self.assertTrue(parse_boolean("Enabled"))
        self.assertFalse(parse_boolean(" n "))
        self.assertIsNone(parse_boolean("maybe"))

    def test_columns_in_first_seen_order(self):
        self.assertEqual(get_columns([{"b": 1}, {"a": 2, "b": 3}, {"c": 4}]), ["b", "a", "c"])

    def test_convert_numpy(self):
        converted = convert_numpy(
            {"n": np.int64(3), "f": np.float64("nan"), "b": np.bool_(True), "t": (1, 2)}
        )

        self.assertEqual(converted, {"n": 3, "f": None, "b": True, "t": [1, 2]})
