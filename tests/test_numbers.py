"""Tests for numbers.format_number."""

import pytest

from app.services.frontmatter import parse_number
from app.services.numbers import format_number


class TestFormatNumber:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (3, "3"),
            (3.0, "3"),
            (-0.0, "0"),
            (0.1, "0.1"),
            (123.456, "123.456"),
            (-2.5, "-2.5"),
            (True, "true"),
        ],
    )
    def test_plain_values(self, value, expected):
        assert format_number(value) == expected

    def test_small_values_stay_positional(self):
        assert format_number(0.000001) == "0.000001"
        assert format_number(0.0000015) == "0.0000015"

    def test_exponent_below_positional_range(self):
        assert format_number(1e-7) == "1e-7"
        assert format_number(-2.5e-10) == "-2.5e-10"

    def test_large_integral_values_keep_shortest_digits(self):
        assert format_number(12345678901234567890.0) == "12345678901234567000"
        assert format_number(12345678901234567890) == "12345678901234567000"

    def test_exponent_from_1e21(self):
        assert format_number(1e21) == "1e+21"
        assert format_number(1.5e300) == "1.5e+300"

    def test_non_finite(self):
        assert format_number(float("nan")) == "NaN"
        assert format_number(float("-inf")) == "-Infinity"


class TestParseNumberFormatting:
    def test_small_number_is_not_written_in_exponent_form(self):
        assert parse_number("0.000001") == "0.000001"

    def test_large_number_rounds_like_javascript(self):
        assert parse_number("12345678901234567890") == "12345678901234567000"
