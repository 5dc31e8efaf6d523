"""
tests/test_formatters.py

Pytest unit tests for display formatting helpers.
"""

from __future__ import annotations

import math

import pytest

from dealer_analytics.formatters import (
    NOT_AVAILABLE,
    format_cell_value,
    format_currency,
    format_currency_detailed,
    format_file_size,
    format_number,
    format_percentage,
    format_ratio,
)


class TestCurrency:
    @pytest.mark.parametrize(
        "value,expected",
        [(1234.5, "$1,235"), (0, "$0"), (-1234.4, "-$1,234"), (1_000_000, "$1,000,000")],
    )
    def test_whole_dollars(self, value, expected) -> None:
        assert format_currency(value) == expected

    def test_detailed(self) -> None:
        assert format_currency_detailed(1234.005) == "$1,234.01"

    @pytest.mark.parametrize("value", [math.nan, math.inf, None])
    def test_not_a_number(self, value) -> None:
        assert format_currency(value) == NOT_AVAILABLE


class TestNumbers:
    def test_percentage(self) -> None:
        assert format_percentage(0.125) == "12.5%"
        assert format_percentage(0.5, decimals=0) == "50%"

    def test_number_rounds_half_up(self) -> None:
        assert format_number(2.25) == "2.3"
        assert format_number(7, decimals=0) == "7"

    def test_ratio(self) -> None:
        assert format_ratio(1.5) == "1.50"

    def test_nan_percentage(self) -> None:
        assert format_percentage(math.nan) == NOT_AVAILABLE

    def test_file_size(self) -> None:
        assert format_file_size(1_572_864) == "1.50 MB"


class TestCellValue:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, ""),
            (math.nan, ""),
            (True, "Yes"),
            (False, "No"),
            (1234, "1,234"),
            (1234.0, "1,234"),
            (1234.5, "1,234.50"),
            ("Camry", "Camry"),
        ],
    )
    def test_cells(self, value, expected) -> None:
        assert format_cell_value(value) == expected
