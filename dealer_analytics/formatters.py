"""
dealer_analytics/formatters.py

Display formatting for KPI values and master-sheet cells.

Formatting never changes the underlying snapshot; every helper returns a new
string.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

NOT_AVAILABLE = "N/A"


def _round_half_up(value: float, places: int) -> Decimal:
    quantum = Decimal(1).scaleb(-places)
    return Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)


def _is_finite_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _format_money(value: float, places: int) -> str:
    if not _is_finite_number(value):
        return NOT_AVAILABLE
    rounded = _round_half_up(value, places)
    sign = "-" if rounded < 0 else ""
    return f"{sign}${abs(rounded):,.{places}f}"


def format_currency(value: float) -> str:
    """
    Whole US dollars with thousands separators, e.g. ``$1,235``.
    """

    return _format_money(value, 0)


def format_currency_detailed(value: float) -> str:
    return _format_money(value, 2)


def format_percentage(value: float, decimals: int = 1) -> str:
    """
    Render a fraction as a percentage: ``0.123`` becomes ``12.3%``.
    """

    if not _is_finite_number(value):
        return NOT_AVAILABLE
    return f"{_round_half_up(value * 100, decimals):.{decimals}f}%"


def format_number(value: float, decimals: int = 1) -> str:
    if not _is_finite_number(value):
        return NOT_AVAILABLE
    return f"{_round_half_up(value, decimals):.{decimals}f}"


def format_ratio(value: float) -> str:
    return format_number(value, 2)


def format_file_size(size_bytes: int) -> str:
    """
    Size in megabytes with two decimals, e.g. ``1.50 MB``.
    """

    return f"{size_bytes / 1024 / 1024:.2f} MB"


def format_cell_value(value: Any) -> str:
    """
    Format one master-sheet cell for display.

    None and NaN render empty, integers (including integral floats parsed
    from spreadsheets) get thousands separators, other floats two decimals.
    """

    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, int):
        return f"{value:,}"
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if math.isinf(value):
            return str(value)
        if value.is_integer():
            return f"{int(value):,}"
        try:
            return f"{_round_half_up(value, 2):,.2f}"
        except InvalidOperation:
            return str(value)
    return str(value)
