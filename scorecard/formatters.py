"""Display formatting for money, rates and counts.

All formatters render ``None`` as an em dash so templates can pass raw
database values straight through. They are registered as Jinja filters in
``scorecard.app``.
"""

from __future__ import annotations

import re
from typing import Optional

from scorecard.stats import round_half_up

DASH = "—"

_TRAILING_DOTS = re.compile(r"\.+$")


def clean_title(title: Optional[str]) -> str:
    """Scorecard CIP titles often end with a period; drop it."""
    return _TRAILING_DOTS.sub("", title or "")


def format_currency(value: Optional[float]) -> str:
    """Whole-dollar USD amount, e.g. ``$52,300``."""
    if value is None:
        return DASH
    sign = "-" if value < 0 else ""
    return f"{sign}${round_half_up(abs(value)):,}"


def format_percent(value: Optional[float]) -> str:
    """Signed whole percent (``+42%``); input is already a percentage."""
    if value is None:
        return DASH
    shown = int(value) if float(value).is_integer() else value
    return f"{'+' if value > 0 else ''}{shown}%"


def format_rate(value: Optional[float]) -> str:
    """Proportion 0..1 -> ``'45%'``."""
    if value is None:
        return DASH
    return f"{round_half_up(value * 100)}%"


def format_number(value: Optional[float]) -> str:
    if value is None:
        return DASH
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,}"


def format_payback(value: Optional[float]) -> str:
    if value is None:
        return DASH
    return f"{value:.1f} yrs"


def format_multiple(value: Optional[float]) -> str:
    """ROI multiple, e.g. ``1.4x``."""
    if value is None:
        return DASH
    return f"{value:.1f}x"


def format_compact(value: float) -> str:
    """Short axis label: ``$1.2M``, ``$85K`` or ``$950``."""
    if value >= 1_000_000:
        return f"${value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"${value / 1_000:.0f}K"
    return f"${value:g}"


def earnings_color(actual: Optional[float], median: Optional[float]) -> str:
    """CSS class comparing a program's earnings with the major median."""
    if actual is None or median is None:
        return "earn-neutral"
    if actual > median:
        return "earn-above"
    if actual < median:
        return "earn-below"
    return "earn-neutral"


FILTERS = {
    "currency": format_currency,
    "signed_pct": format_percent,
    "rate": format_rate,
    "number": format_number,
    "payback": format_payback,
    "multiple": format_multiple,
    "compact": format_compact,
    "clean_title": clean_title,
}
