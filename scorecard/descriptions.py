"""Plain-English blurbs for the major and school detail pages."""

from __future__ import annotations

from typing import Any, Mapping

from scorecard.formatters import (
    clean_title,
    format_currency,
    format_number,
    format_percent,
    format_rate,
)

SOURCE_NOTE = (
    "Earnings data is sourced from the U.S. Department of Education College "
    "Scorecard, reflecting median earnings of graduates one and five years "
    "after completion."
)

METHOD_NOTE = (
    "Earnings are weighted by the number of graduates reporting in each "
    "program to reflect the typical student outcome. Payback period "
    "estimates how many years of earnings it takes to recoup total degree "
    "cost using net price after financial aid."
)


def _plural(n: int, word: str) -> str:
    return word if n == 1 else word + "s"


def _join_clauses(items: list[str]) -> str:
    """'a', 'a and b', 'a, b, and c'."""
    if len(items) == 1:
        return items[0]
    if len(items) == 2:
        return f"{items[0]} and {items[1]}"
    return f"{', '.join(items[:-1])}, and {items[-1]}"


def major_description(major: Mapping[str, Any]) -> str:
    count = major.get("school_count") or 0
    parts = [
        f"{clean_title(major['cip_title'])} is offered at "
        f"{format_number(count)} {_plural(count, 'school')}."
    ]

    med1 = major.get("median_earn_1yr")
    med5 = major.get("median_earn_5yr")
    if med1 is not None:
        text = f"Graduates report median first-year earnings of {format_currency(med1)}"
        if med5 is not None:
            text += f", growing to {format_currency(med5)} by year five"
            if major.get("growth_rate") is not None:
                text += f" ({format_percent(major['growth_rate'])})"
        parts.append(text + ".")

    p25, p75 = major.get("p25_earn_1yr"), major.get("p75_earn_1yr")
    if p25 is not None and p75 is not None:
        parts.append(
            f"The 25th percentile earns {format_currency(p25)} while the 75th "
            f"percentile earns {format_currency(p75)}."
        )

    parts.append(SOURCE_NOTE)
    return " ".join(parts)


def school_description(school: Mapping[str, Any], program_count: int) -> str:
    kind = (school.get("ownership_label") or "unknown type").lower()
    parts = [
        f"{school['name']} is a {kind} institution in "
        f"{school.get('city') or ''}, {school.get('state') or ''}."
    ]

    details = []
    if school.get("admission_rate") is not None:
        details.append(f"a {format_rate(school['admission_rate'])} admission rate")
    if school.get("sat_math_75") is not None and school.get("sat_read_75") is not None:
        combined = school["sat_math_75"] + school["sat_read_75"]
        details.append(f"{format_number(combined)} combined SAT (75th percentile)")
    if details:
        parts.append(f"With {' and '.join(details)}.")

    stats = []
    if school.get("size") is not None:
        stats.append(f"enrolls {format_number(school['size'])} students")
    if program_count > 0:
        stats.append(
            f"offers {format_number(program_count)} "
            f"{_plural(program_count, 'program')} with earnings data"
        )
    if school.get("completion_rate") is not None:
        stats.append(f"has a {format_rate(school['completion_rate'])} completion rate")
    if stats:
        sentence = _join_clauses(stats)
        parts.append(sentence[0].upper() + sentence[1:] + ".")

    parts.append(METHOD_NOTE)
    return " ".join(parts)
