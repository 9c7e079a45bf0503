"""School rankings and the table mechanics shared by every listing page.

``build_school_rankings`` turns per-school rows and per-program earnings
into ranking records (graduate-weighted earnings, payback, ROI). The rest
of the module is the filter / sort / paginate / compare logic used by the
majors, colleges, explorer and detail tables.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from scorecard.cip import get_cip_category
from scorecard.formatters import clean_title
from scorecard.stats import median, weighted_average
from scorecard.tiers import get_display_tier

PAGE_SIZE = 25
MAX_VISIBLE_PAGES = 5
MAX_COMPARE = 4
DEGREE_YEARS = 4

PUBLIC = 1


# ---------------------------------------------------------------------------
# Derived metrics
# ---------------------------------------------------------------------------

def sat_combined(row: Mapping[str, Any]) -> Optional[float]:
    math_, read = row.get("sat_math_75"), row.get("sat_read_75")
    if math_ is None or read is None:
        return None
    return math_ + read


def net_price(row: Mapping[str, Any]) -> Optional[float]:
    """Public schools report net price separately from private ones."""
    cost = row.get("cost_attendance")
    if (row.get("ownership") or 0) == PUBLIC:
        price = row.get("net_price_public")
    else:
        price = row.get("net_price_private")
    return price if price is not None else cost


def payback_years(total_cost: Optional[float], earnings: Optional[float]) -> Optional[float]:
    if total_cost is None or earnings is None or earnings <= 0:
        return None
    return total_cost / earnings


def earnings_multiple(earnings: Optional[float], cost: Optional[float]) -> Optional[float]:
    """Earnings divided by cost of attendance (ROI)."""
    if not earnings or not cost:
        return None
    return earnings / cost


def build_school_rankings(
    school_rows: Iterable[Mapping[str, Any]],
    program_rows: Iterable[Mapping[str, Any]],
) -> List[Dict[str, Any]]:
    """Combine school aggregates with per-program earnings.

    ``school_rows`` carry school columns plus ``program_count``,
    ``avg_earn_1yr`` and ``max_earn_1yr`` aggregated over programs with
    1-year earnings. ``program_rows`` carry ``unit_id``, ``cip_title``,
    ``earn_1yr(_count)`` and ``earn_5yr(_count)`` and must be ordered by
    ``earn_1yr`` descending so the first hit per school is its top program.
    """
    top_program: Dict[int, str] = {}
    earn1: Dict[int, List[tuple]] = {}
    earn5: Dict[int, List[tuple]] = {}
    for p in program_rows:
        uid = p["unit_id"]
        if p.get("earn_1yr") is not None:
            top_program.setdefault(uid, clean_title(p.get("cip_title")))
            count = p.get("earn_1yr_count")
            earn1.setdefault(uid, []).append((p["earn_1yr"], 1 if count is None else count))
        if p.get("earn_5yr") is not None:
            count = p.get("earn_5yr_count")
            earn5.setdefault(uid, []).append((p["earn_5yr"], 1 if count is None else count))

    rankings: List[Dict[str, Any]] = []
    for r in school_rows:
        uid = r["unit_id"]
        items1 = earn1.get(uid)
        items5 = earn5.get(uid)
        weighted1 = weighted_average(items1) if items1 else None
        weighted5 = weighted_average(items5) if items5 else None
        price = net_price(r)
        total_cost = price * DEGREE_YEARS if price is not None else None
        cost = r.get("cost_attendance")

        rankings.append({
            "unit_id": uid,
            "name": r["name"],
            "city": r.get("city") or "",
            "state": r.get("state") or "",
            "ownership": r.get("ownership") or 0,
            "ownership_label": r.get("ownership_label") or "",
            "admission_rate": r.get("admission_rate"),
            "sat_combined": sat_combined(r),
            "size": r.get("size"),
            "cost_attendance": cost,
            "net_price": price,
            "completion_rate": r.get("completion_rate"),
            "selectivity_tier": r.get("selectivity_tier") or "",
            "display_tier": get_display_tier(
                r["name"], r.get("selectivity_tier") or "", r.get("admission_rate"), r.get("size")
            ),
            "program_count": r.get("program_count") or 0,
            "median_earn_1yr": median([e for e, _ in items1]) if items1 else r.get("avg_earn_1yr"),
            "weighted_earn_1yr": weighted1,
            "weighted_earn_5yr": weighted5,
            "payback_years": payback_years(total_cost, weighted1),
            "roi": earnings_multiple(weighted1, cost),
            "max_earn_1yr": r.get("max_earn_1yr"),
            "top_program": top_program.get(uid),
        })
    return rankings


def program_rows_for_table(programs: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """Detail-page rows: programs with any earnings, plus tier and multiple."""
    rows = []
    for p in programs:
        if p.get("earn_1yr") is None and p.get("earn_5yr") is None:
            continue
        row = dict(p)
        row["cip_title"] = clean_title(p.get("cip_title"))
        row["display_tier"] = get_display_tier(
            p.get("school_name") or "", p.get("selectivity_tier") or "",
            p.get("admission_rate"), p.get("size"),
        )
        row["sat_combined"] = sat_combined(p)
        row["multiple"] = earnings_multiple(p.get("earn_1yr"), p.get("cost_attendance"))
        rows.append(row)
    return rows


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------

def _contains(text: Optional[str], query: str) -> bool:
    return query in (text or "").lower()


def filter_rows(rows: Iterable[Mapping[str, Any]], *, search: str = "", search_field: str = "name",
                ownership: Optional[int] = None, state: str = "",
                tiers: Sequence[str] = (), tier_field: str = "display_tier",
                min_count: int = 0, count_field: Optional[str] = None,
                category: str = "", credential: str = "",
                min_sat: Optional[int] = None, max_admission: Optional[float] = None,
                require: Sequence[str] = ()) -> List[Mapping[str, Any]]:
    """Apply the listing filters; falsy arguments are ignored."""
    out = list(rows)
    if count_field and min_count:
        out = [r for r in out if (r.get(count_field) or 0) >= min_count]
    for field in require:
        out = [r for r in out if r.get(field) is not None]
    q = search.strip().lower()
    if q:
        out = [r for r in out if _contains(r.get(search_field), q)]
    if ownership is not None:
        out = [r for r in out if r.get("ownership") == ownership]
    if state:
        out = [r for r in out if r.get("state") == state]
    if tiers:
        wanted = set(tiers)
        out = [r for r in out if r.get(tier_field) in wanted]
    if category:
        out = [r for r in out if get_cip_category(r.get("cip_code") or "") == category]
    if credential:
        out = [r for r in out if r.get("cred_title") == credential]
    if min_sat is not None:
        out = [r for r in out if r.get("sat_combined") is not None and r["sat_combined"] >= min_sat]
    if max_admission is not None:
        out = [r for r in out
               if r.get("admission_rate") is not None and r["admission_rate"] <= max_admission]
    return out


def distinct_values(rows: Iterable[Mapping[str, Any]], field: str) -> List[str]:
    """Sorted non-empty values of ``field`` (for dropdowns)."""
    return sorted({r.get(field) for r in rows if r.get(field)})


# ---------------------------------------------------------------------------
# Sorting
# ---------------------------------------------------------------------------

def default_direction(field: str, text_fields: Sequence[str]) -> str:
    """Text columns sort A-Z first; numeric columns high-to-low."""
    return "asc" if field in text_fields else "desc"


def sort_rows(rows: Iterable[Mapping[str, Any]], field: str, direction: str = "desc") -> List[Mapping[str, Any]]:
    """Stable sort by ``field``; rows missing the value always go last."""
    rows = list(rows)
    present = [r for r in rows if r.get(field) is not None]
    missing = [r for r in rows if r.get(field) is None]

    def key(r):
        v = r[field]
        return v.casefold() if isinstance(v, str) else v

    present.sort(key=key, reverse=(direction == "desc"))
    return present + missing


def rank(rows: Sequence[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """Copy rows with a 1-based ``rank`` in their current order."""
    return [dict(r, rank=i) for i, r in enumerate(rows, start=1)]


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------

@dataclass
class Page:
    rows: List[Mapping[str, Any]]
    number: int
    total_pages: int
    total_rows: int
    page_size: int = PAGE_SIZE

    @property
    def offset(self) -> int:
        return (self.number - 1) * self.page_size

    @property
    def numbers(self) -> List[int]:
        return page_numbers(self.number, self.total_pages)


def paginate(rows: Sequence[Mapping[str, Any]], page: int = 1, page_size: int = PAGE_SIZE) -> Page:
    """Slice one page; out-of-range page numbers are clamped."""
    total_pages = max(1, math.ceil(len(rows) / page_size))
    current = min(max(1, page), total_pages)
    start = (current - 1) * page_size
    return Page(list(rows[start:start + page_size]), current, total_pages, len(rows), page_size)


def page_numbers(current: int, total: int, max_visible: int = MAX_VISIBLE_PAGES) -> List[int]:
    """A window of at most ``max_visible`` page links centred on ``current``."""
    start = max(1, current - max_visible // 2)
    end = min(total, start + max_visible - 1)
    start = max(1, end - max_visible + 1)
    return list(range(start, end + 1))


# ---------------------------------------------------------------------------
# Compare + headline stats
# ---------------------------------------------------------------------------

def compare_ids(raw: Iterable[str], parse: Callable[[str], Any] = int) -> List[Any]:
    """Unique compare keys from the query string, first four kept."""
    out: List[Any] = []
    for item in raw:
        try:
            key = parse(item)
        except (TypeError, ValueError):
            continue
        if key not in out:
            out.append(key)
        if len(out) == MAX_COMPARE:
            break
    return out


def best_by(rows: Iterable[Mapping[str, Any]], field: str) -> Optional[Mapping[str, Any]]:
    """Row with the largest non-null ``field`` (first wins ties)."""
    best = None
    for r in rows:
        v = r.get(field)
        if v is None:
            continue
        if best is None or v > best[field]:
            best = r
    return best
