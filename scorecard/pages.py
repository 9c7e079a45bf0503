"""View models for the HTML pages.

Each ``*_view`` function takes rows from the store plus the request's query
arguments and returns the template context: filtered, sorted and paginated
table rows, headline stats and scatter-chart series. Nothing here touches
Flask or the database, so the same logic is tested directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

from scorecard import rankings as rk
from scorecard.cip import CIP_CATEGORY_COLORS, CIP_CATEGORY_ORDER, get_cip_category
from scorecard.descriptions import major_description, school_description
from scorecard.formatters import clean_title
from scorecard.tiers import TIER_ORDER, get_display_tier, tier_color

TABS = ("explorer", "majors", "colleges")
ROBUST_MAJOR_SCHOOLS = 100
DEFAULT_MIN_SCHOOLS = 10
DEFAULT_MIN_PROGRAMS = 5
EARNINGS_KEYS = ("earn_1yr", "earn_5yr")


@dataclass(frozen=True)
class SortableTable:
    """Which columns a table may sort on and how it sorts by default."""
    fields: Sequence[str]
    default: str
    text_fields: Sequence[str] = ()

    def resolve(self, args: Mapping[str, Any]) -> tuple[str, str]:
        field = args.get("sort") or self.default
        if field not in self.fields:
            field = self.default
        direction = args.get("dir")
        if direction not in ("asc", "desc"):
            direction = rk.default_direction(field, self.text_fields)
        return field, direction


MAJORS_TABLE = SortableTable(
    fields=("cip_title", "median_earn_1yr", "median_earn_5yr", "growth_rate", "school_count"),
    default="median_earn_5yr",
    text_fields=("cip_title",),
)
COLLEGES_TABLE = SortableTable(
    fields=("name", "weighted_earn_1yr", "weighted_earn_5yr", "roi", "program_count",
            "admission_rate", "cost_attendance"),
    default="weighted_earn_1yr",
    text_fields=("name",),
)
MAJOR_PROGRAMS_TABLE = SortableTable(
    fields=("school_name", "state", "display_tier", "cred_title", "earn_1yr", "earn_5yr",
            "cost_attendance", "multiple", "admission_rate", "sat_combined"),
    default="earn_1yr",
    text_fields=("school_name", "state", "display_tier", "cred_title"),
)
SCHOOL_PROGRAMS_TABLE = SortableTable(
    fields=("cip_title", "cred_title", "earn_1yr", "earn_5yr", "cost_attendance", "multiple",
            "earn_1yr_count"),
    default="earn_1yr",
    text_fields=("cip_title", "cred_title"),
)


# ---------------------------------------------------------------------------
# query-string helpers
# ---------------------------------------------------------------------------

def int_arg(args: Mapping[str, Any], name: str, default: Optional[int] = None) -> Optional[int]:
    raw = args.get(name)
    if raw in (None, ""):
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


def getlist(args: Any, name: str) -> List[str]:
    if hasattr(args, "getlist"):
        return [v for v in args.getlist(name) if v]
    raw = args.get(name)
    if not raw:
        return []
    return list(raw) if isinstance(raw, (list, tuple)) else [raw]


def earnings_key(args: Mapping[str, Any], default: str = "earn_1yr") -> str:
    key = args.get("earn") or default
    return key if key in EARNINGS_KEYS else default


def _table(rows, table: SortableTable, args: Mapping[str, Any]) -> Dict[str, Any]:
    field, direction = table.resolve(args)
    ordered = rk.rank(rk.sort_rows(rows, field, direction))
    page = rk.paginate(ordered, int_arg(args, "page", 1))
    return {"page": page, "sort": field, "dir": direction}


def _clean_majors(majors: Sequence[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    out = []
    for m in majors:
        row = dict(m)
        row["cip_title"] = clean_title(m.get("cip_title"))
        row["school_count"] = m.get("school_count") or 0
        row["category"] = get_cip_category(m.get("cip_code") or "")
        p25, p75 = m.get("p25_earn_5yr"), m.get("p75_earn_5yr")
        row["spread_5yr"] = p75 - p25 if p25 is not None and p75 is not None else None
        out.append(row)
    return out


def _scatter(points: Sequence[Mapping[str, Any]], x: str, y: str, group: str,
             order: Sequence[str], color, highlight: Optional[set] = None,
             id_field: str = "unit_id", label_field: str = "name") -> Dict[str, Any]:
    """Chart.js-ready series grouped by ``group``; non-highlighted go to ``dimmed``."""
    groups: Dict[str, List[dict]] = {}
    dimmed: List[dict] = []
    max_x = max_y = 0.0
    for p in points:
        if p.get(x) is None or p.get(y) is None:
            continue
        point = {"x": p[x], "y": p[y], "id": p.get(id_field), "label": p.get(label_field)}
        max_x, max_y = max(max_x, p[x]), max(max_y, p[y])
        if highlight is not None and p.get(id_field) not in highlight:
            dimmed.append(point)
        else:
            groups.setdefault(p.get(group) or "Other", []).append(point)
    series = [
        {"label": name, "color": color(name), "points": groups[name]}
        for name in [*order, *sorted(set(groups) - set(order))]
        if name in groups
    ]
    return {
        "series": series,
        "dimmed": dimmed,
        "x_max": max_x + (max_x * 0.05 or 5000),
        "y_max": max_y + (max_y * 0.05 or 5000),
    }


# ---------------------------------------------------------------------------
# home page tabs
# ---------------------------------------------------------------------------

def pick_default_major(majors: Sequence[Mapping[str, Any]]) -> Optional[str]:
    """First major (in 1yr-median order) offered at 100+ schools."""
    if not majors:
        return None
    for m in majors:
        if (m.get("school_count") or 0) >= ROBUST_MAJOR_SCHOOLS:
            return m["cip_code"]
    return majors[0]["cip_code"]


def explorer_view(majors, programs, args: Mapping[str, Any], cip_code: Optional[str]) -> Dict[str, Any]:
    """Scatter of every school's program for one major: cost vs earnings."""
    key = earnings_key(args)
    rows = rk.program_rows_for_table(programs)
    base = rk.filter_rows(rows, require=("cost_attendance", key))

    max_adm_pct = int_arg(args, "max_adm")
    filtered = rk.filter_rows(
        base,
        state=args.get("state") or "",
        ownership=int_arg(args, "ownership"),
        min_sat=int_arg(args, "min_sat"),
        max_admission=max_adm_pct / 100 if max_adm_pct is not None else None,
    )
    table_rows = rk.filter_rows(filtered, search=args.get("q") or "", search_field="school_name")
    compare = rk.compare_ids(getlist(args, "compare"))

    return {
        "majors": _clean_majors(majors),
        "cip_code": cip_code,
        "earn": key,
        "states": rk.distinct_values(rows, "state"),
        "base_count": len(base),
        "filtered_count": len(filtered),
        "chart": _scatter(filtered, "cost_attendance", key, "display_tier", TIER_ORDER,
                          tier_color, label_field="school_name"),
        "table": _table(table_rows, MAJOR_PROGRAMS_TABLE, args),
        "compare": compare,
        "compared": [r for r in filtered if r["unit_id"] in compare],
    }


def majors_view(majors, args: Mapping[str, Any]) -> Dict[str, Any]:
    rows = _clean_majors(majors)
    filtered = rk.filter_rows(
        rows,
        min_count=int_arg(args, "min_schools", DEFAULT_MIN_SCHOOLS),
        count_field="school_count",
        category=args.get("category") or "",
        search=args.get("q") or "",
        search_field="cip_title",
    )
    compare = rk.compare_ids(getlist(args, "compare"), parse=str)
    highlight = set(compare) if compare else None
    return {
        "categories": CIP_CATEGORY_ORDER,
        "total": len(rows),
        "filtered_count": len(filtered),
        "highest": rk.best_by(filtered, "median_earn_5yr"),
        "fastest": rk.best_by(filtered, "growth_rate"),
        "table": _table(filtered, MAJORS_TABLE, args),
        "chart": _scatter(filtered, "spread_5yr", "median_earn_5yr", "category",
                          CIP_CATEGORY_ORDER, lambda c: CIP_CATEGORY_COLORS.get(c, "#6b7280"),
                          highlight=highlight, id_field="cip_code", label_field="cip_title"),
        "compare": compare,
        "compared": [r for r in filtered if r["cip_code"] in compare],
    }


def colleges_view(school_rankings, args: Mapping[str, Any]) -> Dict[str, Any]:
    min_programs = int_arg(args, "min_programs", DEFAULT_MIN_PROGRAMS)
    baseline = rk.filter_rows(school_rankings, min_count=min_programs, count_field="program_count")
    tier = args.get("tier") or ""
    filtered = rk.filter_rows(
        baseline,
        search=args.get("q") or "",
        ownership=int_arg(args, "ownership"),
        state=args.get("state") or "",
        tiers=[tier] if tier else (),
    )
    compare = rk.compare_ids(getlist(args, "compare"))
    filters_active = bool((args.get("q") or "").strip() or args.get("ownership")
                          or args.get("state") or tier or compare)
    highlight = None
    if filters_active:
        highlight = set(compare) if compare else {r["unit_id"] for r in filtered}

    chart_key = "weighted_" + earnings_key(args, "earn_5yr")
    return {
        "states": rk.distinct_values(school_rankings, "state"),
        "tiers": TIER_ORDER,
        "total": len(school_rankings),
        "filtered_count": len(filtered),
        "highest": rk.best_by(filtered, "weighted_earn_1yr"),
        "best_roi": rk.best_by(filtered, "roi"),
        "earn": chart_key[len("weighted_"):],
        "chart": _scatter(baseline, "cost_attendance", chart_key, "display_tier", TIER_ORDER,
                          tier_color, highlight=highlight),
        "table": _table(filtered, COLLEGES_TABLE, args),
        "compare": compare,
        "compared": [r for r in filtered if r["unit_id"] in compare],
    }


# ---------------------------------------------------------------------------
# detail pages
# ---------------------------------------------------------------------------

def major_detail_view(major: Mapping[str, Any], programs, args: Mapping[str, Any]) -> Dict[str, Any]:
    key = earnings_key(args)
    rows = rk.program_rows_for_table(programs)
    tiers = getlist(args, "tier")
    filtered = rk.filter_rows(
        rows,
        search=args.get("q") or "",
        search_field="school_name",
        ownership=int_arg(args, "ownership"),
        state=args.get("state") or "",
        tiers=tiers,
    )
    compare = rk.compare_ids(getlist(args, "compare"))
    filters_active = bool((args.get("q") or "").strip() or args.get("ownership")
                          or args.get("state") or tiers or compare)
    highlight = None
    if filters_active:
        highlight = set(compare) if compare else {r["unit_id"] for r in filtered}

    major = dict(major, cip_title=clean_title(major.get("cip_title")),
                 school_count=major.get("school_count") or 0)
    median_line = major.get("median_" + key)
    chart = _scatter(rows, "cost_attendance", key, "display_tier", TIER_ORDER, tier_color,
                     highlight=highlight, label_field="school_name")
    chart["median"] = median_line
    for s in chart["series"]:
        for pt in s["points"]:
            pt["above_median"] = median_line is not None and pt["y"] > median_line

    return {
        "major": major,
        "description": major_description(major),
        "earn": key,
        "states": rk.distinct_values(rows, "state"),
        "tiers": TIER_ORDER,
        "selected_tiers": tiers,
        "highest": rk.best_by(rows, key),
        "chart": chart,
        "table": _table(filtered, MAJOR_PROGRAMS_TABLE, args),
        "compare": compare,
        "compared": [r for r in rows if r["unit_id"] in compare],
    }


def school_detail_view(school: Mapping[str, Any], programs, args: Mapping[str, Any]) -> Dict[str, Any]:
    rows = rk.program_rows_for_table(programs)
    filtered = rk.filter_rows(
        rows,
        search=args.get("q") or "",
        search_field="cip_title",
        credential=args.get("cred") or "",
    )
    return {
        "school": school,
        "tier": get_display_tier(school["name"], school.get("selectivity_tier") or "",
                                    school.get("admission_rate"), school.get("size")),
        "sat_combined": rk.sat_combined(school),
        "net_price": rk.net_price(school),
        "description": school_description(school, len(rows)),
        "credentials": rk.distinct_values(programs, "cred_title"),
        "program_count": len(rows),
        "table": _table(filtered, SCHOOL_PROGRAMS_TABLE, args),
    }
