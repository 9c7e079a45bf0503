"""
Process raw Scorecard JSON into app-ready tables.

Reads:  data/raw-institutions.json, data/raw-programs.json
Writes: data/schools.json, data/programs.json, data/majors-summary.json

Field policy:
  - Schools keep every institution, keyed by unit id, with a derived
    ownership label and selectivity tier.
  - Programs keep bachelor's degrees (credential level 3) that report at
    least one of 1/4/5-year earnings, and inherit the school's cost of
    attendance and selectivity tier.
  - Majors are summarized per CIP code from the kept programs.
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from scorecard import config
from scorecard.errors import DataFileMissing
from scorecard.stats import growth_rate, median, percentile

log = logging.getLogger(__name__)

BACHELORS = 3

OWNERSHIP_LABELS = {
    1: "Public",
    2: "Private Nonprofit",
    3: "Private For-Profit",
}

# (upper bound, tier), checked in order
SELECTIVITY_BANDS = [
    (0.10, "Most Selective"),
    (0.25, "Highly Selective"),
    (0.50, "Selective"),
    (0.75, "Moderate"),
]

# raw API key -> school column
_SCHOOL_FIELDS = {
    "admission_rate": "latest.admissions.admission_rate.overall",
    "sat_read_75": "latest.admissions.sat_scores.75th_percentile.critical_reading",
    "sat_math_75": "latest.admissions.sat_scores.75th_percentile.math",
    "size": "latest.student.size",
    "cost_attendance": "latest.cost.attendance.academic_year",
    "tuition_in_state": "latest.cost.tuition.in_state",
    "tuition_out_state": "latest.cost.tuition.out_of_state",
    "net_price_public": "latest.cost.avg_net_price.public",
    "net_price_private": "latest.cost.avg_net_price.private",
    "completion_rate": "latest.completion.rate_suppressed.four_year",
    "lat": "location.lat",
    "lon": "location.lon",
}


def ownership_label(code: Optional[int]) -> str:
    return OWNERSHIP_LABELS.get(code, "Unknown")


def selectivity_tier(admission_rate: Optional[float]) -> str:
    """Bucket an admission rate (0..1) into a named tier."""
    if admission_rate is None:
        return "Unknown"
    for bound, tier in SELECTIVITY_BANDS:
        if admission_rate < bound:
            return tier
    return "Open"


def build_schools(raw: Iterable[Dict[str, Any]]) -> Dict[int, Dict[str, Any]]:
    """Index institutions by unit id, one school row each."""
    schools: Dict[int, Dict[str, Any]] = {}
    for inst in raw:
        ownership = inst.get("school.ownership")
        school = {
            "unit_id": inst["id"],
            "name": inst.get("school.name") or "",
            "city": inst.get("school.city") or "",
            "state": inst.get("school.state") or "",
            "ownership": ownership or 0,
            "ownership_label": ownership_label(ownership),
        }
        for col, key in _SCHOOL_FIELDS.items():
            school[col] = inst.get(key)
        school["selectivity_tier"] = selectivity_tier(school["admission_rate"])
        schools[school["unit_id"]] = school
    return schools


def _has_earnings(p: Dict[str, Any]) -> bool:
    return any(p.get(k) is not None for k in ("earn1yr", "earn4yr", "earn5yr"))


def build_programs(
    raw_programs: Iterable[Dict[str, Any]],
    schools: Dict[int, Dict[str, Any]],
) -> List[Dict[str, Any]]:
    """Bachelor's programs with earnings, joined to school cost and tier."""
    programs: List[Dict[str, Any]] = []
    for p in raw_programs:
        if p.get("credLevel") != BACHELORS or not _has_earnings(p):
            continue
        school = schools.get(p["unitId"])
        programs.append({
            "unit_id": p["unitId"],
            "school_name": p.get("schoolName") or "",
            "state": p.get("state") or "",
            "cip_code": p.get("cipCode") or "",
            "cip_title": p.get("cipTitle") or "",
            "cred_level": p.get("credLevel"),
            "cred_title": p.get("credTitle") or "",
            "earn_1yr": p.get("earn1yr"),
            "earn_4yr": p.get("earn4yr"),
            "earn_5yr": p.get("earn5yr"),
            "earn_1yr_count": p.get("earn1yrCount"),
            "earn_5yr_count": p.get("earn5yrCount"),
            "cost_attendance": school["cost_attendance"] if school else None,
            "selectivity_tier": school["selectivity_tier"] if school else "Unknown",
        })
    return programs


def summarize_majors(programs: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Per-CIP medians and quartiles, highest 1-year median first."""
    groups: Dict[str, Dict[str, Any]] = {}
    for p in programs:
        entry = groups.setdefault(
            p["cip_code"],
            {"title": p["cip_title"], "earn_1yr": [], "earn_4yr": [], "earn_5yr": []},
        )
        for key in ("earn_1yr", "earn_4yr", "earn_5yr"):
            if p.get(key) is not None:
                entry[key].append(p[key])

    majors: List[Dict[str, Any]] = []
    for cip_code, entry in groups.items():
        e1, e5 = entry["earn_1yr"], entry["earn_5yr"]
        med1 = median(e1)
        med5 = median(e5)
        majors.append({
            "cip_code": cip_code,
            "cip_title": entry["title"],
            "school_count": len(e1),
            "median_earn_1yr": med1,
            "median_earn_4yr": median(entry["earn_4yr"]),
            "median_earn_5yr": med5,
            "p25_earn_1yr": percentile(e1, 25),
            "p75_earn_1yr": percentile(e1, 75),
            "p25_earn_5yr": percentile(e5, 25),
            "p75_earn_5yr": percentile(e5, 75),
            "growth_rate": growth_rate(med1, med5),
        })

    majors.sort(key=lambda m: m["median_earn_1yr"] or 0, reverse=True)
    return majors


# --------- I/O driver --------- #

def read_json(path: Path):
    if not path.exists():
        raise DataFileMissing(path)
    return json.loads(path.read_text(encoding="utf-8"))


def write_json(path: Path, rows, indent: Optional[int] = None) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(rows, ensure_ascii=False, indent=indent), encoding="utf-8")


def run(data_dir: Path) -> Dict[str, List[Dict[str, Any]]]:
    """Read raw files, derive the three tables and write them back out."""
    raw_institutions = read_json(data_dir / "raw-institutions.json")
    raw_programs = read_json(data_dir / "raw-programs.json")
    log.info("loaded %d institutions, %d programs", len(raw_institutions), len(raw_programs))

    schools = build_schools(raw_institutions)
    programs = build_programs(raw_programs, schools)
    majors = summarize_majors(programs)
    log.info("%d schools, %d programs with earnings, %d majors",
             len(schools), len(programs), len(majors))

    school_rows = list(schools.values())
    write_json(data_dir / "schools.json", school_rows)
    write_json(data_dir / "programs.json", programs)
    write_json(data_dir / "majors-summary.json", majors, indent=2)
    return {"schools": school_rows, "programs": programs, "majors": majors}


def top_majors_table(majors: List[Dict[str, Any]], limit: int = 20) -> str:
    """Fixed-width text table of the best-paying majors."""
    def money(v):
        return f"${v:,.0f}" if v else "N/A"

    lines = [
        f"{'Rank':>4} {'Major':<50} {'1yr Med':>10} {'5yr Med':>10} {'Growth':>8} {'Schools':>8}",
        "-" * 94,
    ]
    for i, m in enumerate(majors[:limit], start=1):
        growth = f"{m['growth_rate']}%" if m["growth_rate"] is not None else "N/A"
        lines.append(
            f"{i:>4} {m['cip_title'][:50]:<50} {money(m['median_earn_1yr']):>10} "
            f"{money(m['median_earn_5yr']):>10} {growth:>8} {m['school_count']:>8}"
        )
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> None:
    config.load_env()
    ap = argparse.ArgumentParser(description="Turn raw Scorecard JSON into app tables.")
    ap.add_argument("--data-dir", default=None,
                    help="directory holding raw-*.json (default: $SCORECARD_DATA_DIR or ./data)")
    ap.add_argument("--top", type=int, default=20, help="rows in the summary table")
    args = ap.parse_args(argv)
    config.configure_logging()

    data_dir = Path(args.data_dir) if args.data_dir else config.data_dir()
    try:
        out = run(data_dir)
    except DataFileMissing as exc:
        raise SystemExit(str(exc))

    print(f"schools.json: {len(out['schools']):,} schools")
    print(f"programs.json: {len(out['programs']):,} programs")
    print(f"majors-summary.json: {len(out['majors'])} majors\n")
    print(f"=== Top {args.top} Majors by Median 1-Year Earnings ===")
    print(top_majors_table(out["majors"], args.top))


if __name__ == "__main__":
    main()
