"""
Fetch College Scorecard data from the Department of Education API.

Libraries:
  - urllib3 (pooled HTTP with retries)
  - certifi (CA bundle)
  - stdlib (argparse, json, time, logging)

What this does:
  1) Page through the institutions endpoint and save the raw records.
  2) Page through the field-of-study view of the same endpoint and flatten
     every nested ``cip_4_digit`` program into its own record.
  3) Write data/raw-institutions.json and data/raw-programs.json.
  4) Log a few quick stats about bachelor's programs.

Requires SCORECARD_API_KEY (falls back to the rate-limited DEMO_KEY).
"""

from __future__ import annotations

import argparse
import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import urlencode

import certifi
import urllib3
from urllib3.util.retry import Retry

from scorecard import config
from scorecard.errors import ApiError

log = logging.getLogger(__name__)

BASE_URL = "https://api.data.gov/ed/collegescorecard/v1/schools"
PER_PAGE = 100

# degree-granting, currently operating
SCHOOL_FILTERS = {
    "school.operating": "1",
    "school.degrees_awarded.predominant__range": "1..4",
}

DEMO_KEY_DELAY = 0.35  # DEMO_KEY allows 30 req / 10s window
KEYED_DELAY = 0.05

# ----------------------------- field lists ---------------------------------

INSTITUTION_FIELDS = [
    "id",
    "school.name",
    "school.city",
    "school.state",
    "school.ownership",
    "latest.admissions.admission_rate.overall",
    "latest.admissions.sat_scores.75th_percentile.critical_reading",
    "latest.admissions.sat_scores.75th_percentile.math",
    "latest.student.size",
    "latest.cost.attendance.academic_year",
    "latest.cost.tuition.in_state",
    "latest.cost.tuition.out_of_state",
    "latest.cost.avg_net_price.public",
    "latest.cost.avg_net_price.private",
    "latest.completion.rate_suppressed.four_year",
    "location.lat",
    "location.lon",
]

_CIP4 = "latest.programs.cip_4_digit"

FOS_FIELDS = [
    "id",
    "school.name",
    "school.state",
    "school.ownership",
    f"{_CIP4}.code",
    f"{_CIP4}.title",
    f"{_CIP4}.credential.level",
    f"{_CIP4}.credential.title",
    f"{_CIP4}.earnings.1_yr.overall_median_earnings",
    f"{_CIP4}.earnings.1_yr.working_not_enrolled.overall_count",
    f"{_CIP4}.earnings.4_yr.overall_median_earnings",
    f"{_CIP4}.earnings.4_yr.working_not_enrolled.overall_count",
    f"{_CIP4}.earnings.5_yr.overall_median_earnings",
    f"{_CIP4}.earnings.5_yr.working_not_enrolled.overall_count",
]


# ----------------------------- http ----------------------------------------


def make_http() -> urllib3.PoolManager:
    """Create a PoolManager with polite retries and certifi CAs."""
    return urllib3.PoolManager(
        retries=Retry(total=3, backoff_factor=0.5, raise_on_status=False),
        cert_reqs="CERT_REQUIRED",
        ca_certs=certifi.where(),
    )


def page_url(api_key: str, fields: Iterable[str], page: int) -> str:
    params = {
        "api_key": api_key,
        "per_page": PER_PAGE,
        "page": page,
        "fields": ",".join(fields),
        **SCHOOL_FILTERS,
    }
    return f"{BASE_URL}?{urlencode(params, safe=',.')}"


def fetch_page(http: urllib3.PoolManager, url: str) -> Dict[str, Any]:
    """GET one page of results; raise ApiError on anything but 200."""
    r = http.request("GET", url)
    if r.status != 200:
        raise ApiError(r.status, r.data.decode("utf-8", errors="replace"))
    return json.loads(r.data)


def fetch_all_pages(
    http: urllib3.PoolManager,
    fields: Iterable[str],
    label: str,
    api_key: str,
    sleep=time.sleep,
) -> List[Dict[str, Any]]:
    """Walk pages 0..N until ``metadata.total`` records are covered."""
    fields = list(fields)
    delay = DEMO_KEY_DELAY if api_key == config.DEFAULT_API_KEY else KEYED_DELAY

    results: List[Dict[str, Any]] = []
    page = 0
    total = float("inf")
    while page * PER_PAGE < total:
        log.debug("fetching %s page %d", label, page + 1)
        data = fetch_page(http, page_url(api_key, fields, page))
        total = data["metadata"]["total"]
        results.extend(data.get("results") or [])
        page += 1
        if page == 1:
            log.info("%s: %s total records", label, f"{total:,}")
        sleep(delay)

    log.info("%s: %s records fetched", label, f"{len(results):,}")
    return results


# ----------------------------- flatten -------------------------------------


def _get(d: Optional[dict], *path: str):
    """Walk nested dict keys; None if any hop is missing."""
    cur: Any = d
    for key in path:
        if not isinstance(cur, dict):
            return None
        cur = cur.get(key)
    return cur


def flatten_programs(fos_schools: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """One record per (school, cip_4_digit entry)."""
    programs: List[Dict[str, Any]] = []
    for school in fos_schools:
        cip4 = school.get(_CIP4)
        if not isinstance(cip4, list):
            continue

        unit_id = school.get("id")
        school_name = school.get("school.name") or ""
        state = school.get("school.state") or ""
        ownership = school.get("school.ownership") or 0

        for p in cip4:
            cred = p.get("credential") or {}
            level = cred.get("level")
            programs.append({
                "unitId": unit_id,
                "schoolName": school_name,
                "state": state,
                "ownership": ownership,
                "cipCode": p.get("code") or "",
                "cipTitle": p.get("title") or "",
                "credLevel": level if level is not None else 0,
                "credTitle": cred.get("title") or "",
                "earn1yr": _get(p, "earnings", "1_yr", "overall_median_earnings"),
                "earn1yrCount": _get(p, "earnings", "1_yr", "working_not_enrolled", "overall_count"),
                "earn4yr": _get(p, "earnings", "4_yr", "overall_median_earnings"),
                "earn4yrCount": _get(p, "earnings", "4_yr", "working_not_enrolled", "overall_count"),
                "earn5yr": _get(p, "earnings", "5_yr", "overall_median_earnings"),
                "earn5yrCount": _get(p, "earnings", "5_yr", "working_not_enrolled", "overall_count"),
            })
    return programs


def quick_stats(programs: List[Dict[str, Any]]) -> Dict[str, int]:
    """Counts printed after a fetch run (bachelor's = credLevel 3)."""
    bachelors = [p for p in programs if p.get("credLevel") == 3]
    return {
        "programs": len(programs),
        "bachelors": len(bachelors),
        "bachelors_with_1yr": sum(1 for p in bachelors if p.get("earn1yr") is not None),
        "unique_majors": len({p.get("cipCode") for p in bachelors}),
        "unique_schools": len({p.get("unitId") for p in bachelors}),
    }


# ----------------------------- save ----------------------------------------


def save_json(rows, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(rows, f, ensure_ascii=False, indent=2)


def run(data_dir: Path, api_key: str, http: urllib3.PoolManager | None = None,
        sleep=time.sleep) -> Dict[str, int]:
    """Fetch both datasets and write the raw JSON files."""
    http = http or make_http()
    log.info("using API key: %s",
             "DEMO_KEY (rate-limited)" if api_key == config.DEFAULT_API_KEY else "custom key")

    institutions = fetch_all_pages(http, INSTITUTION_FIELDS, "institutions", api_key, sleep)
    save_json(institutions, data_dir / "raw-institutions.json")

    fos_schools = fetch_all_pages(http, FOS_FIELDS, "field-of-study", api_key, sleep)
    programs = flatten_programs(fos_schools)
    save_json(programs, data_dir / "raw-programs.json")
    log.info("flattened %s program records", f"{len(programs):,}")

    stats = quick_stats(programs)
    stats["institutions"] = len(institutions)
    return stats


# ----------------------------- CLI / main ----------------------------------


def main(argv: list[str] | None = None) -> None:
    config.load_env()
    ap = argparse.ArgumentParser(description="Fetch raw College Scorecard data.")
    ap.add_argument("--data-dir", default=None,
                    help="output directory (default: $SCORECARD_DATA_DIR or ./data)")
    ap.add_argument("--api-key", default=None,
                    help="api.data.gov key (default: $SCORECARD_API_KEY or DEMO_KEY)")
    args = ap.parse_args(argv)
    config.configure_logging()

    data_dir = Path(args.data_dir) if args.data_dir else config.data_dir()
    try:
        stats = run(data_dir, args.api_key or config.api_key())
    except ApiError as exc:
        raise SystemExit(f"Fatal error: {exc}")

    print(f"institutions: {stats['institutions']:,}")
    print(f"total programs: {stats['programs']:,}")
    print(f"bachelor's programs: {stats['bachelors']:,}")
    print(f"bachelor's with 1yr earnings: {stats['bachelors_with_1yr']:,}")
    print(f"unique majors (CIP codes): {stats['unique_majors']}")
    print(f"unique schools: {stats['unique_schools']}")


if __name__ == "__main__":
    main()
