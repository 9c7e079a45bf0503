"""PostgreSQL data access for the web app (psycopg 3).

Every public method opens a short-lived connection, runs its SQL and
returns plain dicts. The Flask app only talks to this interface, so tests
swap in an in-memory object with the same methods.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

import psycopg
from psycopg.rows import dict_row

from scorecard.analytics import CLICK_EVENTS

log = logging.getLogger(__name__)

SCHOOL_COLUMNS = """
  s.unit_id, s.name, s.city, s.state, s.ownership, s.ownership_label,
  s.admission_rate, s.sat_read_75, s.sat_math_75, s.size, s.cost_attendance,
  s.tuition_in_state, s.tuition_out_state, s.net_price_public,
  s.net_price_private, s.completion_rate, s.selectivity_tier, s.lat, s.lon
"""

PROGRAM_WITH_SCHOOL = """
SELECT
  p.id, p.unit_id, p.school_name, p.state, p.cip_code, p.cip_title,
  p.cred_level, p.cred_title, p.earn_1yr, p.earn_4yr, p.earn_5yr,
  p.earn_1yr_count, p.earn_5yr_count, p.cost_attendance, p.selectivity_tier,
  s.ownership, s.ownership_label, s.admission_rate, s.sat_math_75,
  s.sat_read_75, s.size, s.completion_rate
FROM programs p
LEFT JOIN schools s ON s.unit_id = p.unit_id
"""

SCHOOL_AGGREGATES = f"""
SELECT
  {SCHOOL_COLUMNS},
  COUNT(p.id)     AS program_count,
  AVG(p.earn_1yr) AS avg_earn_1yr,
  MAX(p.earn_1yr) AS max_earn_1yr
FROM schools s
JOIN programs p ON p.unit_id = s.unit_id
WHERE p.earn_1yr IS NOT NULL
GROUP BY s.unit_id
ORDER BY AVG(p.earn_1yr) DESC;
"""

RANKING_PROGRAMS = """
SELECT unit_id, cip_title, earn_1yr, earn_1yr_count, earn_5yr, earn_5yr_count
FROM programs
ORDER BY earn_1yr DESC NULLS LAST;
"""

DAILY_TRAFFIC = """
SELECT
  timestamp::date                                          AS day,
  COUNT(DISTINCT session_id)                               AS sessions,
  COUNT(*)                                                 AS events,
  SUM(CASE WHEN event_type = 'page_view' THEN 1 ELSE 0 END)    AS page_views,
  SUM(CASE WHEN event_type = 'search_query' THEN 1 ELSE 0 END) AS searches
FROM analytics_events
WHERE timestamp >= now() - interval '30 days'
GROUP BY day
ORDER BY day DESC;
"""

TOP_PAGES = """
SELECT page AS label, COUNT(*) AS cnt
FROM analytics_events
WHERE event_type = 'page_view' AND page IS NOT NULL
GROUP BY page
ORDER BY cnt DESC
LIMIT 20;
"""

TOP_SEARCHES = """
SELECT event_data::jsonb ->> 'query' AS label, COUNT(*) AS cnt
FROM analytics_events
WHERE event_type = 'search_query' AND event_data IS NOT NULL
GROUP BY label
ORDER BY cnt DESC
LIMIT 20;
"""

EVENT_BREAKDOWN = """
SELECT event_type AS label, COUNT(*) AS cnt
FROM analytics_events
GROUP BY event_type
ORDER BY cnt DESC;
"""

TOP_CLICKED = """
SELECT event_data AS label, COUNT(*) AS cnt
FROM analytics_events
WHERE event_type IN ({clicks})
  AND event_data IS NOT NULL
GROUP BY event_data
ORDER BY cnt DESC
LIMIT 20;
""".format(clicks=", ".join(f"'{t}'" for t in CLICK_EVENTS))

OVERVIEW = """
SELECT COUNT(DISTINCT session_id) AS total_sessions, COUNT(*) AS total_events
FROM analytics_events;
"""

INSERT_EVENT = """
INSERT INTO analytics_events (session_id, event_type, event_data, page, timestamp)
VALUES (%(session_id)s, %(event_type)s, %(event_data)s, %(page)s, %(timestamp)s)
"""

INSERT_SIGNUP = """
INSERT INTO newsletter_signups (email, source, created_at)
VALUES (%s, %s, now())
ON CONFLICT (email) DO NOTHING
"""


class PostgresStore:
    """Read scorecard tables and append telemetry."""

    def __init__(self, dsn: str):
        self.dsn = dsn

    def _connect(self):
        return psycopg.connect(self.dsn, row_factory=dict_row)

    def _all(self, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        with self._connect() as conn, conn.cursor() as cur:
            cur.execute(sql, params)
            return cur.fetchall()

    def _one(self, sql: str, params: Sequence[Any] = ()) -> Optional[Dict[str, Any]]:
        with self._connect() as conn, conn.cursor() as cur:
            cur.execute(sql, params)
            return cur.fetchone()

    # ---------------- scorecard ----------------

    def list_majors(self) -> List[Dict[str, Any]]:
        return self._all("SELECT * FROM majors_summary ORDER BY median_earn_1yr DESC NULLS LAST;")

    def get_major(self, cip_code: str) -> Optional[Dict[str, Any]]:
        return self._one("SELECT * FROM majors_summary WHERE cip_code = %s;", (cip_code,))

    def list_schools(self) -> List[Dict[str, Any]]:
        """Search index: id, name, city, state."""
        return self._all("SELECT unit_id, name, city, state FROM schools ORDER BY name;")

    def get_school(self, unit_id: int) -> Optional[Dict[str, Any]]:
        return self._one(f"SELECT {SCHOOL_COLUMNS} FROM schools s WHERE s.unit_id = %s;", (unit_id,))

    def programs(self, cip_code: Optional[str] = None, unit_id: Optional[int] = None) -> List[Dict[str, Any]]:
        """Programs joined with school columns, best 1-year earnings first."""
        clauses, params = [], []
        if cip_code:
            clauses.append("p.cip_code = %s")
            params.append(cip_code)
        if unit_id is not None:
            clauses.append("p.unit_id = %s")
            params.append(unit_id)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        return self._all(f"{PROGRAM_WITH_SCHOOL} {where} ORDER BY p.earn_1yr DESC NULLS LAST;", params)

    def school_aggregates(self) -> List[Dict[str, Any]]:
        return self._all(SCHOOL_AGGREGATES)

    def ranking_programs(self) -> List[Dict[str, Any]]:
        return self._all(RANKING_PROGRAMS)

    # ---------------- telemetry ----------------

    def add_events(self, rows: Iterable[Dict[str, Any]]) -> int:
        rows = list(rows)
        if not rows:
            return 0
        with psycopg.connect(self.dsn) as conn:
            with conn.cursor() as cur:
                cur.executemany(INSERT_EVENT, rows)
            conn.commit()
        return len(rows)

    def add_signup(self, email: str, source: str) -> bool:
        """Insert a signup; False when the email is already subscribed."""
        with psycopg.connect(self.dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(INSERT_SIGNUP, (email, source))
                inserted = cur.rowcount == 1
            conn.commit()
        return inserted

    def analytics_dashboard(self) -> Dict[str, Any]:
        with self._connect() as conn, conn.cursor() as cur:
            out: Dict[str, Any] = {}
            for key, sql in (
                ("daily", DAILY_TRAFFIC),
                ("top_pages", TOP_PAGES),
                ("top_searches", TOP_SEARCHES),
                ("breakdown", EVENT_BREAKDOWN),
                ("top_clicked", TOP_CLICKED),
            ):
                cur.execute(sql)
                out[key] = cur.fetchall()
            cur.execute(OVERVIEW)
            out["overview"] = cur.fetchone() or {}
        return out
