"""PostgreSQL DDL for the Scorecard tables.

The scorecard tables (schools, programs, majors_summary) are rebuilt on
every ingestion run. The telemetry tables are created once and kept.

Usage (create the telemetry tables only):
    python -m scorecard.schema --dsn postgresql://localhost/scorecard
"""

from __future__ import annotations

import argparse
import logging

import psycopg

from scorecard import config

log = logging.getLogger(__name__)


SCHOOLS_DDL = """
CREATE TABLE IF NOT EXISTS schools (
  unit_id            INTEGER PRIMARY KEY,
  name               TEXT NOT NULL,
  city               TEXT,
  state              TEXT,
  ownership          INTEGER,            -- 1 public, 2 private nonprofit, 3 for-profit
  ownership_label    TEXT,
  admission_rate     DOUBLE PRECISION,
  sat_read_75        DOUBLE PRECISION,
  sat_math_75        DOUBLE PRECISION,
  size               INTEGER,
  cost_attendance    DOUBLE PRECISION,
  tuition_in_state   DOUBLE PRECISION,
  tuition_out_state  DOUBLE PRECISION,
  net_price_public   DOUBLE PRECISION,
  net_price_private  DOUBLE PRECISION,
  completion_rate    DOUBLE PRECISION,
  selectivity_tier   TEXT,
  lat                DOUBLE PRECISION,
  lon                DOUBLE PRECISION
);
"""

PROGRAMS_DDL = """
CREATE TABLE IF NOT EXISTS programs (
  id                 INTEGER GENERATED ALWAYS AS IDENTITY PRIMARY KEY,
  unit_id            INTEGER NOT NULL REFERENCES schools(unit_id),
  school_name        TEXT,
  state              TEXT,
  cip_code           TEXT NOT NULL,
  cip_title          TEXT,
  cred_level         INTEGER,
  cred_title         TEXT,
  earn_1yr           DOUBLE PRECISION,
  earn_4yr           DOUBLE PRECISION,
  earn_5yr           DOUBLE PRECISION,
  earn_1yr_count     INTEGER,
  earn_5yr_count     INTEGER,
  cost_attendance    DOUBLE PRECISION,   -- copied from schools
  selectivity_tier   TEXT                -- copied from schools
);
"""

MAJORS_DDL = """
CREATE TABLE IF NOT EXISTS majors_summary (
  cip_code           TEXT PRIMARY KEY,
  cip_title          TEXT NOT NULL,
  school_count       INTEGER,
  median_earn_1yr    DOUBLE PRECISION,
  median_earn_4yr    DOUBLE PRECISION,
  median_earn_5yr    DOUBLE PRECISION,
  p25_earn_1yr       DOUBLE PRECISION,
  p75_earn_1yr       DOUBLE PRECISION,
  p25_earn_5yr       DOUBLE PRECISION,
  p75_earn_5yr       DOUBLE PRECISION,
  growth_rate        DOUBLE PRECISION
);
"""

ANALYTICS_DDL = """
CREATE TABLE IF NOT EXISTS analytics_events (
  id                 INTEGER GENERATED ALWAYS AS IDENTITY PRIMARY KEY,
  session_id         TEXT NOT NULL,
  event_type         TEXT NOT NULL,
  event_data         TEXT,               -- JSON text
  page               TEXT,
  timestamp          TIMESTAMPTZ NOT NULL
);
"""

NEWSLETTER_DDL = """
CREATE TABLE IF NOT EXISTS newsletter_signups (
  id                 INTEGER GENERATED ALWAYS AS IDENTITY PRIMARY KEY,
  email              TEXT NOT NULL UNIQUE,
  source             TEXT,
  created_at         TIMESTAMPTZ NOT NULL
);
"""

SCORECARD_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_schools_name ON schools(name);",
    "CREATE INDEX IF NOT EXISTS idx_schools_state ON schools(state);",
    "CREATE INDEX IF NOT EXISTS idx_programs_cip ON programs(cip_code);",
    "CREATE INDEX IF NOT EXISTS idx_programs_unit ON programs(unit_id);",
]

ANALYTICS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_analytics_session ON analytics_events(session_id);",
    "CREATE INDEX IF NOT EXISTS idx_analytics_type ON analytics_events(event_type);",
    "CREATE INDEX IF NOT EXISTS idx_analytics_timestamp ON analytics_events(timestamp);",
]

# children first
DROP_SCORECARD = [
    "DROP TABLE IF EXISTS programs;",
    "DROP TABLE IF EXISTS majors_summary;",
    "DROP TABLE IF EXISTS schools;",
]


def recreate_scorecard_tables(cur) -> None:
    """Drop and recreate schools / programs / majors_summary."""
    for stmt in DROP_SCORECARD:
        cur.execute(stmt)
    for stmt in (SCHOOLS_DDL, PROGRAMS_DDL, MAJORS_DDL, *SCORECARD_INDEXES):
        cur.execute(stmt)


def create_telemetry_tables(cur) -> None:
    for stmt in (ANALYTICS_DDL, NEWSLETTER_DDL, *ANALYTICS_INDEXES):
        cur.execute(stmt)


def migrate_analytics(dsn: str) -> None:
    """Idempotently create analytics_events and newsletter_signups."""
    with psycopg.connect(dsn) as conn:
        with conn.cursor() as cur:
            create_telemetry_tables(cur)
        conn.commit()
    log.info("analytics tables ready")


def main(argv: list[str] | None = None) -> None:
    config.load_env()
    ap = argparse.ArgumentParser(description="Create the analytics/newsletter tables.")
    ap.add_argument("--dsn", default=None, help="Postgres DSN (default: $DATABASE_URL)")
    args = ap.parse_args(argv)
    config.configure_logging()

    migrate_analytics(args.dsn or config.database_url())
    print("Analytics table created successfully")


if __name__ == "__main__":
    main()
