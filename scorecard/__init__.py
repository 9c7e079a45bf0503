"""College Scorecard explorer: ETL jobs, schema and Flask dashboard."""

__version__ = "0.1.0"
