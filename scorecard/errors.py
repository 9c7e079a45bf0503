"""Exceptions shared by the ETL jobs and the web app."""

from __future__ import annotations


class ScorecardError(Exception):
    """Base class for errors raised by this package."""


class ApiError(ScorecardError):
    """The Scorecard API answered with a non-200 status."""

    def __init__(self, status: int, body: str = ""):
        self.status = status
        self.body = body
        super().__init__(f"API error {status}: {body}")


class DataFileMissing(ScorecardError):
    """An ETL input file is not on disk yet."""

    def __init__(self, path):
        self.path = path
        super().__init__(
            f"File not found: {path}. Run fetch + process scripts first."
        )
