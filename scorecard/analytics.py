"""Telemetry batches posted by the browser.

The client script queues events and POSTs them as
``{"events": [{"type", "data", "page", "timestamp", "sessionId"}, ...]}``.
``validate_batch`` enforces the envelope rules and ``to_rows`` maps the
surviving events onto analytics_events rows.
"""

from __future__ import annotations

import datetime as dt
import json
from numbers import Real
from typing import Any, Dict, List, Optional

MAX_BATCH = 20
MAX_SESSION_ID = 50
MAX_PAGE = 200

VALID_EVENT_TYPES = frozenset({
    "page_view",
    "page_exit",
    "tab_switch",
    "search_query",
    "search_select",
    "major_click",
    "school_click",
    "program_click",
    "tour_complete",
    "tour_skip",
})

CLICK_EVENTS = ("major_click", "school_click", "program_click")


class BatchError(ValueError):
    """The request body cannot be accepted; message is safe to return."""


def validate_batch(body: Any) -> tuple[str, List[dict]]:
    """Return ``(session_id, events)`` or raise BatchError.

    The session id is taken from the first event and applied to the whole
    batch.
    """
    events = body.get("events") if isinstance(body, dict) else None
    if not isinstance(events, list) or not events:
        raise BatchError("Events array required")
    if len(events) > MAX_BATCH:
        raise BatchError(f"Max {MAX_BATCH} events per batch")

    first = events[0] if isinstance(events[0], dict) else {}
    session_id = first.get("sessionId")
    if not isinstance(session_id, str) or not session_id or len(session_id) > MAX_SESSION_ID:
        raise BatchError("Valid session ID required")
    return session_id, events


def is_valid_event(event: Any) -> bool:
    if not isinstance(event, dict):
        return False
    ts = event.get("timestamp")
    kind = event.get("type")
    return (
        isinstance(kind, str)
        and kind in VALID_EVENT_TYPES
        and isinstance(ts, Real)
        and not isinstance(ts, bool)
    )


def _page(value: Any) -> Optional[str]:
    return value[:MAX_PAGE] if isinstance(value, str) else None


def _event_data(value: Any) -> Optional[str]:
    # empty containers are still stored; only null/false/0/"" are dropped
    if isinstance(value, (dict, list)) or value:
        return json.dumps(value)
    return None


def to_rows(session_id: str, events: List[dict]) -> List[Dict[str, Any]]:
    """analytics_events rows for the valid events (timestamps are epoch ms)."""
    rows = []
    for e in events:
        if not is_valid_event(e):
            continue
        rows.append({
            "session_id": session_id,
            "event_type": e["type"],
            "event_data": _event_data(e.get("data")),
            "page": _page(e.get("page")),
            "timestamp": dt.datetime.fromtimestamp(e["timestamp"] / 1000, tz=dt.timezone.utc),
        })
    return rows


# ---------------------------------------------------------------------------
# Dashboard helpers
# ---------------------------------------------------------------------------

def count_for(breakdown: List[dict], event_type: str) -> int:
    """Pull one event type's count out of the breakdown rows."""
    for row in breakdown:
        if row["label"] == event_type:
            return int(row["cnt"])
    return 0


def entity_label(raw: Optional[str]) -> str:
    """Readable label for a click event's JSON payload."""
    if not raw:
        return "(unknown)"
    try:
        data = json.loads(raw)
    except ValueError:
        return raw
    if not isinstance(data, dict):
        return raw
    for key in ("cipTitle", "schoolName", "name"):
        if data.get(key):
            return str(data[key])
    if data.get("cipCode"):
        return f"Major {data['cipCode']}"
    if data.get("unitId"):
        return f"School {data['unitId']}"
    return raw


def summarize(overview: dict, breakdown: List[dict]) -> Dict[str, int]:
    """The four headline numbers on the dashboard."""
    return {
        "sessions": int(overview.get("total_sessions") or 0),
        "events": int(overview.get("total_events") or 0),
        "page_views": count_for(breakdown, "page_view"),
        "searches": count_for(breakdown, "search_query"),
    }
