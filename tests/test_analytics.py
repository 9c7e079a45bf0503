import datetime as dt
import json

import pytest

from scorecard import analytics


def _event(**over):
    e = {"type": "page_view", "page": "/", "timestamp": 1_700_000_000_000, "sessionId": "s1"}
    e.update(over)
    return e


@pytest.mark.analytics
@pytest.mark.parametrize("body,message", [
    (None, "Events array required"),
    ({}, "Events array required"),
    ({"events": []}, "Events array required"),
    ({"events": "nope"}, "Events array required"),
    ({"events": [_event()] * 21}, "Max 20 events per batch"),
    ({"events": [_event(sessionId="")]}, "Valid session ID required"),
    ({"events": [_event(sessionId="x" * 51)]}, "Valid session ID required"),
    ({"events": [_event(sessionId=12)]}, "Valid session ID required"),
])
def test_validate_batch_rejects(body, message):
    with pytest.raises(analytics.BatchError) as exc:
        analytics.validate_batch(body)
    assert str(exc.value) == message


@pytest.mark.analytics
def test_validate_batch_takes_session_from_first_event():
    session_id, events = analytics.validate_batch({"events": [_event(), _event(sessionId="other")]})
    assert session_id == "s1"
    assert len(events) == 2


@pytest.mark.analytics
def test_to_rows_skips_invalid_events():
    events = [
        _event(data={"query": "nursing"}, type="search_query", page="/?q=" + "x" * 300),
        _event(type="not_a_type"),
        _event(timestamp="yesterday"),
        _event(timestamp=True),
        "garbage",
    ]
    rows = analytics.to_rows("s1", events)

    assert len(rows) == 1
    row = rows[0]
    assert row["session_id"] == "s1"
    assert row["event_type"] == "search_query"
    assert json.loads(row["event_data"]) == {"query": "nursing"}
    assert len(row["page"]) == analytics.MAX_PAGE
    assert row["timestamp"] == dt.datetime(2023, 11, 14, 22, 13, 20, tzinfo=dt.timezone.utc)


@pytest.mark.analytics
@pytest.mark.parametrize("bad_type", [["page_view"], {"a": 1}, 7, None])
def test_to_rows_drops_non_string_types(bad_type):
    rows = analytics.to_rows("s1", [_event(), {"type": bad_type, "timestamp": 1}])
    assert [r["event_type"] for r in rows] == ["page_view"]


@pytest.mark.analytics
def test_to_rows_empty_data_is_null():
    row = analytics.to_rows("s1", [_event(page=None)])[0]
    assert row["event_data"] is None
    assert row["page"] is None


@pytest.mark.analytics
@pytest.mark.parametrize("data,stored", [
    ({}, "{}"),
    ([], "[]"),
    ("nursing", '"nursing"'),
    (None, None),
    (False, None),
    (0, None),
    ("", None),
])
def test_to_rows_event_data(data, stored):
    row = analytics.to_rows("s1", [_event(data=data)])[0]
    assert row["event_data"] == stored


@pytest.mark.analytics
def test_entity_label():
    assert analytics.entity_label('{"cipCode": "1107", "cipTitle": "Computer Science"}') == "Computer Science"
    assert analytics.entity_label('{"unitId": "200"}') == "School 200"
    assert analytics.entity_label('{"cipCode": "1107"}') == "Major 1107"
    assert analytics.entity_label("not json") == "not json"
    assert analytics.entity_label(None) == "(unknown)"


@pytest.mark.analytics
def test_summarize():
    totals = analytics.summarize(
        {"total_sessions": 4, "total_events": 10},
        [{"label": "page_view", "cnt": 6}, {"label": "tab_switch", "cnt": 4}],
    )
    assert totals == {"sessions": 4, "events": 10, "page_views": 6, "searches": 0}
