"""Tests for display row normalization and merging."""

from dataclasses import replace

import pytest

from stackwatch.errors import MalformedRecordError
from stackwatch.models import ChangeAction, DisplayRowSource, Replacement
from stackwatch.rows import (
    activate,
    change_map,
    event_map,
    first_failure,
    merge_events,
    resource_map,
    row_from_change,
    row_from_event,
    row_from_resource,
)
from tests.conftest import make_change, make_event, make_resource


def test_row_from_change():
    row = row_from_change(make_change("MyQueue", action="Modify", Replacement="Conditional"), True)

    assert row.logical_id == "MyQueue"
    assert row.resource_type == "AWS::SQS::Queue"
    assert row.action == ChangeAction.MODIFY
    assert row.replacement == Replacement.CONDITIONAL
    assert row.source == DisplayRowSource.CHANGE
    assert row.active is True
    assert row.status == ""
    assert row.timestamp is None


def test_row_from_change_without_replacement():
    row = row_from_change(make_change("MyQueue", action="Add"), False)

    assert row.replacement == Replacement.UNKNOWN
    assert row.active is False


def test_row_from_event():
    event = make_event("MyQueue", "CREATE_FAILED", minute=5, reason="Queue already exists")
    row = row_from_event(event)

    assert row.logical_id == "MyQueue"
    assert row.status == "CREATE_FAILED"
    assert row.timestamp == event["Timestamp"]
    assert row.status_reason == "Queue already exists"
    assert row.source == DisplayRowSource.EVENT
    assert row.active is False
    assert row.action is None


def test_row_from_resource_is_removal():
    row = row_from_resource(make_resource("MyBucket", "AWS::S3::Bucket"))

    assert row.logical_id == "MyBucket"
    assert row.resource_type == "AWS::S3::Bucket"
    assert row.action == ChangeAction.REMOVE
    assert row.source is None
    assert row.timestamp is None


@pytest.mark.parametrize("missing", ["LogicalResourceId", "ResourceType", "Action"])
def test_change_missing_required_field(missing):
    change = make_change("MyQueue")
    del change["ResourceChange"][missing]

    with pytest.raises(MalformedRecordError, match=missing):
        row_from_change(change, True)


@pytest.mark.parametrize(
    "missing", ["LogicalResourceId", "ResourceType", "ResourceStatus", "Timestamp"]
)
def test_event_missing_required_field(missing):
    event = make_event("MyQueue", "CREATE_COMPLETE")
    del event[missing]

    with pytest.raises(MalformedRecordError) as exc_info:
        row_from_event(event)
    assert exc_info.value.kind == "event"
    assert exc_info.value.field == missing


@pytest.mark.parametrize(
    "field,value",
    [("Action", "Teleport"), ("Replacement", "Sometimes")],
)
def test_change_with_unrecognised_value(field, value):
    change = make_change("MyQueue", **{field: value})

    with pytest.raises(MalformedRecordError, match="unrecognised value") as exc_info:
        row_from_change(change, True)
    assert exc_info.value.field == field
    assert exc_info.value.kind == "change"


def test_resource_missing_logical_id():
    resource = make_resource("MyQueue")
    del resource["LogicalResourceId"]

    with pytest.raises(MalformedRecordError):
        row_from_resource(resource)


def test_change_map_add_and_remove():
    rows = change_map([make_change("A", action="Add"), make_change("B", action="Remove")], True)

    assert set(rows) == {"A", "B"}
    assert all(row.active for row in rows.values())
    assert all(row.source == DisplayRowSource.CHANGE for row in rows.values())
    assert rows["A"].action == ChangeAction.ADD
    assert rows["B"].action == ChangeAction.REMOVE


def test_maps_key_set_matches_input_ids():
    events = [
        make_event("A", "CREATE_IN_PROGRESS", minute=1),
        make_event("B", "CREATE_IN_PROGRESS", minute=2),
        make_event("A", "CREATE_COMPLETE", minute=3),
    ]
    resources = [make_resource("X"), make_resource("Y")]

    assert set(event_map(events)) == {"A", "B"}
    assert set(resource_map(resources)) == {"X", "Y"}
    assert event_map(events) == event_map(events)


def test_event_map_last_write_wins():
    events = [
        make_event("A", "CREATE_IN_PROGRESS", minute=1),
        make_event("A", "CREATE_COMPLETE", minute=3),
    ]

    assert event_map(events)["A"].status == "CREATE_COMPLETE"


def test_activate_does_not_mutate_input():
    rows = change_map([make_change("A"), make_change("B")], False)

    activated = activate(rows)

    assert all(row.active for row in activated.values())
    assert all(not row.active for row in rows.values())
    assert activated is not rows


def test_merge_events_carries_active_flag():
    previous = activate(change_map([make_change("A"), make_change("B")], False))
    events = event_map([
        make_event("A", "CREATE_COMPLETE"),
        make_event("C", "CREATE_IN_PROGRESS", resource_type="AWS::S3::Bucket"),
    ])

    merged = merge_events(previous, events)

    assert merged["A"].status == "CREATE_COMPLETE"
    assert merged["A"].active is True
    assert merged["B"] is previous["B"]
    assert merged["C"].active is False
    assert previous["A"].status == ""


def test_merge_events_keeps_inactive_rows_inactive():
    previous = change_map([make_change("A")], False)

    merged = merge_events(previous, event_map([make_event("A", "CREATE_COMPLETE")]))

    assert merged["A"].active is False


def test_first_failure():
    rows = event_map([
        make_event("A", "CREATE_COMPLETE", minute=1),
        make_event("B", "CREATE_FAILED", minute=2, reason="Bucket name taken"),
        make_event("C", "UPDATE_FAILED", minute=3, reason="Later"),
    ])

    failure = first_failure(rows)

    assert failure.logical_id == "B"
    assert failure.status_reason == "Bucket name taken"


def test_first_failure_none_when_all_good():
    rows = event_map([make_event("A", "CREATE_COMPLETE")])
    rows["B"] = replace(rows["A"], logical_id="B", status="")

    assert first_failure(rows) is None
