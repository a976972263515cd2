"""Normalize change sets, stack events and resource summaries into display rows."""

from collections.abc import Iterable
from dataclasses import replace

from stackwatch.errors import MalformedRecordError
from stackwatch.models import ChangeAction, DisplayRow, DisplayRowSource, Replacement
from stackwatch.status import StatusClass, classify_event_status


def _require(record: dict, key: str, kind: str):
    value = record.get(key)
    if value is None or value == "":
        raise MalformedRecordError(kind, key, record)
    return value


def _enum(enum_cls, value, key: str, kind: str, record: dict):
    try:
        return enum_cls(value)
    except ValueError as exc:
        raise MalformedRecordError(kind, key, record, problem="has an unrecognised value for") from exc


def row_from_change(change: dict, active: bool) -> DisplayRow:
    """Build a row from a ``describe_change_set`` change entry."""
    resource_change = _require(change, "ResourceChange", "change")
    return DisplayRow(
        logical_id=_require(resource_change, "LogicalResourceId", "change"),
        resource_type=_require(resource_change, "ResourceType", "change"),
        replacement=_enum(
            Replacement, resource_change.get("Replacement", ""), "Replacement", "change", change
        ),
        action=_enum(
            ChangeAction, _require(resource_change, "Action", "change"), "Action", "change", change
        ),
        source=DisplayRowSource.CHANGE,
        active=active,
    )


def row_from_event(event: dict) -> DisplayRow:
    """Build a row from a ``describe_stack_events`` entry.

    Events say nothing about whether the resource belongs to the running
    plan, so the row starts inactive; see :func:`merge_events`.
    """
    return DisplayRow(
        logical_id=_require(event, "LogicalResourceId", "event"),
        resource_type=_require(event, "ResourceType", "event"),
        status=_require(event, "ResourceStatus", "event"),
        timestamp=_require(event, "Timestamp", "event"),
        status_reason=event.get("ResourceStatusReason", ""),
        source=DisplayRowSource.EVENT,
    )


def row_from_resource(resource: dict) -> DisplayRow:
    """Build a row from a ``list_stack_resources`` summary.

    Only used when tearing a stack down, so every resource is a removal.
    """
    return DisplayRow(
        logical_id=_require(resource, "LogicalResourceId", "resource"),
        resource_type=_require(resource, "ResourceType", "resource"),
        action=ChangeAction.REMOVE,
    )


def change_map(changes: Iterable[dict], active: bool) -> dict[str, DisplayRow]:
    rows = {}
    for change in changes:
        row = row_from_change(change, active)
        rows[row.logical_id] = row
    return rows


def event_map(events: Iterable[dict]) -> dict[str, DisplayRow]:
    """Key event rows by logical id. Later events win, so pass them oldest first."""
    rows = {}
    for event in events:
        row = row_from_event(event)
        rows[row.logical_id] = row
    return rows


def resource_map(resources: Iterable[dict]) -> dict[str, DisplayRow]:
    rows = {}
    for resource in resources:
        row = row_from_resource(resource)
        rows[row.logical_id] = row
    return rows


def activate(rows: dict[str, DisplayRow]) -> dict[str, DisplayRow]:
    """Return a copy of ``rows`` with every row marked active."""
    return {logical_id: replace(row, active=True) for logical_id, row in rows.items()}


def merge_events(
    previous: dict[str, DisplayRow],
    events: dict[str, DisplayRow],
) -> dict[str, DisplayRow]:
    """Overlay event rows on ``previous``, keeping each resource's active flag."""
    merged = dict(previous)
    for logical_id, row in events.items():
        prior = previous.get(logical_id)
        if prior is not None:
            row = replace(row, active=prior.active)
        merged[logical_id] = row
    return merged


def first_failure(rows: dict[str, DisplayRow]) -> DisplayRow | None:
    """Return the first row whose status is a resource failure."""
    for row in rows.values():
        if row.status and classify_event_status(row.status) == StatusClass.NEGATIVE:
            return row
    return None
