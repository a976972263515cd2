"""Classification of CloudFormation resource and stack statuses."""

from enum import StrEnum


class StatusClass(StrEnum):
    """Broad outcome bucket for a status value."""

    POSITIVE = "POSITIVE"
    NEGATIVE = "NEGATIVE"
    PENDING = "PENDING"
    ROLLBACK = "ROLLBACK"


POSITIVE_EVENT_STATUS = frozenset({
    "CREATE_COMPLETE",
    "DELETE_COMPLETE",
    "UPDATE_COMPLETE",
})

NEGATIVE_EVENT_STATUS = frozenset({
    "CREATE_FAILED",
    "DELETE_FAILED",
    "UPDATE_FAILED",
})

PENDING_EVENT_STATUS = frozenset({
    "CREATE_IN_PROGRESS",
    "DELETE_IN_PROGRESS",
    "UPDATE_IN_PROGRESS",
})

POSITIVE_STACK_STATUS = frozenset({
    "CREATE_COMPLETE",
    "DELETE_COMPLETE",
    "UPDATE_COMPLETE",
    "ROLLBACK_COMPLETE",
})

NEGATIVE_STACK_STATUS = frozenset({
    "CREATE_FAILED",
    "DELETE_FAILED",
    "UPDATE_ROLLBACK_COMPLETE",
    "UPDATE_ROLLBACK_FAILED",
    "ROLLBACK_FAILED",
})

PENDING_STACK_STATUS = frozenset({
    "CREATE_IN_PROGRESS",
    "DELETE_IN_PROGRESS",
    "UPDATE_IN_PROGRESS",
    "REVIEW_IN_PROGRESS",
    "UPDATE_ROLLBACK_IN_PROGRESS",
    "ROLLBACK_IN_PROGRESS",
    "UPDATE_COMPLETE_CLEANUP_IN_PROGRESS",
    "UPDATE_ROLLBACK_COMPLETE_CLEANUP_IN_PROGRESS",
})

ROLLBACK_STACK_STATUS = frozenset({
    "ROLLBACK_IN_PROGRESS",
})

# Checked in order; anything not listed is still pending.
_EVENT_TABLES = (
    (POSITIVE_EVENT_STATUS, StatusClass.POSITIVE),
    (NEGATIVE_EVENT_STATUS, StatusClass.NEGATIVE),
    (PENDING_EVENT_STATUS, StatusClass.PENDING),
)

_STACK_TABLES = (
    (POSITIVE_STACK_STATUS, StatusClass.POSITIVE),
    (NEGATIVE_STACK_STATUS, StatusClass.NEGATIVE),
    (PENDING_STACK_STATUS, StatusClass.PENDING),
)


def _classify(status: str, tables) -> StatusClass:
    for statuses, status_class in tables:
        if status in statuses:
            return status_class
    return StatusClass.PENDING


def classify_event_status(status: str) -> StatusClass:
    """Classify a resource-level status from a stack event."""
    return _classify(status, _EVENT_TABLES)


def classify_stack_status(status: str) -> StatusClass:
    """Classify a stack-level status. Unknown values are treated as pending."""
    return _classify(status, _STACK_TABLES)


def is_rollback(status: str) -> bool:
    return status in ROLLBACK_STACK_STATUS


def is_terminal(status: str) -> bool:
    """Return True once a stack status needs no more polling."""
    return status in POSITIVE_STACK_STATUS or status in NEGATIVE_STACK_STATUS
