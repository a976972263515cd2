"""Core data models for watching CloudFormation stack operations."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

CLOUDFORMATION_STACK_RESOURCE = "AWS::CloudFormation::Stack"


class DisplayRowSource(StrEnum):
    """Where a display row came from."""

    CHANGE = "change"
    EVENT = "event"


class ChangeAction(StrEnum):
    """Action a change set will take on a resource."""

    ADD = "Add"
    MODIFY = "Modify"
    REMOVE = "Remove"
    IMPORT = "Import"
    DYNAMIC = "Dynamic"


class Replacement(StrEnum):
    """Whether a change replaces the underlying resource."""

    YES = "True"
    NO = "False"
    CONDITIONAL = "Conditional"
    UNKNOWN = ""


class WatchOutcome(StrEnum):
    """How a watch session ended."""

    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    TIMED_OUT = "TIMED_OUT"


@dataclass(frozen=True)
class DisplayRow:
    """One reconciled fact about a stack resource, ready for display."""

    logical_id: str
    resource_type: str
    status: str = ""
    timestamp: datetime | None = None
    status_reason: str = ""
    replacement: Replacement = Replacement.UNKNOWN
    action: ChangeAction | None = None
    source: DisplayRowSource | None = None
    active: bool = False


@dataclass(frozen=True)
class StackInfo:
    """Identifiers used to address a stack and its change set."""

    stack_id: str
    stack_name: str
    change_set_name: str | None = None


@dataclass(frozen=True)
class WatchResult:
    """Final state of a watched stack operation."""

    outcome: WatchOutcome
    stack_status: str
    rows: dict[str, DisplayRow] = field(default_factory=dict)
    reason: str | None = None
    rolled_back: bool = False
    polls: int = 0

    @property
    def succeeded(self) -> bool:
        return self.outcome == WatchOutcome.SUCCEEDED
