"""Exceptions raised by stackwatch."""


class StackwatchError(Exception):
    """Base class for errors stackwatch reports to the user."""


class MalformedRecordError(StackwatchError):
    """An API record is missing a required field, or carries a value we cannot read."""

    def __init__(
        self,
        kind: str,
        field: str,
        record: dict,
        problem: str = "is missing required field",
    ):
        self.kind = kind
        self.field = field
        self.record = record
        super().__init__(f"{kind} record {problem} {field!r}: {record!r}")


class InputFileError(StackwatchError):
    """A tags or parameters file could not be used."""


class CredentialsError(StackwatchError):
    """AWS credentials are missing or were rejected."""


class ChangeSetError(StackwatchError):
    """A change set could not be created."""
