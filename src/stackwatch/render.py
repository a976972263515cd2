"""Rich tables for change-set previews and live stack progress."""

from rich.console import Console
from rich.live import Live
from rich.table import Table
from rich.text import Text

from stackwatch.models import CLOUDFORMATION_STACK_RESOURCE, ChangeAction, DisplayRow
from stackwatch.status import StatusClass, classify_event_status, classify_stack_status, is_rollback

STATUS_COLORS = {
    StatusClass.POSITIVE: "green",
    StatusClass.NEGATIVE: "red",
    StatusClass.PENDING: "yellow",
    StatusClass.ROLLBACK: "magenta",
}

ACTION_COLORS = {
    ChangeAction.ADD: "green",
    ChangeAction.MODIFY: "yellow",
    ChangeAction.REMOVE: "red",
    ChangeAction.IMPORT: "cyan",
    ChangeAction.DYNAMIC: "blue",
}


def _ordered(rows: dict[str, DisplayRow]) -> list[DisplayRow]:
    # Rows with no event yet keep map order ahead of those with one.
    return sorted(
        rows.values(),
        key=lambda row: (row.timestamp is not None, row.timestamp.timestamp() if row.timestamp else 0),
    )


def _status_text(row: DisplayRow) -> Text:
    if not row.status:
        return Text("PENDING", style="dim")
    color = STATUS_COLORS[classify_event_status(row.status)]
    return Text(row.status, style=color)


def _action_text(row: DisplayRow) -> Text:
    if row.action is None:
        return Text("")
    return Text(row.action.value, style=ACTION_COLORS.get(row.action, ""))


def build_table(rows: dict[str, DisplayRow], stack_status: str) -> Table:
    """Render the current state of every resource as a table."""
    if not stack_status:
        stack_color = "dim"
    elif is_rollback(stack_status):
        stack_color = STATUS_COLORS[StatusClass.ROLLBACK]
    else:
        stack_color = STATUS_COLORS[classify_stack_status(stack_status)]
    table = Table(title=Text(stack_status or "WAITING", style=f"bold {stack_color}"))
    table.add_column("Resource")
    table.add_column("Type")
    table.add_column("Action")
    table.add_column("Status")
    table.add_column("Reason", overflow="fold")

    for row in _ordered(rows):
        is_stack = row.resource_type == CLOUDFORMATION_STACK_RESOURCE
        name = Text(row.logical_id, style="bold" if is_stack else "")
        if not row.active:
            name.stylize("dim")
        table.add_row(
            name,
            row.resource_type,
            _action_text(row),
            _status_text(row),
            row.status_reason,
        )

    return table


def format_changes(rows: dict[str, DisplayRow]) -> Table:
    """Preview of a change set before it is executed."""
    table = Table(title="Change set")
    table.add_column("Resource")
    table.add_column("Type")
    table.add_column("Action")
    table.add_column("Replacement")

    for row in rows.values():
        replacement = row.replacement.value or "-"
        table.add_row(row.logical_id, row.resource_type, _action_text(row), replacement)

    return table


class LiveRenderer:
    """Redraws the progress table in place. Use as a context manager."""

    def __init__(self, console: Console | None = None):
        self._console = console or Console()
        self._live = Live(build_table({}, ""), console=self._console, auto_refresh=False)

    def __enter__(self):
        self._live.__enter__()
        return self

    def __exit__(self, *exc):
        return self._live.__exit__(*exc)

    def __call__(self, rows: dict[str, DisplayRow], stack_status: str) -> None:
        self._live.update(build_table(rows, stack_status), refresh=True)
