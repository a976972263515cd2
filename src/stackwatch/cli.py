"""CLI entrypoint for stackwatch."""

import logging
import signal
import sys
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

import click
from botocore.exceptions import ClientError
from rich.console import Console

from stackwatch.aws.client import CloudFormationClient
from stackwatch.errors import StackwatchError
from stackwatch.loaders import load_parameters, load_tags
from stackwatch.models import StackInfo, WatchOutcome, WatchResult
from stackwatch.render import LiveRenderer, format_changes
from stackwatch.rows import activate, change_map, resource_map
from stackwatch.watcher import Watcher

logger = logging.getLogger(__name__)

EXIT_INTERRUPTED = 130

poll_interval_option = click.option(
    "--poll-interval",
    type=float,
    default=5.0,
    envvar="STACKWATCH_POLL_INTERVAL",
    show_default=True,
    help="Seconds between status polls.",
)
max_wait_option = click.option(
    "--max-wait",
    type=float,
    default=None,
    envvar="STACKWATCH_MAX_WAIT",
    help="Stop watching after this many seconds.",
)
yes_option = click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")


def _fail(exc: Exception) -> None:
    click.echo(f"Error: {exc}", err=True)
    sys.exit(2)


@contextmanager
def _interruptible():
    """Turn Ctrl-C into a stop request the watcher checks between polls."""
    stop = threading.Event()
    previous = signal.signal(signal.SIGINT, lambda signum, frame: stop.set())
    try:
        yield stop
    finally:
        signal.signal(signal.SIGINT, previous)


@contextmanager
def _exit_on_interrupt():
    """Exit with 130 when Ctrl-C arrives before the watch starts."""
    try:
        yield
    except (KeyboardInterrupt, click.Abort):
        click.echo("Interrupted.", err=True)
        sys.exit(EXIT_INTERRUPTED)


def _report(result: WatchResult, stack_name: str) -> None:
    if result.outcome == WatchOutcome.SUCCEEDED:
        click.echo(f"{stack_name}: {result.stack_status}")
    elif result.outcome == WatchOutcome.CANCELLED:
        click.echo(
            f"Stopped watching {stack_name}; the operation continues in CloudFormation.",
            err=True,
        )
    elif result.outcome == WatchOutcome.TIMED_OUT:
        click.echo(
            f"Gave up waiting on {stack_name} (last status {result.stack_status}).",
            err=True,
        )
    else:
        reason = f": {result.reason}" if result.reason else ""
        click.echo(f"{stack_name} failed with {result.stack_status}{reason}", err=True)


def _watch(
    client: CloudFormationClient,
    stack_info: StackInfo,
    since: datetime | None,
    poll_interval: float,
    max_wait: float | None,
    rows=None,
    resources=None,
) -> None:
    with _interruptible() as stop, LiveRenderer(Console()) as renderer:
        watcher = Watcher(
            client,
            render=renderer,
            poll_interval=poll_interval,
            max_wait=max_wait,
            should_stop=stop.is_set,
            sleep=stop.wait,
        )
        if resources is not None:
            result = watcher.watch_delete(stack_info, resources, since=since)
        else:
            result = watcher.watch(stack_info, rows, since=since)

    _report(result, stack_info.stack_name)
    if result.outcome == WatchOutcome.CANCELLED:
        sys.exit(EXIT_INTERRUPTED)
    sys.exit(0 if result.succeeded else 1)


@click.group()
@click.option("--region", default=None, envvar="STACKWATCH_REGION", help="AWS region.")
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr.")
@click.pass_context
def main(ctx, region, verbose):
    """Deploy or delete CloudFormation stacks and watch them settle."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = {"region": region}


@main.command()
@click.option("--stack", "-s", required=True, help="Stack name.")
@click.option(
    "--template",
    "-t",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Template file.",
)
@click.option("--tags", "tags_path", default="tags.json", show_default=True, help="Tags JSON file.")
@click.option(
    "--parameters",
    "parameters_path",
    default="parameters.json",
    show_default=True,
    help="Parameters JSON file.",
)
@yes_option
@poll_interval_option
@max_wait_option
@click.pass_context
def up(ctx, stack, template, tags_path, parameters_path, yes, poll_interval, max_wait):
    """Create or update a stack through a change set and watch its events."""
    try:
        tags = load_tags(tags_path)
        parameters = load_parameters(parameters_path)
    except StackwatchError as exc:
        _fail(exc)

    with _exit_on_interrupt():
        client = CloudFormationClient(region=ctx.obj["region"])
        console = Console()

        try:
            client.verify_credentials()
            stack_info = client.create_change_set(
                stack,
                template.read_text(),
                parameters=parameters,
                tags=tags,
            )
            no_changes = client.wait_for_change_set(stack_info)
        except StackwatchError as exc:
            _fail(exc)

        if no_changes:
            click.echo(f"No changes to deploy for {stack}.")
            client.delete_change_set(stack_info)
            sys.exit(0)

        rows = change_map(client.list_changes(stack_info), active=False)
        console.print(format_changes(rows))

        if not yes and not click.confirm(f"Execute change set {stack_info.change_set_name}?"):
            client.delete_change_set(stack_info)
            click.echo("Change set discarded.")
            sys.exit(0)

        since = client.latest_event_time(stack_info)
        client.execute_change_set(stack_info)
        logger.info("Executing %s on %s", stack_info.change_set_name, stack)

    _watch(client, stack_info, since, poll_interval, max_wait, rows=activate(rows))


@main.command()
@click.option("--stack", "-s", required=True, help="Stack name.")
@yes_option
@poll_interval_option
@max_wait_option
@click.pass_context
def down(ctx, stack, yes, poll_interval, max_wait):
    """Delete a stack and watch its events."""
    with _exit_on_interrupt():
        client = CloudFormationClient(region=ctx.obj["region"])

        try:
            client.verify_credentials()
        except StackwatchError as exc:
            _fail(exc)

        try:
            stack_info = client.describe_stack(stack)
        except ClientError as exc:
            _fail(exc)
        resources = client.list_resources(stack_info)
        Console().print(format_changes(resource_map(resources)))

        if not yes and not click.confirm(f"Delete stack {stack}?"):
            sys.exit(0)

        since = client.latest_event_time(stack_info)
        client.delete_stack(stack_info)
        logger.info("Deleting %s", stack)

    _watch(client, stack_info, since, poll_interval, max_wait, resources=resources)
