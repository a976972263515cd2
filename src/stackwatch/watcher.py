"""Poll a CloudFormation stack until its current operation settles."""

import logging
import time
from collections.abc import Callable
from datetime import datetime

from stackwatch.models import DisplayRow, StackInfo, WatchOutcome, WatchResult
from stackwatch.rows import activate, event_map, first_failure, merge_events, resource_map
from stackwatch.status import StatusClass, classify_stack_status, is_rollback

logger = logging.getLogger(__name__)

RenderFn = Callable[[dict[str, DisplayRow], str], None]


class Watcher:
    """Follows one stack's events, rendering progress until a terminal status.

    Errors raised by the client are not caught: a failed fetch ends the watch.
    """

    def __init__(
        self,
        client,
        render: RenderFn | None = None,
        poll_interval: float = 5.0,
        max_polls: int | None = None,
        max_wait: float | None = None,
        should_stop: Callable[[], bool] | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._client = client
        self._render = render
        self._poll_interval = poll_interval
        self._max_polls = max_polls
        self._max_wait = max_wait
        self._should_stop = should_stop
        self._sleep = sleep
        self._clock = clock

    def watch(
        self,
        stack_info: StackInfo,
        rows: dict[str, DisplayRow] | None = None,
        since: datetime | None = None,
    ) -> WatchResult:
        """Poll ``stack_info`` until it leaves every pending status."""
        rows = dict(rows or {})
        started = self._clock()
        rolled_back = False
        polls = 0
        status = ""

        while True:
            if self._should_stop is not None and self._should_stop():
                logger.info("Stopped watching %s", stack_info.stack_name)
                return WatchResult(WatchOutcome.CANCELLED, status, rows, None, rolled_back, polls)

            status = self._client.get_stack_status(stack_info)
            polls += 1
            status_class = classify_stack_status(status)
            logger.debug("%s poll %d: %s", stack_info.stack_name, polls, status)

            rows = self._refresh(stack_info, rows, status, since)

            if status_class != StatusClass.PENDING:
                break

            if is_rollback(status) and not rolled_back:
                rolled_back = True
                logger.warning("%s is rolling back", stack_info.stack_name)

            if self._out_of_budget(polls, started):
                logger.warning("Gave up on %s after %d polls", stack_info.stack_name, polls)
                return WatchResult(WatchOutcome.TIMED_OUT, status, rows, None, rolled_back, polls)

            if self._poll_interval > 0:
                self._sleep(self._poll_interval)

        if status_class == StatusClass.POSITIVE:
            return WatchResult(WatchOutcome.SUCCEEDED, status, rows, None, rolled_back, polls)

        failure = first_failure(rows)
        reason = failure.status_reason if failure is not None and failure.status_reason else None
        logger.warning("%s finished in %s: %s", stack_info.stack_name, status, reason)
        return WatchResult(WatchOutcome.FAILED, status, rows, reason, rolled_back, polls)

    def watch_delete(
        self,
        stack_info: StackInfo,
        resources: list[dict],
        since: datetime | None = None,
    ) -> WatchResult:
        """Watch a stack deletion, seeding the display with every resource being removed."""
        return self.watch(stack_info, activate(resource_map(resources)), since=since)

    def _refresh(self, stack_info, rows, status, since):
        events = self._client.list_events(stack_info, since=since)
        rows = merge_events(rows, event_map(events))
        if self._render is not None:
            self._render(rows, status)
        return rows

    def _out_of_budget(self, polls: int, started: float) -> bool:
        if self._max_polls is not None and polls >= self._max_polls:
            return True
        if self._max_wait is not None and self._clock() - started >= self._max_wait:
            return True
        return False
