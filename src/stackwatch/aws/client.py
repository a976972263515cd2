"""Thin boto3 wrapper for the CloudFormation calls stackwatch needs."""

import logging
import time
from datetime import UTC, datetime

import boto3
from botocore.exceptions import ClientError, NoCredentialsError

from stackwatch.aws.pagination import collect_pages
from stackwatch.errors import ChangeSetError, CredentialsError
from stackwatch.models import StackInfo

logger = logging.getLogger(__name__)

CHANGE_SET_PENDING = ("CREATE_PENDING", "CREATE_IN_PROGRESS")
CHANGE_SET_PREFIX = "stackwatch"
CAPABILITIES = ["CAPABILITY_IAM", "CAPABILITY_NAMED_IAM", "CAPABILITY_AUTO_EXPAND"]


class CloudFormationClient:
    """Wraps boto3 CloudFormation calls and returns raw records or stackwatch dataclasses."""

    def __init__(self, region: str | None = None):
        kwargs = {"region_name": region} if region else {}
        self._client = boto3.client("cloudformation", **kwargs)
        self._sts = boto3.client("sts", **kwargs)

    def verify_credentials(self) -> str:
        """Return the caller ARN, raising CredentialsError if AWS rejects us."""
        try:
            identity = self._sts.get_caller_identity()
        except (NoCredentialsError, ClientError) as exc:
            raise CredentialsError(f"Unable to verify AWS credentials: {exc}") from exc
        return identity["Arn"]

    def stack_exists(self, stack_name: str) -> bool:
        try:
            resp = self._client.describe_stacks(StackName=stack_name)
        except ClientError as exc:
            if "does not exist" in str(exc):
                return False
            raise
        stacks = resp.get("Stacks", [])
        # A stack left behind by a change set that was never executed.
        return bool(stacks) and stacks[0]["StackStatus"] != "REVIEW_IN_PROGRESS"

    def describe_stack(self, stack_name: str) -> StackInfo:
        resp = self._client.describe_stacks(StackName=stack_name)
        stack = resp["Stacks"][0]
        return StackInfo(stack_id=stack["StackId"], stack_name=stack["StackName"])

    def create_change_set(
        self,
        stack_name: str,
        template_body: str,
        parameters: list[dict[str, str]] | None = None,
        tags: list[dict[str, str]] | None = None,
    ) -> StackInfo:
        """Create a CREATE or UPDATE change set, depending on whether the stack exists."""
        change_set_type = "UPDATE" if self.stack_exists(stack_name) else "CREATE"
        change_set_name = f"{CHANGE_SET_PREFIX}-{datetime.now(UTC):%Y%m%d%H%M%S}"

        resp = self._client.create_change_set(
            StackName=stack_name,
            TemplateBody=template_body,
            Parameters=parameters or [],
            Tags=tags or [],
            Capabilities=CAPABILITIES,
            ChangeSetName=change_set_name,
            ChangeSetType=change_set_type,
        )
        logger.info("Created %s change set %s for %s", change_set_type, change_set_name, stack_name)

        return StackInfo(
            stack_id=resp["StackId"],
            stack_name=stack_name,
            change_set_name=change_set_name,
        )

    def wait_for_change_set(
        self,
        stack_info: StackInfo,
        poll_interval: float = 2.0,
        max_poll_attempts: int = 150,
    ) -> str | None:
        """Block until the change set is ready.

        Returns None when it can be executed, or the status reason when
        CloudFormation found nothing to change.
        """
        for _ in range(max_poll_attempts):
            resp = self._client.describe_change_set(
                StackName=stack_info.stack_id,
                ChangeSetName=stack_info.change_set_name,
            )
            status = resp["Status"]
            if status not in CHANGE_SET_PENDING:
                break
            if poll_interval > 0:
                time.sleep(poll_interval)
        else:
            raise ChangeSetError(f"Timed out waiting for change set {stack_info.change_set_name}")

        if status == "CREATE_COMPLETE":
            return None

        reason = resp.get("StatusReason", "")
        if "didn't contain changes" in reason or "No updates are to be performed" in reason:
            return reason
        raise ChangeSetError(f"Change set {stack_info.change_set_name} {status}: {reason}")

    def list_changes(self, stack_info: StackInfo) -> list[dict]:
        """Fetch every change in the change set."""
        changes = []
        next_token = None

        while True:
            kwargs: dict = {
                "StackName": stack_info.stack_id,
                "ChangeSetName": stack_info.change_set_name,
            }
            if next_token:
                kwargs["NextToken"] = next_token

            resp = self._client.describe_change_set(**kwargs)
            changes.extend(resp.get("Changes", []))

            next_token = resp.get("NextToken")
            if not next_token:
                break

        return changes

    def execute_change_set(self, stack_info: StackInfo) -> None:
        self._client.execute_change_set(
            StackName=stack_info.stack_id,
            ChangeSetName=stack_info.change_set_name,
        )

    def delete_change_set(self, stack_info: StackInfo) -> None:
        self._client.delete_change_set(
            StackName=stack_info.stack_id,
            ChangeSetName=stack_info.change_set_name,
        )

    def delete_stack(self, stack_info: StackInfo) -> None:
        self._client.delete_stack(StackName=stack_info.stack_id)

    def get_stack_status(self, stack_info: StackInfo) -> str:
        """Current stack status. Looked up by id so deleted stacks still resolve."""
        resp = self._client.describe_stacks(StackName=stack_info.stack_id)
        return resp["Stacks"][0]["StackStatus"]

    def latest_event_time(self, stack_info: StackInfo) -> datetime | None:
        """Timestamp of the newest event already recorded for the stack."""
        resp = self._client.describe_stack_events(StackName=stack_info.stack_id)
        events = resp.get("StackEvents", [])
        return events[0]["Timestamp"] if events else None

    def list_events(self, stack_info: StackInfo, since: datetime | None = None) -> list[dict]:
        """Stack events newer than ``since``, oldest first."""
        paginator = self._client.get_paginator("describe_stack_events")
        events = []
        for page in paginator.paginate(StackName=stack_info.stack_id):
            page_events = page.get("StackEvents", [])
            if since is not None:
                page_events = [e for e in page_events if e["Timestamp"] > since]
            events.extend(page_events)
            # Events arrive newest first, so an older page cannot match either.
            if since is not None and len(page_events) < len(page.get("StackEvents", [])):
                break
        events.reverse()
        return events

    def list_resources(self, stack_info: StackInfo) -> list[dict]:
        """Every resource summary in the stack."""
        paginator = self._client.get_paginator("list_stack_resources")
        return collect_pages(
            paginator.paginate(StackName=stack_info.stack_id),
            "StackResourceSummaries",
        )
