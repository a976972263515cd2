"""Shared test fixtures."""

from datetime import UTC, datetime

import boto3
import pytest
from moto import mock_aws


@pytest.fixture
def aws_credentials(monkeypatch):
    """Set dummy AWS credentials for moto."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture
def cfn_client(aws_credentials):
    """Create a moto-mocked CloudFormation boto3 client."""
    with mock_aws():
        yield boto3.client("cloudformation", region_name="us-east-1")


SIMPLE_TEMPLATE = """{
    "AWSTemplateFormatVersion": "2010-09-09",
    "Resources": {
        "MyQueue": {
            "Type": "AWS::SQS::Queue",
            "Properties": {
                "QueueName": "my-test-queue"
            }
        }
    }
}"""

TWO_RESOURCE_TEMPLATE = """{
    "AWSTemplateFormatVersion": "2010-09-09",
    "Resources": {
        "MyQueue": {
            "Type": "AWS::SQS::Queue",
            "Properties": {
                "QueueName": "my-other-queue"
            }
        },
        "MyBucket": {
            "Type": "AWS::S3::Bucket"
        }
    }
}"""


def make_change(logical_id, action="Add", resource_type="AWS::SQS::Queue", **extra):
    resource_change = {
        "Action": action,
        "LogicalResourceId": logical_id,
        "ResourceType": resource_type,
        **extra,
    }
    return {"Type": "Resource", "ResourceChange": resource_change}


def make_event(logical_id, status, resource_type="AWS::SQS::Queue", minute=0, reason=None):
    event = {
        "StackId": "arn:aws:cloudformation:us-east-1:123:stack/my-stack/uuid",
        "EventId": f"{logical_id}-{status}-{minute}",
        "StackName": "my-stack",
        "LogicalResourceId": logical_id,
        "ResourceType": resource_type,
        "ResourceStatus": status,
        "Timestamp": datetime(2026, 2, 25, 13, minute, 0, tzinfo=UTC),
    }
    if reason is not None:
        event["ResourceStatusReason"] = reason
    return event


def make_resource(logical_id, resource_type="AWS::SQS::Queue"):
    return {
        "LogicalResourceId": logical_id,
        "PhysicalResourceId": f"phys-{logical_id}",
        "ResourceType": resource_type,
        "ResourceStatus": "CREATE_COMPLETE",
        "LastUpdatedTimestamp": datetime(2026, 2, 25, 12, 0, 0, tzinfo=UTC),
    }
