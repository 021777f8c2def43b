# tests/test_services.py

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import boto3
import pytest
from botocore.stub import Stubber

from deadline_notification.reminders.models import ScheduleRequest
from deadline_notification.reminders.ports import (
    DeliveryError,
    LookupFailed,
    ScheduleNotFound,
    SchedulerCallFailed,
)
from deadline_notification.services.directory import CognitoContactDirectory
from deadline_notification.services.notifier import SnsDeliveryChannel
from deadline_notification.services.scheduler_client import EventBridgeScheduleGateway, at_expression
from deadline_notification.services.task_table import DynamoTaskStore

from .conftest import ROLE_ARN, TARGET_ARN

REGION = "eu-central-1"


def client(service: str):
    return boto3.client(
        service,
        region_name=REGION,
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


def schedule_request() -> ScheduleRequest:
    return ScheduleRequest(
        name="TaskReminder_t1",
        fire_time=datetime(2025, 5, 1, 11, 0, 0, 500, tzinfo=timezone(timedelta(hours=2))),
        payload={"taskId": "t1", "title": "Pay rent"},
        target_arn=TARGET_ARN,
        role_arn=ROLE_ARN,
    )


def test_at_expression_is_utc_to_the_second() -> None:
    fire = datetime(2025, 5, 1, 11, 0, 0, 500, tzinfo=timezone(timedelta(hours=2)))
    assert at_expression(fire) == "at(2025-05-01T09:00:00)"


def test_create_params() -> None:
    gateway = EventBridgeScheduleGateway(client=client("scheduler"))
    params = gateway.build_create_params(schedule_request())

    assert params["Name"] == "TaskReminder_t1"
    assert params["GroupName"] == "default"
    assert params["ScheduleExpression"] == "at(2025-05-01T09:00:00)"
    assert params["ScheduleExpressionTimezone"] == "UTC"
    assert params["State"] == "ENABLED"
    assert params["FlexibleTimeWindow"] == {"Mode": "OFF"}
    assert params["ActionAfterCompletion"] == "DELETE"
    assert params["Target"]["Arn"] == TARGET_ARN
    assert params["Target"]["RoleArn"] == ROLE_ARN
    assert json.loads(params["Target"]["Input"]) == {"taskId": "t1", "title": "Pay rent"}


def test_create_schedule_calls_scheduler() -> None:
    scheduler = client("scheduler")
    gateway = EventBridgeScheduleGateway(client=scheduler)
    with Stubber(scheduler) as stub:
        stub.add_response(
            "create_schedule",
            {"ScheduleArn": "arn:aws:scheduler:eu-central-1:123456789012:schedule/default/TaskReminder_t1"},
        )
        gateway.create_schedule(schedule_request())
        stub.assert_no_pending_responses()


def test_create_conflict_is_a_scheduler_failure() -> None:
    scheduler = client("scheduler")
    gateway = EventBridgeScheduleGateway(client=scheduler)
    with Stubber(scheduler) as stub:
        stub.add_client_error("create_schedule", service_error_code="ConflictException", http_status_code=409)
        with pytest.raises(SchedulerCallFailed):
            gateway.create_schedule(schedule_request())


def test_delete_not_found_maps_to_schedule_not_found() -> None:
    scheduler = client("scheduler")
    gateway = EventBridgeScheduleGateway(client=scheduler)
    with Stubber(scheduler) as stub:
        stub.add_client_error("delete_schedule", service_error_code="ResourceNotFoundException", http_status_code=404)
        with pytest.raises(ScheduleNotFound):
            gateway.delete_schedule("TaskReminder_t1")


def test_delete_other_error_is_scheduler_failure() -> None:
    scheduler = client("scheduler")
    gateway = EventBridgeScheduleGateway(client=scheduler)
    with Stubber(scheduler) as stub:
        stub.add_client_error("delete_schedule", service_error_code="ThrottlingException", http_status_code=429)
        with pytest.raises(SchedulerCallFailed):
            gateway.delete_schedule("TaskReminder_t1")


def test_task_store_reads_item() -> None:
    dynamodb = client("dynamodb")
    store = DynamoTaskStore("Tasks", client=dynamodb)
    with Stubber(dynamodb) as stub:
        stub.add_response(
            "get_item",
            {"Item": {"taskId": {"S": "t1"}, "status": {"S": "active"}}},
            {"TableName": "Tasks", "Key": {"taskId": {"S": "t1"}}, "ConsistentRead": True},
        )
        stub.add_response("get_item", {})
        found = store.get_task("t1")
        missing = store.get_task("t2")

    assert found.task_id == "t1"
    assert found.is_active()
    assert missing is None


def test_task_store_error_is_lookup_failure() -> None:
    dynamodb = client("dynamodb")
    store = DynamoTaskStore("Tasks", client=dynamodb)
    with Stubber(dynamodb) as stub:
        stub.add_client_error("get_item", service_error_code="ProvisionedThroughputExceededException")
        with pytest.raises(LookupFailed):
            store.get_task("t1")


def test_directory_returns_contact_attribute() -> None:
    cognito = client("cognito-idp")
    directory = CognitoContactDirectory("eu-central-1_TestPool", client=cognito)
    with Stubber(cognito) as stub:
        stub.add_response(
            "admin_get_user",
            {
                "Username": "u1",
                "UserAttributes": [
                    {"Name": "sub", "Value": "abc"},
                    {"Name": "email", "Value": "u1@example.com"},
                ],
            },
            {"UserPoolId": "eu-central-1_TestPool", "Username": "u1"},
        )
        assert directory.get_contact_address("u1") == "u1@example.com"


def test_directory_without_contact_attribute() -> None:
    cognito = client("cognito-idp")
    directory = CognitoContactDirectory("eu-central-1_TestPool", client=cognito)
    with Stubber(cognito) as stub:
        stub.add_response("admin_get_user", {"Username": "u1", "UserAttributes": [{"Name": "sub", "Value": "abc"}]})
        stub.add_client_error("admin_get_user", service_error_code="UserNotFoundException", http_status_code=400)
        assert directory.get_contact_address("u1") is None
        assert directory.get_contact_address("ghost") is None


def test_directory_error_is_lookup_failure() -> None:
    cognito = client("cognito-idp")
    directory = CognitoContactDirectory("eu-central-1_TestPool", client=cognito)
    with Stubber(cognito) as stub:
        stub.add_client_error("admin_get_user", service_error_code="TooManyRequestsException", http_status_code=429)
        with pytest.raises(LookupFailed):
            directory.get_contact_address("u1")


def test_notifier_publishes_with_recipient_attribute() -> None:
    sns = client("sns")
    topic = "arn:aws:sns:eu-central-1:123456789012:task-reminders"
    channel = SnsDeliveryChannel(topic, client=sns)
    with Stubber(sns) as stub:
        stub.add_response(
            "publish",
            {"MessageId": "m-1"},
            {
                "TopicArn": topic,
                "Subject": "Task Reminder",
                "Message": "hello",
                "MessageAttributes": {"recipient": {"DataType": "String", "StringValue": "u1@example.com"}},
            },
        )
        assert channel.send("u1@example.com", "Task Reminder", "hello") == "m-1"


def test_notifier_error_is_delivery_error() -> None:
    sns = client("sns")
    channel = SnsDeliveryChannel("arn:aws:sns:eu-central-1:123456789012:task-reminders", client=sns)
    with Stubber(sns) as stub:
        stub.add_client_error("publish", service_error_code="NotFound", http_status_code=404)
        with pytest.raises(DeliveryError):
            channel.send("u1@example.com", "Task Reminder", "hello")
