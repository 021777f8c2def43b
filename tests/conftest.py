# tests/conftest.py

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from deadline_notification.core.config import ReminderSettings

from .fakes import FakeScheduleGateway

NOW = datetime(2025, 5, 1, 8, 0, 0, tzinfo=timezone.utc)

TARGET_ARN = "arn:aws:lambda:eu-central-1:123456789012:function:ReminderProcessor"
ROLE_ARN = "arn:aws:iam::123456789012:role/EventBridgeSchedulerRole"


@pytest.fixture()
def settings() -> ReminderSettings:
    """Explicit settings; the environment and any .env file are ignored."""
    return ReminderSettings(
        _env_file=None,
        TARGET_LAMBDA_ARN=TARGET_ARN,
        SCHEDULER_ROLE_ARN=ROLE_ARN,
        USER_POOL_ID="eu-central-1_TestPool",
        TABLE_NAME="Tasks",
        SNS_TOPIC_ARN="arn:aws:sns:eu-central-1:123456789012:task-reminders",
    )


@pytest.fixture()
def gateway() -> FakeScheduleGateway:
    return FakeScheduleGateway()
