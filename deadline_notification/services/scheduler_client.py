"""
EventBridge Scheduler adapter for reminder schedules
"""
import json
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from botocore.exceptions import BotoCoreError, ClientError

from ..reminders.models import ScheduleRequest
from ..reminders.ports import ScheduleNotFound, SchedulerCallFailed
from ..utils.timezone import to_utc_aware
from .aws import error_code, get_client

logger = logging.getLogger(__name__)


def at_expression(fire_time: datetime) -> str:
    """One-time schedule expression, evaluated in UTC (seconds precision)."""
    utc = to_utc_aware(fire_time).replace(microsecond=0, tzinfo=None)
    return f"at({utc.isoformat()})"


class EventBridgeScheduleGateway:
    """Creates and deletes one-shot schedules that invoke the dispatcher."""

    def __init__(self, client=None, group_name: str = "default", region_name: Optional[str] = None):
        self.client = client or get_client("scheduler", region_name)
        self.group_name = group_name

    def build_create_params(self, request: ScheduleRequest) -> Dict[str, Any]:
        return {
            "Name": request.name,
            "GroupName": request.group_name or self.group_name,
            "ScheduleExpression": at_expression(request.fire_time),
            "ScheduleExpressionTimezone": "UTC",
            "State": "ENABLED" if request.enabled else "DISABLED",
            "FlexibleTimeWindow": {"Mode": "OFF"},
            # One-shot: the scheduler removes the schedule after it fires
            "ActionAfterCompletion": "DELETE",
            "Target": {
                "Arn": request.target_arn,
                "RoleArn": request.role_arn,
                "Input": json.dumps(request.payload, sort_keys=True),
            },
        }

    def create_schedule(self, request: ScheduleRequest) -> None:
        params = self.build_create_params(request)
        try:
            self.client.create_schedule(**params)
        except (BotoCoreError, ClientError) as e:
            raise SchedulerCallFailed(f"create_schedule {request.name} failed: {e}") from e
        logger.debug(f"create_schedule {request.name} {params['ScheduleExpression']}")

    def delete_schedule(self, name: str) -> None:
        try:
            self.client.delete_schedule(Name=name, GroupName=self.group_name)
        except ClientError as e:
            if error_code(e) == "ResourceNotFoundException":
                raise ScheduleNotFound(name) from e
            raise SchedulerCallFailed(f"delete_schedule {name} failed: {e}") from e
        except BotoCoreError as e:
            raise SchedulerCallFailed(f"delete_schedule {name} failed: {e}") from e
