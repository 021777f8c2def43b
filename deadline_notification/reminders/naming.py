from datetime import datetime, timedelta

from ..utils.timezone import parse_offset_datetime


SCHEDULE_NAME_PREFIX = "TaskReminder_"
DEFAULT_OFFSET = timedelta(minutes=60)


def schedule_name(task_id: str) -> str:
    return SCHEDULE_NAME_PREFIX + task_id


def reminder_time(deadline: str, offset: timedelta = DEFAULT_OFFSET) -> datetime:
    """Fire time for a deadline. Raises InvalidDeadline on non-canonical text."""
    return parse_offset_datetime(deadline) - offset


def is_past(fire_time: datetime, now: datetime) -> bool:
    return fire_time <= now
