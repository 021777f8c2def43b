from datetime import timedelta

from .naming import DEFAULT_OFFSET


DEFAULT_SUBJECT = "Task Reminder"


def describe_offset(offset: timedelta) -> str:
    """Human wording for the reminder window, e.g. '1 hour' or '90 minutes'."""
    minutes = int(offset.total_seconds() // 60)
    if minutes % 60 == 0:
        hours = minutes // 60
        return f"{hours} hour" if hours == 1 else f"{hours} hours"
    return f"{minutes} minute" if minutes == 1 else f"{minutes} minutes"


def compose(title: str, task_id: str, deadline: str, offset: timedelta = DEFAULT_OFFSET) -> str:
    return (
        f"Reminder: Task '{title}' (ID: {task_id}) is due in "
        f"{describe_offset(offset)} at {deadline}."
    )
