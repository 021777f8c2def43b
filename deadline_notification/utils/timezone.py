import re
from datetime import datetime, timezone as dt_timezone
from typing import Optional


# Strict ISO-8601: seconds are mandatory, fraction optional, offset mandatory.
_OFFSET_DATETIME_RE = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d{1,6})?(Z|[+-]\d{2}:\d{2})$"
)


class InvalidDeadline(ValueError):
    """Deadline text is not an offset date-time in the canonical format."""

    def __init__(self, value: Optional[str]):
        super().__init__(f"Invalid deadline format: {value!r}")
        self.value = value


def parse_offset_datetime(value: Optional[str]) -> datetime:
    """
    Parse an ISO-8601 offset date-time such as 2025-05-01T10:00:00+00:00.

    - A trailing 'Z' is accepted as UTC
    - Naive timestamps, date-only values and other lenient forms raise InvalidDeadline
    """
    if not isinstance(value, str) or not _OFFSET_DATETIME_RE.match(value):
        raise InvalidDeadline(value)
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        # Shape was right but the calendar values were not (e.g. month 13)
        raise InvalidDeadline(value)


def utc_now() -> datetime:
    return datetime.now(dt_timezone.utc)


def to_utc_aware(dt: datetime | None) -> datetime | None:
    """
    Normalize any datetime to UTC-aware (tzinfo=UTC).
    - Aware datetimes are converted to UTC
    - Naive datetimes are assumed UTC and tz attached
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=dt_timezone.utc)
    return dt.astimezone(dt_timezone.utc)
