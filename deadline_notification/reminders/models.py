"""
Models for task snapshots, change records, schedules and outcomes
"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError


# DynamoDB typed attribute form: {"title": {"S": "Pay rent"}, "priority": {"N": "2"}}
AttributeMap = Dict[str, Any]

ACTIVE_STATUS = "active"
DEFAULT_TITLE = "Untitled"


class TaskSnapshot(BaseModel):
    """One image of a task row, kept in its typed attribute form."""
    attributes: AttributeMap = Field(default_factory=dict)

    def get_string(self, name: str) -> Optional[str]:
        value = self.attributes.get(name)
        if isinstance(value, dict) and isinstance(value.get("S"), str):
            return value["S"]
        return None

    @property
    def task_id(self) -> Optional[str]:
        # An empty key is as unusable as a missing one
        return self.get_string("taskId") or None

    @property
    def status(self) -> Optional[str]:
        return self.get_string("status")

    @property
    def deadline(self) -> Optional[str]:
        return self.get_string("deadline")

    @property
    def assignee_id(self) -> Optional[str]:
        return self.get_string("assigneeId")

    @property
    def title(self) -> str:
        return self.get_string("title") or DEFAULT_TITLE

    def is_active(self) -> bool:
        return self.status == ACTIVE_STATUS

    def string_attributes(self) -> Dict[str, str]:
        """String-typed attributes only; other types are not carried."""
        return {
            name: value["S"]
            for name, value in self.attributes.items()
            if isinstance(value, dict) and isinstance(value.get("S"), str)
        }

    def non_string_attribute_names(self) -> List[str]:
        return sorted(set(self.attributes) - set(self.string_attributes()))


class MalformedRecord(ValueError):
    """A change-feed record that cannot be read as a task mutation."""


class ChangeRecord(BaseModel):
    """A single task mutation as delivered by the change feed."""
    event_name: str
    event_id: Optional[str] = None
    sequence_number: Optional[str] = None
    old_image: Optional[TaskSnapshot] = None
    new_image: Optional[TaskSnapshot] = None

    @classmethod
    def from_stream_record(cls, record: Dict[str, Any]) -> "ChangeRecord":
        """Build from a DynamoDB Streams record (Lambda event shape)."""
        if not isinstance(record, dict):
            raise MalformedRecord(f"record is {type(record).__name__}, not an object")
        dynamodb = record.get("dynamodb") or {}
        if not isinstance(dynamodb, dict):
            raise MalformedRecord("dynamodb section is not an object")
        old_image = dynamodb.get("OldImage")
        new_image = dynamodb.get("NewImage")
        try:
            return cls(
                event_name=str(record.get("eventName") or ""),
                event_id=record.get("eventID"),
                sequence_number=dynamodb.get("SequenceNumber"),
                old_image=TaskSnapshot(attributes=old_image) if isinstance(old_image, dict) else None,
                new_image=TaskSnapshot(attributes=new_image) if isinstance(new_image, dict) else None,
            )
        except ValidationError as e:
            fields = ", ".join(str(err["loc"][0]) for err in e.errors())
            raise MalformedRecord(f"invalid field(s): {fields}") from e


class ScheduleRequest(BaseModel):
    """Everything needed to create one reminder schedule."""
    name: str
    fire_time: datetime
    payload: Dict[str, str]
    target_arn: str
    role_arn: str
    group_name: str = "default"
    enabled: bool = True


class ReconcileAction(str, Enum):
    IGNORE = "ignore"
    DELETE_ONLY = "delete_only"
    CREATE_OR_REPLACE = "create_or_replace"


class ReconcileReason(str, Enum):
    NOT_ACTIONABLE_EVENT = "not_actionable_event"
    MALFORMED_RECORD = "malformed_record"
    NO_RELEVANT_CHANGE = "no_relevant_change"
    NOT_ACTIVE = "not_active"
    NO_DEADLINE = "no_deadline"
    INVALID_DEADLINE = "invalid_deadline"
    REMINDER_IN_PAST = "reminder_in_past"
    NEW_TASK = "new_task"
    DEADLINE_OR_ASSIGNEE_CHANGED = "deadline_or_assignee_changed"


class Classification(BaseModel):
    action: ReconcileAction
    reason: ReconcileReason
    task_id: Optional[str] = None
    fire_time: Optional[datetime] = None
    detail: Optional[str] = None


class ReconcileStatus(str, Enum):
    SKIPPED = "skipped"
    DELETED = "deleted"
    SCHEDULED = "scheduled"
    FAILED = "failed"


class ReconcileError(str, Enum):
    SCHEDULER_CALL_FAILED = "scheduler_call_failed"
    UNEXPECTED_ERROR = "unexpected_error"


class ReconcileOutcome(BaseModel):
    status: ReconcileStatus
    task_id: Optional[str] = None
    event_id: Optional[str] = None
    sequence_number: Optional[str] = None
    reason: Optional[ReconcileReason] = None
    error: Optional[ReconcileError] = None
    fire_time: Optional[datetime] = None
    detail: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status != ReconcileStatus.FAILED


class BatchReport(BaseModel):
    """Per-record outcomes of one change-feed batch."""
    outcomes: List[ReconcileOutcome] = Field(default_factory=list)

    def count(self, status: ReconcileStatus) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    @property
    def failed(self) -> List[ReconcileOutcome]:
        return [o for o in self.outcomes if not o.ok]

    def summary(self) -> Dict[str, int]:
        return {status.value: self.count(status) for status in ReconcileStatus}


class DispatchStatus(str, Enum):
    SENT = "sent"
    SKIPPED = "skipped"
    FAILED = "failed"


class DispatchReason(str, Enum):
    INVALID_EVENT = "invalid_event"
    TASK_NOT_FOUND = "task_not_found"
    NOT_ACTIVE = "not_active"
    INCOMPLETE_TASK = "incomplete_task"
    NO_CONTACT = "no_contact"
    LOOKUP_FAILED = "lookup_failed"
    DELIVERY_ERROR = "delivery_error"


class DispatchOutcome(BaseModel):
    status: DispatchStatus
    task_id: Optional[str] = None
    reason: Optional[DispatchReason] = None
    detail: Optional[str] = None
