"""
Change event classifier.

Decides, from the content of a single change record only, what the reconciler
must do with the task's schedule. No cursor or history is consulted, so a
redelivered or reordered record is judged exactly like the first delivery.
"""
import logging
from datetime import datetime, timedelta

from ..utils.timezone import InvalidDeadline
from .models import (
    ChangeRecord,
    Classification,
    ReconcileAction,
    ReconcileReason,
)
from .naming import DEFAULT_OFFSET, is_past, reminder_time

logger = logging.getLogger(__name__)

ACTIONABLE_EVENTS = ("INSERT", "MODIFY")


def classify(
    record: ChangeRecord,
    now: datetime,
    offset: timedelta = DEFAULT_OFFSET,
) -> Classification:
    event_name = record.event_name
    if event_name not in ACTIONABLE_EVENTS:
        return Classification(
            action=ReconcileAction.IGNORE,
            reason=ReconcileReason.NOT_ACTIONABLE_EVENT,
            detail=f"event {event_name or '<none>'}",
        )

    new_image = record.new_image
    task_id = new_image.task_id if new_image is not None else None
    if task_id is None:
        detail = "newImage missing" if new_image is None else "taskId missing"
        logger.warning(f"⚠️  Malformed {event_name} record {record.event_id}: {detail}")
        return Classification(
            action=ReconcileAction.IGNORE,
            reason=ReconcileReason.MALFORMED_RECORD,
            detail=detail,
        )

    if not new_image.is_active():
        return Classification(
            action=ReconcileAction.DELETE_ONLY,
            reason=ReconcileReason.NOT_ACTIVE,
            task_id=task_id,
            detail=f"status {new_image.status!r}",
        )

    deadline = new_image.deadline
    if deadline is None:
        return Classification(
            action=ReconcileAction.DELETE_ONLY,
            reason=ReconcileReason.NO_DEADLINE,
            task_id=task_id,
        )

    try:
        fire_time = reminder_time(deadline, offset)
    except InvalidDeadline as e:
        logger.warning(f"⚠️  Invalid deadline for taskId {task_id}: {e}")
        return Classification(
            action=ReconcileAction.DELETE_ONLY,
            reason=ReconcileReason.INVALID_DEADLINE,
            task_id=task_id,
            detail=str(e),
        )

    if event_name == "INSERT":
        reason = ReconcileReason.NEW_TASK
    else:
        old_image = record.old_image
        old_deadline = old_image.deadline if old_image is not None else None
        old_assignee = old_image.assignee_id if old_image is not None else None
        if deadline == old_deadline and new_image.assignee_id == old_assignee:
            return Classification(
                action=ReconcileAction.IGNORE,
                reason=ReconcileReason.NO_RELEVANT_CHANGE,
                task_id=task_id,
            )
        reason = ReconcileReason.DEADLINE_OR_ASSIGNEE_CHANGED

    if is_past(fire_time, now):
        return Classification(
            action=ReconcileAction.DELETE_ONLY,
            reason=ReconcileReason.REMINDER_IN_PAST,
            task_id=task_id,
            fire_time=fire_time,
            detail=f"reminder time {fire_time.isoformat()} is not after {now.isoformat()}",
        )

    return Classification(
        action=ReconcileAction.CREATE_OR_REPLACE,
        reason=reason,
        task_id=task_id,
        fire_time=fire_time,
    )
