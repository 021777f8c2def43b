"""
Reminder dispatcher.

Invoked by the scheduler at fire time. The payload captured when the schedule
was created is advisory only: the task is re-read so a task completed or
reassigned after scheduling is judged on its current state. Nothing here
retries; a failed delivery is reported and left to the delivery channel.
"""
import logging
from datetime import timedelta
from typing import Any, Dict, Optional

from ..core.config import ReminderSettings
from .composer import compose
from .metrics import reminders_dispatch_total
from .models import DispatchOutcome, DispatchReason, DispatchStatus
from .ports import ContactDirectory, DeliveryChannel, DeliveryError, LookupFailed, TaskStore

logger = logging.getLogger(__name__)


def extract_task_id(event: Any) -> Optional[str]:
    """
    Pull taskId out of a scheduler invocation.
    Accepts the raw schedule input ({"taskId": ...}) or an EventBridge-shaped
    event carrying it under "detail".
    """
    if not isinstance(event, dict):
        return None
    task_id = event.get("taskId")
    if task_id is None and isinstance(event.get("detail"), dict):
        task_id = event["detail"].get("taskId")
    if not isinstance(task_id, str):
        return None
    return task_id.strip() or None


class ReminderDispatcher:
    def __init__(
        self,
        task_store: TaskStore,
        directory: ContactDirectory,
        delivery: DeliveryChannel,
        settings: ReminderSettings,
    ):
        self.task_store = task_store
        self.directory = directory
        self.delivery = delivery
        self.settings = settings
        self.offset = timedelta(minutes=settings.OFFSET_MINUTES)

    def dispatch(self, task_id: str) -> DispatchOutcome:
        logger.info(f"🔔 Processing reminder for taskId {task_id}")

        try:
            task = self.task_store.get_task(task_id)
        except LookupFailed as e:
            logger.error(f"❌ Failed to fetch taskId {task_id}: {e}")
            return self._failed(task_id, DispatchReason.LOOKUP_FAILED, str(e))
        if task is None:
            return self._skipped(task_id, DispatchReason.TASK_NOT_FOUND)

        if not task.is_active():
            return self._skipped(task_id, DispatchReason.NOT_ACTIVE, f"status {task.status!r}")

        assignee_id = task.assignee_id
        deadline = task.deadline
        if not assignee_id or not deadline:
            missing = [name for name, value in (("assigneeId", assignee_id), ("deadline", deadline)) if not value]
            return self._skipped(task_id, DispatchReason.INCOMPLETE_TASK, f"missing {', '.join(missing)}")

        try:
            address = self.directory.get_contact_address(assignee_id)
        except LookupFailed as e:
            logger.error(f"❌ Failed to fetch user {assignee_id}: {e}")
            return self._failed(task_id, DispatchReason.LOOKUP_FAILED, str(e))
        if not address:
            return self._skipped(task_id, DispatchReason.NO_CONTACT, f"assigneeId {assignee_id}")

        body = compose(task.title, task_id, deadline, self.offset)
        try:
            message_id = self.delivery.send(address, self.settings.NOTIFICATION_SUBJECT, body)
        except DeliveryError as e:
            logger.error(f"❌ Failed to send notification for taskId {task_id}: {e}")
            return self._failed(task_id, DispatchReason.DELIVERY_ERROR, str(e))

        logger.info(f"✅ Notification sent to {address} for taskId {task_id} (message {message_id})")
        reminders_dispatch_total.labels(status=DispatchStatus.SENT.value, reason="").inc()
        return DispatchOutcome(status=DispatchStatus.SENT, task_id=task_id, detail=message_id)

    def handle_event(self, event: Dict[str, Any]) -> DispatchOutcome:
        task_id = extract_task_id(event)
        if task_id is None:
            logger.error("❌ Missing taskId in event payload")
            return self._skipped(None, DispatchReason.INVALID_EVENT)
        return self.dispatch(task_id)

    @staticmethod
    def _skipped(task_id: Optional[str], reason: DispatchReason, detail: Optional[str] = None) -> DispatchOutcome:
        logger.warning(f"⚠️  Reminder for taskId {task_id} skipped: {reason.value}" + (f" ({detail})" if detail else ""))
        reminders_dispatch_total.labels(status=DispatchStatus.SKIPPED.value, reason=reason.value).inc()
        return DispatchOutcome(status=DispatchStatus.SKIPPED, task_id=task_id, reason=reason, detail=detail)

    @staticmethod
    def _failed(task_id: str, reason: DispatchReason, detail: str) -> DispatchOutcome:
        reminders_dispatch_total.labels(status=DispatchStatus.FAILED.value, reason=reason.value).inc()
        return DispatchOutcome(status=DispatchStatus.FAILED, task_id=task_id, reason=reason, detail=detail)
