"""
Schedule reconciler.

Brings the single reminder schedule of a task in line with the latest change
record seen for it. The scheduler cannot replace a schedule by name, so every
replacement is an idempotent delete followed by a create. A missing schedule on
delete already is the desired end state and counts as success.
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Iterable, Optional, Union

from ..core.config import ReminderSettings
from ..utils.timezone import utc_now
from .classifier import classify
from .metrics import (
    records_processed_total,
    scheduler_call_failures_total,
    schedules_created_total,
    schedules_deleted_total,
)
from .models import (
    BatchReport,
    ChangeRecord,
    Classification,
    MalformedRecord,
    ReconcileAction,
    ReconcileError,
    ReconcileOutcome,
    ReconcileReason,
    ReconcileStatus,
    ScheduleRequest,
    TaskSnapshot,
)
from .naming import schedule_name
from .ports import ScheduleGateway, ScheduleNotFound, SchedulerCallFailed

logger = logging.getLogger(__name__)


class ScheduleReconciler:
    def __init__(
        self,
        scheduler: ScheduleGateway,
        settings: ReminderSettings,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.scheduler = scheduler
        self.settings = settings
        self.offset = timedelta(minutes=settings.OFFSET_MINUTES)
        self.clock = clock

    def reconcile(self, record: ChangeRecord) -> ReconcileOutcome:
        # One clock sample per record so every check sees the same "now"
        now = self.clock()
        decision = classify(record, now, self.offset)
        records_processed_total.labels(action=decision.action.value).inc()

        if decision.action == ReconcileAction.IGNORE:
            logger.debug(
                f"Skipping record {record.event_id} ({record.event_name}) "
                f"taskId={decision.task_id}: {decision.reason.value}"
            )
            return self._outcome(record, decision, ReconcileStatus.SKIPPED)

        task_id = decision.task_id
        logger.info(f"🔄 Processing {record.event_name} for taskId {task_id}: {decision.action.value} ({decision.reason.value})")

        failure = self._delete(task_id)
        if failure is not None:
            return self._outcome(
                record, decision, ReconcileStatus.FAILED,
                error=ReconcileError.SCHEDULER_CALL_FAILED, detail=failure,
            )

        if decision.action == ReconcileAction.DELETE_ONLY:
            return self._outcome(record, decision, ReconcileStatus.DELETED)

        request = self.build_request(task_id, decision.fire_time, record.new_image)
        try:
            self.scheduler.create_schedule(request)
        except SchedulerCallFailed as e:
            scheduler_call_failures_total.labels(operation="create").inc()
            logger.error(f"❌ Failed to create schedule for taskId {task_id}: {e}")
            return self._outcome(
                record, decision, ReconcileStatus.FAILED,
                error=ReconcileError.SCHEDULER_CALL_FAILED, detail=f"create: {e}",
            )

        schedules_created_total.inc()
        logger.info(f"✅ Scheduled reminder {request.name} at {request.fire_time.isoformat()}")
        return self._outcome(record, decision, ReconcileStatus.SCHEDULED)

    def reconcile_batch(self, records: Iterable[Union[ChangeRecord, Dict[str, Any]]]) -> BatchReport:
        """
        Reconcile every record; a failure in one never stops the rest.
        Raw stream records are parsed here, one at a time, so an unreadable
        record is skipped on its own.
        """
        report = BatchReport()
        for raw in records:
            try:
                record = raw if isinstance(raw, ChangeRecord) else ChangeRecord.from_stream_record(raw)
            except MalformedRecord as e:
                report.outcomes.append(self._malformed(raw, e))
                continue
            try:
                outcome = self.reconcile(record)
            except Exception as e:
                logger.error(f"❌ Unexpected error reconciling record {record.event_id}: {e}", exc_info=True)
                outcome = ReconcileOutcome(
                    status=ReconcileStatus.FAILED,
                    event_id=record.event_id,
                    sequence_number=record.sequence_number,
                    task_id=record.new_image.task_id if record.new_image is not None else None,
                    error=ReconcileError.UNEXPECTED_ERROR,
                    detail=str(e),
                )
            report.outcomes.append(outcome)
        logger.info(f"Batch reconciled: {report.summary()}")
        return report

    def build_request(self, task_id: str, fire_time: datetime, image: TaskSnapshot) -> ScheduleRequest:
        payload = image.string_attributes()
        payload["taskId"] = task_id
        dropped = image.non_string_attribute_names()
        if dropped:
            logger.debug(f"Non-string attributes not carried in payload for taskId {task_id}: {dropped}")
        return ScheduleRequest(
            name=schedule_name(task_id),
            fire_time=fire_time,
            payload=payload,
            target_arn=self.settings.TARGET_LAMBDA_ARN,
            role_arn=self.settings.SCHEDULER_ROLE_ARN,
            group_name=self.settings.SCHEDULE_GROUP_NAME,
        )

    def _delete(self, task_id: str) -> Optional[str]:
        """Idempotent delete. Returns a failure description, or None on success."""
        name = schedule_name(task_id)
        try:
            self.scheduler.delete_schedule(name)
            logger.info(f"Deleted schedule {name}")
        except ScheduleNotFound:
            logger.debug(f"No schedule {name} to delete")
        except SchedulerCallFailed as e:
            scheduler_call_failures_total.labels(operation="delete").inc()
            logger.error(f"❌ Error deleting schedule {name}: {e}")
            return f"delete: {e}"
        schedules_deleted_total.inc()
        return None

    @staticmethod
    def _malformed(raw: Any, error: MalformedRecord) -> ReconcileOutcome:
        event_id = raw.get("eventID") if isinstance(raw, dict) else None
        if not isinstance(event_id, str):
            event_id = None
        logger.warning(f"⚠️  Skipping unreadable change record {event_id}: {error}")
        records_processed_total.labels(action=ReconcileAction.IGNORE.value).inc()
        return ReconcileOutcome(
            status=ReconcileStatus.SKIPPED,
            event_id=event_id,
            reason=ReconcileReason.MALFORMED_RECORD,
            detail=str(error),
        )

    @staticmethod
    def _outcome(
        record: ChangeRecord,
        decision: Classification,
        status: ReconcileStatus,
        **extra: Any,
    ) -> ReconcileOutcome:
        fields: Dict[str, Any] = dict(
            status=status,
            task_id=decision.task_id,
            event_id=record.event_id,
            sequence_number=record.sequence_number,
            reason=decision.reason,
            fire_time=decision.fire_time,
            detail=decision.detail,
        )
        fields.update(extra)
        return ReconcileOutcome(**fields)
