import logging
from typing import Optional

from prometheus_client import REGISTRY, Counter, generate_latest, push_to_gateway

logger = logging.getLogger(__name__)


records_processed_total = Counter(
    "reminder_records_processed_total",
    "Change records processed by the reconciler",
    ["action"],
)

schedules_created_total = Counter(
    "reminder_schedules_created_total",
    "Reminder schedules created",
)

schedules_deleted_total = Counter(
    "reminder_schedules_deleted_total",
    "Reminder schedule deletions (including already-absent schedules)",
)

scheduler_call_failures_total = Counter(
    "reminder_scheduler_call_failures_total",
    "Failed scheduler create/delete calls",
    ["operation"],
)

reminders_dispatch_total = Counter(
    "reminders_dispatch_total",
    "Reminder dispatch outcomes",
    ["status", "reason"],
)


def publish(gateway_url: Optional[str], job: str) -> None:
    """
    Ship the process counters at the end of an invocation.

    Functions have no scrape endpoint, so with a Pushgateway configured the
    registry is pushed under `job`; without one the exposition text is logged
    at debug level. A failed push is logged and never fails the invocation.
    """
    if not gateway_url:
        logger.debug("Metrics:\n" + generate_latest(REGISTRY).decode("utf-8"))
        return
    try:
        push_to_gateway(gateway_url, job=job, registry=REGISTRY)
    except OSError as e:
        logger.warning(f"⚠️  Failed to push metrics to {gateway_url}: {e}")
