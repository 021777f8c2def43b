"""
Lambda entry points.

- reconcile_handler: DynamoDB Streams batch from the task table
- dispatch_handler: invocation from EventBridge Scheduler at reminder time

Settings and AWS clients are built once per process on first use; a missing
required setting raises ConfigurationError before any record is touched.
"""
import logging
import sys
from functools import lru_cache
from typing import Any, Dict

from .core.config import ReminderSettings, load_settings
from .reminders import metrics
from .reminders.dispatcher import ReminderDispatcher
from .reminders.reconciler import ScheduleReconciler
from .services.directory import CognitoContactDirectory
from .services.notifier import SnsDeliveryChannel
from .services.scheduler_client import EventBridgeScheduleGateway
from .services.task_table import DynamoTaskStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_settings() -> ReminderSettings:
    settings = load_settings()
    logging.getLogger().setLevel(settings.LOG_LEVEL)
    logger.info("🚀 Reminder service configured")
    logger.info(f"   Offset: {settings.OFFSET_MINUTES} minutes")
    logger.info(f"   Target: {settings.TARGET_LAMBDA_ARN}")
    logger.info(f"   Schedule group: {settings.SCHEDULE_GROUP_NAME}")
    return settings


@lru_cache(maxsize=1)
def get_reconciler() -> ScheduleReconciler:
    settings = get_settings()
    gateway = EventBridgeScheduleGateway(
        group_name=settings.SCHEDULE_GROUP_NAME,
        region_name=settings.AWS_REGION,
    )
    return ScheduleReconciler(gateway, settings)


@lru_cache(maxsize=1)
def get_dispatcher() -> ReminderDispatcher:
    settings = get_settings()
    return ReminderDispatcher(
        task_store=DynamoTaskStore(settings.TABLE_NAME, region_name=settings.AWS_REGION),
        directory=CognitoContactDirectory(
            settings.USER_POOL_ID,
            attribute=settings.CONTACT_ATTRIBUTE,
            region_name=settings.AWS_REGION,
        ),
        delivery=SnsDeliveryChannel(settings.SNS_TOPIC_ARN, region_name=settings.AWS_REGION),
        settings=settings,
    )


def reconcile_handler(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    reconciler = get_reconciler()
    records = (event or {}).get("Records") or []
    logger.info(f"📥 Received {len(records)} change record(s)")
    report = reconciler.reconcile_batch(records)

    response: Dict[str, Any] = {"summary": report.summary()}
    if reconciler.settings.REPORT_BATCH_ITEM_FAILURES:
        # Lets the stream redeliver just the failed records
        response["batchItemFailures"] = [
            {"itemIdentifier": o.sequence_number} for o in report.failed if o.sequence_number
        ]
    metrics.publish(reconciler.settings.PUSHGATEWAY_URL, reconciler.settings.METRICS_JOB)
    return response


def dispatch_handler(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    dispatcher = get_dispatcher()
    outcome = dispatcher.handle_event(event)
    metrics.publish(dispatcher.settings.PUSHGATEWAY_URL, dispatcher.settings.METRICS_JOB)
    return outcome.model_dump(mode="json", exclude_none=True)
