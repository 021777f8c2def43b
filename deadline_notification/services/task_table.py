import logging
from typing import Optional

from botocore.exceptions import BotoCoreError, ClientError

from ..reminders.models import TaskSnapshot
from ..reminders.ports import LookupFailed
from .aws import get_client

logger = logging.getLogger(__name__)


class DynamoTaskStore:
    """Reads the authoritative task row keyed by taskId."""

    def __init__(self, table_name: str, client=None, region_name: Optional[str] = None):
        self.table_name = table_name
        self.client = client or get_client("dynamodb", region_name)

    def get_task(self, task_id: str) -> Optional[TaskSnapshot]:
        try:
            response = self.client.get_item(
                TableName=self.table_name,
                Key={"taskId": {"S": task_id}},
                ConsistentRead=True,
            )
        except (BotoCoreError, ClientError) as e:
            raise LookupFailed(f"get_item {self.table_name}/{task_id} failed: {e}") from e
        item = response.get("Item")
        if not item:
            logger.info(f"Task not found for taskId {task_id}")
            return None
        return TaskSnapshot(attributes=item)
