import logging
from typing import Optional

from botocore.exceptions import BotoCoreError, ClientError

from ..reminders.ports import DeliveryError
from .aws import get_client

logger = logging.getLogger(__name__)


class SnsDeliveryChannel:
    """
    Publishes reminders to an SNS topic.

    The recipient travels as the "recipient" message attribute so topic
    subscriptions can route on it with a filter policy.
    """

    def __init__(self, topic_arn: str, client=None, region_name: Optional[str] = None):
        self.topic_arn = topic_arn
        self.client = client or get_client("sns", region_name)

    def send(self, address: str, subject: str, body: str) -> Optional[str]:
        try:
            response = self.client.publish(
                TopicArn=self.topic_arn,
                Subject=subject,
                Message=body,
                MessageAttributes={
                    "recipient": {"DataType": "String", "StringValue": address},
                },
            )
        except (BotoCoreError, ClientError) as e:
            raise DeliveryError(f"publish to {self.topic_arn} failed: {e}") from e
        return response.get("MessageId")
