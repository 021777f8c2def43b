import logging
from typing import Optional

from botocore.exceptions import BotoCoreError, ClientError

from ..reminders.ports import LookupFailed
from .aws import error_code, get_client

logger = logging.getLogger(__name__)


class CognitoContactDirectory:
    """Resolves an assignee's contact address from a Cognito user pool."""

    def __init__(self, user_pool_id: str, attribute: str = "email", client=None, region_name: Optional[str] = None):
        self.user_pool_id = user_pool_id
        self.attribute = attribute
        self.client = client or get_client("cognito-idp", region_name)

    def get_contact_address(self, assignee_id: str) -> Optional[str]:
        try:
            response = self.client.admin_get_user(UserPoolId=self.user_pool_id, Username=assignee_id)
        except ClientError as e:
            if error_code(e) == "UserNotFoundException":
                logger.warning(f"User {assignee_id} not found in pool {self.user_pool_id}")
                return None
            raise LookupFailed(f"admin_get_user {assignee_id} failed: {e}") from e
        except BotoCoreError as e:
            raise LookupFailed(f"admin_get_user {assignee_id} failed: {e}") from e

        for attribute in response.get("UserAttributes", []):
            if attribute.get("Name") == self.attribute and attribute.get("Value"):
                return attribute["Value"]

        logger.warning(f"{self.attribute} attribute not found for assigneeId {assignee_id}")
        return None
