"""
Ports for the external collaborators of the reconciler and the dispatcher.

The reminder logic talks only to these protocols; boto3-backed adapters live in
deadline_notification.services and tests use in-memory fakes.
"""
from typing import Optional, Protocol, runtime_checkable

from .models import ScheduleRequest, TaskSnapshot


class SchedulerCallFailed(RuntimeError):
    """A create/delete call against the scheduler failed for a reason other than not-found."""


class ScheduleNotFound(LookupError):
    """Delete targeted a schedule that does not exist."""


class LookupFailed(RuntimeError):
    """Task store or directory call errored (distinct from a clean miss)."""


class DeliveryError(RuntimeError):
    """The delivery channel rejected or failed to accept a message."""


@runtime_checkable
class ScheduleGateway(Protocol):
    def create_schedule(self, request: ScheduleRequest) -> None:
        """Create one schedule. Raises SchedulerCallFailed."""

    def delete_schedule(self, name: str) -> None:
        """Delete by name. Raises ScheduleNotFound or SchedulerCallFailed."""


@runtime_checkable
class TaskStore(Protocol):
    def get_task(self, task_id: str) -> Optional[TaskSnapshot]:
        """Current task, or None if absent. Raises LookupFailed."""


@runtime_checkable
class ContactDirectory(Protocol):
    def get_contact_address(self, assignee_id: str) -> Optional[str]:
        """Contact address, or None if the user or attribute is absent. Raises LookupFailed."""


@runtime_checkable
class DeliveryChannel(Protocol):
    def send(self, address: str, subject: str, body: str) -> Optional[str]:
        """Submit one message and return the channel's message id. Raises DeliveryError."""
