"""Repository interfaces consumed by the workflow engine"""
from typing import Iterable, List, Protocol

from ..domain.models import DomainEvent, LeaveRequest, NotificationOutbox


class LeaveRequestStore(Protocol):
    """
    Persistence interface for leave requests

    load raises NotFoundError for unknown (or foreign-tenant) ids; save raises
    ConcurrencyError when the stored version no longer equals expected_version.
    """

    def create(self, request: LeaveRequest) -> LeaveRequest:
        ...

    def load(self, tenant_id: str, request_id: str) -> LeaveRequest:
        ...

    def save(self, request: LeaveRequest, expected_version: int) -> LeaveRequest:
        ...


class Notifier(Protocol):
    """Receives domain events; delivery and retry are the notifier's concern"""

    def enqueue(self, event: DomainEvent) -> NotificationOutbox:
        ...

    def enqueue_many(self, events: Iterable[DomainEvent]) -> List[NotificationOutbox]:
        ...
