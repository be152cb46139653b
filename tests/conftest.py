"""
Pytest Configuration and Fixtures

Shared actors, stores and engine wiring for the workflow tests.
"""

from datetime import date, datetime, timezone
from typing import Callable, Iterable, List

import pytest

from leaveflow.domain.enums import LeaveType, Role
from leaveflow.domain.models import (
    ActorContext, DomainEvent, LeaveRequestDraft, MissionDetails, NotificationOutbox
)
from leaveflow.engine import LeaveWorkflowEngine, build_default_registry
from leaveflow.repositories import InMemoryLeaveRequestRepository, NotificationOutboxRepository

TENANT_ID = "tenant-acme"
OTHER_TENANT_ID = "tenant-globex"
FIXED_NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

VALID_REASON = "Insufficient balance for requested dates"


class RecordingNotifier:
    """Notifier that keeps every enqueued event in memory"""

    def __init__(self):
        self.events: List[DomainEvent] = []

    def enqueue(self, event: DomainEvent) -> NotificationOutbox:
        self.events.append(event)
        return NotificationOutboxRepository.build_notification(event)

    def enqueue_many(self, events: Iterable[DomainEvent]) -> List[NotificationOutbox]:
        return [self.enqueue(e) for e in events]


def make_actor(user_id: str, role: Role, tenant_id: str = TENANT_ID) -> ActorContext:
    return ActorContext(user_id=user_id, tenant_id=tenant_id, role=role, display_name=user_id.title())


@pytest.fixture
def employee() -> ActorContext:
    return make_actor("emp-001", Role.EMPLOYEE)


@pytest.fixture
def supervisor() -> ActorContext:
    return make_actor("sup-001", Role.SUPERVISOR)


@pytest.fixture
def hr_user() -> ActorContext:
    return make_actor("hr-001", Role.HR)


@pytest.fixture
def doctor() -> ActorContext:
    return make_actor("doc-001", Role.DOCTOR)


@pytest.fixture
def colleague() -> ActorContext:
    """Another employee of the same tenant"""
    return make_actor("emp-002", Role.EMPLOYEE)


@pytest.fixture
def registry():
    return build_default_registry()


@pytest.fixture
def store() -> InMemoryLeaveRequestRepository:
    return InMemoryLeaveRequestRepository()


@pytest.fixture
def clock() -> Callable[[], datetime]:
    return lambda: FIXED_NOW


@pytest.fixture
def engine(store, registry, clock) -> LeaveWorkflowEngine:
    return LeaveWorkflowEngine(store, registry=registry, clock=clock)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def make_draft(employee) -> Callable[..., LeaveRequestDraft]:
    """Factory for drafts; defaults to a 3-day vacation"""

    def _make(leave_type: LeaveType = LeaveType.VACATION, **overrides) -> LeaveRequestDraft:
        data = {
            "tenant_id": TENANT_ID,
            "employee_id": employee.user_id,
            "leave_type": leave_type,
            "start_date": date(2026, 3, 9),
            "end_date": date(2026, 3, 11),
        }
        if leave_type == LeaveType.MISSION:
            data["mission"] = MissionDetails(location="Alexandria branch", purpose="Quarterly audit")
        data.update(overrides)
        return LeaveRequestDraft(**data)

    return _make


@pytest.fixture
def submit(engine, employee, make_draft):
    """Submit a draft and return the stored request"""

    def _submit(leave_type: LeaveType = LeaveType.VACATION, **overrides):
        result = engine.submit(make_draft(leave_type, **overrides), employee)
        assert result.ok, result.error
        return result.request

    return _submit
