"""Tests for the Mongo and in-memory repositories"""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from leaveflow.domain.enums import DomainEventType, LeaveStatus, LeaveType, NotificationStatus
from leaveflow.domain.errors import (
    AlreadyExistsError, ConcurrencyError, ErrorKind, LeaveRequestNotFoundError
)
from leaveflow.repositories import (
    InMemoryLeaveRequestRepository, MongoLeaveRequestRepository, NotificationOutboxRepository,
    create_indexes
)

from .conftest import TENANT_ID


@pytest.fixture
def collection():
    return MagicMock()


@pytest.fixture
def repo(collection):
    return MongoLeaveRequestRepository(collection=collection)


@pytest.fixture
def vacation(submit):
    return submit(LeaveType.VACATION)


class TestDocumentMapping:

    def test_dates_are_stored_as_utc_midnight(self, vacation):
        doc = MongoLeaveRequestRepository.to_document(vacation)

        assert doc["start_date"] == datetime(2026, 3, 9, tzinfo=timezone.utc)
        assert doc["end_date"] == datetime(2026, 3, 11, tzinfo=timezone.utc)

    def test_document_maps_back_to_request(self, vacation):
        doc = MongoLeaveRequestRepository.to_document(vacation)
        doc["_id"] = "mongo-object-id"

        restored = MongoLeaveRequestRepository.from_document(doc)

        assert restored.model_dump() == vacation.model_dump()


class TestMongoSave:

    def test_save_is_conditioned_on_expected_version(self, repo, collection, vacation):
        collection.find_one_and_update.return_value = {
            **MongoLeaveRequestRepository.to_document(vacation), "version": 2
        }

        saved = repo.save(vacation, expected_version=1)

        filter_query, update = collection.find_one_and_update.call_args.args
        assert filter_query == {"tenant_id": TENANT_ID, "request_id": vacation.request_id, "version": 1}
        assert update["$set"]["version"] == 2
        assert collection.find_one_and_update.call_args.kwargs["return_document"] == ReturnDocument.AFTER
        assert saved.version == 2

    def test_version_mismatch_is_conflict(self, repo, collection, vacation):
        collection.find_one_and_update.return_value = None
        collection.find_one.return_value = {"_id": "x"}

        with pytest.raises(ConcurrencyError) as exc_info:
            repo.save(vacation, expected_version=1)

        assert exc_info.value.kind == ErrorKind.CONFLICT
        assert exc_info.value.http_status == 409

    def test_missing_document_is_not_found(self, repo, collection, vacation):
        collection.find_one_and_update.return_value = None
        collection.find_one.return_value = None

        with pytest.raises(LeaveRequestNotFoundError):
            repo.save(vacation, expected_version=1)


class TestMongoReads:

    def test_create_duplicate_raises_already_exists(self, repo, collection, vacation):
        collection.insert_one.side_effect = DuplicateKeyError("E11000 duplicate key")

        with pytest.raises(AlreadyExistsError):
            repo.create(vacation)

    def test_load_is_tenant_scoped(self, repo, collection, vacation):
        collection.find_one.return_value = MongoLeaveRequestRepository.to_document(vacation)

        repo.load(TENANT_ID, vacation.request_id)

        collection.find_one.assert_called_once_with(
            {"tenant_id": TENANT_ID, "request_id": vacation.request_id}
        )

    def test_load_missing_raises(self, repo, collection):
        collection.find_one.return_value = None
        with pytest.raises(LeaveRequestNotFoundError):
            repo.load(TENANT_ID, "LVR-missing")

    def test_get_missing_returns_none(self, repo, collection):
        collection.find_one.return_value = None
        assert repo.get(TENANT_ID, "LVR-missing") is None

    def test_list_awaiting_step_query(self, repo, collection, vacation):
        cursor = collection.find.return_value.sort.return_value.limit.return_value
        cursor.__iter__.return_value = iter([MongoLeaveRequestRepository.to_document(vacation)])

        requests = repo.list_awaiting_step(TENANT_ID, "supervisor-review", limit=20)

        collection.find.assert_called_once_with({
            "tenant_id": TENANT_ID,
            "status": "pending",
            "workflow.current_step": "supervisor-review"
        })
        collection.find.return_value.sort.assert_called_once_with("created_at", ASCENDING)
        collection.find.return_value.sort.return_value.limit.assert_called_once_with(20)
        assert [r.request_id for r in requests] == [vacation.request_id]

    def test_list_for_employee_filters_status(self, repo, collection):
        cursor = collection.find.return_value.sort.return_value.limit.return_value
        cursor.__iter__.return_value = iter([])

        assert repo.list_for_employee(TENANT_ID, "emp-001", status=LeaveStatus.APPROVED) == []

        collection.find.assert_called_once_with(
            {"tenant_id": TENANT_ID, "employee_id": "emp-001", "status": "approved"}
        )
        collection.find.return_value.sort.assert_called_once_with("created_at", DESCENDING)


class TestNotificationOutbox:

    def test_enqueue_many_preserves_event_order(self, engine, make_draft, employee, collection):
        events = engine.submit(make_draft(LeaveType.VACATION), employee).events
        outbox = NotificationOutboxRepository(collection=collection)

        notifications = outbox.enqueue_many(events)

        docs = collection.insert_many.call_args.args[0]
        assert [d["event_type"] for d in docs] == [
            DomainEventType.REQUEST_SUBMITTED, DomainEventType.PENDING_SUPERVISOR_REVIEW
        ]
        assert all(d["_id"] == d["notification_id"] for d in docs)
        assert collection.insert_many.call_args.kwargs["ordered"] is True
        assert [n.event_id for n in notifications] == [e.event_id for e in events]
        assert all(n.status == NotificationStatus.PENDING for n in notifications)

    def test_enqueue_many_with_no_events_skips_insert(self, collection):
        outbox = NotificationOutboxRepository(collection=collection)

        assert outbox.enqueue_many([]) == []
        collection.insert_many.assert_not_called()

    def test_enqueue_single_event(self, engine, make_draft, employee, collection):
        event = engine.submit(make_draft(LeaveType.VACATION), employee).events[0]
        outbox = NotificationOutboxRepository(collection=collection)

        notification = outbox.enqueue(event)

        doc = collection.insert_one.call_args.args[0]
        assert doc["request_id"] == event.request_id
        assert notification.notification_id.startswith("NTF-")


class TestInMemoryRepository:

    def test_save_bumps_version(self, vacation):
        store = InMemoryLeaveRequestRepository()
        store.create(vacation)

        saved = store.save(vacation, expected_version=1)

        assert saved.version == 2
        assert store.load(TENANT_ID, vacation.request_id).version == 2

    def test_stale_version_is_conflict(self, vacation):
        store = InMemoryLeaveRequestRepository()
        store.create(vacation)
        store.save(vacation, expected_version=1)

        with pytest.raises(ConcurrencyError):
            store.save(vacation, expected_version=1)

    def test_loaded_copies_are_independent(self, vacation):
        store = InMemoryLeaveRequestRepository()
        store.create(vacation)

        loaded = store.load(TENANT_ID, vacation.request_id)
        loaded.status = LeaveStatus.CANCELLED

        assert store.load(TENANT_ID, vacation.request_id).status == LeaveStatus.PENDING

    def test_load_is_tenant_scoped(self, vacation):
        store = InMemoryLeaveRequestRepository()
        store.create(vacation)

        with pytest.raises(LeaveRequestNotFoundError):
            store.load("tenant-globex", vacation.request_id)

    def test_duplicate_create_raises(self, vacation):
        store = InMemoryLeaveRequestRepository()
        store.create(vacation)
        with pytest.raises(AlreadyExistsError):
            store.create(vacation)


def test_create_indexes_makes_tenant_request_id_unique():
    database = MagicMock()

    create_indexes(database)

    leave_requests = database.__getitem__.return_value
    leave_requests.create_index.assert_any_call(
        [("tenant_id", ASCENDING), ("request_id", ASCENDING)], unique=True
    )
