"""Leave Request Repository - Data access for leave requests"""
from datetime import date, datetime
from typing import Any, Dict, List, Optional
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError

from .mongo_client import get_collection
from ..config.settings import settings
from ..domain.enums import LeaveStatus
from ..domain.errors import (
    AlreadyExistsError, ConcurrencyError, LeaveRequestNotFoundError
)
from ..domain.models import LeaveRequest
from ..utils.logger import get_logger
from ..utils.time import to_utc_midnight

logger = get_logger(__name__)

# Stored as datetimes; BSON has no date-only type
_DATE_FIELDS = ("start_date", "end_date")


class MongoLeaveRequestRepository:
    """Repository for leave request documents, tenant scoped"""

    def __init__(self, collection: Optional[Collection] = None):
        self._requests: Collection = (
            collection if collection is not None
            else get_collection(settings.leave_requests_collection)
        )

    # =========================================================================
    # Mapping
    # =========================================================================

    @staticmethod
    def to_document(request: LeaveRequest) -> Dict[str, Any]:
        """LeaveRequest -> Mongo document"""
        # Don't use mode="json" - it converts datetime to strings, breaking MongoDB sorting
        doc = request.model_dump()
        for field in _DATE_FIELDS:
            value = doc.get(field)
            if isinstance(value, date) and not isinstance(value, datetime):
                doc[field] = to_utc_midnight(value)
        return doc

    @staticmethod
    def from_document(doc: Dict[str, Any]) -> LeaveRequest:
        """Mongo document -> LeaveRequest"""
        doc = dict(doc)
        doc.pop("_id", None)
        for field in _DATE_FIELDS:
            value = doc.get(field)
            if isinstance(value, datetime):
                doc[field] = value.date()
        return LeaveRequest.model_validate(doc)

    # =========================================================================
    # Persistence interface
    # =========================================================================

    def create(self, request: LeaveRequest) -> LeaveRequest:
        """Insert a new request"""
        doc = self.to_document(request)
        try:
            self._requests.insert_one(doc)
        except DuplicateKeyError:
            raise AlreadyExistsError(
                f"Leave request {request.request_id} already exists",
                details={"request_id": request.request_id}
            )
        logger.info(
            f"Created leave request: {request.request_id}",
            extra={"request_id": request.request_id, "tenant_id": request.tenant_id}
        )
        return request

    def load(self, tenant_id: str, request_id: str) -> LeaveRequest:
        """Get request by ID or raise error"""
        doc = self._requests.find_one({"tenant_id": tenant_id, "request_id": request_id})
        if not doc:
            raise LeaveRequestNotFoundError(
                f"Leave request {request_id} not found",
                details={"request_id": request_id}
            )
        return self.from_document(doc)

    def get(self, tenant_id: str, request_id: str) -> Optional[LeaveRequest]:
        """Get request by ID"""
        doc = self._requests.find_one({"tenant_id": tenant_id, "request_id": request_id})
        return self.from_document(doc) if doc else None

    def save(self, request: LeaveRequest, expected_version: int) -> LeaveRequest:
        """
        Replace the request's state with optimistic concurrency

        The write only matches while the stored version equals expected_version;
        on success the stored version becomes expected_version + 1.

        Raises:
            ConcurrencyError: another writer bumped the version first
            LeaveRequestNotFoundError: the request does not exist
        """
        updates = self.to_document(request)
        updates["version"] = expected_version + 1

        filter_query = {
            "tenant_id": request.tenant_id,
            "request_id": request.request_id,
            "version": expected_version
        }
        result = self._requests.find_one_and_update(
            filter_query,
            {"$set": updates},
            return_document=ReturnDocument.AFTER
        )

        if result is None:
            exists = self._requests.find_one(
                {"tenant_id": request.tenant_id, "request_id": request.request_id},
                {"_id": 1}
            )
            if exists:
                logger.info(
                    f"Version conflict saving leave request {request.request_id}",
                    extra={
                        "request_id": request.request_id,
                        "tenant_id": request.tenant_id,
                        "expected_version": expected_version
                    }
                )
                raise ConcurrencyError(
                    f"Leave request {request.request_id} was modified. Please refresh and try again.",
                    details={"request_id": request.request_id, "expected_version": expected_version}
                )
            raise LeaveRequestNotFoundError(
                f"Leave request {request.request_id} not found",
                details={"request_id": request.request_id}
            )

        logger.info(
            f"Updated leave request: {request.request_id}",
            extra={"request_id": request.request_id, "tenant_id": request.tenant_id}
        )
        return self.from_document(result)

    # =========================================================================
    # Queries
    # =========================================================================

    def list_awaiting_step(
        self,
        tenant_id: str,
        step_name: str,
        limit: int = 100
    ) -> List[LeaveRequest]:
        """Pending requests whose current step is step_name, oldest first"""
        cursor = self._requests.find({
            "tenant_id": tenant_id,
            "status": LeaveStatus.PENDING.value,
            "workflow.current_step": step_name
        }).sort("created_at", ASCENDING).limit(limit)
        return [self.from_document(doc) for doc in cursor]

    def list_for_employee(
        self,
        tenant_id: str,
        employee_id: str,
        status: Optional[LeaveStatus] = None,
        limit: int = 100
    ) -> List[LeaveRequest]:
        """An employee's requests, newest first"""
        query: Dict[str, Any] = {"tenant_id": tenant_id, "employee_id": employee_id}
        if status:
            query["status"] = status.value
        cursor = self._requests.find(query).sort("created_at", DESCENDING).limit(limit)
        return [self.from_document(doc) for doc in cursor]
