"""In-memory Leave Request Repository

Same contract as the Mongo repository (tenant-scoped load, version-conditioned
save) for dry runs and tests. Stored values are deep copies, so callers never
share state with the store.
"""
import threading
from typing import Dict, Tuple

from ..domain.errors import (
    AlreadyExistsError, ConcurrencyError, LeaveRequestNotFoundError
)
from ..domain.models import LeaveRequest


class InMemoryLeaveRequestRepository:
    """Thread-safe dictionary-backed leave request store"""

    def __init__(self):
        self._lock = threading.Lock()
        self._requests: Dict[Tuple[str, str], LeaveRequest] = {}

    def create(self, request: LeaveRequest) -> LeaveRequest:
        key = (request.tenant_id, request.request_id)
        with self._lock:
            if key in self._requests:
                raise AlreadyExistsError(
                    f"Leave request {request.request_id} already exists",
                    details={"request_id": request.request_id}
                )
            self._requests[key] = request.model_copy(deep=True)
        return request

    def load(self, tenant_id: str, request_id: str) -> LeaveRequest:
        with self._lock:
            stored = self._requests.get((tenant_id, request_id))
            if stored is None:
                raise LeaveRequestNotFoundError(
                    f"Leave request {request_id} not found",
                    details={"request_id": request_id}
                )
            return stored.model_copy(deep=True)

    def save(self, request: LeaveRequest, expected_version: int) -> LeaveRequest:
        key = (request.tenant_id, request.request_id)
        with self._lock:
            stored = self._requests.get(key)
            if stored is None:
                raise LeaveRequestNotFoundError(
                    f"Leave request {request.request_id} not found",
                    details={"request_id": request.request_id}
                )
            if stored.version != expected_version:
                raise ConcurrencyError(
                    f"Leave request {request.request_id} was modified. Please refresh and try again.",
                    details={"request_id": request.request_id, "expected_version": expected_version}
                )
            saved = request.model_copy(deep=True, update={"version": expected_version + 1})
            self._requests[key] = saved
            return saved.model_copy(deep=True)

