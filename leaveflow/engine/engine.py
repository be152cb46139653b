"""
Leave Workflow Engine - Facade over guard, executor and persistence

=============================================================================
OPERATIONS
=============================================================================

submit(draft, actor)
    Validate the draft, compute the eligible step chain and persist the new
    request (status=pending, current_step = first eligible step, or
    completed/approved when no step applies).

decide(request_id, actor, step_name, outcome, payload)
    load -> TransitionGuard.check -> TransitionExecutor.apply (on a copy)
    -> versioned save -> new state + events.

cancel(request_id, actor, reason)
    load -> TransitionGuard.check_cancel -> TransitionExecutor.cancel
    -> versioned save.

request_additional_docs(request_id, actor, notes)
    load -> TransitionGuard.check_doc_request -> TransitionExecutor
    .request_additional_docs -> versioned save. Non-terminal; the request
    stays pending at its medical review step.

=============================================================================
CONTRACT
=============================================================================

- Every operation returns a WorkflowResult. Domain errors (NotFound, Terminal,
  InvalidTransition, AlreadyDecided, Forbidden, ValidationError, Conflict) are
  carried in the result, never raised.
- The loaded state is never mutated; the executor works on a deep copy that
  only reaches the store through save(expected_version=loaded.version).
- A lost race surfaces as Conflict. The engine does not retry.
- Events are returned to the caller, which forwards them to the notifier.

=============================================================================
"""

from datetime import datetime
from typing import Callable, List, Optional, Union

from ..config.settings import settings
from ..domain.enums import DecisionOutcome, LeaveStatus, LeaveType, COMPLETED_STEP
from ..domain.errors import (
    DomainError, InvalidTransitionError, ValidationError
)
from ..domain.models import (
    ActorContext, DecisionPayload, LeaveRequest, LeaveRequestDraft,
    MedicalDocumentation, WorkflowProgress, WorkflowResult
)
from ..repositories.base import LeaveRequestStore
from .definitions import WorkflowDefinition, WorkflowRegistry, build_default_registry
from .transition_executor import TransitionExecutor
from .transition_guard import TransitionGuard
from ..utils.idgen import generate_leave_request_id
from ..utils.logger import get_logger
from ..utils.time import inclusive_days, utc_now

logger = get_logger(__name__)


class LeaveWorkflowEngine:
    """
    The leave approval engine

    Responsibilities:
    - Create requests with their eligible review chain
    - Control all transitions through TransitionGuard / TransitionExecutor
    - Persist each transition atomically via the store's versioned save
    - Hand domain events back to the caller
    """

    def __init__(
        self,
        store: LeaveRequestStore,
        registry: Optional[WorkflowRegistry] = None,
        guard: Optional[TransitionGuard] = None,
        executor: Optional[TransitionExecutor] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.store = store
        self.registry = registry if registry is not None else build_default_registry()
        self.guard = guard if guard is not None else TransitionGuard()
        self.executor = executor if executor is not None else TransitionExecutor()
        self.clock = clock if clock is not None else utc_now

    # =========================================================================
    # Submission
    # =========================================================================

    def submit(self, draft: LeaveRequestDraft, actor: ActorContext) -> WorkflowResult:
        """Create a new leave request from an employee draft"""
        definition = self.registry.get(draft.leave_type)
        error = self._validate_draft(draft, actor, definition)
        if error is not None:
            return self._fail("submit", error, tenant_id=draft.tenant_id)

        now = self.clock()
        duration = draft.duration if draft.duration is not None else float(
            inclusive_days(draft.start_date, draft.end_date)
        )

        request = LeaveRequest(
            request_id=generate_leave_request_id(),
            tenant_id=draft.tenant_id,
            employee_id=draft.employee_id,
            leave_type=draft.leave_type,
            start_date=draft.start_date,
            end_date=draft.end_date,
            duration=duration,
            reason=draft.reason.strip() if draft.reason else None,
            status=LeaveStatus.PENDING,
            workflow=WorkflowProgress(current_step=COMPLETED_STEP),
            medical_documentation=MedicalDocumentation(
                required=self._medical_documentation_required(draft, duration),
                provided=bool(draft.medical_documents),
                documents=list(draft.medical_documents)
            ),
            mission=draft.mission,
            department_id=draft.department_id,
            position_id=draft.position_id,
            created_at=now,
            updated_at=now,
            version=1
        )

        events = self.executor.initialize(request, definition, actor, now)

        try:
            saved = self.store.create(request)
        except DomainError as e:
            return self._fail("submit", e, request_id=request.request_id, tenant_id=request.tenant_id)

        logger.info(
            f"Submitted {request.leave_type.value} leave request",
            extra={
                "request_id": saved.request_id,
                "tenant_id": saved.tenant_id,
                "actor_id": actor.user_id,
                "step_name": saved.workflow.current_step,
                "status": saved.status
            }
        )
        return WorkflowResult.success(saved, events)

    def _validate_draft(
        self,
        draft: LeaveRequestDraft,
        actor: ActorContext,
        definition: Optional[WorkflowDefinition]
    ) -> Optional[DomainError]:
        if actor.tenant_id != draft.tenant_id:
            return ValidationError(
                "Leave request tenant does not match the acting user's tenant",
                details={"field": "tenant_id"}
            )

        if definition is None:
            return ValidationError(
                f"No approval workflow is configured for leave type {draft.leave_type.value}",
                details={"field": "leave_type", "leave_type": draft.leave_type.value}
            )

        if draft.end_date < draft.start_date:
            return ValidationError(
                "End date cannot be before start date",
                details={"field": "end_date"}
            )

        if draft.duration is not None and draft.duration <= 0:
            return ValidationError(
                "Duration must be greater than zero",
                details={"field": "duration"}
            )

        if draft.reason is not None:
            reason_length = len(draft.reason.strip())
            if reason_length < settings.min_request_reason_length:
                return ValidationError(
                    f"Reason must be at least {settings.min_request_reason_length} characters long",
                    details={"field": "reason"}
                )
            if reason_length > settings.max_request_reason_length:
                return ValidationError(
                    f"Reason cannot exceed {settings.max_request_reason_length} characters",
                    details={"field": "reason"}
                )

        if draft.leave_type == LeaveType.MISSION:
            mission = draft.mission
            if mission is None or not (mission.location or "").strip():
                return ValidationError(
                    "Mission location is required",
                    details={"field": "mission.location"}
                )
            if not (mission.purpose or "").strip():
                return ValidationError(
                    "Mission purpose is required",
                    details={"field": "mission.purpose"}
                )
            if len(mission.purpose) > settings.mission_purpose_max_length:
                return ValidationError(
                    f"Mission purpose cannot exceed {settings.mission_purpose_max_length} characters",
                    details={"field": "mission.purpose"}
                )

        return None

    def _medical_documentation_required(self, draft: LeaveRequestDraft, duration: float) -> bool:
        """Explicit flag wins; otherwise sick leave beyond the threshold needs a doctor"""
        if draft.medical_documentation_required is not None:
            return draft.medical_documentation_required
        return (
            draft.leave_type == LeaveType.SICK
            and duration > settings.medical_documentation_threshold_days
        )

    # =========================================================================
    # Decisions
    # =========================================================================

    def decide(
        self,
        request_id: str,
        actor: ActorContext,
        step_name: str,
        outcome: Union[DecisionOutcome, str],
        payload: Optional[DecisionPayload] = None
    ) -> WorkflowResult:
        """Approve or reject the request's current step"""
        try:
            outcome = DecisionOutcome(outcome)
        except ValueError:
            return self._fail("decide", ValidationError(
                f"Unknown decision outcome {outcome!r}",
                details={"field": "outcome", "allowed": [o.value for o in DecisionOutcome]}
            ), request_id=request_id, tenant_id=actor.tenant_id)

        loaded = self._load(request_id, actor)
        if isinstance(loaded, DomainError):
            return self._fail("decide", loaded, request_id=request_id, tenant_id=actor.tenant_id)

        definition = self._definition_for(loaded)
        if isinstance(definition, DomainError):
            return self._fail("decide", definition, request_id=request_id, tenant_id=actor.tenant_id)

        error = self.guard.check(loaded, actor, definition, step_name, outcome, payload)
        if error is not None:
            return self._fail("decide", error, request_id=request_id, tenant_id=actor.tenant_id)

        working = loaded.model_copy(deep=True)
        events = self.executor.apply(
            working, definition, actor, step_name, outcome, payload, self.clock()
        )
        return self._persist("decide", working, loaded.version, events)

    # =========================================================================
    # Cancellation
    # =========================================================================

    def cancel(
        self,
        request_id: str,
        actor: ActorContext,
        reason: Optional[str] = None
    ) -> WorkflowResult:
        """Cancel a pending request; terminal"""
        loaded = self._load(request_id, actor)
        if isinstance(loaded, DomainError):
            return self._fail("cancel", loaded, request_id=request_id, tenant_id=actor.tenant_id)

        definition = self._definition_for(loaded)
        if isinstance(definition, DomainError):
            return self._fail("cancel", definition, request_id=request_id, tenant_id=actor.tenant_id)

        error = self.guard.check_cancel(loaded, actor, definition)
        if error is not None:
            return self._fail("cancel", error, request_id=request_id, tenant_id=actor.tenant_id)

        working = loaded.model_copy(deep=True)
        events = self.executor.cancel(
            working, actor, reason.strip() if reason else None, self.clock()
        )
        return self._persist("cancel", working, loaded.version, events)

    # =========================================================================
    # Medical documentation
    # =========================================================================

    def request_additional_docs(
        self,
        request_id: str,
        actor: ActorContext,
        notes: str
    ) -> WorkflowResult:
        """Doctor asks for more documentation; the request stays at doctor review"""
        loaded = self._load(request_id, actor)
        if isinstance(loaded, DomainError):
            return self._fail(
                "request_additional_docs", loaded, request_id=request_id, tenant_id=actor.tenant_id
            )

        definition = self._definition_for(loaded)
        if isinstance(definition, DomainError):
            return self._fail(
                "request_additional_docs", definition, request_id=request_id, tenant_id=actor.tenant_id
            )

        error = self.guard.check_doc_request(loaded, actor, definition, notes)
        if error is not None:
            return self._fail(
                "request_additional_docs", error, request_id=request_id, tenant_id=actor.tenant_id
            )

        working = loaded.model_copy(deep=True)
        events = self.executor.request_additional_docs(working, actor, notes.strip(), self.clock())
        return self._persist("request_additional_docs", working, loaded.version, events)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _load(self, request_id: str, actor: ActorContext) -> Union[LeaveRequest, DomainError]:
        try:
            request = self.store.load(actor.tenant_id, request_id)
        except DomainError as e:
            return e
        tenant_error = self.guard.check_tenant(request, actor)
        return tenant_error if tenant_error is not None else request

    def _definition_for(self, request: LeaveRequest) -> Union[WorkflowDefinition, DomainError]:
        definition = self.registry.get(request.leave_type)
        if definition is None:
            return InvalidTransitionError(
                f"No approval workflow is configured for leave type {request.leave_type.value}",
                details={"request_id": request.request_id, "leave_type": request.leave_type.value}
            )
        return definition

    def _persist(
        self,
        operation: str,
        working: LeaveRequest,
        expected_version: int,
        events: List
    ) -> WorkflowResult:
        try:
            saved = self.store.save(working, expected_version=expected_version)
        except DomainError as e:
            # Nothing was written; the caller decides whether to reload and retry
            return self._fail(operation, e, request_id=working.request_id, tenant_id=working.tenant_id)
        return WorkflowResult.success(saved, events)

    def _fail(
        self,
        operation: str,
        error: DomainError,
        request_id: Optional[str] = None,
        tenant_id: Optional[str] = None
    ) -> WorkflowResult:
        logger.info(
            f"{operation} refused: {error.message}",
            extra={"request_id": request_id, "tenant_id": tenant_id, "error_code": error.error_code}
        )
        return WorkflowResult.failure(error)
