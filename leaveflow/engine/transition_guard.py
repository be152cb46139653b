"""Transition Guard - Validation of every requested transition

Pure functions of the current request state and the caller's input. A guard
never mutates the request; it returns the first failing rule as a DomainError
or None when the transition may proceed.
"""
from typing import Any, Optional

from ..config.settings import settings
from ..domain.enums import DecisionOutcome, DecisionStatus
from ..domain.errors import (
    DomainError, TerminalStateError, InvalidTransitionError, AlreadyDecidedError,
    ForbiddenError, ValidationError, LeaveRequestNotFoundError
)
from ..domain.models import ActorContext, DecisionPayload, LeaveRequest
from .definitions import WorkflowDefinition
from ..utils.logger import get_logger

logger = get_logger(__name__)


class TransitionGuard:
    """
    Guard rules for decide(), cancel() and request_additional_docs()

    Decision rules, evaluated in order:
    1. Terminal           - request is approved/rejected/cancelled
    2. InvalidTransition  - step is not the request's current step
    3. AlreadyDecided     - step already carries a decision (also when it
                            is no longer current)
    4. Forbidden          - actor role not in the step's required roles
    5. ValidationError    - rejection without a well-formed reason
    """

    def __init__(self, min_reason_length: Optional[int] = None):
        self.min_reason_length = (
            min_reason_length if min_reason_length is not None
            else settings.min_rejection_reason_length
        )

    def check_tenant(self, request: LeaveRequest, actor: ActorContext) -> Optional[DomainError]:
        """Requests of another tenant do not exist for the actor"""
        if request.tenant_id != actor.tenant_id:
            return LeaveRequestNotFoundError(
                f"Leave request {request.request_id} not found",
                details={"request_id": request.request_id}
            )
        return None

    def check(
        self,
        request: LeaveRequest,
        actor: ActorContext,
        definition: WorkflowDefinition,
        step_name: str,
        outcome: DecisionOutcome,
        payload: Optional[DecisionPayload] = None
    ) -> Optional[DomainError]:
        """
        Validate a decision on a request step

        Returns:
            The first violated rule as a DomainError, or None
        """
        if request.is_terminal:
            return TerminalStateError(
                f"Leave request is already {request.status.value}",
                details={"request_id": request.request_id, "status": request.status.value}
            )

        record = request.get_step(step_name)
        if step_name != request.workflow.current_step:
            if record is not None and record.decision_status != DecisionStatus.PENDING:
                return self._already_decided(request, step_name, record.decision_status)
            return InvalidTransitionError(
                f"Leave request is not in {step_name} stage. "
                f"Current step: {request.workflow.current_step}",
                details={
                    "request_id": request.request_id,
                    "step_name": step_name,
                    "current_step": request.workflow.current_step
                }
            )

        step_def = definition.get_step(step_name)
        if record is None or step_def is None:
            # current_step always has a record; a miss means the stored document drifted
            return InvalidTransitionError(
                f"Step {step_name} is not part of this request's workflow",
                details={"request_id": request.request_id, "step_name": step_name}
            )

        if record.decision_status != DecisionStatus.PENDING:
            return self._already_decided(request, step_name, record.decision_status)

        if not step_def.allows(actor.role):
            logger.info(
                f"Role {actor.role.value} may not decide {step_name}",
                extra={"request_id": request.request_id, "actor_id": actor.user_id, "step_name": step_name}
            )
            return ForbiddenError(
                f"Role {actor.role.value} cannot decide the {step_name} step",
                details={
                    "request_id": request.request_id,
                    "step_name": step_name,
                    "role": actor.role.value,
                    "required_roles": sorted(r.value for r in step_def.required_roles)
                }
            )

        if outcome == DecisionOutcome.REJECT:
            reason = payload.reason if payload else None
            return self.check_rejection_reason(reason)

        return None

    def _already_decided(
        self,
        request: LeaveRequest,
        step_name: str,
        decision_status: DecisionStatus
    ) -> AlreadyDecidedError:
        return AlreadyDecidedError(
            f"Step {step_name} has already been {decision_status.value}",
            details={
                "request_id": request.request_id,
                "step_name": step_name,
                "decision_status": decision_status.value
            }
        )

    def check_rejection_reason(self, reason: Any) -> Optional[DomainError]:
        """Reason must be a string of at least min_reason_length once trimmed"""
        if not isinstance(reason, str):
            return ValidationError(
                "Rejection reason is required and must be a string",
                details={"field": "reason"}
            )
        trimmed = reason.strip()
        if not trimmed:
            return ValidationError(
                "Rejection reason is required and cannot be empty",
                details={"field": "reason"}
            )
        if len(trimmed) < self.min_reason_length:
            return ValidationError(
                f"Rejection reason must be at least {self.min_reason_length} characters long",
                details={"field": "reason", "length": len(trimmed), "min_length": self.min_reason_length}
            )
        return None

    def check_cancel(
        self,
        request: LeaveRequest,
        actor: ActorContext,
        definition: WorkflowDefinition
    ) -> Optional[DomainError]:
        """
        Validate a cancellation

        The owning employee may always cancel; other actors need a role from
        the definition's cancel_roles. Once a step is decided, cancellation is
        only allowed when the definition opts in.
        """
        if request.is_terminal:
            return TerminalStateError(
                f"Leave request is already {request.status.value}",
                details={"request_id": request.request_id, "status": request.status.value}
            )

        is_owner = actor.user_id == request.employee_id
        if not is_owner and actor.role not in definition.cancel_roles:
            return ForbiddenError(
                "You do not have permission to cancel this leave request",
                details={"request_id": request.request_id, "role": actor.role.value}
            )

        if request.has_decisions() and not definition.allow_cancel_after_decision:
            return InvalidTransitionError(
                "Leave request can no longer be cancelled once a review step is decided",
                details={
                    "request_id": request.request_id,
                    "current_step": request.workflow.current_step
                }
            )

        return None

    def check_doc_request(
        self,
        request: LeaveRequest,
        actor: ActorContext,
        definition: WorkflowDefinition,
        notes: Any
    ) -> Optional[DomainError]:
        """
        Validate a request for additional medical documentation

        Only allowed while the current step is a medical review step, and only
        for that step's roles. The notes tell the employee what is missing.
        """
        if request.is_terminal:
            return TerminalStateError(
                f"Leave request is already {request.status.value}",
                details={"request_id": request.request_id, "status": request.status.value}
            )

        current_step = request.workflow.current_step
        step_def = definition.get_step(current_step)
        if step_def is None or not step_def.records_medical_review:
            return InvalidTransitionError(
                f"Additional documentation can only be requested during medical review. "
                f"Current step: {current_step}",
                details={"request_id": request.request_id, "current_step": current_step}
            )

        if not step_def.allows(actor.role):
            logger.info(
                f"Role {actor.role.value} may not request documentation at {current_step}",
                extra={"request_id": request.request_id, "actor_id": actor.user_id, "step_name": current_step}
            )
            return ForbiddenError(
                f"Role {actor.role.value} cannot request additional documentation",
                details={
                    "request_id": request.request_id,
                    "step_name": current_step,
                    "role": actor.role.value,
                    "required_roles": sorted(r.value for r in step_def.required_roles)
                }
            )

        if not isinstance(notes, str) or not notes.strip():
            return ValidationError(
                "Notes describing the missing documentation are required",
                details={"field": "notes"}
            )

        return None
