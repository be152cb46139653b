"""Transition Executor - Apply guard-passed decisions to a request

The executor mutates the request it is given (the engine hands it a copy) and
returns the DomainEvents the transition produced. It performs no I/O.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..domain.enums import (
    DecisionOutcome, DecisionStatus, DomainEventType, LeaveStatus, COMPLETED_STEP
)
from ..domain.models import (
    ActorContext, ActorSnapshot, DecisionPayload, DomainEvent, LeaveRequest, StepRecord
)
from .audit_writer import AuditWriter
from .definitions import StepDefinition, WorkflowDefinition
from ..utils.idgen import generate_domain_event_id
from ..utils.logger import get_logger

logger = get_logger(__name__)


def derive_status(request: LeaveRequest) -> LeaveStatus:
    """
    Status as a function of the step records

    Cancellation is the only status not derivable from the steps and is kept
    as-is.
    """
    if request.status == LeaveStatus.CANCELLED:
        return LeaveStatus.CANCELLED
    decisions = [s.decision_status for s in request.steps]
    if DecisionStatus.REJECTED in decisions:
        return LeaveStatus.REJECTED
    if DecisionStatus.PENDING in decisions:
        return LeaveStatus.PENDING
    return LeaveStatus.APPROVED


class TransitionExecutor:
    """
    Apply transitions and compute the next applicable step

    Approve path: mark the step approved, then walk the remaining steps in
    definition order; the first whose eligibility predicate holds becomes the
    current step. An exhausted chain completes the request as approved.

    Reject path: mark the step rejected and complete the request as rejected
    without evaluating any further step.
    """

    def __init__(self, audit_writer: Optional[AuditWriter] = None):
        self.audit_writer = audit_writer or AuditWriter()

    # =========================================================================
    # Submission
    # =========================================================================

    def initialize(
        self,
        request: LeaveRequest,
        definition: WorkflowDefinition,
        actor: ActorContext,
        now: datetime
    ) -> List[DomainEvent]:
        """Materialize the eligible step chain on a freshly built request"""
        eligible = definition.eligible_steps(request)
        request.workflow.required_steps = [s.name for s in eligible]
        request.steps = [StepRecord(name=s.name) for s in eligible]
        self.audit_writer.write_submit(request, actor, now)

        events = [
            self._event(
                DomainEventType.REQUEST_SUBMITTED, request, actor, now,
                {"required_steps": list(request.workflow.required_steps)}
            )
        ]

        if eligible:
            first = eligible[0]
            request.workflow.current_step = first.name
            request.status = LeaveStatus.PENDING
            if first.pending_event:
                events.append(self._pending_event(first, request, actor, now))
        else:
            # Leave type with no applicable review
            request.workflow.current_step = COMPLETED_STEP
            request.status = derive_status(request)
            self.audit_writer.write_auto_approve(request, actor, now)
            events.append(self._event(DomainEventType.FULLY_APPROVED, request, actor, now))

        logger.info(
            f"Initialized leave request workflow at {request.workflow.current_step}",
            extra={
                "request_id": request.request_id,
                "tenant_id": request.tenant_id,
                "leave_type": request.leave_type,
                "step_name": request.workflow.current_step,
                "status": request.status
            }
        )
        return events

    # =========================================================================
    # Decisions
    # =========================================================================

    def apply(
        self,
        request: LeaveRequest,
        definition: WorkflowDefinition,
        actor: ActorContext,
        step_name: str,
        outcome: DecisionOutcome,
        payload: Optional[DecisionPayload],
        now: datetime
    ) -> List[DomainEvent]:
        """Apply a guard-passed decision"""
        payload = payload or DecisionPayload()
        step_def = definition.get_step(step_name)
        record = request.get_step(step_name)

        if outcome == DecisionOutcome.REJECT:
            events = self._reject(request, step_def, record, actor, payload.reason.strip(), now)
        else:
            events = self._approve(request, definition, step_def, record, actor, payload.notes, now)

        request.updated_at = now
        logger.info(
            f"Applied {outcome.value} on {step_name}; now at {request.workflow.current_step}",
            extra={
                "request_id": request.request_id,
                "tenant_id": request.tenant_id,
                "step_name": step_name,
                "actor_id": actor.user_id,
                "outcome": outcome,
                "status": request.status
            }
        )
        return events

    def _approve(
        self,
        request: LeaveRequest,
        definition: WorkflowDefinition,
        step_def: StepDefinition,
        record: StepRecord,
        actor: ActorContext,
        notes: Optional[str],
        now: datetime
    ) -> List[DomainEvent]:
        self._mark(record, DecisionStatus.APPROVED, actor, now, notes=notes)
        if step_def.records_medical_review:
            self._stamp_medical_review(request, actor, now, notes)
        self.audit_writer.write_approve(request, step_def.name, actor, now, notes)

        next_step = definition.next_eligible_step(request, after=step_def.name)
        if next_step is not None:
            if request.get_step(next_step.name) is None:
                logger.warning(
                    f"Step {next_step.name} became eligible after submission; adding its record",
                    extra={"request_id": request.request_id, "step_name": next_step.name}
                )
                request.steps.append(StepRecord(name=next_step.name))
                request.workflow.required_steps.append(next_step.name)
            request.workflow.current_step = next_step.name
        else:
            request.workflow.current_step = COMPLETED_STEP
        request.status = derive_status(request)

        # Step-specific event first, then whatever the new position implies
        events: List[DomainEvent] = []
        if step_def.approved_event:
            events.append(self._event(
                step_def.approved_event, request, actor, now,
                {"step_name": step_def.name, "notes": notes}
            ))
        if next_step is None:
            events.append(self._event(DomainEventType.FULLY_APPROVED, request, actor, now))
        elif next_step.pending_event:
            events.append(self._pending_event(next_step, request, actor, now))

        return events

    def _reject(
        self,
        request: LeaveRequest,
        step_def: StepDefinition,
        record: StepRecord,
        actor: ActorContext,
        reason: str,
        now: datetime
    ) -> List[DomainEvent]:
        self._mark(record, DecisionStatus.REJECTED, actor, now, reason=reason)
        if step_def.records_medical_review:
            self._stamp_medical_review(request, actor, now, None)
        self.audit_writer.write_reject(request, step_def.name, actor, now, reason)

        request.workflow.current_step = COMPLETED_STEP
        request.status = derive_status(request)
        return [
            self._event(
                DomainEventType.REQUEST_REJECTED, request, actor, now,
                {"step_name": step_def.name, "reason": reason}
            )
        ]

    # =========================================================================
    # Cancellation
    # =========================================================================

    def cancel(
        self,
        request: LeaveRequest,
        actor: ActorContext,
        reason: Optional[str],
        now: datetime
    ) -> List[DomainEvent]:
        """Cancel a guard-passed request; terminal"""
        self.audit_writer.write_cancel(request, actor, now, reason)
        cancelled_at_step = request.workflow.current_step
        request.status = LeaveStatus.CANCELLED
        request.workflow.current_step = COMPLETED_STEP
        request.cancelled_by = actor.user_id
        request.cancelled_at = now
        request.cancellation_reason = reason
        request.updated_at = now

        logger.info(
            "Cancelled leave request",
            extra={"request_id": request.request_id, "tenant_id": request.tenant_id, "actor_id": actor.user_id}
        )
        return [
            self._event(
                DomainEventType.REQUEST_CANCELLED, request, actor, now,
                {"step_name": cancelled_at_step, "reason": reason}
            )
        ]

    # =========================================================================
    # Medical documentation
    # =========================================================================

    def request_additional_docs(
        self,
        request: LeaveRequest,
        actor: ActorContext,
        notes: str,
        now: datetime
    ) -> List[DomainEvent]:
        """
        Ask the employee for more medical documentation

        The request stays pending at the current medical review step; only
        medical_documentation and the audit trail change.
        """
        medical = request.medical_documentation
        medical.additional_doc_requested = True
        medical.request_notes = notes
        medical.doctor_reviewed_by = actor.user_id
        medical.doctor_reviewed_at = now
        self.audit_writer.write_docs_requested(request, actor, now, notes)
        request.updated_at = now

        logger.info(
            "Requested additional medical documentation",
            extra={
                "request_id": request.request_id,
                "tenant_id": request.tenant_id,
                "step_name": request.workflow.current_step,
                "actor_id": actor.user_id
            }
        )
        return [
            self._event(
                DomainEventType.ADDITIONAL_DOCS_REQUESTED, request, actor, now,
                {"step_name": request.workflow.current_step, "notes": notes}
            )
        ]

    # =========================================================================
    # Helpers
    # =========================================================================

    def _mark(
        self,
        record: StepRecord,
        status: DecisionStatus,
        actor: ActorContext,
        now: datetime,
        notes: Optional[str] = None,
        reason: Optional[str] = None
    ) -> None:
        record.decision_status = status
        record.decided_by = actor.user_id
        record.decided_by_role = actor.role
        record.decided_at = now
        record.notes = notes
        record.reason = reason

    def _stamp_medical_review(
        self,
        request: LeaveRequest,
        actor: ActorContext,
        now: datetime,
        notes: Optional[str]
    ) -> None:
        medical = request.medical_documentation
        medical.reviewed_by_doctor = True
        medical.doctor_reviewed_by = actor.user_id
        medical.doctor_reviewed_at = now
        if notes:
            medical.doctor_notes = notes

    def _pending_event(
        self,
        step: StepDefinition,
        request: LeaveRequest,
        actor: ActorContext,
        now: datetime
    ) -> DomainEvent:
        return self._event(
            step.pending_event, request, actor, now,
            {
                "step_name": step.name,
                "required_roles": sorted(r.value for r in step.required_roles)
            }
        )

    def _event(
        self,
        event_type: DomainEventType,
        request: LeaveRequest,
        actor: ActorContext,
        now: datetime,
        extra: Optional[Dict[str, Any]] = None
    ) -> DomainEvent:
        payload: Dict[str, Any] = {
            "employee_id": request.employee_id,
            "leave_type": request.leave_type.value,
            "status": request.status.value,
            "current_step": request.workflow.current_step,
        }
        payload.update(extra or {})
        return DomainEvent(
            event_id=generate_domain_event_id(),
            type=event_type,
            request_id=request.request_id,
            tenant_id=request.tenant_id,
            actor=ActorSnapshot.from_actor(actor),
            timestamp=now,
            payload=payload
        )
