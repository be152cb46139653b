"""Leave Workflow Service - Runs engine operations and forwards their events

This is the caller the engine expects: it owns the correlation id, hands the
engine's domain events to the notifier after a successful transition, and
returns the WorkflowResult untouched. It never retries a Conflict.
"""
from typing import Optional, Union

from ..domain.enums import DecisionOutcome
from ..domain.models import (
    ActorContext, DecisionPayload, LeaveRequestDraft, WorkflowResult
)
from ..engine.engine import LeaveWorkflowEngine
from ..repositories.base import Notifier
from ..utils.idgen import generate_correlation_id
from ..utils.logger import get_logger, set_correlation_id, get_correlation_id

logger = get_logger(__name__)


class LeaveWorkflowService:
    """Service for leave request workflow operations"""

    def __init__(self, engine: LeaveWorkflowEngine, notifier: Notifier):
        self.engine = engine
        self.notifier = notifier

    def submit(
        self,
        draft: LeaveRequestDraft,
        actor: ActorContext,
        correlation_id: Optional[str] = None
    ) -> WorkflowResult:
        """Submit a new leave request"""
        self._bind_correlation_id(correlation_id)
        return self._dispatch(self.engine.submit(draft, actor))

    def decide(
        self,
        request_id: str,
        actor: ActorContext,
        step_name: str,
        outcome: Union[DecisionOutcome, str],
        notes: Optional[str] = None,
        reason: Optional[str] = None,
        correlation_id: Optional[str] = None
    ) -> WorkflowResult:
        """Approve or reject a review step"""
        self._bind_correlation_id(correlation_id)
        payload = DecisionPayload(notes=notes, reason=reason)
        return self._dispatch(self.engine.decide(request_id, actor, step_name, outcome, payload))

    def approve(
        self,
        request_id: str,
        actor: ActorContext,
        step_name: str,
        notes: Optional[str] = None,
        correlation_id: Optional[str] = None
    ) -> WorkflowResult:
        return self.decide(
            request_id, actor, step_name, DecisionOutcome.APPROVE,
            notes=notes, correlation_id=correlation_id
        )

    def reject(
        self,
        request_id: str,
        actor: ActorContext,
        step_name: str,
        reason: Optional[str],
        correlation_id: Optional[str] = None
    ) -> WorkflowResult:
        return self.decide(
            request_id, actor, step_name, DecisionOutcome.REJECT,
            reason=reason, correlation_id=correlation_id
        )

    def cancel(
        self,
        request_id: str,
        actor: ActorContext,
        reason: Optional[str] = None,
        correlation_id: Optional[str] = None
    ) -> WorkflowResult:
        """Cancel a pending leave request"""
        self._bind_correlation_id(correlation_id)
        return self._dispatch(self.engine.cancel(request_id, actor, reason))

    def request_additional_docs(
        self,
        request_id: str,
        actor: ActorContext,
        notes: str,
        correlation_id: Optional[str] = None
    ) -> WorkflowResult:
        """Doctor requests more medical documentation from the employee"""
        self._bind_correlation_id(correlation_id)
        return self._dispatch(self.engine.request_additional_docs(request_id, actor, notes))

    def _bind_correlation_id(self, correlation_id: Optional[str]) -> None:
        if correlation_id:
            set_correlation_id(correlation_id)
        elif not get_correlation_id():
            set_correlation_id(generate_correlation_id())

    def _dispatch(self, result: WorkflowResult) -> WorkflowResult:
        """Forward events of a committed transition to the notifier"""
        if not result.ok or not result.events:
            return result
        try:
            self.notifier.enqueue_many(result.events)
        except Exception as e:
            # The transition is already committed; a lost notification must not undo it
            logger.error(
                f"Failed to enqueue {len(result.events)} notifications: {e}",
                extra={"request_id": result.request.request_id, "tenant_id": result.request.tenant_id}
            )
        return result
