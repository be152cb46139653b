"""Audit Writer - Append-only audit trail on the request document

Entries are appended to the in-memory request and persisted together with the
transition by the versioned save, so the trail never disagrees with the state.
"""
from datetime import datetime
from typing import Any, Dict, Optional

from ..domain.models import AuditEntry, ActorContext, LeaveRequest
from ..domain.enums import AuditAction
from ..utils.idgen import generate_audit_entry_id
from ..utils.logger import get_correlation_id


class AuditWriter:
    """Write audit entries (append-only)"""

    def write_entry(
        self,
        request: LeaveRequest,
        action: AuditAction,
        actor: ActorContext,
        timestamp: datetime,
        step_name: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> AuditEntry:
        """Append a single audit entry to the request"""
        entry = AuditEntry(
            audit_id=generate_audit_entry_id(),
            action=action,
            step_name=step_name,
            actor_id=actor.user_id,
            actor_role=actor.role,
            timestamp=timestamp,
            details=details or {},
            correlation_id=get_correlation_id()
        )
        request.audit_trail.append(entry)
        return entry

    def write_submit(self, request: LeaveRequest, actor: ActorContext, timestamp: datetime) -> AuditEntry:
        """Write submission entry"""
        return self.write_entry(
            request,
            AuditAction.SUBMIT,
            actor,
            timestamp,
            details={
                "leave_type": request.leave_type.value,
                "required_steps": list(request.workflow.required_steps)
            }
        )

    def write_approve(
        self,
        request: LeaveRequest,
        step_name: str,
        actor: ActorContext,
        timestamp: datetime,
        notes: Optional[str] = None
    ) -> AuditEntry:
        """Write step approval entry"""
        return self.write_entry(
            request, AuditAction.APPROVE_STEP, actor, timestamp,
            step_name=step_name, details={"notes": notes}
        )

    def write_reject(
        self,
        request: LeaveRequest,
        step_name: str,
        actor: ActorContext,
        timestamp: datetime,
        reason: str
    ) -> AuditEntry:
        """Write step rejection entry"""
        return self.write_entry(
            request, AuditAction.REJECT_STEP, actor, timestamp,
            step_name=step_name, details={"reason": reason}
        )

    def write_auto_approve(self, request: LeaveRequest, actor: ActorContext, timestamp: datetime) -> AuditEntry:
        return self.write_entry(request, AuditAction.AUTO_APPROVE, actor, timestamp)

    def write_cancel(
        self,
        request: LeaveRequest,
        actor: ActorContext,
        timestamp: datetime,
        reason: Optional[str] = None
    ) -> AuditEntry:
        """Write cancellation entry"""
        return self.write_entry(
            request, AuditAction.CANCEL, actor, timestamp,
            step_name=request.workflow.current_step, details={"reason": reason}
        )

    def write_docs_requested(
        self,
        request: LeaveRequest,
        actor: ActorContext,
        timestamp: datetime,
        notes: str
    ) -> AuditEntry:
        return self.write_entry(
            request, AuditAction.REQUEST_DOCS, actor, timestamp,
            step_name=request.workflow.current_step, details={"notes": notes}
        )
