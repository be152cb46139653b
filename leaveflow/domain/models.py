"""Domain Models - Pydantic schemas for leave requests and workflow events"""
from datetime import date, datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, EmailStr, ConfigDict

from .enums import (
    LeaveType, LeaveStatus, DecisionStatus, Role, DomainEventType, AuditAction,
    NotificationStatus, ConditionOperator
)
from .errors import DomainError


# ============================================================================
# Actor & Identity Snapshots
# ============================================================================

class ActorContext(BaseModel):
    """Current actor context (resolved by the caller's auth layer)"""
    model_config = ConfigDict(extra="forbid")

    user_id: str = Field(..., description="User ID of the acting user")
    tenant_id: str = Field(..., description="Tenant the actor belongs to")
    role: Role = Field(..., description="Platform role of the actor")
    display_name: Optional[str] = None
    email: Optional[EmailStr] = None


class ActorSnapshot(BaseModel):
    """Snapshot of the actor at the time of an event"""
    model_config = ConfigDict(extra="forbid", frozen=True)

    user_id: str
    role: Role
    display_name: Optional[str] = None

    @classmethod
    def from_actor(cls, actor: ActorContext) -> "ActorSnapshot":
        return cls(user_id=actor.user_id, role=actor.role, display_name=actor.display_name)


# ============================================================================
# Condition DSL (eligibility predicates)
# ============================================================================

class Condition(BaseModel):
    """Single comparison against a request attribute"""
    model_config = ConfigDict(extra="forbid", frozen=True)

    field: str = Field(..., description="Dot path into the request document")
    operator: ConditionOperator = Field(..., description="Comparison operator")
    value: Any = Field(None, description="Value to compare against")


class ConditionGroup(BaseModel):
    """Group of conditions with AND/OR logic"""
    model_config = ConfigDict(extra="forbid", frozen=True)

    logic: str = Field("AND", description="AND or OR")
    conditions: List[Condition] = Field(default_factory=list)


# ============================================================================
# Leave Request Parts
# ============================================================================

class MedicalDocument(BaseModel):
    """Uploaded medical document reference"""
    filename: str
    url: str
    uploaded_at: Optional[datetime] = None
    uploaded_by: Optional[str] = None


class MedicalDocumentation(BaseModel):
    """Medical documentation attached to a sick leave"""
    model_config = ConfigDict(extra="ignore")

    required: bool = Field(default=False, description="Doctor review needed; fixed at submission")
    provided: bool = False
    documents: List[MedicalDocument] = Field(default_factory=list)
    reviewed_by_doctor: bool = False
    doctor_reviewed_by: Optional[str] = None
    doctor_reviewed_at: Optional[datetime] = None
    doctor_notes: Optional[str] = None
    additional_doc_requested: bool = False
    request_notes: Optional[str] = None


class MissionDetails(BaseModel):
    """Mission-specific attributes"""
    location: Optional[str] = None
    purpose: Optional[str] = None
    related_department_id: Optional[str] = None


class StepRecord(BaseModel):
    """Decision record for one review step of a request"""
    model_config = ConfigDict(extra="ignore")

    name: str
    decision_status: DecisionStatus = Field(default=DecisionStatus.PENDING)
    decided_by: Optional[str] = None
    decided_by_role: Optional[Role] = None
    decided_at: Optional[datetime] = None
    notes: Optional[str] = None
    reason: Optional[str] = None


class WorkflowProgress(BaseModel):
    """Where the request stands in its approval chain"""
    current_step: str = Field(..., description="Step awaiting action, or 'completed'")
    required_steps: List[str] = Field(
        default_factory=list,
        description="Eligible steps in definition order, fixed at submission"
    )


class AuditEntry(BaseModel):
    """Append-only audit trail entry stored on the request"""
    model_config = ConfigDict(extra="forbid")

    audit_id: str
    action: AuditAction
    step_name: Optional[str] = None
    actor_id: str
    actor_role: Role
    timestamp: datetime
    details: Dict[str, Any] = Field(default_factory=dict)
    correlation_id: Optional[str] = None


# ============================================================================
# Leave Request
# ============================================================================

class LeaveRequestDraft(BaseModel):
    """Employee input for a new leave request"""
    model_config = ConfigDict(extra="forbid")

    tenant_id: str
    employee_id: str
    leave_type: LeaveType
    start_date: date
    end_date: date
    duration: Optional[float] = Field(None, description="Days; computed from the dates when omitted")
    reason: Optional[str] = None
    medical_documentation_required: Optional[bool] = Field(
        None, description="Explicit doctor-review flag; derived from duration for sick leave when omitted"
    )
    medical_documents: List[MedicalDocument] = Field(default_factory=list)
    mission: Optional[MissionDetails] = None
    department_id: Optional[str] = None
    position_id: Optional[str] = None


class LeaveRequest(BaseModel):
    """Leave request instance (runtime state of one workflow)"""
    model_config = ConfigDict(extra="ignore")

    request_id: str = Field(..., description="Unique request ID")
    tenant_id: str
    employee_id: str
    leave_type: LeaveType
    start_date: date
    end_date: date
    duration: float
    reason: Optional[str] = None
    status: LeaveStatus = Field(default=LeaveStatus.PENDING)
    workflow: WorkflowProgress
    steps: List[StepRecord] = Field(default_factory=list)
    medical_documentation: MedicalDocumentation = Field(default_factory=MedicalDocumentation)
    mission: Optional[MissionDetails] = None
    department_id: Optional[str] = None
    position_id: Optional[str] = None
    cancelled_by: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    audit_trail: List[AuditEntry] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    version: int = Field(default=1, description="Optimistic concurrency version")

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def get_step(self, name: str) -> Optional[StepRecord]:
        """Find the step record by name"""
        return next((s for s in self.steps if s.name == name), None)

    def has_decisions(self) -> bool:
        """True once any step carries a decision"""
        return any(s.decision_status != DecisionStatus.PENDING for s in self.steps)


# ============================================================================
# Decisions, Events & Results
# ============================================================================

class DecisionPayload(BaseModel):
    """Reviewer input accompanying a decision"""
    model_config = ConfigDict(extra="ignore")

    notes: Optional[str] = None
    reason: Optional[Any] = Field(None, description="Rejection reason; type checked by the guard")


class DomainEvent(BaseModel):
    """Immutable record emitted by a successful transition"""
    model_config = ConfigDict(extra="forbid", frozen=True)

    event_id: str
    type: DomainEventType
    request_id: str
    tenant_id: str
    actor: ActorSnapshot
    timestamp: datetime
    payload: Dict[str, Any] = Field(default_factory=dict)


class NotificationOutbox(BaseModel):
    """Outbox document consumed by the notification dispatcher"""
    model_config = ConfigDict(extra="ignore")

    notification_id: str
    event_id: str
    event_type: DomainEventType
    request_id: str
    tenant_id: str
    actor: ActorSnapshot
    payload: Dict[str, Any] = Field(default_factory=dict)
    status: NotificationStatus = Field(default=NotificationStatus.PENDING)
    retry_count: int = 0
    event_timestamp: datetime
    created_at: datetime
    sent_at: Optional[datetime] = None
    last_error: Optional[str] = None


class WorkflowResult(BaseModel):
    """Outcome of an engine operation; errors are returned, not raised"""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    request: Optional[LeaveRequest] = None
    events: List[DomainEvent] = Field(default_factory=list)
    error: Optional[DomainError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> LeaveRequest:
        """Return the request or raise the carried error"""
        if self.error is not None:
            raise self.error
        return self.request

    @classmethod
    def success(cls, request: LeaveRequest, events: List[DomainEvent]) -> "WorkflowResult":
        return cls(request=request, events=events)

    @classmethod
    def failure(cls, error: DomainError) -> "WorkflowResult":
        return cls(error=error)
