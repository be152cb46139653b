"""Domain Enumerations - All status and type definitions"""
from enum import Enum


class LeaveType(str, Enum):
    """Kinds of absence a request can be filed for"""
    SICK = "sick"
    VACATION = "vacation"
    MISSION = "mission"
    PERMISSION = "permission"
    ANNUAL = "annual"
    CASUAL = "casual"
    UNPAID = "unpaid"
    EMERGENCY = "emergency"
    MATERNITY = "maternity"
    PATERNITY = "paternity"


class LeaveStatus(str, Enum):
    """Overall request status"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    
    @property
    def is_terminal(self) -> bool:
        return self is not LeaveStatus.PENDING


class DecisionStatus(str, Enum):
    """Decision state of a single review step"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class DecisionOutcome(str, Enum):
    """What a reviewer decided"""
    APPROVE = "approve"
    REJECT = "reject"


class Role(str, Enum):
    """Platform user roles"""
    EMPLOYEE = "employee"
    HR = "hr"
    ADMIN = "admin"
    MANAGER = "manager"
    SUPERVISOR = "supervisor"
    HEAD_OF_DEPARTMENT = "head-of-department"
    DEAN = "dean"
    DOCTOR = "doctor"


class StepName(str, Enum):
    """Built-in review step names"""
    SUPERVISOR_REVIEW = "supervisor-review"
    DOCTOR_REVIEW = "doctor-review"


# Value of workflow.current_step once nothing is left to decide
COMPLETED_STEP = "completed"


class DomainEventType(str, Enum):
    """Types of events emitted for the notifier"""
    REQUEST_SUBMITTED = "request-submitted"
    PENDING_SUPERVISOR_REVIEW = "pending-supervisor-review"
    SUPERVISOR_APPROVED = "supervisor-approved"
    PENDING_DOCTOR_REVIEW = "pending-doctor-review"
    DOCTOR_APPROVED = "doctor-approved"
    FULLY_APPROVED = "fully-approved"
    REQUEST_REJECTED = "request-rejected"
    REQUEST_CANCELLED = "request-cancelled"
    ADDITIONAL_DOCS_REQUESTED = "additional-docs-requested"


class AuditAction(str, Enum):
    """Audit trail entry types"""
    SUBMIT = "SUBMIT"
    APPROVE_STEP = "APPROVE_STEP"
    REJECT_STEP = "REJECT_STEP"
    AUTO_APPROVE = "AUTO_APPROVE"
    CANCEL = "CANCEL"
    REQUEST_DOCS = "REQUEST_DOCS"


class NotificationStatus(str, Enum):
    """Notification outbox status"""
    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"


class ConditionOperator(str, Enum):
    """Operators for eligibility conditions"""
    EQUALS = "EQUALS"
    NOT_EQUALS = "NOT_EQUALS"
    GREATER_THAN = "GREATER_THAN"
    LESS_THAN = "LESS_THAN"
    GREATER_THAN_OR_EQUALS = "GREATER_THAN_OR_EQUALS"
    LESS_THAN_OR_EQUALS = "LESS_THAN_OR_EQUALS"
    IN = "IN"
    NOT_IN = "NOT_IN"
    IS_EMPTY = "IS_EMPTY"
    IS_NOT_EMPTY = "IS_NOT_EMPTY"
