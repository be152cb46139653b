"""Domain Errors - Centralized Exception Hierarchy

Every error a workflow operation can produce maps to exactly one ErrorKind.
The engine hands these back inside a WorkflowResult; repositories raise them.
"""
from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Taxonomy callers map to user-facing responses"""
    NOT_FOUND = "NotFound"
    TERMINAL = "Terminal"
    INVALID_TRANSITION = "InvalidTransition"
    ALREADY_DECIDED = "AlreadyDecided"
    FORBIDDEN = "Forbidden"
    VALIDATION_ERROR = "ValidationError"
    CONFLICT = "Conflict"


class DomainError(Exception):
    """Base domain error - all errors extend this"""
    
    error_code: str = "DOMAIN_ERROR"
    http_status: int = 400
    kind: Optional[ErrorKind] = None
    
    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert error to API response dict"""
        return {
            "error": {
                "code": self.error_code,
                "kind": self.kind.value if self.kind else None,
                "message": self.message,
                "details": self.details
            }
        }
    
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DomainError):
            return NotImplemented
        return (
            type(self) is type(other)
            and self.message == other.message
            and self.details == other.details
        )
    
    __hash__ = Exception.__hash__


# Not Found Errors
class NotFoundError(DomainError):
    """Resource not found"""
    error_code = "NOT_FOUND"
    http_status = 404
    kind = ErrorKind.NOT_FOUND


class LeaveRequestNotFoundError(NotFoundError):
    """Leave request not found in the actor's tenant"""
    error_code = "LEAVE_REQUEST_NOT_FOUND"


# State Errors
class TerminalStateError(DomainError):
    """Request is approved, rejected or cancelled"""
    error_code = "TERMINAL_STATE"
    http_status = 409
    kind = ErrorKind.TERMINAL


class InvalidTransitionError(DomainError):
    """Action targets a step that is not the current step"""
    error_code = "INVALID_TRANSITION"
    http_status = 400
    kind = ErrorKind.INVALID_TRANSITION


class AlreadyDecidedError(DomainError):
    """Step already carries a decision"""
    error_code = "ALREADY_DECIDED"
    http_status = 400
    kind = ErrorKind.ALREADY_DECIDED


# Authorization Errors
class ForbiddenError(DomainError):
    """Actor's role may not act on this step"""
    error_code = "FORBIDDEN"
    http_status = 403
    kind = ErrorKind.FORBIDDEN


# Validation Errors
class ValidationError(DomainError):
    """Input validation failed"""
    error_code = "VALIDATION_ERROR"
    http_status = 400
    kind = ErrorKind.VALIDATION_ERROR


# Conflict Errors
class ConflictError(DomainError):
    """Resource conflict (e.g., concurrent modification)"""
    error_code = "CONFLICT"
    http_status = 409
    kind = ErrorKind.CONFLICT


class ConcurrencyError(ConflictError):
    """Optimistic concurrency conflict"""
    error_code = "CONCURRENCY_CONFLICT"


class AlreadyExistsError(ConflictError):
    """Resource already exists"""
    error_code = "ALREADY_EXISTS"


# Configuration Errors
class WorkflowDefinitionError(DomainError):
    """Workflow definition is malformed, or a step lookup names a step it does not define"""
    error_code = "WORKFLOW_DEFINITION_ERROR"
    http_status = 500
