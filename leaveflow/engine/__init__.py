"""Leave Workflow Engine - approval state machine"""
from .engine import LeaveWorkflowEngine
from .definitions import (
    StepDefinition, WorkflowDefinition, WorkflowRegistry, RoleSet,
    build_default_registry, validate_definition
)
from .transition_guard import TransitionGuard
from .transition_executor import TransitionExecutor, derive_status
from .condition_evaluator import ConditionEvaluator
from .audit_writer import AuditWriter

__all__ = [
    "LeaveWorkflowEngine",
    "StepDefinition",
    "WorkflowDefinition",
    "WorkflowRegistry",
    "RoleSet",
    "build_default_registry",
    "validate_definition",
    "TransitionGuard",
    "TransitionExecutor",
    "derive_status",
    "ConditionEvaluator",
    "AuditWriter",
]
