"""Service modules - Business logic layer"""
from .leave_workflow_service import LeaveWorkflowService

__all__ = ["LeaveWorkflowService"]
