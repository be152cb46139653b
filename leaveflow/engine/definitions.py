"""Workflow Definitions - Per-leave-type approval step chains

Definitions are built once at startup and registered in a WorkflowRegistry.
The registry exposes a read-only mapping; nothing mutates it afterwards.
"""
from types import MappingProxyType
from typing import Callable, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field

from ..domain.enums import (
    LeaveType, Role, StepName, DomainEventType, ConditionOperator, COMPLETED_STEP
)
from ..domain.errors import WorkflowDefinitionError
from ..domain.models import Condition, ConditionGroup, LeaveRequest
from .condition_evaluator import ConditionEvaluator
from ..utils.logger import get_logger

logger = get_logger(__name__)

RoleSet = FrozenSet[Role]

# Roles allowed to act as the supervising reviewer of a request
REVIEWER_ROLES: RoleSet = frozenset({
    Role.HR,
    Role.ADMIN,
    Role.MANAGER,
    Role.SUPERVISOR,
    Role.HEAD_OF_DEPARTMENT,
    Role.DEAN,
})

DOCTOR_ROLES: RoleSet = frozenset({Role.DOCTOR})

# Roles allowed to cancel a request on behalf of the employee
DEFAULT_CANCEL_ROLES: RoleSet = frozenset({Role.HR, Role.ADMIN})

_evaluator = ConditionEvaluator()


class StepDefinition(BaseModel):
    """One stage of a leave type's approval chain"""
    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    required_roles: RoleSet
    condition: Optional[ConditionGroup] = Field(
        None, description="Declarative eligibility condition over request attributes"
    )
    predicate: Optional[Callable[[LeaveRequest], bool]] = Field(
        None, description="Programmatic eligibility check, combined with condition using AND"
    )
    pending_event: Optional[DomainEventType] = Field(
        None, description="Emitted when this step becomes the current step"
    )
    approved_event: Optional[DomainEventType] = Field(
        None, description="Emitted when this step is approved"
    )
    records_medical_review: bool = Field(
        False, description="Decision is also stamped on medical_documentation"
    )

    def is_eligible(self, request: LeaveRequest) -> bool:
        """Does this step apply to the given request instance?"""
        if self.condition is not None and not _evaluator.evaluate(self.condition, request):
            return False
        if self.predicate is not None:
            try:
                if not self.predicate(request):
                    return False
            except Exception as e:
                logger.warning(f"Eligibility predicate failed for step {self.name}: {e}")
                return False  # Fail closed
        return True

    def allows(self, role: Role) -> bool:
        return role in self.required_roles


class WorkflowDefinition(BaseModel):
    """Immutable ordered step list for one leave type"""
    model_config = ConfigDict(frozen=True, extra="forbid")

    leave_type: LeaveType
    steps: Tuple[StepDefinition, ...] = ()
    cancel_roles: RoleSet = DEFAULT_CANCEL_ROLES
    allow_cancel_after_decision: bool = False

    @property
    def step_names(self) -> List[str]:
        return [s.name for s in self.steps]

    def get_step(self, name: str) -> Optional[StepDefinition]:
        """Find a step definition by name"""
        return next((s for s in self.steps if s.name == name), None)

    def eligible_steps(self, request: LeaveRequest) -> List[StepDefinition]:
        """All steps that apply to the request, in definition order"""
        return [s for s in self.steps if s.is_eligible(request)]

    def next_eligible_step(
        self,
        request: LeaveRequest,
        after: Optional[str] = None
    ) -> Optional[StepDefinition]:
        """
        Walk the predicate chain in definition order

        Args:
            request: Request whose attributes feed the predicates
            after: Start the walk after this step (None = from the beginning)

        Returns:
            The first eligible step, or None when the chain is exhausted
        """
        start = 0
        if after is not None:
            names = self.step_names
            if after not in names:
                raise WorkflowDefinitionError(
                    f"Step {after} is not part of the {self.leave_type.value} workflow",
                    details={"leave_type": self.leave_type.value, "step_name": after}
                )
            start = names.index(after) + 1

        for step in self.steps[start:]:
            if step.is_eligible(request):
                return step
        return None


def validate_definition(definition: WorkflowDefinition) -> None:
    """
    Check a definition's structural rules

    Raises:
        WorkflowDefinitionError: duplicate or reserved step names, empty role sets
    """
    seen = set()
    for step in definition.steps:
        if step.name == COMPLETED_STEP:
            raise WorkflowDefinitionError(
                f"'{COMPLETED_STEP}' is reserved and cannot name a step",
                details={"leave_type": definition.leave_type.value}
            )
        if not step.name.strip():
            raise WorkflowDefinitionError(
                "Step name cannot be empty",
                details={"leave_type": definition.leave_type.value}
            )
        if step.name in seen:
            raise WorkflowDefinitionError(
                f"Duplicate step {step.name}",
                details={"leave_type": definition.leave_type.value, "step_name": step.name}
            )
        if not step.required_roles:
            raise WorkflowDefinitionError(
                f"Step {step.name} has no permitted roles",
                details={"leave_type": definition.leave_type.value, "step_name": step.name}
            )
        seen.add(step.name)


class WorkflowRegistry:
    """Process-wide, read-only lookup of workflow definitions by leave type"""

    def __init__(self, definitions: Iterable[WorkflowDefinition]):
        by_type: Dict[LeaveType, WorkflowDefinition] = {}
        for definition in definitions:
            validate_definition(definition)
            if definition.leave_type in by_type:
                raise WorkflowDefinitionError(
                    f"Leave type {definition.leave_type.value} defined twice",
                    details={"leave_type": definition.leave_type.value}
                )
            by_type[definition.leave_type] = definition
        self._definitions: Mapping[LeaveType, WorkflowDefinition] = MappingProxyType(by_type)

    @property
    def definitions(self) -> Mapping[LeaveType, WorkflowDefinition]:
        return self._definitions

    def get(self, leave_type: LeaveType) -> Optional[WorkflowDefinition]:
        return self._definitions.get(leave_type)

    def steps_for(self, leave_type: LeaveType) -> Tuple[StepDefinition, ...]:
        """Ordered steps for a leave type (empty when the type is not registered)"""
        definition = self._definitions.get(leave_type)
        return definition.steps if definition else ()

    def __contains__(self, leave_type: object) -> bool:
        return leave_type in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)


# ============================================================================
# Built-in definitions
# ============================================================================

def supervisor_review_step() -> StepDefinition:
    return StepDefinition(
        name=StepName.SUPERVISOR_REVIEW.value,
        required_roles=REVIEWER_ROLES,
        pending_event=DomainEventType.PENDING_SUPERVISOR_REVIEW,
        approved_event=DomainEventType.SUPERVISOR_APPROVED,
    )


def doctor_review_step() -> StepDefinition:
    return StepDefinition(
        name=StepName.DOCTOR_REVIEW.value,
        required_roles=DOCTOR_ROLES,
        condition=ConditionGroup(conditions=[
            Condition(
                field="medical_documentation.required",
                operator=ConditionOperator.EQUALS,
                value=True,
            )
        ]),
        pending_event=DomainEventType.PENDING_DOCTOR_REVIEW,
        approved_event=DomainEventType.DOCTOR_APPROVED,
        records_medical_review=True,
    )


def build_default_definitions() -> List[WorkflowDefinition]:
    """Sick leave goes supervisor -> doctor; every other type has one review"""
    definitions = [
        WorkflowDefinition(
            leave_type=LeaveType.SICK,
            steps=(supervisor_review_step(), doctor_review_step()),
        )
    ]
    for leave_type in LeaveType:
        if leave_type is LeaveType.SICK:
            continue
        definitions.append(
            WorkflowDefinition(leave_type=leave_type, steps=(supervisor_review_step(),))
        )
    return definitions


def build_default_registry() -> WorkflowRegistry:
    registry = WorkflowRegistry(build_default_definitions())
    logger.info(f"Loaded {len(registry)} leave workflow definitions")
    return registry
