"""Tests for the eligibility condition DSL"""

import pytest

from leaveflow.domain.enums import ConditionOperator
from leaveflow.domain.models import Condition, ConditionGroup
from leaveflow.engine.condition_evaluator import ConditionEvaluator


@pytest.fixture
def evaluator():
    return ConditionEvaluator()


CONTEXT = {
    "leave_type": "sick",
    "duration": 5.0,
    "reason": "",
    "medical_documentation": {"required": True, "documents": []},
    "department_id": None,
}


def _group(*conditions, logic="AND"):
    return ConditionGroup(logic=logic, conditions=list(conditions))


@pytest.mark.parametrize("operator,field,value,expected", [
    (ConditionOperator.EQUALS, "leave_type", "sick", True),
    (ConditionOperator.NOT_EQUALS, "leave_type", "sick", False),
    (ConditionOperator.GREATER_THAN, "duration", 3, True),
    (ConditionOperator.LESS_THAN, "duration", 3, False),
    (ConditionOperator.GREATER_THAN_OR_EQUALS, "duration", 5, True),
    (ConditionOperator.LESS_THAN_OR_EQUALS, "duration", 4.5, False),
    (ConditionOperator.IN, "leave_type", ["sick", "vacation"], True),
    (ConditionOperator.NOT_IN, "leave_type", ["mission"], True),
    (ConditionOperator.IS_EMPTY, "reason", None, True),
    (ConditionOperator.IS_NOT_EMPTY, "department_id", None, False),
    (ConditionOperator.EQUALS, "medical_documentation.required", True, True),
    (ConditionOperator.IS_EMPTY, "medical_documentation.documents", None, True),
])
def test_operators(evaluator, operator, field, value, expected):
    group = _group(Condition(field=field, operator=operator, value=value))
    assert evaluator.evaluate(group, CONTEXT) is expected


def test_empty_group_is_true(evaluator):
    assert evaluator.evaluate(ConditionGroup(), CONTEXT) is True


def test_or_logic(evaluator):
    group = _group(
        Condition(field="leave_type", operator=ConditionOperator.EQUALS, value="mission"),
        Condition(field="duration", operator=ConditionOperator.GREATER_THAN, value=1),
        logic="OR",
    )
    assert evaluator.evaluate(group, CONTEXT) is True


def test_and_logic_requires_all(evaluator):
    group = _group(
        Condition(field="leave_type", operator=ConditionOperator.EQUALS, value="mission"),
        Condition(field="duration", operator=ConditionOperator.GREATER_THAN, value=1),
    )
    assert evaluator.evaluate(group, CONTEXT) is False


def test_missing_path_does_not_match_numeric(evaluator):
    group = _group(Condition(field="mission.days", operator=ConditionOperator.GREATER_THAN, value=0))
    assert evaluator.evaluate(group, CONTEXT) is False


def test_non_numeric_comparison_fails_closed(evaluator):
    group = _group(Condition(field="leave_type", operator=ConditionOperator.GREATER_THAN, value=2))
    assert evaluator.evaluate(group, CONTEXT) is False
