"""Condition Evaluator - Safe evaluation of step eligibility conditions"""
from typing import Any, Dict, Union

from ..domain.models import ConditionGroup, Condition, LeaveRequest
from ..domain.enums import ConditionOperator
from ..utils.logger import get_logger

logger = get_logger(__name__)


class ConditionEvaluator:
    """
    Evaluate eligibility conditions against a leave request

    Uses a simple DSL - no eval() or exec().
    """

    def evaluate(
        self,
        condition_group: ConditionGroup,
        context: Union[LeaveRequest, Dict[str, Any]]
    ) -> bool:
        """
        Evaluate a condition group

        Args:
            condition_group: Group of conditions with AND/OR logic
            context: Request (or its document form) providing field values

        Returns:
            True if conditions are met
        """
        if not condition_group.conditions:
            return True  # No conditions = always true

        if isinstance(context, LeaveRequest):
            context = context.model_dump(mode="json")

        results = [self._evaluate_single(c, context) for c in condition_group.conditions]

        if condition_group.logic.upper() == "OR":
            return any(results)
        return all(results)

    def _evaluate_single(
        self,
        condition: Condition,
        context: Dict[str, Any]
    ) -> bool:
        """Evaluate a single condition"""
        try:
            field_value = self._get_field_value(condition.field, context)
            return self._compare(field_value, condition.operator, condition.value)
        except Exception as e:
            logger.warning(f"Condition evaluation failed for {condition.field}: {e}")
            return False  # Fail closed

    def _get_field_value(self, field_path: str, context: Dict[str, Any]) -> Any:
        """
        Get field value from context using dot notation

        Example: "medical_documentation.required" -> context["medical_documentation"]["required"]
        """
        value: Any = context
        for part in field_path.split("."):
            if isinstance(value, dict):
                value = value.get(part)
            else:
                return None
        return value

    def _compare(
        self,
        field_value: Any,
        operator: ConditionOperator,
        compare_value: Any
    ) -> bool:
        """Compare values using operator"""

        if operator == ConditionOperator.EQUALS:
            return field_value == compare_value

        elif operator == ConditionOperator.NOT_EQUALS:
            return field_value != compare_value

        elif operator == ConditionOperator.GREATER_THAN:
            return self._compare_numeric(field_value, compare_value, lambda a, b: a > b)

        elif operator == ConditionOperator.LESS_THAN:
            return self._compare_numeric(field_value, compare_value, lambda a, b: a < b)

        elif operator == ConditionOperator.GREATER_THAN_OR_EQUALS:
            return self._compare_numeric(field_value, compare_value, lambda a, b: a >= b)

        elif operator == ConditionOperator.LESS_THAN_OR_EQUALS:
            return self._compare_numeric(field_value, compare_value, lambda a, b: a <= b)

        elif operator == ConditionOperator.IN:
            if not isinstance(compare_value, (list, tuple, set, frozenset)):
                compare_value = [compare_value]
            return field_value in compare_value

        elif operator == ConditionOperator.NOT_IN:
            if not isinstance(compare_value, (list, tuple, set, frozenset)):
                compare_value = [compare_value]
            return field_value not in compare_value

        elif operator == ConditionOperator.IS_EMPTY:
            return field_value is None or field_value == "" or field_value == []

        elif operator == ConditionOperator.IS_NOT_EMPTY:
            return field_value is not None and field_value != "" and field_value != []

        return False

    def _compare_numeric(self, field_value: Any, compare_value: Any, comparator) -> bool:
        """Compare numeric values; missing values never match"""
        if field_value is None or compare_value is None:
            return False
        try:
            return comparator(float(field_value), float(compare_value))
        except (ValueError, TypeError):
            return False
