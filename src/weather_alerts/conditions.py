"""Condition evaluation.

Pure comparison of measured values against operator + threshold, and
explicit validation of user-supplied conditions.
"""

import logging

from src.weather_alerts.exceptions import InvalidOperatorError
from src.weather_alerts.models import VALID_OPERATORS, AlertCondition

logger = logging.getLogger(__name__)


def validate_condition(condition: AlertCondition) -> None:
    """Reject conditions whose operator is not one of the five symbols.

    Raises:
        InvalidOperatorError: If the operator is unsupported (including "").
    """
    if condition.operator not in VALID_OPERATORS:
        raise InvalidOperatorError(condition.operator)


class ConditionEvaluator:
    """Evaluates alert conditions against measured values.

    Evaluation never raises; unknown operators simply do not match.
    Use ``validate`` at configuration time to reject them instead.
    """

    def evaluate(self, value: float, condition: AlertCondition) -> bool:
        """Return True if ``value`` satisfies the condition."""
        result = condition.evaluate(value)
        if not result and not condition.is_valid:
            logger.debug("Ignoring condition with unknown operator %r", condition.operator)
        return result

    @staticmethod
    def validate(condition: AlertCondition) -> None:
        validate_condition(condition)
