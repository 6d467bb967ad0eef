"""Evaluate parsed rule conditions against an event or card context."""

from __future__ import annotations

import logging
import operator
from collections.abc import Mapping
from datetime import datetime, timedelta
from typing import Any, Callable

from board_automation.domain.entities import (
    AllOf,
    Condition,
    EmptyCondition,
    FieldCondition,
    TemporalCondition,
    UnparseableCondition,
    parse_condition,
)
from board_automation.utils import ensure_utc, parse_datetime, utc_now

logger = logging.getLogger(__name__)

_COMPARATORS: dict[str, Callable[[Any, Any], bool]] = {
    "eq": operator.eq,
    "ne": operator.ne,
    "gt": operator.gt,
    "gte": operator.ge,
    "lt": operator.lt,
    "lte": operator.le,
    "in": lambda actual, expected: actual in expected,
}


class ConditionEvaluator:
    """Decide whether a rule condition matches a context.

    An absent or empty condition always matches: a rule without a condition
    fires every time its trigger occurs. Unparseable conditions and
    comparisons that cannot be performed never match and never raise.
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self._clock = clock

    def matches(
        self,
        condition: Condition | str | Mapping[str, Any] | None,
        context: Mapping[str, Any],
        *,
        now: datetime | None = None,
    ) -> bool:
        if not isinstance(
            condition, (EmptyCondition, FieldCondition, TemporalCondition, AllOf, UnparseableCondition)
        ):
            condition = parse_condition(condition)
        reference = ensure_utc(now) if now is not None else self._clock()
        try:
            return self._evaluate(condition, context, reference)
        except Exception:
            logger.exception("Automation condition %r could not be evaluated", condition)
            return False

    def _evaluate(self, condition: Condition, context: Mapping[str, Any], now: datetime) -> bool:
        if isinstance(condition, EmptyCondition):
            return True
        if isinstance(condition, UnparseableCondition):
            logger.warning("Skipping unparseable automation condition (%s)", condition.reason)
            return False
        if isinstance(condition, AllOf):
            return all(self._evaluate(part, context, now) for part in condition.conditions)
        if isinstance(condition, TemporalCondition):
            return _older_than(context.get(condition.time_field), condition.days, now)
        if isinstance(condition, FieldCondition):
            return _compare(condition, context)
        logger.warning("Unsupported automation condition type %s", type(condition).__name__)
        return False


def _older_than(value: Any, days: float, now: datetime) -> bool:
    moment = parse_datetime(value)
    if moment is None:
        return False
    return now - moment >= timedelta(days=days)


def _compare(condition: FieldCondition, context: Mapping[str, Any]) -> bool:
    if condition.field not in context:
        return condition.operator == "ne" and condition.value is not None
    actual = context[condition.field]
    expected = condition.value
    comparator = _COMPARATORS[condition.operator]
    if condition.operator not in {"eq", "ne", "in"}:
        if actual is None or expected is None:
            return False
        actual, expected = _align_types(actual, expected)
    try:
        return bool(comparator(actual, expected))
    except TypeError:
        logger.warning(
            "Cannot compare %r with %r using %s for field %s",
            actual,
            expected,
            condition.operator,
            condition.field,
        )
        return False


def _align_types(actual: Any, expected: Any) -> tuple[Any, Any]:
    """Make datetimes and ISO strings comparable with each other."""

    if isinstance(actual, datetime) or isinstance(expected, datetime):
        left, right = parse_datetime(actual), parse_datetime(expected)
        if left is not None and right is not None:
            return left, right
    return actual, expected


__all__ = ["ConditionEvaluator"]
