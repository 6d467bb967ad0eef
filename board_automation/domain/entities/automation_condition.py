"""Typed representation of automation rule conditions.

Conditions are persisted as JSON text. They are parsed once, when a rule
leaves the rule store, into one of the variants below. Payloads that
cannot be understood become :class:`UnparseableCondition` so the engine
can skip them without failing other rules.

Accepted JSON shapes::

    null / {}                                       -> EmptyCondition
    {"columnId": "c1", "priority": "high"}          -> AllOf(eq, eq)
    {"field": "order", "operator": "gte", "value": 3}
    {"timeField": "updatedAt", "operator": "olderThan", "days": 7}
    {"all": [{...}, {...}]}
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Union

FIELD_OPERATORS = frozenset({"eq", "ne", "gt", "gte", "lt", "lte", "in"})
TEMPORAL_OPERATORS = frozenset({"olderThan", "lt"})


@dataclass(frozen=True)
class EmptyCondition:
    """No condition at all: matches every context."""


@dataclass(frozen=True)
class FieldCondition:
    """Compare ``context[field]`` against a literal ``value``."""

    field: str
    operator: str
    value: Any


@dataclass(frozen=True)
class TemporalCondition:
    """True when ``context[time_field]`` is at least ``days`` days old."""

    time_field: str
    days: float


@dataclass(frozen=True)
class AllOf:
    """Conjunction of nested conditions."""

    conditions: tuple["Condition", ...]


@dataclass(frozen=True)
class UnparseableCondition:
    """Payload that could not be parsed; never matches."""

    raw: Any
    reason: str


Condition = Union[EmptyCondition, FieldCondition, TemporalCondition, AllOf, UnparseableCondition]


class _ConditionSyntaxError(ValueError):
    pass


def parse_condition(raw: str | Mapping[str, Any] | None) -> Condition:
    """Parse a persisted condition payload into a :data:`Condition`."""

    if raw is None:
        return EmptyCondition()
    if isinstance(raw, str):
        if not raw.strip():
            return EmptyCondition()
        try:
            decoded = json.loads(raw)
        except json.JSONDecodeError as exc:
            return UnparseableCondition(raw=raw, reason=f"invalid JSON: {exc.msg}")
    else:
        decoded = raw

    if decoded is None:
        return EmptyCondition()
    if not isinstance(decoded, Mapping):
        return UnparseableCondition(raw=raw, reason="condition must be a JSON object")

    try:
        return _parse_mapping(decoded)
    except _ConditionSyntaxError as exc:
        return UnparseableCondition(raw=raw, reason=str(exc))


def _parse_mapping(data: Mapping[str, Any]) -> Condition:
    if not data:
        return EmptyCondition()

    remaining = dict(data)
    parts: list[Condition] = []

    if "all" in remaining:
        entries = remaining.pop("all")
        if not isinstance(entries, list):
            raise _ConditionSyntaxError("'all' must be a list of conditions")
        for entry in entries:
            if not isinstance(entry, Mapping):
                raise _ConditionSyntaxError("'all' entries must be JSON objects")
            parts.append(_parse_mapping(entry))

    if "timeField" in remaining:
        parts.append(_parse_temporal(remaining))
    elif "field" in remaining:
        parts.append(_parse_field(remaining))

    for key, value in remaining.items():
        parts.append(FieldCondition(field=str(key), operator="eq", value=value))

    parts = [part for part in parts if not isinstance(part, EmptyCondition)]
    if not parts:
        return EmptyCondition()
    if len(parts) == 1:
        return parts[0]
    return AllOf(conditions=tuple(parts))


def _parse_temporal(remaining: dict[str, Any]) -> TemporalCondition:
    time_field = remaining.pop("timeField")
    operator = remaining.pop("operator", "olderThan")
    days = remaining.pop("days", None)

    if not isinstance(time_field, str) or not time_field.strip():
        raise _ConditionSyntaxError("'timeField' must be a non-empty string")
    if operator not in TEMPORAL_OPERATORS:
        raise _ConditionSyntaxError(f"unsupported temporal operator {operator!r}")
    return TemporalCondition(time_field=time_field.strip(), days=_coerce_days(days))


def _parse_field(remaining: dict[str, Any]) -> FieldCondition:
    field = remaining.pop("field")
    operator = remaining.pop("operator", "eq")
    value = remaining.pop("value", None)

    if not isinstance(field, str) or not field.strip():
        raise _ConditionSyntaxError("'field' must be a non-empty string")
    if operator not in FIELD_OPERATORS:
        raise _ConditionSyntaxError(f"unsupported operator {operator!r}")
    if operator == "in" and not isinstance(value, list):
        raise _ConditionSyntaxError("operator 'in' requires a list value")
    return FieldCondition(field=field.strip(), operator=operator, value=value)


def _coerce_days(value: Any) -> float:
    if isinstance(value, bool):
        raise _ConditionSyntaxError("'days' must be a number")
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError as exc:
            raise _ConditionSyntaxError("'days' must be a number") from exc
    if not isinstance(value, (int, float)):
        raise _ConditionSyntaxError("'days' must be a number")
    if value < 0:
        raise _ConditionSyntaxError("'days' must not be negative")
    return float(value)


__all__ = [
    "AllOf",
    "Condition",
    "EmptyCondition",
    "FIELD_OPERATORS",
    "FieldCondition",
    "TEMPORAL_OPERATORS",
    "TemporalCondition",
    "UnparseableCondition",
    "parse_condition",
]
