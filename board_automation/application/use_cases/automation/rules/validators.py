"""Validation helpers for automation rule use cases."""

from __future__ import annotations

import json
import re
from collections.abc import Mapping, Sequence
from typing import Any

from board_automation.domain.entities import (
    ActionType,
    TriggerType,
    UnparseableCondition,
    parse_condition,
    serialize_actions,
)
from board_automation.domain.exceptions import RuleValidationError

_CRON_FIELD = re.compile(r"^[0-9A-Za-z*/,\-?#LW]+$")
_VALUELESS_ACTIONS = frozenset({ActionType.ARCHIVE_CARD})


def normalize_name(name: str | None) -> str:
    candidate = (name or "").strip()
    if not candidate:
        raise RuleValidationError("Automation rules require a name")
    if len(candidate) > 120:
        raise RuleValidationError("Rule names are limited to 120 characters")
    return candidate


def normalize_trigger_type(value: TriggerType | str) -> TriggerType:
    try:
        return value if isinstance(value, TriggerType) else TriggerType(str(value).strip().upper())
    except ValueError as exc:
        raise RuleValidationError(f"Unsupported trigger type {value!r}") from exc


def validate_cron_expression(trigger_type: TriggerType, cron_expression: str | None) -> str | None:
    """Enforce that only ``TIME_BASED`` rules carry a cron expression.

    The expression is checked for shape only (five whitespace-separated
    fields); the scheduler polls on its own interval regardless.
    """

    expression = " ".join(cron_expression.split()) if cron_expression else None
    if trigger_type is not TriggerType.TIME_BASED:
        if expression:
            raise RuleValidationError("Only TIME_BASED rules may define a cron expression")
        return None

    if not expression:
        raise RuleValidationError("TIME_BASED rules require a cron expression")
    fields = expression.split(" ")
    if len(fields) != 5 or not all(_CRON_FIELD.match(part) for part in fields):
        raise RuleValidationError(
            f"Cron expression {cron_expression!r} must have five fields (minute hour day month weekday)"
        )
    return expression


def serialize_condition(condition: Mapping[str, Any] | str | None) -> str | None:
    """Return canonical JSON text for ``condition`` or ``None`` when absent."""

    if condition is None:
        return None
    if isinstance(condition, str):
        if not condition.strip():
            return None
        try:
            decoded = json.loads(condition)
        except json.JSONDecodeError as exc:
            raise RuleValidationError(f"Condition is not valid JSON: {exc.msg}") from exc
    else:
        decoded = condition

    if not isinstance(decoded, Mapping):
        raise RuleValidationError("Condition must be a JSON object")
    if not decoded:
        return None

    parsed = parse_condition(dict(decoded))
    if isinstance(parsed, UnparseableCondition):
        raise RuleValidationError(f"Invalid condition: {parsed.reason}")
    return json.dumps(dict(decoded), sort_keys=True)


def serialize_rule_actions(actions: Sequence[Mapping[str, Any]] | str | None) -> str:
    """Validate ``actions`` and return the canonical JSON array."""

    if actions is None:
        return "[]"
    if isinstance(actions, str):
        try:
            decoded = json.loads(actions)
        except json.JSONDecodeError as exc:
            raise RuleValidationError(f"Actions are not valid JSON: {exc.msg}") from exc
    else:
        decoded = actions

    if not isinstance(decoded, list):
        raise RuleValidationError("Actions must be a JSON array")

    normalized: list[dict[str, Any]] = []
    for index, entry in enumerate(decoded):
        if not isinstance(entry, Mapping) or not isinstance(entry.get("type"), str):
            raise RuleValidationError(f"Action #{index} must be an object with a string 'type'")
        try:
            action_type = ActionType(entry["type"].strip())
        except ValueError as exc:
            raise RuleValidationError(f"Action #{index} has unsupported type {entry['type']!r}") from exc
        value = entry.get("value")
        if value is not None:
            value = str(value).strip() or None
        if value is None and action_type not in _VALUELESS_ACTIONS:
            raise RuleValidationError(f"Action #{index} ({action_type.value}) requires a value")
        normalized.append({"type": action_type.value, "value": value})
    return serialize_actions(normalized)


__all__ = [
    "normalize_name",
    "normalize_trigger_type",
    "serialize_condition",
    "serialize_rule_actions",
    "validate_cron_expression",
]
