"""Typed representation of automation rule actions."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

logger = logging.getLogger(__name__)


class ActionType(str, Enum):
    """Closed set of effects a rule may apply to a card."""

    ARCHIVE_CARD = "ARCHIVE_CARD"
    MOVE_CARD = "MOVE_CARD"
    ASSIGN_USER = "ASSIGN_USER"
    ADD_TAG = "ADD_TAG"


@dataclass(frozen=True)
class RuleAction:
    """A recognised action descriptor."""

    type: ActionType
    value: str | None = None


@dataclass(frozen=True)
class UnknownAction:
    """An action persisted with a type this engine does not know."""

    type: str
    value: Any = None


Action = Union[RuleAction, UnknownAction]


def parse_actions(raw: str | list[Any] | None) -> tuple[Action, ...]:
    """Parse a persisted action list.

    Anything that is not a JSON array yields no actions. Individual entries
    that are not objects with a string ``type`` are dropped; unrecognised
    types are preserved as :class:`UnknownAction`.
    """

    if raw is None:
        return ()
    if isinstance(raw, str):
        if not raw.strip():
            return ()
        try:
            decoded = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Discarding automation actions with invalid JSON: %r", raw)
            return ()
    else:
        decoded = raw

    if not isinstance(decoded, list):
        logger.warning("Discarding automation actions that are not a list: %r", raw)
        return ()

    actions: list[Action] = []
    for entry in decoded:
        if not isinstance(entry, Mapping) or not isinstance(entry.get("type"), str):
            logger.warning("Ignoring malformed automation action entry: %r", entry)
            continue
        actions.append(_parse_entry(entry))
    return tuple(actions)


def _parse_entry(entry: Mapping[str, Any]) -> Action:
    type_name = entry["type"].strip()
    value = entry.get("value")
    try:
        action_type = ActionType(type_name)
    except ValueError:
        return UnknownAction(type=type_name, value=value)
    if value is not None and not isinstance(value, str):
        value = str(value)
    return RuleAction(type=action_type, value=value or None)


def serialize_actions(actions: list[Mapping[str, Any]]) -> str:
    """Return the canonical JSON text stored for ``actions``."""

    return json.dumps(
        [{"type": entry["type"], "value": entry.get("value")} for entry in actions]
    )


__all__ = [
    "Action",
    "ActionType",
    "RuleAction",
    "UnknownAction",
    "parse_actions",
    "serialize_actions",
]
