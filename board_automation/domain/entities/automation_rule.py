"""Domain entity representing a board automation rule."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .automation_action import Action
from .automation_condition import Condition, EmptyCondition


class TriggerType(str, Enum):
    """Board events (and the time sentinel) that cause rules to be considered."""

    CARD_CREATE = "CARD_CREATE"
    CARD_MOVE = "CARD_MOVE"
    CARD_UPDATE = "CARD_UPDATE"
    CARD_ARCHIVE = "CARD_ARCHIVE"
    COMMENT_CREATE = "COMMENT_CREATE"
    TIME_BASED = "TIME_BASED"


@dataclass
class AutomationRule:
    """A trigger/condition pair and the actions it runs when matched."""

    id: str | None
    board_id: str
    name: str
    trigger_type: TriggerType | str
    condition: Condition = field(default_factory=EmptyCondition)
    actions: tuple[Action, ...] = ()
    cron_expression: str | None = None
    last_run_at: datetime | None = None
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None
    raw_condition: str | None = None
    raw_actions: str | None = None

    @property
    def is_time_based(self) -> bool:
        return self.trigger_type == TriggerType.TIME_BASED


__all__ = ["AutomationRule", "TriggerType"]
