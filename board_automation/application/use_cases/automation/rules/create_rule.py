"""Use case for creating automation rules."""

from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy.orm import Session

from board_automation.domain.entities import AutomationRule, TriggerType
from board_automation.infrastructure.repositories import AutomationRuleRepository
from board_automation.utils import utc_now
from .validators import (
    normalize_name,
    normalize_trigger_type,
    serialize_condition,
    serialize_rule_actions,
    validate_cron_expression,
)


def create_rule(
    session: Session,
    *,
    board_id: str,
    name: str,
    trigger_type: TriggerType | str,
    condition: Mapping[str, Any] | str | None = None,
    actions: Sequence[Mapping[str, Any]] | str | None = None,
    cron_expression: str | None = None,
    is_active: bool = True,
) -> AutomationRule:
    """Create a new automation rule for ``board_id``."""

    trigger = normalize_trigger_type(trigger_type)
    entity = AutomationRule(
        id=None,
        board_id=board_id,
        name=normalize_name(name),
        trigger_type=trigger,
        cron_expression=validate_cron_expression(trigger, cron_expression),
        is_active=is_active,
        created_at=utc_now(),
        raw_condition=serialize_condition(condition),
        raw_actions=serialize_rule_actions(actions),
    )
    return AutomationRuleRepository(session).create(entity)
