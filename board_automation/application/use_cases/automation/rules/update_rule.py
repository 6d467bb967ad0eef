"""Use case for updating automation rules."""

from collections.abc import Mapping, Sequence
from dataclasses import replace
from typing import Any

from sqlalchemy.orm import Session

from board_automation.domain.entities import AutomationRule, TriggerType
from board_automation.domain.exceptions import NotFoundError
from board_automation.infrastructure.repositories import AutomationRuleRepository
from board_automation.utils import utc_now
from .validators import (
    normalize_name,
    normalize_trigger_type,
    serialize_condition,
    serialize_rule_actions,
    validate_cron_expression,
)

UNSET: Any = object()


def update_rule(
    session: Session,
    *,
    rule_id: str,
    name: str | None = None,
    trigger_type: TriggerType | str | None = None,
    condition: Mapping[str, Any] | str | None = UNSET,
    actions: Sequence[Mapping[str, Any]] | str | None = None,
    cron_expression: str | None = UNSET,
    is_active: bool | None = None,
) -> AutomationRule:
    """Update an automation rule.

    ``condition`` and ``cron_expression`` accept an explicit ``None`` to clear
    them; leave them out to keep the stored value. The trigger/cron pairing
    is validated on the merged result.
    """

    repository = AutomationRuleRepository(session)
    current = repository.get(rule_id)
    if current is None:
        raise NotFoundError(f"Automation rule with id {rule_id} not found")

    trigger = normalize_trigger_type(trigger_type if trigger_type is not None else current.trigger_type)
    cron = current.cron_expression if cron_expression is UNSET else cron_expression

    updated = replace(
        current,
        name=normalize_name(name) if name is not None else current.name,
        trigger_type=trigger,
        cron_expression=validate_cron_expression(trigger, cron),
        raw_condition=current.raw_condition if condition is UNSET else serialize_condition(condition),
        raw_actions=current.raw_actions if actions is None else serialize_rule_actions(actions),
        is_active=is_active if is_active is not None else current.is_active,
        updated_at=utc_now(),
    )
    return repository.update(updated)
