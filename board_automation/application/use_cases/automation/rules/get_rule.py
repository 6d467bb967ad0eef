"""Use case for retrieving a single automation rule."""

from sqlalchemy.orm import Session

from board_automation.domain.entities import AutomationRule
from board_automation.domain.exceptions import NotFoundError
from board_automation.infrastructure.repositories import AutomationRuleRepository


def get_rule(session: Session, rule_id: str) -> AutomationRule:
    """Return the rule identified by ``rule_id`` or raise an error."""

    rule = AutomationRuleRepository(session).get(rule_id)
    if rule is None:
        raise NotFoundError(f"Automation rule with id {rule_id} not found")
    return rule
