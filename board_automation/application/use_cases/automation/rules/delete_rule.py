"""Use case for deleting automation rules."""

from sqlalchemy.orm import Session

from board_automation.infrastructure.repositories import AutomationRuleRepository


def delete_rule(session: Session, rule_id: str) -> None:
    """Permanently delete the specified automation rule."""

    AutomationRuleRepository(session).delete(rule_id)
