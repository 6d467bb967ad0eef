"""Use case for listing the automation rules of a board."""

from collections.abc import Sequence

from sqlalchemy.orm import Session

from board_automation.domain.entities import AutomationRule
from board_automation.infrastructure.repositories import AutomationRuleRepository


def list_rules(session: Session, board_id: str) -> Sequence[AutomationRule]:
    return AutomationRuleRepository(session).list_by_board(board_id)
