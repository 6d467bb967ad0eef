"""Use case for archiving a card."""

from sqlalchemy.orm import Session

from board_automation.application.use_cases.automation.dispatcher import AutomationDispatcher
from board_automation.application.use_cases.automation.ordering import OrderingManager
from board_automation.domain.entities import Card, TriggerType
from board_automation.domain.exceptions import NotFoundError
from board_automation.infrastructure.repositories import CardRepository
from .events import notify_automation


def archive_card(
    session: Session,
    ordering: OrderingManager,
    *,
    board_id: str,
    card_id: str,
    dispatcher: AutomationDispatcher | None = None,
) -> Card:
    """Archive a card; ``CARD_ARCHIVE`` rules only fire on the first archival."""

    current = CardRepository(session).get(card_id)
    if current is None or current.board_id != board_id:
        raise NotFoundError(f"Card {card_id} not found in board {board_id}")
    session.rollback()
    if current.is_archived:
        return current

    archived = ordering.archive(card_id)
    notify_automation(dispatcher, TriggerType.CARD_ARCHIVE, archived)
    return archived
