"""Use case for relocating a card through the ordering manager."""

from sqlalchemy.orm import Session

from board_automation.application.use_cases.automation.dispatcher import AutomationDispatcher
from board_automation.application.use_cases.automation.ordering import OrderingManager
from board_automation.domain.entities import Card, TriggerType
from board_automation.domain.exceptions import NotFoundError
from board_automation.infrastructure.repositories import CardRepository
from .events import notify_automation


def move_card(
    session: Session,
    ordering: OrderingManager,
    *,
    board_id: str,
    card_id: str,
    column_id: str,
    order: int | None = None,
    dispatcher: AutomationDispatcher | None = None,
) -> Card:
    """Move a card to ``column_id`` at ``order`` and fire ``CARD_MOVE`` rules.

    ``order`` is clamped to the valid range; ``None`` appends to the end of
    the target column.
    """

    current = CardRepository(session).get(card_id)
    if current is None or current.board_id != board_id:
        raise NotFoundError(f"Card {card_id} not found in board {board_id}")
    # The relocation runs in its own transaction.
    session.rollback()

    moved = ordering.relocate(card_id, column_id, order, board_id=board_id)
    notify_automation(
        dispatcher,
        TriggerType.CARD_MOVE,
        moved,
        {"fromColumnId": current.column_id, "toColumnId": moved.column_id},
    )
    return moved
