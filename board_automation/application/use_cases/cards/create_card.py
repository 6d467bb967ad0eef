"""Use case for adding a card at the end of a column."""

from datetime import datetime

from board_automation.application.use_cases.automation.dispatcher import AutomationDispatcher
from board_automation.application.use_cases.automation.ordering import OrderingManager
from board_automation.domain.entities import Card, TriggerType
from board_automation.utils import utc_now
from .events import notify_automation


def create_card(
    ordering: OrderingManager,
    *,
    board_id: str,
    column_id: str,
    title: str,
    due_date: datetime | None = None,
    dispatcher: AutomationDispatcher | None = None,
) -> Card:
    """Append a new card to ``column_id`` and fire ``CARD_CREATE`` rules."""

    title = (title or "").strip()
    if not title:
        raise ValueError("Card title must not be empty")

    now = utc_now()
    card = ordering.append(
        Card(
            id=None,
            board_id=board_id,
            column_id=column_id,
            title=title,
            order=0,
            created_at=now,
            updated_at=now,
            due_date=due_date,
            archived_at=None,
            column_entered_at=now,
        )
    )

    notify_automation(dispatcher, TriggerType.CARD_CREATE, card)
    return card
