"""Card mutation endpoints that feed the automation engine."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from board_automation.application.use_cases.automation import AutomationEngine
from board_automation.application.use_cases.cards import archive_card, create_card, move_card
from board_automation.domain.exceptions import BoardAutomationError, NotFoundError
from board_automation.interfaces.api.dependencies import get_automation_engine, get_db
from board_automation.interfaces.api.schemas import CardCreate, CardMove, CardRead

router = APIRouter(prefix="/boards/{board_id}/cards", tags=["cards"])


@router.post("", response_model=CardRead, status_code=status.HTTP_201_CREATED)
def register_card(
    board_id: str,
    card_in: CardCreate,
    engine: AutomationEngine = Depends(get_automation_engine),
) -> CardRead:
    """Append a card to a column of ``board_id``."""

    try:
        card = create_card(
            engine.ordering,
            board_id=board_id,
            column_id=card_in.column_id,
            title=card_in.title,
            due_date=card_in.due_date,
            dispatcher=engine.dispatcher,
        )
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return CardRead.model_validate(card)


@router.post("/{card_id}/move", response_model=CardRead)
def relocate_card(
    board_id: str,
    card_id: str,
    move_in: CardMove,
    db: Session = Depends(get_db),
    engine: AutomationEngine = Depends(get_automation_engine),
) -> CardRead:
    """Move a card to another column or position."""

    try:
        card = move_card(
            db,
            engine.ordering,
            board_id=board_id,
            card_id=card_id,
            column_id=move_in.column_id,
            order=move_in.order,
            dispatcher=engine.dispatcher,
        )
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except BoardAutomationError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return CardRead.model_validate(card)


@router.post("/{card_id}/archive", response_model=CardRead)
def archive_board_card(
    board_id: str,
    card_id: str,
    db: Session = Depends(get_db),
    engine: AutomationEngine = Depends(get_automation_engine),
) -> CardRead:
    try:
        card = archive_card(
            db,
            engine.ordering,
            board_id=board_id,
            card_id=card_id,
            dispatcher=engine.dispatcher,
        )
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except BoardAutomationError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return CardRead.model_validate(card)


__all__ = ["router"]
