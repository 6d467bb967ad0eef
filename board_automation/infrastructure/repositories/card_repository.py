"""Persistence layer for cards.

Unlike the rule repository, this repository never commits: the ordering
manager and the card use cases own the transaction boundary so that every
order shift of a relocation is applied together.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import and_, delete, func, insert, select
from sqlalchemy.orm import Session

from board_automation.domain.entities import Card
from board_automation.domain.exceptions import NotFoundError
from board_automation.infrastructure.models import (
    CardModel,
    card_assignee_table,
    card_tag_table,
)
from board_automation.utils import ensure_utc, to_storage

# Context keys (as written in rule conditions) mapped to card columns.
CARD_FIELD_COLUMNS = {
    "id": CardModel.id,
    "cardId": CardModel.id,
    "boardId": CardModel.board_id,
    "columnId": CardModel.column_id,
    "title": CardModel.title,
    "order": CardModel.order,
    "createdAt": CardModel.created_at,
    "updatedAt": CardModel.updated_at,
    "dueDate": CardModel.due_date,
    "archivedAt": CardModel.archived_at,
    "columnEnteredAt": CardModel.column_entered_at,
}
CARD_TIME_FIELDS = frozenset({"createdAt", "updatedAt", "dueDate", "archivedAt", "columnEnteredAt"})

_UPDATABLE_FIELDS = frozenset(
    {"column_id", "order", "title", "updated_at", "due_date", "archived_at", "column_entered_at"}
)
_DATETIME_FIELDS = frozenset({"updated_at", "due_date", "archived_at", "column_entered_at"})


@dataclass(frozen=True)
class CardQuery:
    """Board scoped card filter used by the time-based scheduler."""

    board_id: str
    column_id: str | None = None
    equals: tuple[tuple[str, Any], ...] = ()
    older_than: tuple[tuple[str, datetime], ...] = ()
    include_archived: bool = False
    limit: int | None = None


class CardRepository:
    """Read and mutate cards inside the caller's transaction."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, card_id: str) -> Card | None:
        model = self.session.get(CardModel, card_id)
        return self._to_entities([model])[0] if model else None

    def get_model(self, card_id: str, *, for_update: bool = False) -> CardModel | None:
        query = self.session.query(CardModel).filter(CardModel.id == card_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def list_column(self, column_id: str) -> Sequence[Card]:
        """Return the active cards of ``column_id`` in board order."""

        models = (
            self.session.query(CardModel)
            .filter(CardModel.column_id == column_id)
            .filter(CardModel.archived_at.is_(None))
            .order_by(CardModel.order, CardModel.id)
            .all()
        )
        return self._to_entities(models)

    def find_many(self, query: CardQuery) -> Sequence[Card]:
        statement = self.session.query(CardModel).filter(CardModel.board_id == query.board_id)
        if query.column_id is not None:
            statement = statement.filter(CardModel.column_id == query.column_id)
        if not query.include_archived:
            statement = statement.filter(CardModel.archived_at.is_(None))
        for field, value in query.equals:
            column = CARD_FIELD_COLUMNS.get(field)
            if column is None:
                raise ValueError(f"Unsupported card field {field!r}")
            statement = statement.filter(column == value)
        for field, cutoff in query.older_than:
            if field not in CARD_TIME_FIELDS:
                raise ValueError(f"Unsupported card time field {field!r}")
            statement = statement.filter(CARD_FIELD_COLUMNS[field] <= to_storage(cutoff))
        statement = statement.order_by(CardModel.column_id, CardModel.order, CardModel.id)
        if query.limit is not None:
            statement = statement.limit(query.limit)
        return self._to_entities(statement.all())

    def create(self, card: Card) -> Card:
        model = CardModel(
            board_id=card.board_id,
            column_id=card.column_id,
            title=card.title,
            order=card.order,
            due_date=to_storage(card.due_date),
        )
        if card.id:
            model.id = card.id
        if card.created_at is not None:
            model.created_at = to_storage(card.created_at)
        if card.updated_at is not None:
            model.updated_at = to_storage(card.updated_at)
        entered_at = card.column_entered_at or card.created_at
        if entered_at is not None:
            model.column_entered_at = to_storage(entered_at)
        self.session.add(model)
        self.session.flush()
        return self._to_entities([model])[0]

    def update_fields(self, card_id: str, patch: Mapping[str, Any]) -> Card:
        unknown = set(patch) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Card fields cannot be updated: {sorted(unknown)}")
        model = self.session.get(CardModel, card_id)
        if model is None:
            raise NotFoundError(f"Card {card_id} not found")
        for key, value in patch.items():
            setattr(model, key, to_storage(value) if key in _DATETIME_FIELDS else value)
        self.session.flush()
        return self._to_entities([model])[0]

    def lock_column(self, column_id: str) -> list[str]:
        """Row-lock the cards of ``column_id`` until the transaction ends."""

        rows = (
            self.session.query(CardModel.id)
            .filter(CardModel.column_id == column_id)
            .order_by(CardModel.id)
            .with_for_update()
            .all()
        )
        return [row.id for row in rows]

    def max_order(self, column_id: str, *, exclude_card_id: str | None = None) -> int | None:
        statement = (
            select(func.max(CardModel.order))
            .where(CardModel.column_id == column_id)
            .where(CardModel.archived_at.is_(None))
        )
        if exclude_card_id is not None:
            statement = statement.where(CardModel.id != exclude_card_id)
        return self.session.execute(statement).scalar()

    def count_active(self, column_id: str, *, exclude_card_id: str | None = None) -> int:
        statement = (
            select(func.count(CardModel.id))
            .where(CardModel.column_id == column_id)
            .where(CardModel.archived_at.is_(None))
        )
        if exclude_card_id is not None:
            statement = statement.where(CardModel.id != exclude_card_id)
        return int(self.session.execute(statement).scalar() or 0)

    def shift_orders(
        self,
        column_id: str,
        delta: int,
        *,
        gt: int | None = None,
        gte: int | None = None,
        lt: int | None = None,
        lte: int | None = None,
        exclude_card_id: str | None = None,
    ) -> int:
        """Add ``delta`` to the order of active cards within the given bounds."""

        conditions = [CardModel.column_id == column_id, CardModel.archived_at.is_(None)]
        if gt is not None:
            conditions.append(CardModel.order > gt)
        if gte is not None:
            conditions.append(CardModel.order >= gte)
        if lt is not None:
            conditions.append(CardModel.order < lt)
        if lte is not None:
            conditions.append(CardModel.order <= lte)
        if exclude_card_id is not None:
            conditions.append(CardModel.id != exclude_card_id)
        result = (
            self.session.query(CardModel)
            .filter(and_(*conditions))
            .update({CardModel.order: CardModel.order + delta}, synchronize_session=False)
        )
        return int(result or 0)

    def add_tag(self, card_id: str, tag_id: str) -> bool:
        """Associate ``tag_id`` with ``card_id``; return ``False`` when already linked."""

        existing = self.session.execute(
            select(card_tag_table.c.card_id)
            .where(card_tag_table.c.card_id == card_id)
            .where(card_tag_table.c.tag_id == tag_id)
        ).first()
        if existing is not None:
            return False
        self.session.execute(insert(card_tag_table).values(card_id=card_id, tag_id=tag_id))
        return True

    def replace_assignees(self, card_id: str, user_ids: Iterable[str]) -> None:
        unique_ids = list(dict.fromkeys(user_id for user_id in user_ids if user_id))
        self.session.execute(delete(card_assignee_table).where(card_assignee_table.c.card_id == card_id))
        if unique_ids:
            self.session.execute(
                insert(card_assignee_table),
                [{"card_id": card_id, "user_id": user_id} for user_id in unique_ids],
            )

    def _assignees_for(self, card_ids: Sequence[str]) -> dict[str, list[str]]:
        assignees: dict[str, list[str]] = defaultdict(list)
        if not card_ids:
            return assignees
        rows = self.session.execute(
            select(card_assignee_table.c.card_id, card_assignee_table.c.user_id)
            .where(card_assignee_table.c.card_id.in_(card_ids))
            .order_by(card_assignee_table.c.user_id)
        ).all()
        for card_id, user_id in rows:
            assignees[card_id].append(user_id)
        return assignees

    def _to_entities(self, models: Sequence[CardModel]) -> list[Card]:
        assignees = self._assignees_for([model.id for model in models])
        return [
            Card(
                id=model.id,
                board_id=model.board_id,
                column_id=model.column_id,
                title=model.title,
                order=model.order,
                created_at=ensure_utc(model.created_at),
                updated_at=ensure_utc(model.updated_at),
                due_date=ensure_utc(model.due_date),
                archived_at=ensure_utc(model.archived_at),
                column_entered_at=ensure_utc(model.column_entered_at),
                assignee_ids=tuple(assignees.get(model.id, ())),
                tag_ids=tuple(tag.id for tag in model.tags),
            )
            for model in models
        ]


__all__ = ["CARD_FIELD_COLUMNS", "CARD_TIME_FIELDS", "CardQuery", "CardRepository"]
