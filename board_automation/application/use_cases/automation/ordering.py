"""Ordering invariant manager for board columns.

Within a column, active (non archived) cards carry ``order`` values that
form the dense sequence ``0..n-1``. Every write that touches ``order`` goes
through :class:`OrderingManager`, which shifts sibling cards inside a single
transaction so the sequence never shows a gap or a duplicate.

Operations touching the same column are serialized twice: by an
in-process lock per column (acquired in sorted order) and by row locks on
the column's cards for databases that support ``SELECT ... FOR UPDATE``.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import ExitStack, contextmanager
from dataclasses import replace
from datetime import datetime

from sqlalchemy.orm import Session, sessionmaker

from board_automation.domain.entities import Card
from board_automation.domain.exceptions import BoardAutomationError, NotFoundError
from board_automation.infrastructure.repositories import CardRepository, ColumnRepository
from board_automation.utils import to_storage, utc_now

logger = logging.getLogger(__name__)

_MAX_ATTEMPTS = 3


class _ColumnMoved(Exception):
    """The card changed column between the lock-free peek and the transaction."""


class ColumnLocks:
    """Registry of per-column locks shared by every ordering operation."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    @contextmanager
    def hold(self, *column_ids: str) -> Iterator[None]:
        ordered = sorted({column_id for column_id in column_ids if column_id})
        with self._guard:
            locks = [self._locks.setdefault(column_id, threading.Lock()) for column_id in ordered]
        with ExitStack() as stack:
            for lock in locks:
                stack.enter_context(lock)
            yield


class OrderingManager:
    """The only sanctioned way to add a card or change its column, order or archival."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        *,
        locks: ColumnLocks | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._locks = locks or ColumnLocks()

    def append(self, card: Card) -> Card:
        """Insert ``card`` at the end of its column and return the stored card.

        ``card.order`` is ignored. Raises :class:`NotFoundError` when the
        column is missing or belongs to another board.
        """

        with self._locks.hold(card.column_id):
            with self._session_factory() as session, session.begin():
                column = ColumnRepository(session).get(card.column_id)
                if column is None or column.board_id != card.board_id:
                    raise NotFoundError(f"Column {card.column_id} not found in board {card.board_id}")
                cards = CardRepository(session)
                cards.lock_column(card.column_id)
                current_max = cards.max_order(card.column_id)
                created = cards.create(
                    replace(card, order=0 if current_max is None else current_max + 1)
                )

        logger.info("Card %s added to column %s[%s]", created.id, created.column_id, created.order)
        return created

    def relocate(
        self,
        card_id: str,
        target_column_id: str,
        target_order: int | None = None,
        *,
        board_id: str | None = None,
        when: datetime | None = None,
    ) -> Card:
        """Move ``card_id`` to ``target_column_id`` keeping both columns dense.

        Without ``target_order`` the card is appended to the end of the target
        column. Raises :class:`NotFoundError` when the card or the column is
        missing, the card is archived, or they belong to different boards.
        A move to another column stamps ``column_entered_at`` with ``when``.
        """

        for _ in range(_MAX_ATTEMPTS):
            source_column_id = self._peek_column(card_id)
            with self._locks.hold(source_column_id, target_column_id):
                try:
                    return self._relocate_locked(
                        card_id,
                        source_column_id,
                        target_column_id,
                        target_order,
                        board_id,
                        when or utc_now(),
                    )
                except _ColumnMoved:
                    logger.debug("Card %s moved concurrently; retrying relocation", card_id)
        raise BoardAutomationError(f"Card {card_id} kept moving while being relocated")

    def archive(self, card_id: str, when: datetime | None = None) -> Card:
        """Archive ``card_id`` and close the gap it leaves in its column.

        Archiving an already archived card returns it unchanged.
        """

        for _ in range(_MAX_ATTEMPTS):
            column_id = self._peek_column(card_id)
            with self._locks.hold(column_id):
                try:
                    return self._archive_locked(card_id, column_id, when or utc_now())
                except _ColumnMoved:
                    logger.debug("Card %s moved concurrently; retrying archive", card_id)
        raise BoardAutomationError(f"Card {card_id} kept moving while being archived")

    def normalize_column(self, column_id: str) -> int:
        """Rewrite the active orders of ``column_id`` to ``0..n-1``.

        Relative order is preserved (ties broken by id). Returns the number of
        cards whose order changed.
        """

        with self._locks.hold(column_id):
            with self._session_factory() as session, session.begin():
                cards = CardRepository(session)
                cards.lock_column(column_id)
                changed = 0
                for position, card in enumerate(cards.list_column(column_id)):
                    if card.order != position:
                        cards.update_fields(card.id, {"order": position})
                        changed += 1
        if changed:
            logger.warning("Normalized %s card orders in column %s", changed, column_id)
        return changed

    def _peek_column(self, card_id: str) -> str:
        with self._session_factory() as session:
            model = CardRepository(session).get_model(card_id)
            if model is None:
                raise NotFoundError(f"Card {card_id} not found")
            return model.column_id

    def _relocate_locked(
        self,
        card_id: str,
        source_column_id: str,
        target_column_id: str,
        target_order: int | None,
        board_id: str | None,
        when: datetime,
    ) -> Card:
        with self._session_factory() as session, session.begin():
            cards = CardRepository(session)
            model = cards.get_model(card_id, for_update=True)
            if model is None:
                raise NotFoundError(f"Card {card_id} not found")
            if model.column_id != source_column_id:
                raise _ColumnMoved()
            if model.archived_at is not None:
                raise NotFoundError(f"Card {card_id} is archived")
            if board_id is not None and model.board_id != board_id:
                raise NotFoundError(f"Card {card_id} not found in board {board_id}")

            column = ColumnRepository(session).get(target_column_id)
            if column is None or column.board_id != model.board_id:
                raise NotFoundError(f"Column {target_column_id} not found in board {model.board_id}")

            for column_id in sorted({source_column_id, target_column_id}):
                cards.lock_column(column_id)

            source_order = model.order
            if source_column_id == target_column_id:
                last = cards.count_active(target_column_id) - 1
                new_order = last if target_order is None else _clamp(target_order, last)
                if new_order == source_order:
                    return cards.get(card_id)
                if new_order > source_order:
                    cards.shift_orders(
                        target_column_id, -1, gt=source_order, lte=new_order, exclude_card_id=card_id
                    )
                else:
                    cards.shift_orders(
                        target_column_id, 1, gte=new_order, lt=source_order, exclude_card_id=card_id
                    )
            else:
                if target_order is None:
                    current_max = cards.max_order(target_column_id)
                    new_order = 0 if current_max is None else current_max + 1
                else:
                    new_order = _clamp(target_order, cards.count_active(target_column_id))
                    cards.shift_orders(target_column_id, 1, gte=new_order, exclude_card_id=card_id)
                cards.shift_orders(source_column_id, -1, gt=source_order, exclude_card_id=card_id)
                model.column_entered_at = to_storage(when)

            model.column_id = target_column_id
            model.order = new_order
            session.flush()
            relocated = cards.get(card_id)

        logger.info(
            "Card %s relocated from column %s[%s] to column %s[%s]",
            card_id,
            source_column_id,
            source_order,
            target_column_id,
            new_order,
        )
        return relocated

    def _archive_locked(self, card_id: str, column_id: str, when: datetime) -> Card:
        with self._session_factory() as session, session.begin():
            cards = CardRepository(session)
            model = cards.get_model(card_id, for_update=True)
            if model is None:
                raise NotFoundError(f"Card {card_id} not found")
            if model.column_id != column_id:
                raise _ColumnMoved()
            if model.archived_at is not None:
                return cards.get(card_id)

            cards.lock_column(column_id)
            cards.shift_orders(column_id, -1, gt=model.order, exclude_card_id=card_id)
            archived = cards.update_fields(card_id, {"archived_at": when})

        logger.info("Card %s archived from column %s", card_id, column_id)
        return archived


def _clamp(value: int, upper: int) -> int:
    return max(0, min(int(value), max(upper, 0)))


__all__ = ["ColumnLocks", "OrderingManager"]
