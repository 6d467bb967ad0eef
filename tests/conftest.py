"""Shared fixtures: an in-memory database and helpers to seed boards."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

import pytest
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from board_automation.application.use_cases.automation import (
    ActionExecutor,
    AutomationDispatcher,
    ConditionEvaluator,
    OrderingManager,
)
from board_automation.application.use_cases.automation.rules import create_rule
from board_automation.domain.entities import AutomationRule, Card, Column, Tag
from board_automation.infrastructure.database import (
    build_engine,
    build_session_factory,
    initialize_database,
)
from board_automation.infrastructure.repositories import (
    CardRepository,
    ColumnRepository,
    TagRepository,
)

BOARD_ID = "board-1"
OTHER_BOARD_ID = "board-2"


@dataclass
class BoardSeeder:
    """Create columns, cards, tags and rules directly in the test database."""

    session_factory: sessionmaker[Session]

    def column(
        self,
        title: str,
        *,
        board_id: str = BOARD_ID,
        auto_archive: bool = False,
        archive_after_minutes: int | None = None,
    ) -> Column:
        with self.session_factory() as session, session.begin():
            return ColumnRepository(session).create(
                Column(
                    id="",
                    board_id=board_id,
                    title=title,
                    auto_archive=auto_archive,
                    archive_after_minutes=archive_after_minutes,
                )
            )

    def card(
        self,
        column: Column,
        title: str,
        *,
        order: int | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
        due_date: datetime | None = None,
        column_entered_at: datetime | None = None,
    ) -> Card:
        with self.session_factory() as session, session.begin():
            cards = CardRepository(session)
            if order is None:
                current_max = cards.max_order(column.id)
                order = 0 if current_max is None else current_max + 1
            return cards.create(
                Card(
                    id="",
                    board_id=column.board_id,
                    column_id=column.id,
                    title=title,
                    order=order,
                    created_at=created_at,
                    updated_at=updated_at,
                    due_date=due_date,
                    column_entered_at=column_entered_at,
                )
            )

    def tag(self, name: str, *, board_id: str = BOARD_ID) -> Tag:
        with self.session_factory() as session, session.begin():
            return TagRepository(session).create(Tag(id="", board_id=board_id, name=name))

    def rule(self, *, board_id: str = BOARD_ID, name: str = "rule", **fields: Any) -> AutomationRule:
        with self.session_factory() as session:
            return create_rule(session, board_id=board_id, name=name, **fields)

    def get_card(self, card_id: str) -> Card:
        with self.session_factory() as session:
            card = CardRepository(session).get(card_id)
        assert card is not None
        return card

    def titles(self, column: Column) -> list[tuple[str, int]]:
        """Return ``(title, order)`` of the active cards of ``column`` in board order."""

        with self.session_factory() as session:
            return [(card.title, card.order) for card in CardRepository(session).list_column(column.id)]

    def assert_dense(self, *columns: Column) -> None:
        for column in columns:
            orders = sorted(order for _, order in self.titles(column))
            assert orders == list(range(len(orders))), f"column {column.title} has orders {orders}"


@pytest.fixture()
def db_engine() -> Engine:
    engine = build_engine("sqlite://")
    initialize_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(db_engine: Engine) -> sessionmaker[Session]:
    return build_session_factory(db_engine)


@pytest.fixture()
def seeder(session_factory) -> BoardSeeder:
    return BoardSeeder(session_factory)


@pytest.fixture()
def ordering(session_factory) -> OrderingManager:
    return OrderingManager(session_factory)


@pytest.fixture()
def evaluator() -> ConditionEvaluator:
    return ConditionEvaluator()


@pytest.fixture()
def executor(session_factory, ordering) -> ActionExecutor:
    return ActionExecutor(session_factory, ordering)


@pytest.fixture()
def dispatcher(session_factory, evaluator, executor) -> AutomationDispatcher:
    dispatcher = AutomationDispatcher(session_factory, evaluator, executor, max_workers=1)
    yield dispatcher
    dispatcher.shutdown()
