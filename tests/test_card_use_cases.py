"""Tests for card mutations and the automation events they emit."""

from __future__ import annotations

import pytest

from board_automation.application.use_cases.cards import archive_card, create_card, move_card
from board_automation.domain.entities import TriggerType
from board_automation.domain.exceptions import NotFoundError


class RecordingDispatcher:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.events: list[tuple[str, TriggerType, dict]] = []

    def submit_event(self, board_id, trigger_type, context):
        if self.fail:
            raise RuntimeError("dispatcher is shut down")
        self.events.append((board_id, trigger_type, dict(context)))


@pytest.fixture()
def session(session_factory):
    with session_factory() as session:
        yield session


def test_create_card_appends_and_emits_event(seeder, ordering):
    todo = seeder.column("Todo")
    seeder.card(todo, "existing")
    recorder = RecordingDispatcher()

    card = create_card(ordering, board_id="board-1", column_id=todo.id, title="New", dispatcher=recorder)

    assert card.order == 1
    assert recorder.events == [("board-1", TriggerType.CARD_CREATE, card.to_context())]


def test_create_card_rejects_foreign_column(seeder, ordering):
    foreign = seeder.column("Todo", board_id="board-2")

    with pytest.raises(NotFoundError):
        create_card(ordering, board_id="board-1", column_id=foreign.id, title="New")


def test_created_card_enters_its_column_at_creation(seeder, ordering):
    todo = seeder.column("Todo")

    card = create_card(ordering, board_id="board-1", column_id=todo.id, title="New")

    assert card.column_entered_at is not None
    assert card.column_entered_at == card.created_at


def test_move_card_reports_source_and_target(seeder, session, ordering):
    todo = seeder.column("Todo")
    done = seeder.column("Done")
    card = seeder.card(todo, "Card")
    recorder = RecordingDispatcher()

    moved = move_card(
        session, ordering, board_id="board-1", card_id=card.id, column_id=done.id, dispatcher=recorder
    )

    (_, trigger, context), = recorder.events
    assert trigger is TriggerType.CARD_MOVE
    assert context["fromColumnId"] == todo.id
    assert context["toColumnId"] == done.id
    assert context["columnId"] == done.id
    assert moved.column_id == done.id


def test_archive_card_emits_only_once(seeder, session, ordering):
    todo = seeder.column("Todo")
    card = seeder.card(todo, "Card")
    recorder = RecordingDispatcher()

    archive_card(session, ordering, board_id="board-1", card_id=card.id, dispatcher=recorder)
    again = archive_card(session, ordering, board_id="board-1", card_id=card.id, dispatcher=recorder)

    assert again.is_archived
    assert [event[1] for event in recorder.events] == [TriggerType.CARD_ARCHIVE]


def test_dispatch_failures_do_not_fail_the_mutation(seeder, session, ordering):
    todo = seeder.column("Todo")
    done = seeder.column("Done")
    card = seeder.card(todo, "Card")

    moved = move_card(
        session,
        ordering,
        board_id="board-1",
        card_id=card.id,
        column_id=done.id,
        dispatcher=RecordingDispatcher(fail=True),
    )

    assert moved.column_id == done.id


def test_created_card_runs_matching_rules(seeder, ordering, dispatcher):
    todo = seeder.column("Todo")
    seeder.rule(
        trigger_type="CARD_CREATE",
        condition={"columnId": todo.id},
        actions=[{"type": "ASSIGN_USER", "value": "triage"}],
    )

    card = create_card(ordering, board_id="board-1", column_id=todo.id, title="Bug", dispatcher=dispatcher)
    dispatcher.shutdown(wait=True)

    assert seeder.get_card(card.id).assignee_ids == ("triage",)
