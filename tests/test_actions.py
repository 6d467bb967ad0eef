"""Tests for the action executor."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from board_automation.domain.entities import ActionType, RuleAction, UnknownAction, parse_actions

SCAN_TIME = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def board(seeder):
    todo = seeder.column("Todo")
    done = seeder.column("Done")
    card = seeder.card(todo, "Write docs")
    seeder.card(todo, "Review")
    return todo, done, card


def _context(card):
    return {"cardId": card.id, "boardId": card.board_id, "columnId": card.column_id}


def test_parse_actions_keeps_unknown_types_and_drops_garbage():
    raw = json.dumps(
        [
            {"type": "MOVE_CARD", "value": "col-2"},
            {"type": "SEND_EMAIL", "value": "x"},
            {"value": "no type"},
            "nonsense",
        ]
    )

    assert parse_actions(raw) == (
        RuleAction(type=ActionType.MOVE_CARD, value="col-2"),
        UnknownAction(type="SEND_EMAIL", value="x"),
    )
    assert parse_actions('{"type": "ARCHIVE_CARD"}') == ()
    assert parse_actions("not json") == ()


def test_archive_is_idempotent(seeder, executor, board):
    todo, _, card = board
    actions = [{"type": "ARCHIVE_CARD"}]

    first = executor.execute(actions, _context(card), now=SCAN_TIME)
    second = executor.execute(actions, _context(card))

    assert first.executed == ["0:ARCHIVE_CARD"]
    assert second.executed == ["0:ARCHIVE_CARD"]
    assert seeder.get_card(card.id).archived_at == SCAN_TIME
    assert seeder.titles(todo) == [("Review", 0)]


def test_move_action_relocates_to_end_of_column(seeder, executor, board):
    todo, done, card = board
    seeder.card(done, "Shipped")

    report = executor.execute([{"type": "MOVE_CARD", "value": done.id}], _context(card))

    assert report.executed == ["0:MOVE_CARD"]
    assert seeder.titles(done) == [("Shipped", 0), ("Write docs", 1)]
    assert seeder.titles(todo) == [("Review", 0)]


def test_unknown_action_is_skipped_without_aborting_siblings(seeder, executor, board):
    _, done, card = board
    actions = [
        {"type": "SEND_EMAIL", "value": "team@example.com"},
        {"type": "MOVE_CARD", "value": done.id},
    ]

    report = executor.execute(actions, _context(card))

    assert report.skipped == ["0:SEND_EMAIL"]
    assert report.executed == ["1:MOVE_CARD"]
    assert seeder.get_card(card.id).column_id == done.id


def test_failing_action_does_not_stop_later_actions(seeder, executor, board):
    todo, _, card = board
    tag = seeder.tag("urgent")
    actions = [
        {"type": "MOVE_CARD", "value": "missing-column"},
        {"type": "ADD_TAG", "value": tag.id},
    ]

    report = executor.execute(actions, _context(card))

    assert report.failed == ["0:MOVE_CARD"]
    assert report.executed == ["1:ADD_TAG"]
    assert seeder.get_card(card.id).tag_ids == (tag.id,)
    seeder.assert_dense(todo)


def test_add_tag_twice_links_once(seeder, executor, board):
    _, _, card = board
    tag = seeder.tag("tag-123")
    actions = [{"type": "ADD_TAG", "value": tag.id}]

    executor.execute(actions, _context(card))
    report = executor.execute(actions, _context(card))

    assert report.failed == []
    assert seeder.get_card(card.id).tag_ids == (tag.id,)


def test_add_tag_from_other_board_fails(seeder, executor, board):
    _, _, card = board
    foreign = seeder.tag("foreign", board_id="board-2")

    report = executor.execute([{"type": "ADD_TAG", "value": foreign.id}], _context(card))

    assert report.failed == ["0:ADD_TAG"]
    assert seeder.get_card(card.id).tag_ids == ()


def test_assign_user_replaces_assignees(seeder, executor, board):
    _, _, card = board

    executor.execute([{"type": "ASSIGN_USER", "value": "user-1"}], _context(card))
    executor.execute([{"type": "ASSIGN_USER", "value": "user-2"}], _context(card))

    assert seeder.get_card(card.id).assignee_ids == ("user-2",)


def test_actions_without_card_or_value_are_skipped(seeder, executor, board):
    todo, _, card = board

    no_card = executor.execute([{"type": "ARCHIVE_CARD"}], {"boardId": card.board_id})
    no_value = executor.execute([{"type": "MOVE_CARD"}], _context(card))

    assert no_card.skipped == ["0:ARCHIVE_CARD"]
    assert no_value.skipped == ["0:MOVE_CARD"]
    assert seeder.titles(todo) == [("Write docs", 0), ("Review", 1)]


def test_card_from_other_board_in_context_is_not_touched(seeder, executor, board):
    _, done, card = board

    report = executor.execute(
        [{"type": "MOVE_CARD", "value": done.id}],
        {"cardId": card.id, "boardId": "board-2"},
    )

    assert report.failed == ["0:MOVE_CARD"]
    assert seeder.get_card(card.id).column_id == card.column_id
