"""Tests for the automation rule management use cases."""

from __future__ import annotations

import json

import pytest

from board_automation.application.use_cases.automation.rules import (
    create_rule,
    delete_rule,
    get_rule,
    list_rules,
    update_rule,
)
from board_automation.domain.entities import (
    ActionType,
    RuleAction,
    TemporalCondition,
    TriggerType,
)
from board_automation.domain.exceptions import NotFoundError, RuleValidationError


@pytest.fixture()
def session(session_factory):
    with session_factory() as session:
        yield session


def test_create_time_based_rule_parses_payloads(session):
    rule = create_rule(
        session,
        board_id="board-1",
        name="  Archive stale cards ",
        trigger_type="time_based",
        condition={"timeField": "updatedAt", "days": 7},
        actions=[{"type": "ARCHIVE_CARD"}],
        cron_expression="0   3 * * *",
    )

    assert rule.id
    assert rule.name == "Archive stale cards"
    assert rule.trigger_type is TriggerType.TIME_BASED
    assert rule.cron_expression == "0 3 * * *"
    assert rule.condition == TemporalCondition(time_field="updatedAt", days=7.0)
    assert rule.actions == (RuleAction(type=ActionType.ARCHIVE_CARD, value=None),)
    assert json.loads(rule.raw_actions) == [{"type": "ARCHIVE_CARD", "value": None}]
    assert rule.created_at is not None


@pytest.mark.parametrize(
    ("trigger_type", "cron_expression"),
    [
        ("TIME_BASED", None),
        ("TIME_BASED", "   "),
        ("TIME_BASED", "* * * *"),
        ("TIME_BASED", "* * * * * *"),
        ("CARD_MOVE", "* * * * *"),
    ],
)
def test_trigger_and_cron_must_agree(session, trigger_type, cron_expression):
    with pytest.raises(RuleValidationError):
        create_rule(
            session,
            board_id="board-1",
            name="invalid",
            trigger_type=trigger_type,
            cron_expression=cron_expression,
        )


@pytest.mark.parametrize(
    "fields",
    [
        {"trigger_type": "CARD_TELEPORT"},
        {"condition": "[1, 2]"},
        {"condition": "{broken"},
        {"condition": {"timeField": "updatedAt", "days": -3}},
        {"actions": {"type": "ARCHIVE_CARD"}},
        {"actions": [{"value": "missing type"}]},
        {"actions": [{"type": "SEND_EMAIL", "value": "x"}]},
        {"actions": [{"type": "MOVE_CARD"}]},
        {"name": "   "},
    ],
)
def test_invalid_payloads_are_rejected(session, fields):
    payload = {"board_id": "board-1", "name": "rule", "trigger_type": "CARD_MOVE", **fields}

    with pytest.raises(RuleValidationError):
        create_rule(session, **payload)


def test_list_get_update_and_delete(session):
    first = create_rule(session, board_id="board-1", name="first", trigger_type="CARD_CREATE")
    create_rule(session, board_id="board-2", name="other board", trigger_type="CARD_CREATE")

    assert [rule.id for rule in list_rules(session, "board-1")] == [first.id]
    assert get_rule(session, first.id).name == "first"

    updated = update_rule(
        session,
        rule_id=first.id,
        trigger_type="TIME_BASED",
        cron_expression="*/5 * * * *",
        is_active=False,
    )
    assert updated.trigger_type is TriggerType.TIME_BASED
    assert updated.cron_expression == "*/5 * * * *"
    assert updated.is_active is False
    assert updated.name == "first"

    delete_rule(session, first.id)
    with pytest.raises(NotFoundError):
        get_rule(session, first.id)
    with pytest.raises(NotFoundError):
        delete_rule(session, first.id)


def test_update_validates_merged_rule(session):
    rule = create_rule(
        session,
        board_id="board-1",
        name="nightly",
        trigger_type="TIME_BASED",
        cron_expression="0 0 * * *",
    )

    with pytest.raises(RuleValidationError):
        update_rule(session, rule_id=rule.id, trigger_type="CARD_MOVE")

    moved = update_rule(session, rule_id=rule.id, trigger_type="CARD_MOVE", cron_expression=None)
    assert moved.cron_expression is None


def test_update_can_clear_condition(session):
    rule = create_rule(
        session,
        board_id="board-1",
        name="conditional",
        trigger_type="CARD_MOVE",
        condition={"columnId": "col-1"},
    )

    kept = update_rule(session, rule_id=rule.id, name="renamed")
    cleared = update_rule(session, rule_id=rule.id, condition=None)

    assert json.loads(kept.raw_condition) == {"columnId": "col-1"}
    assert cleared.raw_condition is None


def test_update_missing_rule_raises(session):
    with pytest.raises(NotFoundError):
        update_rule(session, rule_id="missing", name="x")
