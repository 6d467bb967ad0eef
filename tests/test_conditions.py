"""Tests for parsing and evaluating rule conditions."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from board_automation.application.use_cases.automation import ConditionEvaluator
from board_automation.domain.entities import (
    AllOf,
    EmptyCondition,
    FieldCondition,
    TemporalCondition,
    UnparseableCondition,
    parse_condition,
)

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def evaluator() -> ConditionEvaluator:
    return ConditionEvaluator(clock=lambda: NOW)


@pytest.mark.parametrize("raw", [None, "", "   ", "{}", {}, "null"])
def test_empty_condition_matches_everything(evaluator, raw):
    assert parse_condition(raw) == EmptyCondition()
    assert evaluator.matches(raw, {"cardId": "c1"}) is True
    assert evaluator.matches(raw, {}) is True


@pytest.mark.parametrize("raw", ["{not json", "[1, 2]", '"text"', '{"field": "order", "operator": "like"}'])
def test_unparseable_condition_never_matches(evaluator, raw):
    assert isinstance(parse_condition(raw), UnparseableCondition)
    assert evaluator.matches(raw, {"order": 1}) is False


def test_flat_object_is_an_equality_conjunction(evaluator):
    condition = parse_condition('{"columnId": "col-1", "title": "Bug"}')

    assert condition == AllOf(
        conditions=(
            FieldCondition(field="columnId", operator="eq", value="col-1"),
            FieldCondition(field="title", operator="eq", value="Bug"),
        )
    )
    assert evaluator.matches(condition, {"columnId": "col-1", "title": "Bug"}) is True
    assert evaluator.matches(condition, {"columnId": "col-1", "title": "Feature"}) is False
    assert evaluator.matches(condition, {"columnId": "col-1"}) is False


@pytest.mark.parametrize(
    ("operator", "value", "actual", "expected"),
    [
        ("eq", 3, 3, True),
        ("ne", 3, 4, True),
        ("gt", 3, 4, True),
        ("gte", 3, 3, True),
        ("lt", 3, 4, False),
        ("lte", 3, 3, True),
        ("in", ["a", "b"], "b", True),
        ("in", ["a", "b"], "c", False),
    ],
)
def test_field_operators(evaluator, operator, value, actual, expected):
    condition = {"field": "order", "operator": operator, "value": value}

    assert evaluator.matches(condition, {"order": actual}) is expected


def test_incomparable_values_do_not_match(evaluator):
    condition = {"field": "order", "operator": "gt", "value": 3}

    assert evaluator.matches(condition, {"order": "three"}) is False
    assert evaluator.matches(condition, {"order": None}) is False


def test_datetime_fields_compare_with_iso_strings(evaluator):
    condition = {"field": "dueDate", "operator": "lt", "value": "2024-06-02T00:00:00Z"}

    assert evaluator.matches(condition, {"dueDate": NOW}) is True
    assert evaluator.matches(condition, {"dueDate": NOW + timedelta(days=2)}) is False


def test_temporal_condition_uses_days_threshold(evaluator):
    condition = parse_condition({"timeField": "updatedAt", "operator": "olderThan", "days": 7})

    assert condition == TemporalCondition(time_field="updatedAt", days=7.0)
    assert evaluator.matches(condition, {"updatedAt": NOW - timedelta(days=10)}) is True
    assert evaluator.matches(condition, {"updatedAt": NOW - timedelta(days=1)}) is False
    assert evaluator.matches(condition, {"updatedAt": (NOW - timedelta(days=8)).isoformat()}) is True
    assert evaluator.matches(condition, {}) is False


def test_temporal_condition_accepts_lt_alias(evaluator):
    condition = {"timeField": "createdAt", "operator": "lt", "days": "2"}

    assert evaluator.matches(condition, {"createdAt": NOW - timedelta(days=3)}) is True


def test_negative_days_are_rejected():
    assert isinstance(parse_condition({"timeField": "updatedAt", "days": -1}), UnparseableCondition)


def test_explicit_now_overrides_clock(evaluator):
    condition = {"timeField": "updatedAt", "days": 1}
    context = {"updatedAt": NOW}

    assert evaluator.matches(condition, context) is False
    assert evaluator.matches(condition, context, now=NOW + timedelta(days=2)) is True


def test_all_combines_nested_conditions(evaluator):
    condition = {
        "all": [
            {"field": "columnId", "value": "col-1"},
            {"timeField": "updatedAt", "days": 7},
        ]
    }
    old = NOW - timedelta(days=9)

    assert evaluator.matches(condition, {"columnId": "col-1", "updatedAt": old}) is True
    assert evaluator.matches(condition, {"columnId": "col-2", "updatedAt": old}) is False
