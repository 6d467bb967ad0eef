"""Domain entities exposed by the application."""

from .automation_action import (
    Action,
    ActionType,
    RuleAction,
    UnknownAction,
    parse_actions,
    serialize_actions,
)
from .automation_condition import (
    AllOf,
    Condition,
    EmptyCondition,
    FieldCondition,
    TemporalCondition,
    UnparseableCondition,
    parse_condition,
)
from .automation_rule import AutomationRule, TriggerType
from .card import Card, Column, Tag

__all__ = [
    "Action",
    "ActionType",
    "AllOf",
    "AutomationRule",
    "Card",
    "Column",
    "Condition",
    "EmptyCondition",
    "FieldCondition",
    "RuleAction",
    "TemporalCondition",
    "TriggerType",
    "UnknownAction",
    "UnparseableCondition",
    "parse_actions",
    "parse_condition",
    "serialize_actions",
    "Tag",
]
