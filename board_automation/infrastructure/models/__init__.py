"""ORM models used by the application infrastructure."""

from .automation_rule import AutomationRuleModel
from .board import ColumnModel, TagModel
from .card import CardModel, card_assignee_table, card_tag_table

__all__ = [
    "AutomationRuleModel",
    "CardModel",
    "ColumnModel",
    "TagModel",
    "card_assignee_table",
    "card_tag_table",
]
