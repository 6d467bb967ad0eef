"""Repository implementations for infrastructure layer."""

from .automation_rule_repository import AutomationRuleRepository
from .card_repository import CARD_FIELD_COLUMNS, CARD_TIME_FIELDS, CardQuery, CardRepository
from .column_repository import ColumnRepository
from .tag_repository import TagRepository

__all__ = [
    "AutomationRuleRepository",
    "CARD_FIELD_COLUMNS",
    "CARD_TIME_FIELDS",
    "CardQuery",
    "CardRepository",
    "ColumnRepository",
    "TagRepository",
]
