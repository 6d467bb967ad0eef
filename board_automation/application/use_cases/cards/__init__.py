"""Use cases that mutate cards and notify the automation engine."""

from .archive_card import archive_card
from .create_card import create_card
from .move_card import move_card

__all__ = ["archive_card", "create_card", "move_card"]
