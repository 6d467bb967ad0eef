"""Aggregate application use cases."""

from .cards import archive_card, create_card, move_card

__all__ = [
    "archive_card",
    "create_card",
    "move_card",
]
