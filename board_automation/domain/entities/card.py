"""Domain entities for board columns and cards."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class Column:
    """A lane of a board holding an ordered list of cards."""

    id: str
    board_id: str
    title: str
    auto_archive: bool = False
    archive_after_minutes: int | None = None


@dataclass
class Tag:
    """A label that can be attached to cards of the same board."""

    id: str
    board_id: str
    name: str


@dataclass
class Card:
    """Subset of card attributes the automation engine works with."""

    id: str
    board_id: str
    column_id: str
    title: str
    order: int
    created_at: datetime | None = None
    updated_at: datetime | None = None
    due_date: datetime | None = None
    archived_at: datetime | None = None
    column_entered_at: datetime | None = None
    assignee_ids: tuple[str, ...] = field(default_factory=tuple)
    tag_ids: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None

    def to_context(self) -> dict[str, Any]:
        """Return the card fields using the keys stored in rule conditions."""

        return {
            "id": self.id,
            "cardId": self.id,
            "boardId": self.board_id,
            "columnId": self.column_id,
            "title": self.title,
            "order": self.order,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "dueDate": self.due_date,
            "archivedAt": self.archived_at,
            "columnEnteredAt": self.column_entered_at,
            "assigneeIds": list(self.assignee_ids),
            "tagIds": list(self.tag_ids),
        }


__all__ = ["Card", "Column", "Tag"]
