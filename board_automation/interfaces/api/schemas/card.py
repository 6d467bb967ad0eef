"""Schemas for card endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CardCreate(BaseModel):
    column_id: str
    title: str = Field(..., min_length=1, max_length=255)
    due_date: datetime | None = None

    model_config = ConfigDict(extra="forbid")


class CardMove(BaseModel):
    """Target of a relocation; ``order`` is clamped, ``null`` appends."""

    column_id: str
    order: int | None = Field(default=None, ge=0)

    model_config = ConfigDict(extra="forbid")


class CardRead(BaseModel):
    id: str
    board_id: str
    column_id: str
    title: str
    order: int
    created_at: datetime | None
    updated_at: datetime | None
    due_date: datetime | None
    archived_at: datetime | None
    column_entered_at: datetime | None
    assignee_ids: list[str]
    tag_ids: list[str]

    model_config = ConfigDict(from_attributes=True)


__all__ = ["CardCreate", "CardMove", "CardRead"]
