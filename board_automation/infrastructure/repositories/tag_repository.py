"""Persistence helpers for board tags."""

from __future__ import annotations

from sqlalchemy.orm import Session

from board_automation.domain.entities import Tag
from board_automation.infrastructure.models import TagModel


class TagRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, tag_id: str) -> Tag | None:
        model = self.session.get(TagModel, tag_id)
        if model is None:
            return None
        return Tag(id=model.id, board_id=model.board_id, name=model.name)

    def create(self, tag: Tag) -> Tag:
        model = TagModel(board_id=tag.board_id, name=tag.name)
        if tag.id:
            model.id = tag.id
        self.session.add(model)
        self.session.flush()
        return Tag(id=model.id, board_id=model.board_id, name=model.name)


__all__ = ["TagRepository"]
