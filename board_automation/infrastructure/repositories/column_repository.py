"""Persistence helpers for board columns."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import true
from sqlalchemy.orm import Session

from board_automation.domain.entities import Column
from board_automation.infrastructure.models import ColumnModel


class ColumnRepository:
    """Provide read access to columns (and creation for seeding)."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, column_id: str) -> Column | None:
        model = self.session.get(ColumnModel, column_id)
        return self._to_entity(model) if model else None

    def list_auto_archive(self) -> Sequence[Column]:
        query = (
            self.session.query(ColumnModel)
            .filter(ColumnModel.auto_archive == true())
            .order_by(ColumnModel.board_id, ColumnModel.id)
        )
        return [self._to_entity(model) for model in query.all()]

    def create(self, column: Column) -> Column:
        model = ColumnModel(
            board_id=column.board_id,
            title=column.title,
            auto_archive=column.auto_archive,
            archive_after_minutes=column.archive_after_minutes,
        )
        if column.id:
            model.id = column.id
        self.session.add(model)
        self.session.flush()
        return self._to_entity(model)

    @staticmethod
    def _to_entity(model: ColumnModel) -> Column:
        return Column(
            id=model.id,
            board_id=model.board_id,
            title=model.title,
            auto_archive=bool(model.auto_archive),
            archive_after_minutes=model.archive_after_minutes,
        )


__all__ = ["ColumnRepository"]
