"""SQLAlchemy models for board columns and tags."""

import uuid

from sqlalchemy import Boolean, Column, Integer, String
from sqlalchemy.sql import expression

from board_automation.infrastructure.database import Base


class ColumnModel(Base):
    """Database representation of a board column."""

    __tablename__ = "board_column"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    board_id = Column(String(36), nullable=False, index=True)
    title = Column(String(120), nullable=False)
    auto_archive = Column(
        Boolean,
        nullable=False,
        default=False,
        server_default=expression.false(),
    )
    archive_after_minutes = Column(Integer, nullable=True)


class TagModel(Base):
    """Database representation of a board tag."""

    __tablename__ = "tag"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    board_id = Column(String(36), nullable=False, index=True)
    name = Column(String(60), nullable=False)


__all__ = ["ColumnModel", "TagModel"]
