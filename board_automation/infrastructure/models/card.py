"""SQLAlchemy model for cards and their tag/assignee associations."""

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Table
from sqlalchemy.orm import relationship

from board_automation.infrastructure.database import Base
from board_automation.infrastructure.models.board import TagModel
from board_automation.utils import utc_now_naive

card_tag_table = Table(
    "card_tag",
    Base.metadata,
    Column(
        "card_id",
        String(36),
        ForeignKey("card.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "tag_id",
        String(36),
        ForeignKey("tag.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)

card_assignee_table = Table(
    "card_assignee",
    Base.metadata,
    Column(
        "card_id",
        String(36),
        ForeignKey("card.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("user_id", String(36), primary_key=True),
)


class CardModel(Base):
    """Database representation of a card.

    ``updated_at`` only changes when written explicitly; relocations and
    archival leave it untouched. ``column_entered_at`` records when the card
    arrived in its current column and drives the auto-archive delay.
    """

    __tablename__ = "card"
    __table_args__ = (Index("ix_card_column_order", "column_id", "order"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    board_id = Column(String(36), nullable=False, index=True)
    column_id = Column(
        String(36),
        ForeignKey("board_column.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title = Column(String(255), nullable=False)
    order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(), nullable=False, default=utc_now_naive)
    updated_at = Column(DateTime(), nullable=False, default=utc_now_naive)
    column_entered_at = Column(DateTime(), nullable=False, default=utc_now_naive)
    due_date = Column(DateTime(), nullable=True)
    archived_at = Column(DateTime(), nullable=True)

    tags = relationship(
        TagModel,
        secondary=card_tag_table,
        lazy="selectin",
        order_by=TagModel.id,
    )


__all__ = ["CardModel", "card_assignee_table", "card_tag_table"]
