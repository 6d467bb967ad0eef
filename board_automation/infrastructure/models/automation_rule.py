"""SQLAlchemy model for board automation rules."""

import uuid

from sqlalchemy import Boolean, Column, DateTime, Index, String, Text

from board_automation.infrastructure.database import Base
from board_automation.utils import utc_now_naive


class AutomationRuleModel(Base):
    """Database representation of automation rules.

    ``condition`` and ``actions`` hold serialized JSON text; they are only
    interpreted after leaving the repository.
    """

    __tablename__ = "automation_rule"
    __table_args__ = (
        Index("ix_automation_rule_board_trigger", "board_id", "trigger_type", "is_active"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    board_id = Column(String(36), nullable=False, index=True)
    name = Column(String(120), nullable=False)
    trigger_type = Column(String(40), nullable=False)
    condition = Column(Text, nullable=True)
    actions = Column(Text, nullable=False, default="[]")
    cron_expression = Column(String(120), nullable=True)
    last_run_at = Column(DateTime(), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(), nullable=False, default=utc_now_naive)
    updated_at = Column(DateTime(), nullable=True, onupdate=utc_now_naive)


__all__ = ["AutomationRuleModel"]
