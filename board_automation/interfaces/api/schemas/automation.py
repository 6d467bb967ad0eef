"""Schemas for automation rule endpoints."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AutomationActionPayload(BaseModel):
    type: str = Field(..., min_length=1)
    value: str | None = None

    model_config = ConfigDict(extra="forbid")


class AutomationRuleBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    trigger_type: str
    condition: dict[str, Any] | None = None
    actions: list[AutomationActionPayload] = Field(default_factory=list)
    cron_expression: str | None = None


class AutomationRuleCreate(AutomationRuleBase):
    """Payload required to create an automation rule."""

    is_active: bool = True

    model_config = ConfigDict(extra="forbid")


class AutomationRuleUpdate(BaseModel):
    """Partial update; ``condition`` and ``cron_expression`` may be set to ``null``."""

    name: str | None = Field(default=None, min_length=1, max_length=120)
    trigger_type: str | None = None
    condition: dict[str, Any] | None = None
    actions: list[AutomationActionPayload] | None = None
    cron_expression: str | None = None
    is_active: bool | None = None

    model_config = ConfigDict(extra="forbid")


class AutomationRuleRead(BaseModel):
    id: str
    board_id: str
    name: str
    trigger_type: str
    condition: dict[str, Any] | None
    actions: list[dict[str, Any]]
    cron_expression: str | None
    last_run_at: datetime | None
    is_active: bool
    created_at: datetime | None
    updated_at: datetime | None


class ScanReportRead(BaseModel):
    started_at: datetime
    finished_at: datetime | None
    rules_scanned: int
    rules_failed: list[str]
    cards_matched: int
    cards_auto_archived: int
    columns_failed: list[str]

    model_config = ConfigDict(from_attributes=True)


class SchedulerStatusRead(BaseModel):
    state: str
    running: bool
    interval_seconds: float
    last_scan: ScanReportRead | None = None


__all__ = [
    "AutomationActionPayload",
    "AutomationRuleCreate",
    "AutomationRuleRead",
    "AutomationRuleUpdate",
    "ScanReportRead",
    "SchedulerStatusRead",
]
