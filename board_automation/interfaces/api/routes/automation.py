"""Routes to manage board automation rules and inspect the scheduler."""

from __future__ import annotations

import json
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from board_automation.application.use_cases.automation import AutomationEngine
from board_automation.application.use_cases.automation.rules import (
    create_rule as create_rule_uc,
    delete_rule as delete_rule_uc,
    get_rule as get_rule_uc,
    list_rules as list_rules_uc,
    update_rule as update_rule_uc,
)
from board_automation.domain.entities import AutomationRule, TriggerType
from board_automation.domain.exceptions import NotFoundError, RuleValidationError
from board_automation.interfaces.api.dependencies import get_automation_engine, get_db
from board_automation.interfaces.api.schemas import (
    AutomationRuleCreate,
    AutomationRuleRead,
    AutomationRuleUpdate,
    ScanReportRead,
    SchedulerStatusRead,
)

router = APIRouter(tags=["automations"])


def _decode(raw: str | None, default: Any) -> Any:
    if not raw:
        return default
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return default


def _to_read_model(rule: AutomationRule) -> AutomationRuleRead:
    condition = _decode(rule.raw_condition, None)
    actions = _decode(rule.raw_actions, [])
    trigger = rule.trigger_type.value if isinstance(rule.trigger_type, TriggerType) else rule.trigger_type
    return AutomationRuleRead(
        id=rule.id,
        board_id=rule.board_id,
        name=rule.name,
        trigger_type=trigger,
        condition=condition if isinstance(condition, dict) else None,
        actions=[entry for entry in actions if isinstance(entry, dict)] if isinstance(actions, list) else [],
        cron_expression=rule.cron_expression,
        last_run_at=rule.last_run_at,
        is_active=rule.is_active,
        created_at=rule.created_at,
        updated_at=rule.updated_at,
    )


@router.get("/automations/scheduler", response_model=SchedulerStatusRead)
def read_scheduler_status(
    engine: AutomationEngine = Depends(get_automation_engine),
) -> SchedulerStatusRead:
    """Report the scheduler state and the outcome of its last scan."""

    scheduler = engine.scheduler
    last_scan = scheduler.last_scan
    return SchedulerStatusRead(
        state=scheduler.state.value,
        running=scheduler.is_running,
        interval_seconds=scheduler.interval_seconds,
        last_scan=ScanReportRead.model_validate(last_scan) if last_scan is not None else None,
    )


@router.get("/boards/{board_id}/automations", response_model=list[AutomationRuleRead])
def list_automations(board_id: str, db: Session = Depends(get_db)) -> list[AutomationRuleRead]:
    return [_to_read_model(rule) for rule in list_rules_uc(db, board_id)]


@router.post(
    "/boards/{board_id}/automations",
    response_model=AutomationRuleRead,
    status_code=status.HTTP_201_CREATED,
)
def register_automation(
    board_id: str,
    rule_in: AutomationRuleCreate,
    db: Session = Depends(get_db),
) -> AutomationRuleRead:
    """Create an automation rule for ``board_id``."""

    try:
        rule = create_rule_uc(
            db,
            board_id=board_id,
            name=rule_in.name,
            trigger_type=rule_in.trigger_type,
            condition=rule_in.condition,
            actions=[action.model_dump() for action in rule_in.actions],
            cron_expression=rule_in.cron_expression,
            is_active=rule_in.is_active,
        )
    except RuleValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return _to_read_model(rule)


@router.get("/automations/{rule_id}", response_model=AutomationRuleRead)
def read_automation(rule_id: str, db: Session = Depends(get_db)) -> AutomationRuleRead:
    try:
        rule = get_rule_uc(db, rule_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return _to_read_model(rule)


@router.patch("/automations/{rule_id}", response_model=AutomationRuleRead)
def update_automation(
    rule_id: str,
    rule_in: AutomationRuleUpdate,
    db: Session = Depends(get_db),
) -> AutomationRuleRead:
    """Apply a partial update to an automation rule."""

    update_data = rule_in.model_dump(exclude_unset=True)
    try:
        rule = update_rule_uc(db, rule_id=rule_id, **update_data)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except RuleValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return _to_read_model(rule)


@router.delete("/automations/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_automation(rule_id: str, db: Session = Depends(get_db)) -> Response:
    try:
        delete_rule_uc(db, rule_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]
