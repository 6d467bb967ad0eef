"""Persistence layer for board automation rules."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import asc, true
from sqlalchemy.orm import Session

from board_automation.domain.entities import (
    AutomationRule,
    TriggerType,
    parse_actions,
    parse_condition,
)
from board_automation.domain.exceptions import NotFoundError
from board_automation.infrastructure.models import AutomationRuleModel
from board_automation.utils import ensure_utc, to_storage

logger = logging.getLogger(__name__)


class AutomationRuleRepository:
    """Provide CRUD and engine queries for automation rules.

    Conditions and actions are parsed into their typed form here, so callers
    never see the serialized payloads except through ``raw_*`` fields.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def list_by_board(self, board_id: str) -> Sequence[AutomationRule]:
        query = (
            self.session.query(AutomationRuleModel)
            .filter(AutomationRuleModel.board_id == board_id)
            .order_by(asc(AutomationRuleModel.created_at), asc(AutomationRuleModel.id))
        )
        return [self._to_entity(model) for model in query.all()]

    def list_active_by_board_and_trigger(
        self, board_id: str, trigger_type: TriggerType | str
    ) -> Sequence[AutomationRule]:
        query = (
            self.session.query(AutomationRuleModel)
            .filter(AutomationRuleModel.board_id == board_id)
            .filter(AutomationRuleModel.trigger_type == _trigger_value(trigger_type))
            .filter(AutomationRuleModel.is_active == true())
            .order_by(asc(AutomationRuleModel.created_at), asc(AutomationRuleModel.id))
        )
        return [self._to_entity(model) for model in query.all()]

    def list_active_time_based(self) -> Sequence[AutomationRule]:
        query = (
            self.session.query(AutomationRuleModel)
            .filter(AutomationRuleModel.trigger_type == TriggerType.TIME_BASED.value)
            .filter(AutomationRuleModel.is_active == true())
            .order_by(asc(AutomationRuleModel.created_at), asc(AutomationRuleModel.id))
        )
        return [self._to_entity(model) for model in query.all()]

    def get(self, rule_id: str) -> AutomationRule | None:
        model = self.session.get(AutomationRuleModel, rule_id)
        return self._to_entity(model) if model else None

    def create(self, rule: AutomationRule) -> AutomationRule:
        model = AutomationRuleModel()
        if rule.id is not None:
            model.id = rule.id
        self._apply_entity_to_model(model, rule)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def update(self, rule: AutomationRule) -> AutomationRule:
        model = self.session.get(AutomationRuleModel, rule.id) if rule.id else None
        if not model:
            raise NotFoundError(f"Automation rule with id {rule.id} not found")
        self._apply_entity_to_model(model, rule)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def delete(self, rule_id: str) -> None:
        model = self.session.get(AutomationRuleModel, rule_id)
        if not model:
            raise NotFoundError(f"Automation rule with id {rule_id} not found")
        self.session.delete(model)
        self.session.commit()

    def touch_last_run(self, rule_id: str, timestamp: datetime) -> None:
        """Move the scheduler cursor of ``rule_id`` to ``timestamp``."""

        updated = (
            self.session.query(AutomationRuleModel)
            .filter(AutomationRuleModel.id == rule_id)
            .update(
                {AutomationRuleModel.last_run_at: to_storage(timestamp)},
                synchronize_session=False,
            )
        )
        self.session.commit()
        if not updated:
            logger.warning("Automation rule %s vanished before its run was recorded", rule_id)

    @staticmethod
    def _to_entity(model: AutomationRuleModel) -> AutomationRule:
        try:
            trigger_type: TriggerType | str = TriggerType(model.trigger_type)
        except ValueError:
            trigger_type = model.trigger_type
        return AutomationRule(
            id=model.id,
            board_id=model.board_id,
            name=model.name,
            trigger_type=trigger_type,
            condition=parse_condition(model.condition),
            actions=parse_actions(model.actions),
            cron_expression=model.cron_expression,
            last_run_at=ensure_utc(model.last_run_at),
            is_active=bool(model.is_active),
            created_at=ensure_utc(model.created_at),
            updated_at=ensure_utc(model.updated_at),
            raw_condition=model.condition,
            raw_actions=model.actions,
        )

    @staticmethod
    def _apply_entity_to_model(model: AutomationRuleModel, rule: AutomationRule) -> None:
        model.board_id = rule.board_id
        model.name = rule.name
        model.trigger_type = _trigger_value(rule.trigger_type)
        model.condition = rule.raw_condition
        model.actions = rule.raw_actions or "[]"
        model.cron_expression = rule.cron_expression
        model.last_run_at = to_storage(rule.last_run_at)
        model.is_active = rule.is_active
        if rule.created_at is not None:
            model.created_at = to_storage(rule.created_at)


def _trigger_value(trigger_type: TriggerType | str) -> str:
    return trigger_type.value if isinstance(trigger_type, TriggerType) else str(trigger_type)


__all__ = ["AutomationRuleRepository"]
