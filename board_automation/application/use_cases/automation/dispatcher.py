"""Event-triggered rule dispatch.

Board mutation code calls :meth:`AutomationDispatcher.submit_event` right
after its own change committed. The event is then evaluated on a worker
thread so the request never waits on, or fails because of, automation.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.orm import Session, sessionmaker

from board_automation.domain.entities import TriggerType
from board_automation.infrastructure.repositories import AutomationRuleRepository

from .actions import ActionExecutor
from .conditions import ConditionEvaluator

logger = logging.getLogger(__name__)


@dataclass
class DispatchReport:
    """Which rules were considered, fired or failed for one event."""

    board_id: str
    trigger_type: str
    evaluated: list[str] = field(default_factory=list)
    fired: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


class AutomationDispatcher:
    """Run the active rules of a board that listen to a given trigger."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        evaluator: ConditionEvaluator,
        executor: ActionExecutor,
        *,
        max_workers: int = 2,
    ) -> None:
        self._session_factory = session_factory
        self._evaluator = evaluator
        self._executor = executor
        self._max_workers = max_workers
        self._pool: ThreadPoolExecutor | None = None
        self._pool_lock = threading.Lock()

    def handle_event(
        self,
        board_id: str,
        trigger_type: TriggerType | str,
        context: Mapping[str, Any],
    ) -> DispatchReport:
        """Evaluate and execute matching rules synchronously.

        Never raises: every failure is logged and isolated to its rule.
        """

        trigger_value = trigger_type.value if isinstance(trigger_type, TriggerType) else str(trigger_type)
        report = DispatchReport(board_id=board_id, trigger_type=trigger_value)
        event_context = dict(context)
        event_context.setdefault("boardId", board_id)
        event_context.setdefault("triggerType", trigger_value)

        try:
            with self._session_factory() as session:
                rules = AutomationRuleRepository(session).list_active_by_board_and_trigger(
                    board_id, trigger_value
                )
        except Exception:
            logger.exception(
                "Automation rules could not be loaded for board %s trigger %s", board_id, trigger_value
            )
            return report

        if not rules:
            logger.debug("No automation rules for %s on board %s", trigger_value, board_id)
            return report

        logger.info("Automation: %s rules listening to %s on board %s", len(rules), trigger_value, board_id)
        for rule in rules:
            report.evaluated.append(rule.id)
            try:
                if not self._evaluator.matches(rule.condition, event_context):
                    continue
                logger.info("Automation: executing rule %r (%s)", rule.name, rule.id)
                self._executor.execute(rule.actions, event_context)
                report.fired.append(rule.id)
            except Exception:
                logger.exception("Automation rule %s failed while handling %s", rule.id, trigger_value)
                report.failed.append(rule.id)
        return report

    def submit_event(
        self,
        board_id: str,
        trigger_type: TriggerType | str,
        context: Mapping[str, Any],
    ) -> Future[DispatchReport]:
        """Schedule :meth:`handle_event` on the worker pool and return at once."""

        return self._ensure_pool().submit(self.handle_event, board_id, trigger_type, dict(context))

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting events and optionally wait for queued ones."""

        with self._pool_lock:
            pool, self._pool = self._pool, None
        if pool is not None:
            pool.shutdown(wait=wait)

    def _ensure_pool(self) -> ThreadPoolExecutor:
        with self._pool_lock:
            if self._pool is None:
                self._pool = ThreadPoolExecutor(
                    max_workers=self._max_workers, thread_name_prefix="automation-dispatch"
                )
            return self._pool


__all__ = ["AutomationDispatcher", "DispatchReport"]
