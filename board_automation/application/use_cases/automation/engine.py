"""Wire the automation components into one engine object."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session, sessionmaker

from board_automation.config import Settings, get_settings

from .actions import ActionExecutor
from .conditions import ConditionEvaluator
from .dispatcher import AutomationDispatcher
from .ordering import OrderingManager
from .scheduler import TimeBasedScheduler

logger = logging.getLogger(__name__)


@dataclass
class AutomationEngine:
    """The components shared by the API process and the scheduler worker."""

    ordering: OrderingManager
    evaluator: ConditionEvaluator
    executor: ActionExecutor
    dispatcher: AutomationDispatcher
    scheduler: TimeBasedScheduler

    def shutdown(self, wait: bool = True) -> None:
        """Stop the scheduler and drain queued event dispatches."""

        self.scheduler.stop()
        self.dispatcher.shutdown(wait=wait)


def build_automation_engine(
    session_factory: sessionmaker[Session],
    settings: Settings | None = None,
    *,
    run_scheduler_on_start: bool = False,
) -> AutomationEngine:
    settings = settings or get_settings()
    ordering = OrderingManager(session_factory)
    evaluator = ConditionEvaluator()
    executor = ActionExecutor(session_factory, ordering)
    dispatcher = AutomationDispatcher(
        session_factory,
        evaluator,
        executor,
        max_workers=settings.automation_dispatch_workers,
    )
    scheduler = TimeBasedScheduler(
        session_factory,
        evaluator,
        executor,
        ordering,
        interval_seconds=settings.automation_scan_interval_seconds,
        card_limit=settings.automation_scan_card_limit,
        run_on_start=run_scheduler_on_start,
    )
    logger.debug(
        "Automation engine built (workers=%s, scan interval=%ss)",
        settings.automation_dispatch_workers,
        settings.automation_scan_interval_seconds,
    )
    return AutomationEngine(
        ordering=ordering,
        evaluator=evaluator,
        executor=executor,
        dispatcher=dispatcher,
        scheduler=scheduler,
    )


__all__ = ["AutomationEngine", "build_automation_engine"]
