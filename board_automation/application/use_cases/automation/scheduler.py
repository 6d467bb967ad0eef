"""Time-based automation scheduler.

A single background thread wakes every ``interval_seconds``, re-reads the
active ``TIME_BASED`` rules and applies their actions to the cards their
condition selects. The rule's ``cron_expression`` only marks the rule as
time based: every rule is checked on every wake.

The same pass also runs the column auto-archive sweep for columns that
have ``auto_archive`` enabled. A card becomes eligible once it has stayed
in such a column for ``archive_after_minutes``.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable

from sqlalchemy.orm import Session, sessionmaker

from board_automation.domain.entities import (
    AllOf,
    AutomationRule,
    Condition,
    EmptyCondition,
    FieldCondition,
    TemporalCondition,
    UnparseableCondition,
)
from board_automation.domain.exceptions import RuleValidationError
from board_automation.infrastructure.repositories import (
    CARD_FIELD_COLUMNS,
    CARD_TIME_FIELDS,
    AutomationRuleRepository,
    CardQuery,
    CardRepository,
    ColumnRepository,
)
from board_automation.utils import ensure_utc, utc_now

from .actions import ActionExecutor
from .conditions import ConditionEvaluator
from .ordering import OrderingManager

logger = logging.getLogger(__name__)


class SchedulerState(str, Enum):
    IDLE = "IDLE"
    SCANNING = "SCANNING"
    STOPPED = "STOPPED"


@dataclass
class ScanReport:
    """Summary of one scheduler pass."""

    started_at: datetime
    finished_at: datetime | None = None
    rules_scanned: int = 0
    rules_failed: list[str] = field(default_factory=list)
    cards_matched: int = 0
    cards_auto_archived: int = 0
    columns_failed: list[str] = field(default_factory=list)


def build_card_query(
    rule: AutomationRule, now: datetime, *, limit: int | None = None
) -> tuple[CardQuery, Condition | None]:
    """Translate ``rule.condition`` into a card query plus a residual condition.

    Equality on card fields and ``olderThan`` predicates become part of the
    query; anything else is returned as a residual condition that must be
    checked against each candidate card with the evaluator.
    """

    condition = rule.condition
    if isinstance(condition, UnparseableCondition):
        raise RuleValidationError(f"Rule {rule.id} has an unparseable condition: {condition.reason}")

    if isinstance(condition, EmptyCondition):
        parts: tuple[Condition, ...] = ()
    elif isinstance(condition, AllOf):
        parts = condition.conditions
    else:
        parts = (condition,)

    column_id: str | None = None
    equals: list[tuple[str, object]] = []
    older_than: list[tuple[str, datetime]] = []
    residual: list[Condition] = []

    for part in parts:
        if isinstance(part, TemporalCondition):
            if part.time_field not in CARD_TIME_FIELDS:
                raise RuleValidationError(
                    f"Rule {rule.id} uses unknown card time field {part.time_field!r}"
                )
            older_than.append((part.time_field, now - timedelta(days=part.days)))
        elif isinstance(part, FieldCondition) and part.operator == "eq" and part.field in CARD_FIELD_COLUMNS:
            if part.field == "columnId" and column_id is None:
                column_id = part.value
            else:
                equals.append((part.field, part.value))
        else:
            residual.append(part)

    query = CardQuery(
        board_id=rule.board_id,
        column_id=column_id,
        equals=tuple(equals),
        older_than=tuple(older_than),
        limit=limit,
    )
    if not residual:
        return query, None
    if len(residual) == 1:
        return query, residual[0]
    return query, AllOf(conditions=tuple(residual))


class TimeBasedScheduler:
    """Own the lifecycle of the periodic time-based rule scan."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        evaluator: ConditionEvaluator,
        executor: ActionExecutor,
        ordering: OrderingManager,
        *,
        interval_seconds: float = 60.0,
        card_limit: int = 500,
        run_on_start: bool = False,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._session_factory = session_factory
        self._evaluator = evaluator
        self._executor = executor
        self._ordering = ordering
        self.interval_seconds = interval_seconds
        self.card_limit = card_limit
        self._run_on_start = run_on_start
        self._clock = clock

        self._state = SchedulerState.STOPPED
        self._state_lock = threading.Lock()
        self._scan_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._last_scan: ScanReport | None = None

    @property
    def state(self) -> SchedulerState:
        with self._state_lock:
            return self._state

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def last_scan(self) -> ScanReport | None:
        return self._last_scan

    def start(self) -> None:
        """Start the background scan thread (no-op when already running)."""

        if self.is_running and not self._stop_event.is_set():
            logger.warning("Automation scheduler already running")
            return
        if self.is_running:
            logger.warning("Previous automation scheduler loop is still finishing its scan")

        # Each loop owns its event so a loop that outlived stop() still exits.
        self._stop_event = threading.Event()
        self._set_state(SchedulerState.IDLE)
        self._thread = threading.Thread(
            target=self._run_loop,
            args=(self._stop_event,),
            daemon=True,
            name="automation-scheduler",
        )
        self._thread.start()
        logger.info("Automation scheduler started (interval=%ss)", self.interval_seconds)

    def stop(self, timeout: float | None = 10.0) -> None:
        """Stop scheduling scans and wait for an in-flight scan to finish."""

        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread.is_alive():
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning("Automation scheduler did not stop within %ss", timeout)
        if thread is not None and not thread.is_alive():
            self._thread = None
        self._set_state(SchedulerState.STOPPED)
        logger.info("Automation scheduler stopped")

    def run_once(self, now: datetime | None = None) -> ScanReport:
        """Run one full scan of the time-based rules and auto-archive columns."""

        with self._scan_lock:
            scan_time = ensure_utc(now) if now is not None else self._clock()
            report = ScanReport(started_at=scan_time)
            self._set_state(SchedulerState.SCANNING)
            try:
                self._scan_rules(scan_time, report)
                self._sweep_auto_archive(scan_time, report)
            finally:
                report.finished_at = self._clock()
                self._last_scan = report
                running = self.is_running and not self._stop_event.is_set()
                self._set_state(SchedulerState.IDLE if running else SchedulerState.STOPPED)
            if report.rules_scanned or report.cards_auto_archived:
                logger.info(
                    "Automation scan: %s rules, %s cards matched, %s auto-archived, %s rules failed",
                    report.rules_scanned,
                    report.cards_matched,
                    report.cards_auto_archived,
                    len(report.rules_failed),
                )
            return report

    def _run_loop(self, stop_event: threading.Event) -> None:
        logger.debug("Automation scheduler loop entered")
        if not self._run_on_start:
            stop_event.wait(self.interval_seconds)
        while not stop_event.is_set():
            try:
                self.run_once()
            except Exception:
                logger.exception("Automation scan failed; waiting for the next wake")
            stop_event.wait(self.interval_seconds)
        logger.debug("Automation scheduler loop exited")

    def _scan_rules(self, now: datetime, report: ScanReport) -> None:
        try:
            with self._session_factory() as session:
                rules = AutomationRuleRepository(session).list_active_time_based()
        except Exception:
            logger.exception("Time-based automation rules could not be loaded")
            return

        for rule in rules:
            report.rules_scanned += 1
            try:
                report.cards_matched += self._run_rule(rule, now)
            except RuleValidationError as exc:
                logger.warning("Skipping time-based rule %s: %s", rule.id, exc)
                report.rules_failed.append(rule.id)
            except Exception:
                logger.exception("Time-based rule %s failed", rule.id)
                report.rules_failed.append(rule.id)

    def _run_rule(self, rule: AutomationRule, now: datetime) -> int:
        query, residual = build_card_query(rule, now, limit=self.card_limit)
        with self._session_factory() as session:
            candidates = CardRepository(session).find_many(query)
        if len(candidates) >= self.card_limit:
            logger.warning(
                "Time-based rule %s hit the %s card cap; remaining cards wait for the next scan",
                rule.id,
                self.card_limit,
            )

        matched = [
            card
            for card in candidates
            if residual is None or self._evaluator.matches(residual, card.to_context(), now=now)
        ]
        if matched:
            logger.info("Time-based rule %r matched %s cards", rule.name, len(matched))
        for card in matched:
            context = card.to_context()
            context.update(
                {"cardId": card.id, "boardId": card.board_id, "columnId": card.column_id, "ruleId": rule.id}
            )
            self._executor.execute(rule.actions, context, now=now)

        with self._session_factory() as session:
            AutomationRuleRepository(session).touch_last_run(rule.id, now)
        return len(matched)

    def _sweep_auto_archive(self, now: datetime, report: ScanReport) -> None:
        try:
            with self._session_factory() as session:
                columns = ColumnRepository(session).list_auto_archive()
        except Exception:
            logger.exception("Auto-archive columns could not be loaded")
            return

        for column in columns:
            cutoff = now - timedelta(minutes=max(column.archive_after_minutes or 0, 0))
            try:
                with self._session_factory() as session:
                    cards = CardRepository(session).find_many(
                        CardQuery(
                            board_id=column.board_id,
                            column_id=column.id,
                            older_than=(("columnEnteredAt", cutoff),),
                            limit=self.card_limit,
                        )
                    )
                for card in cards:
                    self._ordering.archive(card.id, now)
                    report.cards_auto_archived += 1
            except Exception:
                logger.exception("Auto-archive failed for column %s", column.id)
                report.columns_failed.append(column.id)
                continue
            if cards:
                logger.info("Auto-archived %s cards from column %s", len(cards), column.id)

    def _set_state(self, state: SchedulerState) -> None:
        with self._state_lock:
            self._state = state


__all__ = ["ScanReport", "SchedulerState", "TimeBasedScheduler", "build_card_query"]
