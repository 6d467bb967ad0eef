"""Run the time-based automation scheduler outside the API process."""

from __future__ import annotations

import argparse
import logging
import signal
import threading

from sqlalchemy.exc import SQLAlchemyError

from board_automation.application.use_cases.automation import build_automation_engine
from board_automation.config import configure_logging, get_settings
from board_automation.infrastructure.database import SessionLocal, engine, initialize_database

logger = logging.getLogger("board_automation.scheduler_worker")


def parse_args() -> argparse.Namespace:
    """Parse command line arguments for the scheduler worker."""

    parser = argparse.ArgumentParser(
        description="Scan time-based automation rules and auto-archive columns.",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single scan and exit instead of polling.",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds between scans (defaults to AUTOMATION_SCAN_INTERVAL_SECONDS).",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    settings = get_settings()
    if args.interval is not None:
        if args.interval <= 0:
            raise SystemExit("--interval must be positive")
        settings = settings.model_copy(update={"automation_scan_interval_seconds": args.interval})
    configure_logging(settings)

    try:
        initialize_database()
    except SQLAlchemyError as exc:
        raise SystemExit(f"Database is not reachable: {exc}") from exc

    automation = build_automation_engine(SessionLocal, settings, run_scheduler_on_start=True)
    if args.once:
        report = automation.scheduler.run_once()
        logger.info(
            "Scan finished: %s rules, %s cards matched, %s auto-archived",
            report.rules_scanned,
            report.cards_matched,
            report.cards_auto_archived,
        )
        automation.shutdown()
        engine.dispose()
        return

    stop_event = threading.Event()

    def _handle_signal(signum, _frame) -> None:
        logger.info("Received signal %s, stopping", signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    automation.scheduler.start()
    try:
        stop_event.wait()
    finally:
        automation.shutdown()
        engine.dispose()


if __name__ == "__main__":
    main()
