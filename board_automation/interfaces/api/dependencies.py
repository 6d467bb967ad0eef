"""FastAPI dependency utilities."""

from collections.abc import Generator

from fastapi import Request
from sqlalchemy.orm import Session

from board_automation.application.use_cases.automation import AutomationEngine


def get_db(request: Request) -> Generator[Session, None, None]:
    """Yield a session from the application's session factory and close it afterwards."""

    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_automation_engine(request: Request) -> AutomationEngine:
    return request.app.state.automation


__all__ = ["get_automation_engine", "get_db"]
