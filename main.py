from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy.orm import Session, sessionmaker

from board_automation.application.use_cases.automation import build_automation_engine
from board_automation.config import Settings, configure_logging, get_settings
from board_automation.infrastructure.database import SessionLocal, initialize_database
from board_automation.interfaces.api.routes import register_routes


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and start the scheduler on startup; stop everything on shutdown."""

    settings: Settings = app.state.settings
    session_factory: sessionmaker[Session] = app.state.session_factory
    initialize_database(session_factory.kw["bind"])
    if settings.automation_scheduler_enabled:
        app.state.automation.scheduler.start()
    yield
    app.state.automation.shutdown()
    session_factory.kw["bind"].dispose()


def create_app(
    *,
    settings: Settings | None = None,
    session_factory: sessionmaker[Session] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = settings or get_settings()
    configure_logging(settings)
    session_factory = session_factory or SessionLocal

    app = FastAPI(title="Board Automation", lifespan=lifespan)
    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.automation = build_automation_engine(session_factory, settings)

    register_routes(app)
    return app


app = create_app()
