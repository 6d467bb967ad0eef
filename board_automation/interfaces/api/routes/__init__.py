from fastapi import FastAPI

from .automation import router as automation_router
from .cards import router as cards_router


def register_routes(app: FastAPI) -> None:
    """Register every API router on the FastAPI application."""

    app.include_router(automation_router)
    app.include_router(cards_router)
