"""FastAPI application entrypoint for the leaderboard scraper."""

from fastapi import FastAPI

from .api.v1.router import api_router
from .core.config import Settings, get_settings
from .jobs import AggregationRunner, register_scheduler


def create_app(settings: Settings | None = None) -> FastAPI:
    """Instantiate and configure the FastAPI application."""
    settings = settings or get_settings()
    app = FastAPI(title="Leaderboard Histogram API", version="0.1.0")
    app.state.runner = AggregationRunner(settings)
    app.include_router(api_router, prefix="/api/v1")
    register_scheduler(app, app.state.runner)
    return app


app = create_app()
