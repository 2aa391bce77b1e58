"""
FastAPI application entrypoint for the multi-domain authentication service.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from app.api.routes import api_router
from app.api.routes import router as auth_router
from app.core.config import get_settings
from app.core.errors import AuthFlowError
from app.core.logging import configure_logging
from app.dependencies import get_state_store
from app.services import StateSweeper


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    store_factory = app.dependency_overrides.get(get_state_store, get_state_store)
    sweeper = StateSweeper(
        store_factory(), interval_seconds=settings.state_store.sweep_interval_seconds
    )
    sweeper.start()
    app.state.state_sweeper = sweeper
    try:
        yield
    finally:
        await sweeper.stop()


async def handle_auth_flow_error(request: Request, exc: AuthFlowError) -> Response:
    """Render flow failures as JSON for the API and plain text for browser redirects."""
    if request.url.path.startswith("/api/"):
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)
    return PlainTextResponse(exc.message, status_code=exc.status_code)


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Multi-Domain Auth Service",
        version="0.1.0",
        description="OAuth orchestration issuing domain-scoped session tokens.",
        lifespan=lifespan,
    )
    app.add_exception_handler(AuthFlowError, handle_auth_flow_error)
    app.include_router(auth_router)
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()

__all__ = ["app", "create_app"]
