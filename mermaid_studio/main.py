"""Main FastAPI application."""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware

from . import __version__
from .api import diagrams_router, provider_router, settings_router, versions_router
from .commands import CommandSurface, build_command_surface
from .core.config import Settings
from .exceptions import MermaidStudioError
from .middleware.exception_handler import studio_exception_handler
from .middleware.request_context import RequestContextMiddleware

logger = logging.getLogger(__name__)


def create_app(config: Optional[Settings] = None, commands: Optional[CommandSurface] = None) -> FastAPI:
    """Build the API.

    One ``CommandSurface`` (and so one settings store) exists per app; it is
    created at startup unless *commands* is passed in.
    """
    config = config or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup / shutdown lifecycle for the Mermaid Studio API."""
        app.state.commands = commands or build_command_surface(config)
        app.state.started_at = time.monotonic()

        if not app.state.commands.credentials.has_api_key():
            logger.warning("No API key configured; diagram generation is disabled until one is set")

        logger.info(
            "Mermaid Studio API started | data_dir=%s | cors=%s",
            config.data_dir,
            ",".join(config.get_cors_origins()),
        )

        yield  # App runs here

    app = FastAPI(
        title="Mermaid Studio API",
        description=(
            "Local API for authoring, versioning, and AI-generating Mermaid diagrams. "
            "Every endpoint answers with an envelope: `{success: true, data}` or "
            "`{success: false, error: {message, code, kind}}`."
        ),
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type"],
    )
    app.add_middleware(RequestContextMiddleware)
    # Added last so it runs first: requests naming any other host get a 400.
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=config.get_trusted_hosts())

    app.add_exception_handler(MermaidStudioError, studio_exception_handler)

    app.include_router(diagrams_router)
    app.include_router(versions_router)
    app.include_router(settings_router)
    app.include_router(provider_router)

    @app.get("/")
    def root():
        """Root endpoint."""
        return {
            "name": "Mermaid Studio API",
            "version": __version__,
            "status": "running"
        }

    @app.get("/health")
    def health_check(request: Request):
        """Health check with storage status, uptime, and diagram count.

        Never raises; returns degraded status when the data directory cannot
        be read.
        """
        state = request.app.state
        storage_status = "ok"
        diagram_count = 0
        try:
            diagram_count = state.commands.diagrams.count()
        except (MermaidStudioError, OSError):
            storage_status = "error"

        return {
            "status": "healthy" if storage_status == "ok" else "degraded",
            "storage": storage_status,
            "uptime_seconds": round(time.monotonic() - state.started_at),
            "version": __version__,
            "diagram_count": diagram_count,
            "api_key_configured": state.commands.credentials.has_api_key(),
        }

    return app
