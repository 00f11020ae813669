"""API routes."""

from .diagrams import router as diagrams_router
from .versions import router as versions_router
from .settings import router as settings_router, provider_router

__all__ = [
    "diagrams_router",
    "versions_router",
    "settings_router",
    "provider_router",
]
