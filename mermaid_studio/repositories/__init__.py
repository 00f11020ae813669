"""Data access repositories."""

from .base import BaseFileRepository, generate_id, validate_id
from .diagram_repository import DiagramRepository
from .version_repository import VersionRepository

__all__ = [
    "BaseFileRepository",
    "generate_id",
    "validate_id",
    "DiagramRepository",
    "VersionRepository",
]
