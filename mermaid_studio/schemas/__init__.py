"""Pydantic schemas for persisted records and API payloads."""

from .diagram import (
    DiagramMetadata,
    Diagram,
    DiagramCreate,
    DiagramUpdate,
    DiagramRename,
    GenerateRequest,
)
from .version import (
    VersionMetadata,
    DiagramVersion,
)
from .command import (
    CommandError,
    CommandResponse,
)

__all__ = [
    "DiagramMetadata",
    "Diagram",
    "DiagramCreate",
    "DiagramUpdate",
    "DiagramRename",
    "GenerateRequest",
    "VersionMetadata",
    "DiagramVersion",
    "CommandError",
    "CommandResponse",
]
