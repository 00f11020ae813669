"""Version schemas."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class VersionMetadata(BaseModel):
    """One entry of a diagram's version index."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    diagram_id: str = Field(alias="diagramId")
    prompt: Optional[str] = None
    created_at: int = Field(alias="createdAt")  # epoch milliseconds


class DiagramVersion(VersionMetadata):
    """Immutable snapshot of a diagram's content."""
    content: str
