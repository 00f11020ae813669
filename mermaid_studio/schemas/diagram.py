"""Diagram schemas.

Field names are snake_case in Python and camelCase on disk and on the wire
(``createdAt``, ``updatedAt``), so existing data directories stay readable.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class DiagramMetadata(BaseModel):
    """One entry of the metadata index (everything except content)."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    prompt: Optional[str] = None
    created_at: int = Field(alias="createdAt")  # epoch milliseconds
    updated_at: int = Field(alias="updatedAt")


class Diagram(DiagramMetadata):
    """A diagram joined with its current content."""
    content: str


class DiagramCreate(BaseModel):
    """Schema for creating a diagram."""
    name: str
    content: str
    prompt: Optional[str] = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Checkout flow",
                    "content": "flowchart TD\n  A[Cart] --> B[Payment]",
                    "prompt": "A checkout flow from cart to payment",
                }
            ]
        }
    }


class DiagramUpdate(BaseModel):
    """Schema for replacing a diagram's content."""
    content: str
    prompt: Optional[str] = None


class DiagramRename(BaseModel):
    """Schema for renaming a diagram."""

    model_config = ConfigDict(populate_by_name=True)

    new_name: str = Field(alias="newName")


class GenerateRequest(BaseModel):
    """Instruction for the generation client, optionally with the diagram to modify."""

    model_config = ConfigDict(populate_by_name=True)

    prompt: str
    existing_content: Optional[str] = Field(default=None, alias="existingContent")
