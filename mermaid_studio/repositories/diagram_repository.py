"""Diagram repository: the metadata index and current-content files.

Layout under ``root`` (the ``diagrams/`` directory)::

    metadata.json      {id: {id, name, prompt?, createdAt, updatedAt}}
    <id>.mmd           current content
"""

from pathlib import Path
from typing import Dict, Optional

from ..schemas.diagram import DiagramMetadata
from .base import BaseFileRepository, validate_id

METADATA_FILENAME = "metadata.json"
CONTENT_SUFFIX = ".mmd"


class DiagramRepository(BaseFileRepository):
    """Reads and writes the metadata index and diagram content files."""

    @property
    def metadata_path(self) -> Path:
        return self.root / METADATA_FILENAME

    def content_path(self, diagram_id: str) -> Path:
        validate_id(diagram_id, "diagram_id")
        return self.root / f"{diagram_id}{CONTENT_SUFFIX}"

    def load_index(self) -> Dict[str, DiagramMetadata]:
        """Load the whole metadata index, keyed by diagram id."""
        raw = self._read_json(self.metadata_path, dict)
        return {
            diagram_id: DiagramMetadata.model_validate({**entry, "id": diagram_id})
            for diagram_id, entry in raw.items()
        }

    def save_index(self, index: Dict[str, DiagramMetadata]) -> None:
        self._write_json(
            self.metadata_path,
            {
                diagram_id: meta.model_dump(by_alias=True, exclude_none=True)
                for diagram_id, meta in index.items()
            },
        )

    def read_content(self, diagram_id: str) -> Optional[str]:
        return self._read_text(self.content_path(diagram_id))

    def write_content(self, diagram_id: str, content: str) -> None:
        self._write_text(self.content_path(diagram_id), content)

    def delete_content(self, diagram_id: str) -> bool:
        return self._remove(self.content_path(diagram_id))
