"""Version repository: per-diagram version indexes and snapshot files.

Layout under ``root`` (the ``diagrams/versions/`` directory)::

    <diagramId>-versions.json       [{id, diagramId, prompt?, createdAt}, ...]
    <diagramId>-<versionId>.mmd     snapshot content
"""

import logging
from pathlib import Path
from typing import List, Optional

from ..schemas.version import DiagramVersion, VersionMetadata
from .base import BaseFileRepository, generate_id, validate_id

logger = logging.getLogger(__name__)


class VersionRepository(BaseFileRepository):
    """Append-only version history, one index file per diagram."""

    def index_path(self, diagram_id: str) -> Path:
        validate_id(diagram_id, "diagram_id")
        return self.root / f"{diagram_id}-versions.json"

    def content_path(self, diagram_id: str, version_id: str) -> Path:
        validate_id(diagram_id, "diagram_id")
        validate_id(version_id, "version_id")
        return self.root / f"{diagram_id}-{version_id}.mmd"

    def load_index(self, diagram_id: str) -> List[VersionMetadata]:
        """Load the version index in append order. Missing index → empty list."""
        raw = self._read_json(self.index_path(diagram_id), list)
        return [VersionMetadata.model_validate(entry) for entry in raw]

    def save_index(self, diagram_id: str, versions: List[VersionMetadata]) -> None:
        self._write_json(
            self.index_path(diagram_id),
            [v.model_dump(by_alias=True, exclude_none=True) for v in versions],
        )

    def create(self, diagram_id: str, content: str, prompt: Optional[str], now_ms: int) -> DiagramVersion:
        """Write a snapshot file and append its entry to the diagram's index."""
        versions = self.load_index(diagram_id)
        version_id = generate_id(now_ms, {v.id for v in versions})

        self._write_text(self.content_path(diagram_id, version_id), content)

        meta = VersionMetadata(id=version_id, diagram_id=diagram_id, prompt=prompt, created_at=now_ms)
        versions.append(meta)
        self.save_index(diagram_id, versions)

        logger.info(
            "Created version",
            extra={"diagram_id": diagram_id, "version_id": version_id},
        )
        return DiagramVersion(**meta.model_dump(), content=content)

    def read_content(self, diagram_id: str, version_id: str) -> Optional[str]:
        return self._read_text(self.content_path(diagram_id, version_id))

    def get(self, diagram_id: str, version_id: str) -> Optional[DiagramVersion]:
        """Get one version, or None if it is not indexed or its file is gone."""
        meta = next((v for v in self.load_index(diagram_id) if v.id == version_id), None)
        if meta is None:
            return None
        content = self.read_content(diagram_id, version_id)
        if content is None:
            logger.warning(
                "Version indexed but content file missing",
                extra={"diagram_id": diagram_id, "version_id": version_id},
            )
            return None
        return DiagramVersion(**meta.model_dump(), content=content)

    def list(self, diagram_id: str) -> List[DiagramVersion]:
        """All versions with content, newest first.

        Equal timestamps keep most-recently-appended first. Entries whose
        snapshot file is missing are skipped with a warning.
        """
        versions: List[DiagramVersion] = []
        for meta in reversed(self.load_index(diagram_id)):
            content = self.read_content(diagram_id, meta.id)
            if content is None:
                logger.warning(
                    "Skipping version with missing content file",
                    extra={"diagram_id": diagram_id, "version_id": meta.id},
                )
                continue
            versions.append(DiagramVersion(**meta.model_dump(), content=content))

        # sorted() is stable, so the reversed append order breaks ties.
        return sorted(versions, key=lambda v: v.created_at, reverse=True)

    def delete_all(self, diagram_id: str) -> int:
        """Remove every snapshot file and the index. Returns snapshots removed."""
        removed = 0
        for meta in self.load_index(diagram_id):
            if self._remove(self.content_path(diagram_id, meta.id)):
                removed += 1
            else:
                logger.warning(
                    "Version content already missing during delete",
                    extra={"diagram_id": diagram_id, "version_id": meta.id},
                )
        self._remove(self.index_path(diagram_id))
        return removed
