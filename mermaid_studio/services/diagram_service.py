"""Diagram service: deep module for diagram lifecycle.

Owns CRUD for diagrams and their append-only version history. Callers
interact with a single service; coordination between the metadata index,
content files, and version indexes is hidden behind the interface.

There is no locking and no transaction spanning several files: this store
assumes one process and one caller at a time. Concurrent writers to the
same index lose updates (last write wins).
"""

import logging
import time
from pathlib import Path
from typing import Callable, List, Optional

from ..exceptions import DiagramNotFoundError, VersionNotFoundError
from ..repositories import DiagramRepository, VersionRepository, generate_id
from ..schemas.diagram import Diagram, DiagramMetadata
from ..schemas.version import DiagramVersion

logger = logging.getLogger(__name__)

VERSIONS_DIRNAME = "versions"


def _now_ms() -> int:
    return int(time.time() * 1000)


class DiagramService:
    """Deep module for diagram operations.

    Every successful ``create`` or ``update`` appends exactly one version
    holding the resulting content. ``rename`` touches metadata only.
    """

    def __init__(self, diagrams_dir: Path, clock: Callable[[], int] = _now_ms):
        self.diagrams_dir = Path(diagrams_dir)
        self.diagram_repo = DiagramRepository(self.diagrams_dir)
        self.version_repo = VersionRepository(self.diagrams_dir / VERSIONS_DIRNAME)
        self._clock = clock

    def _load(self, diagram_id: str) -> tuple[dict[str, DiagramMetadata], DiagramMetadata]:
        """Load the index and the entry for *diagram_id*. Raises DiagramNotFoundError."""
        index = self.diagram_repo.load_index()
        meta = index.get(diagram_id)
        if meta is None:
            raise DiagramNotFoundError(diagram_id)
        return index, meta

    def list(self) -> List[Diagram]:
        """All diagrams with content, most recently updated first.

        Entries whose content file is missing are skipped and logged.
        """
        diagrams: List[Diagram] = []
        for diagram_id, meta in self.diagram_repo.load_index().items():
            content = self.diagram_repo.read_content(diagram_id)
            if content is None:
                logger.warning(
                    "Skipping diagram with missing content file",
                    extra={"diagram_id": diagram_id},
                )
                continue
            diagrams.append(Diagram(**meta.model_dump(), content=content))

        return sorted(diagrams, key=lambda d: d.updated_at, reverse=True)

    def get_by_id(self, diagram_id: str) -> Optional[Diagram]:
        """Get diagram by ID. Returns None if not found (caller decides what that means)."""
        meta = self.diagram_repo.load_index().get(diagram_id)
        if meta is None:
            return None

        content = self.diagram_repo.read_content(diagram_id)
        if content is None:
            logger.warning(
                "Diagram indexed but content file missing",
                extra={"diagram_id": diagram_id},
            )
            return None
        return Diagram(**meta.model_dump(), content=content)

    def create(self, name: str, content: str, prompt: Optional[str] = None) -> Diagram:
        """Create a diagram and its first version.

        A failure after the content file is written but before the index is
        saved leaves an orphaned ``.mmd`` file behind; it is not cleaned up.
        """
        index = self.diagram_repo.load_index()
        now = self._clock()
        diagram_id = generate_id(now, index)

        self.diagram_repo.write_content(diagram_id, content)

        meta = DiagramMetadata(
            id=diagram_id,
            name=name,
            prompt=prompt,
            created_at=now,
            updated_at=now,
        )
        index[diagram_id] = meta
        self.diagram_repo.save_index(index)

        self.version_repo.create(diagram_id, content, prompt, now)

        logger.info("Created diagram", extra={"diagram_id": diagram_id, "diagram_name": name})
        return Diagram(**meta.model_dump(), content=content)

    def update(self, diagram_id: str, content: str, prompt: Optional[str] = None) -> Diagram:
        """Replace content, append a version, and bump ``updated_at``.

        The stored prompt is replaced only when *prompt* is given.
        """
        index, meta = self._load(diagram_id)
        now = self._clock()

        self.diagram_repo.write_content(diagram_id, content)
        self.version_repo.create(diagram_id, content, prompt, now)

        updated = meta.model_copy(update={
            "prompt": prompt if prompt is not None else meta.prompt,
            "updated_at": now,
        })
        index[diagram_id] = updated
        self.diagram_repo.save_index(index)

        logger.info("Updated diagram", extra={"diagram_id": diagram_id, "diagram_name": meta.name})
        return Diagram(**updated.model_dump(), content=content)

    def delete(self, diagram_id: str) -> None:
        """Delete a diagram, its content file, and its whole version history.

        Files already missing are skipped; the remaining deletions still run.
        """
        index, meta = self._load(diagram_id)

        if not self.diagram_repo.delete_content(diagram_id):
            logger.warning(
                "Diagram content already missing during delete",
                extra={"diagram_id": diagram_id},
            )
        removed_versions = self.version_repo.delete_all(diagram_id)

        del index[diagram_id]
        self.diagram_repo.save_index(index)

        logger.info(
            "Deleted diagram",
            extra={"diagram_id": diagram_id, "diagram_name": meta.name, "versions_removed": removed_versions},
        )

    def rename(self, diagram_id: str, new_name: str) -> Diagram:
        """Change the name only. No version is created; content is re-read from disk."""
        index, meta = self._load(diagram_id)
        content = self.diagram_repo.read_content(diagram_id)
        if content is None:
            raise DiagramNotFoundError(diagram_id)

        renamed = meta.model_copy(update={"name": new_name, "updated_at": self._clock()})
        index[diagram_id] = renamed
        self.diagram_repo.save_index(index)

        logger.info(
            "Renamed diagram",
            extra={"diagram_id": diagram_id, "old_name": meta.name, "diagram_name": new_name},
        )
        return Diagram(**renamed.model_dump(), content=content)

    def list_versions(self, diagram_id: str) -> List[DiagramVersion]:
        """All versions of a diagram, newest first."""
        return self.version_repo.list(diagram_id)

    def get_version(self, diagram_id: str, version_id: str) -> Optional[DiagramVersion]:
        """Get specific version. Returns None if not found."""
        return self.version_repo.get(diagram_id, version_id)

    def restore_version(self, diagram_id: str, version_id: str) -> Diagram:
        """Make an old version current again.

        Restoring is an ordinary update: it appends a new version carrying
        the old content and prompt. Later versions are kept.
        """
        version = self.get_version(diagram_id, version_id)
        if version is None:
            raise VersionNotFoundError(version_id)

        logger.info(
            "Restoring version",
            extra={"diagram_id": diagram_id, "version_id": version_id},
        )
        return self.update(diagram_id, version.content, version.prompt)

    def count(self) -> int:
        """Number of entries in the metadata index."""
        return len(self.diagram_repo.load_index())
