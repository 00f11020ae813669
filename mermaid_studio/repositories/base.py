"""Base repository with shared file-access patterns.

Both indexes (the diagram metadata index and the per-diagram version
indexes) are whole JSON documents that are read, modified, and written
back in full. Content lives in sibling ``.mmd`` files. This module holds
the pieces every repository needs: id generation, id validation, and
file helpers that turn ``OSError`` / JSON failures into ``StorageError``.
"""

import json
import logging
import os
import re
import tempfile
import uuid
from pathlib import Path
from typing import Any, Callable, Container, Optional

from ..exceptions import StorageError, ValidationError

logger = logging.getLogger(__name__)

# Ids are joined into file names, so only a conservative alphabet is accepted.
_SAFE_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")

# Hex chars of random suffix appended to the millisecond timestamp.
ID_RANDOM_LENGTH = 8


def generate_id(now_ms: int, existing: Container[str] = ()) -> str:
    """Generate ``<epoch-ms>-<random hex>``, re-drawing until it is not in *existing*."""
    while True:
        candidate = f"{now_ms}-{uuid.uuid4().hex[:ID_RANDOM_LENGTH]}"
        if candidate not in existing:
            return candidate
        logger.debug("Generated id %s collided, retrying", candidate)


def validate_id(entity_id: str, field: str = "id") -> str:
    """Reject ids that could escape the storage directory."""
    if not isinstance(entity_id, str) or not _SAFE_ID_RE.match(entity_id):
        raise ValidationError(f"Invalid {field}: {entity_id!r}", field=field)
    return entity_id


class BaseFileRepository:
    """Shared file logic for repositories rooted at one directory.

    Subclasses build their own path helpers on top of ``root``.
    """

    def __init__(self, root: Path):
        self.root = Path(root)
        if not self.root.exists():
            self.root.mkdir(parents=True, exist_ok=True)
            logger.info("Created storage directory", extra={"path": str(self.root)})

    # --- JSON indexes -----------------------------------------------------

    def _read_json(self, path: Path, default_factory: Callable[[], Any]) -> Any:
        """Load a JSON index; a missing file yields ``default_factory()``.

        A file that exists but cannot be parsed is an error, not an empty
        index: treating it as empty would erase it on the next write.
        """
        if not path.exists():
            return default_factory()
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            logger.error("Corrupt index file", extra={"path": str(path), "error": str(e)})
            raise StorageError(f"Corrupt index file {path.name}: {e}", e) from e
        except OSError as e:
            raise StorageError(f"Failed to read {path.name}: {e}", e) from e

    def _write_json(self, path: Path, data: Any) -> None:
        """Write a JSON index through a temp file and ``os.replace``."""
        try:
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            logger.error("Failed to save index", extra={"path": str(path), "error": str(e)})
            raise StorageError(f"Failed to write {path.name}: {e}", e) from e

    # --- Content files ----------------------------------------------------

    @staticmethod
    def _read_text(path: Path) -> Optional[str]:
        """Return file content, or None when the file does not exist."""
        try:
            # newline="" keeps \r\n and lone \r exactly as written.
            with open(path, "r", encoding="utf-8", newline="") as f:
                return f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read {path.name}: {e}", e) from e

    @staticmethod
    def _write_text(path: Path, content: str) -> None:
        try:
            with open(path, "w", encoding="utf-8", newline="") as f:
                f.write(content)
        except OSError as e:
            raise StorageError(f"Failed to write {path.name}: {e}", e) from e

    @staticmethod
    def _remove(path: Path) -> bool:
        """Delete *path* if present. Returns True when a file was removed."""
        if not path.exists():
            return False
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Failed to delete {path.name}: {e}", e) from e
        return True
