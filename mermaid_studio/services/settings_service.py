"""Settings store: a flat string→string map persisted as one JSON file.

The file is read once at construction; afterwards the in-memory dict is the
source of truth for reads, and every mutation rewrites the whole file.
Construct one instance per process and pass it to collaborators.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Optional

from ..exceptions import StorageError

logger = logging.getLogger(__name__)

MODEL_KEY = "model"
# Written by earlier releases; read when MODEL_KEY is unset.
LEGACY_MODEL_KEY = "openai_model"
API_BASE_KEY = "api_base"


class SettingsService:
    """In-memory settings cache backed by whole-file persistence."""

    def __init__(self, settings_path: Path, default_model: str = "gpt-5"):
        self.settings_path = Path(settings_path)
        self.default_model = default_model
        self._settings: Dict[str, str] = self._load()

    def _load(self) -> Dict[str, str]:
        """Read settings.json. A missing or unreadable file starts empty."""
        if not self.settings_path.exists():
            return {}
        try:
            with open(self.settings_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to load settings, starting empty: %s", e, extra={"path": str(self.settings_path)})
            return {}
        if not isinstance(data, dict):
            logger.error("Settings file is not a JSON object, starting empty", extra={"path": str(self.settings_path)})
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _save(self) -> None:
        try:
            self.settings_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.settings_path, "w", encoding="utf-8") as f:
                json.dump(self._settings, f, indent=2, ensure_ascii=False)
        except OSError as e:
            logger.error("Failed to save settings: %s", e)
            raise StorageError(f"Failed to write {self.settings_path.name}: {e}", e) from e

    def get(self, key: str) -> Optional[str]:
        """Value for *key*; missing and empty values both read as None."""
        return self._settings.get(key) or None

    def set(self, key: str, value: str) -> None:
        self._settings[key] = value
        self._save()

    def delete(self, key: str) -> None:
        if key not in self._settings:
            return
        del self._settings[key]
        self._save()

    def get_all(self) -> Dict[str, str]:
        """Copy of every stored setting."""
        return dict(self._settings)

    def get_model(self) -> str:
        """Model used for generation; falls back to the configured default."""
        return self.get(MODEL_KEY) or self.get(LEGACY_MODEL_KEY) or self.default_model

    def set_model(self, model: str) -> None:
        self.set(MODEL_KEY, model)

    def get_api_base(self) -> Optional[str]:
        """Custom provider endpoint, if the user configured one."""
        return self.get(API_BASE_KEY)
