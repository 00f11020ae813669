"""Command surface: the named operations a UI (or an AI editor) can invoke.

Each command calls exactly one store or client method and wraps the outcome
in a ``CommandResponse`` envelope. This is the only layer that turns
exceptions into results: stores raise, commands report. Store calls are
synchronous file I/O, so they run in a worker thread to keep the caller's
event loop free.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Callable, Optional

from .core.config import Settings
from .core.model_config import parse_rules
from .exceptions import ErrorCode, MermaidStudioError
from .schemas.command import CommandResponse
from .services import (
    CredentialService,
    DiagramService,
    EncryptionBackend,
    GenerationService,
    KeyringEncryption,
    SettingsService,
)
from .services.credential_service import API_KEY, CREDENTIAL_KEYS, LEGACY_API_KEY

logger = logging.getLogger(__name__)


class CommandCode(str, Enum):
    """Failure code per operation, so callers can tell which action failed."""

    DIAGRAM_LIST = "DIAGRAM_LIST_ERROR"
    DIAGRAM_GET = "DIAGRAM_GET_ERROR"
    DIAGRAM_CREATE = "DIAGRAM_CREATE_ERROR"
    DIAGRAM_UPDATE = "DIAGRAM_UPDATE_ERROR"
    DIAGRAM_DELETE = "DIAGRAM_DELETE_ERROR"
    DIAGRAM_RENAME = "DIAGRAM_RENAME_ERROR"
    DIAGRAM_GENERATE = "DIAGRAM_GENERATE_ERROR"
    DIAGRAM_REVEAL = "DIAGRAM_REVEAL_ERROR"
    DIAGRAM_LIST_VERSIONS = "DIAGRAM_LIST_VERSIONS_ERROR"
    DIAGRAM_GET_VERSION = "DIAGRAM_GET_VERSION_ERROR"
    DIAGRAM_RESTORE_VERSION = "DIAGRAM_RESTORE_VERSION_ERROR"
    SETTINGS_GET = "SETTINGS_GET_ERROR"
    SETTINGS_SET = "SETTINGS_SET_ERROR"
    SETTINGS_GET_ALL = "SETTINGS_GET_ALL_ERROR"
    PROVIDER_TEST = "PROVIDER_TEST_ERROR"


_FALLBACK_MESSAGES = {
    CommandCode.DIAGRAM_LIST: "Failed to list diagrams",
    CommandCode.DIAGRAM_GET: "Failed to get diagram",
    CommandCode.DIAGRAM_CREATE: "Failed to create diagram",
    CommandCode.DIAGRAM_UPDATE: "Failed to update diagram",
    CommandCode.DIAGRAM_DELETE: "Failed to delete diagram",
    CommandCode.DIAGRAM_RENAME: "Failed to rename diagram",
    CommandCode.DIAGRAM_GENERATE: "Failed to generate diagram",
    CommandCode.DIAGRAM_REVEAL: "Failed to locate diagrams folder",
    CommandCode.DIAGRAM_LIST_VERSIONS: "Failed to list versions",
    CommandCode.DIAGRAM_GET_VERSION: "Failed to get version",
    CommandCode.DIAGRAM_RESTORE_VERSION: "Failed to restore version",
    CommandCode.SETTINGS_GET: "Failed to get setting",
    CommandCode.SETTINGS_SET: "Failed to set setting",
    CommandCode.SETTINGS_GET_ALL: "Failed to get settings",
    CommandCode.PROVIDER_TEST: "Failed to connect to the completion provider",
}


class CommandSurface:
    """Uniformly-enveloped async operations over the stores and the generation client."""

    def __init__(
        self,
        diagrams: DiagramService,
        settings: SettingsService,
        credentials: CredentialService,
        generator: GenerationService,
    ):
        self.diagrams = diagrams
        self.settings = settings
        self.credentials = credentials
        self.generator = generator

    async def _run(self, code: CommandCode, func: Callable[..., Any], *args: Any) -> CommandResponse:
        try:
            data = await asyncio.to_thread(func, *args)
        except MermaidStudioError as e:
            logger.warning(
                "Command %s failed: %s",
                code.value, e.message,
                extra={"error_code": code.value, "error": e.to_dict()},
            )
            return CommandResponse.fail(code.value, e.message, e.error_code.value)
        except OSError as e:
            logger.error("Command %s failed with I/O error: %s", code.value, e, extra={"error_code": code.value})
            return CommandResponse.fail(
                code.value, str(e) or _FALLBACK_MESSAGES[code], ErrorCode.STORAGE_ERROR.value
            )
        except Exception as e:
            logger.exception("Command %s failed unexpectedly", code.value, extra={"error_code": code.value})
            return CommandResponse.fail(
                code.value, str(e) or _FALLBACK_MESSAGES[code], ErrorCode.INTERNAL_ERROR.value
            )
        return CommandResponse.ok(data)

    # --- Diagrams ---------------------------------------------------------

    async def list_diagrams(self) -> CommandResponse:
        return await self._run(CommandCode.DIAGRAM_LIST, self.diagrams.list)

    async def get_diagram(self, diagram_id: str) -> CommandResponse:
        """Absent diagrams come back as ``success`` with ``data=None``."""
        return await self._run(CommandCode.DIAGRAM_GET, self.diagrams.get_by_id, diagram_id)

    async def create_diagram(self, name: str, content: str, prompt: Optional[str] = None) -> CommandResponse:
        return await self._run(CommandCode.DIAGRAM_CREATE, self.diagrams.create, name, content, prompt)

    async def update_diagram(self, diagram_id: str, content: str, prompt: Optional[str] = None) -> CommandResponse:
        return await self._run(CommandCode.DIAGRAM_UPDATE, self.diagrams.update, diagram_id, content, prompt)

    async def delete_diagram(self, diagram_id: str) -> CommandResponse:
        return await self._run(CommandCode.DIAGRAM_DELETE, self.diagrams.delete, diagram_id)

    async def rename_diagram(self, diagram_id: str, new_name: str) -> CommandResponse:
        return await self._run(CommandCode.DIAGRAM_RENAME, self.diagrams.rename, diagram_id, new_name)

    async def generate_diagram(self, prompt: str, existing_content: Optional[str] = None) -> CommandResponse:
        return await self._run(CommandCode.DIAGRAM_GENERATE, self.generator.generate, prompt, existing_content)

    async def data_location(self) -> CommandResponse:
        """Path of the diagrams folder, for "show in file manager" actions."""
        return await self._run(CommandCode.DIAGRAM_REVEAL, lambda: str(self.diagrams.diagrams_dir))

    # --- Versions ---------------------------------------------------------

    async def list_versions(self, diagram_id: str) -> CommandResponse:
        return await self._run(CommandCode.DIAGRAM_LIST_VERSIONS, self.diagrams.list_versions, diagram_id)

    async def get_version(self, diagram_id: str, version_id: str) -> CommandResponse:
        return await self._run(CommandCode.DIAGRAM_GET_VERSION, self.diagrams.get_version, diagram_id, version_id)

    async def restore_version(self, diagram_id: str, version_id: str) -> CommandResponse:
        return await self._run(
            CommandCode.DIAGRAM_RESTORE_VERSION, self.diagrams.restore_version, diagram_id, version_id
        )

    # --- Settings ---------------------------------------------------------

    def _get_setting(self, key: str) -> Optional[str]:
        # The key itself never leaves the process; callers see a masked form.
        if key in CREDENTIAL_KEYS:
            return self.credentials.masked_api_key()
        return self.settings.get(key)

    def _set_setting(self, key: str, value: str) -> None:
        # The API key is routed through the credential store.
        if key in (API_KEY, LEGACY_API_KEY):
            self.credentials.set_api_key(value)
        else:
            self.settings.set(key, value)

    def _get_all_settings(self) -> dict[str, str]:
        return {k: v for k, v in self.settings.get_all().items() if k not in CREDENTIAL_KEYS}

    async def get_setting(self, key: str) -> CommandResponse:
        return await self._run(CommandCode.SETTINGS_GET, self._get_setting, key)

    async def set_setting(self, key: str, value: str) -> CommandResponse:
        return await self._run(CommandCode.SETTINGS_SET, self._set_setting, key, value)

    async def get_all_settings(self) -> CommandResponse:
        return await self._run(CommandCode.SETTINGS_GET_ALL, self._get_all_settings)

    # --- Provider ---------------------------------------------------------

    async def test_provider(self) -> CommandResponse:
        """Round-trip a fixed prompt; data is ``{"model", "message"}``."""
        return await self._run(CommandCode.PROVIDER_TEST, self.generator.test_connection)


def build_command_surface(config: Settings, encryption: Optional[EncryptionBackend] = None) -> CommandSurface:
    """Wire one instance of every store for this process.

    *encryption* defaults to the OS keychain backed implementation.
    """
    config.data_dir.mkdir(parents=True, exist_ok=True)

    settings = SettingsService(config.settings_path, default_model=config.default_model)
    credentials = CredentialService(settings, encryption or KeyringEncryption(config.keyring_service))
    generator = GenerationService(
        settings,
        credentials,
        timeout=config.generation_timeout,
        max_tokens=config.generation_max_tokens,
        temperature=config.generation_temperature,
        param_overrides=tuple(parse_rules(config.model_param_overrides)),
    )
    diagrams = DiagramService(config.diagrams_dir)

    logger.info(
        "Command surface ready",
        extra={"data_dir": str(config.data_dir), "model": settings.get_model()},
    )
    return CommandSurface(diagrams, settings, credentials, generator)
