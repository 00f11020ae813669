"""Business logic services."""

from .diagram_service import DiagramService
from .settings_service import SettingsService
from .credential_service import CredentialService, EncryptionBackend, KeyringEncryption
from .generation_service import GenerationService

__all__ = [
    "DiagramService",
    "SettingsService",
    "CredentialService",
    "EncryptionBackend",
    "KeyringEncryption",
    "GenerationService",
]
