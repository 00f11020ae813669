"""Exception hierarchy for Mermaid Studio.

Stores and the generation client raise these; the command surface turns
them into ``{success: false, error: {message, code, kind}}`` envelopes, using
``error_code`` as the ``kind``.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Failure categories shared by the stores and the command surface."""

    # Document store
    DIAGRAM_NOT_FOUND = "DIAGRAM_NOT_FOUND"
    VERSION_NOT_FOUND = "VERSION_NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    STORAGE_ERROR = "STORAGE_ERROR"

    # Credential store
    CREDENTIAL_MISSING = "CREDENTIAL_MISSING"
    ENCRYPTION_UNAVAILABLE = "ENCRYPTION_UNAVAILABLE"

    # Generation client
    PROVIDER_ERROR = "PROVIDER_ERROR"
    GENERATION_FAILED = "GENERATION_FAILED"

    INTERNAL_ERROR = "INTERNAL_ERROR"


class MermaidStudioError(Exception):
    """
    Root of every error this package raises on purpose.

    Attributes:
        message: Text shown to the user as-is.
        error_code: Category, reported as the envelope's ``kind``.
        details: Ids and other context for logs; never shown to the user.
    """

    default_code = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        error_code: Optional[ErrorCode] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Plain-dict form, for structured log records."""
        return {
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details,
        }


class DiagramNotFoundError(MermaidStudioError):
    """No metadata entry for the diagram id."""

    default_code = ErrorCode.DIAGRAM_NOT_FOUND

    def __init__(self, diagram_id: str):
        super().__init__(f"Diagram not found: {diagram_id}", details={"diagram_id": diagram_id})


class VersionNotFoundError(MermaidStudioError):
    """No version index entry (or no snapshot file) for the version id."""

    default_code = ErrorCode.VERSION_NOT_FOUND

    def __init__(self, version_id: str):
        super().__init__(f"Version not found: {version_id}", details={"version_id": version_id})


class ValidationError(MermaidStudioError):
    """Caller input the store refuses, e.g. an id that is not file-name safe."""

    default_code = ErrorCode.VALIDATION_ERROR

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, details={"field": field} if field else None)


class StorageError(MermaidStudioError):
    """A file under the data directory could not be read, parsed, or written."""

    default_code = ErrorCode.STORAGE_ERROR

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        details = {"original_error": str(original_error)} if original_error else None
        super().__init__(message, details=details)


class CredentialMissingError(MermaidStudioError):
    """Generation was requested but no provider API key is stored."""

    default_code = ErrorCode.CREDENTIAL_MISSING

    def __init__(
        self,
        message: str = "API key not configured. Set your API key in Settings before generating diagrams.",
    ):
        super().__init__(message)


class EncryptionUnavailableError(MermaidStudioError):
    """The OS keychain failed while sealing the API key."""

    default_code = ErrorCode.ENCRYPTION_UNAVAILABLE

    def __init__(self, message: str = "OS encryption is not available"):
        super().__init__(message)


class ProviderError(MermaidStudioError):
    """The completion provider call raised (auth, network, timeout, bad model)."""

    default_code = ErrorCode.PROVIDER_ERROR

    def __init__(self, message: str, model: Optional[str] = None):
        super().__init__(message, details={"model": model} if model else None)


class GenerationError(MermaidStudioError):
    """The provider answered, but with no diagram text."""

    default_code = ErrorCode.GENERATION_FAILED

    def __init__(self, message: str = "Empty diagram content returned"):
        super().__init__(message)
