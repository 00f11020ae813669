"""Application configuration with validation."""

from pathlib import Path
from typing import Any, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_data_dir() -> Path:
    return Path.home() / ".mermaid-studio"


class Settings(BaseSettings):
    """
    Process-level configuration.

    Values come from ``MERMAID_STUDIO_*`` environment variables or a ``.env``
    file. User-editable preferences (API key, model choice) are not here;
    they live in the settings store under the data directory.
    """

    model_config = SettingsConfigDict(
        env_prefix="MERMAID_STUDIO_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage
    data_dir: Path = Field(
        default_factory=_default_data_dir,
        description="Directory holding diagrams/ and settings.json"
    )

    # Generation
    # Used when the settings store has no "model" entry.
    default_model: str = Field(
        default="gpt-5",
        description="LiteLLM model string used when none is saved in settings"
    )
    generation_timeout: float = Field(
        default=120.0,
        description="Seconds to wait for the completion provider before failing"
    )
    generation_max_tokens: int = Field(
        default=4096,
        description="Token limit for diagram generation requests"
    )
    generation_temperature: float = Field(
        default=0.7,
        description="Sampling temperature, sent only to models that accept it"
    )
    model_param_overrides: List[dict[str, Any]] = Field(
        default_factory=list,
        description=(
            "Extra request-shaping rules (JSON list), checked before the built-in table. "
            'Example: [{"prefix": "gpt-6", "token_param": "max_completion_tokens", "temperature": false}]'
        )
    )

    # Credential storage
    keyring_service: str = Field(
        default="mermaid-studio",
        description="Service name under which the master key is kept in the OS keychain"
    )

    # HTTP server
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8765)
    cors_allowed_origins: str = Field(
        default="http://localhost:5173,http://127.0.0.1:5173",
        description="Allowed CORS origins for the editor UI (comma-separated)"
    )
    trusted_hosts: str = Field(
        default="127.0.0.1,localhost",
        description="Host header values the API answers to (comma-separated)"
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_format: str = Field(
        default="json",
        description="Log output format: 'json' for structured, 'text' for human-readable"
    )

    def get_cors_origins(self) -> List[str]:
        """
        Get CORS origins as a list.

        Parses comma-separated string and validates no wildcards.
        """
        origins = [origin.strip() for origin in self.cors_allowed_origins.split(',') if origin.strip()]

        # The API exposes the user's provider key; never open it to every origin.
        if "*" in origins:
            raise ValueError(
                "Wildcard CORS (*) not allowed. "
                "Specify explicit origins in MERMAID_STUDIO_CORS_ALLOWED_ORIGINS"
            )

        return origins

    def get_trusted_hosts(self) -> List[str]:
        """Host names accepted in the Host header; rejects DNS rebinding from other names."""
        hosts = [host.strip() for host in self.trusted_hosts.split(',') if host.strip()]
        if not hosts or "*" in hosts:
            raise ValueError(
                "Wildcard trusted host (*) not allowed. "
                "Specify explicit host names in MERMAID_STUDIO_TRUSTED_HOSTS"
            )
        return hosts

    @property
    def diagrams_dir(self) -> Path:
        return self.data_dir / "diagrams"

    @property
    def settings_path(self) -> Path:
        return self.data_dir / "settings.json"

    @field_validator('data_dir')
    @classmethod
    def expand_data_dir(cls, v: Path) -> Path:
        return Path(v).expanduser()

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard Python logging levels."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v_upper

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v_lower = v.lower()
        if v_lower not in ('json', 'text'):
            raise ValueError("Invalid log format. Must be 'json' or 'text'")
        return v_lower
