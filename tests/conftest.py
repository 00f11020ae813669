"""Shared test fixtures for the Mermaid Studio test suite.

Every test gets its own temporary data directory, so stores never touch the
user's real ~/.mermaid-studio. The OS keychain is replaced by an in-memory
keyring backend and time by a deterministic clock.
"""

import os

os.environ["MERMAID_STUDIO_LOG_FORMAT"] = "text"

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from keyring.backend import KeyringBackend

from mermaid_studio.commands import CommandSurface
from mermaid_studio.core.config import Settings
from mermaid_studio.main import create_app
from mermaid_studio.services import (
    CredentialService,
    DiagramService,
    GenerationService,
    KeyringEncryption,
    SettingsService,
)


class InMemoryKeyring(KeyringBackend):
    """Keyring backend that keeps passwords in a dict."""

    priority = 1

    def __init__(self):
        super().__init__()
        self.passwords: dict[tuple[str, str], str] = {}

    def get_password(self, service, username):
        return self.passwords.get((service, username))

    def set_password(self, service, username, password):
        self.passwords[(service, username)] = password

    def delete_password(self, service, username):
        self.passwords.pop((service, username), None)


class FakeClock:
    """Millisecond clock that advances one second per reading."""

    def __init__(self, start: int = 1_700_000_000_000, step: int = 1000):
        self.now = start
        self.step = step

    def __call__(self) -> int:
        self.now += self.step
        return self.now


def make_completion(content):
    """LiteLLM-shaped response whose first choice carries *content*."""
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    return response


@pytest.fixture()
def config(tmp_path) -> Settings:
    return Settings(
        data_dir=tmp_path,
        log_format="text",
        default_model="gpt-4o-mini",
        trusted_hosts="127.0.0.1,localhost,testserver",
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def diagram_service(config, clock) -> DiagramService:
    return DiagramService(config.diagrams_dir, clock=clock)


@pytest.fixture()
def settings_service(config) -> SettingsService:
    return SettingsService(config.settings_path, default_model=config.default_model)


@pytest.fixture()
def keyring_backend() -> InMemoryKeyring:
    return InMemoryKeyring()


@pytest.fixture()
def encryption(keyring_backend) -> KeyringEncryption:
    return KeyringEncryption("mermaid-studio-test", backend=keyring_backend)


@pytest.fixture()
def credential_service(settings_service, encryption) -> CredentialService:
    return CredentialService(settings_service, encryption)


@pytest.fixture()
def generation_service(settings_service, credential_service) -> GenerationService:
    return GenerationService(settings_service, credential_service, timeout=5.0)


@pytest.fixture()
def commands(diagram_service, settings_service, credential_service, generation_service) -> CommandSurface:
    return CommandSurface(diagram_service, settings_service, credential_service, generation_service)


@pytest.fixture()
def client(config, commands):
    """FastAPI TestClient wired to the per-test command surface."""
    app = create_app(config, commands=commands)
    with TestClient(app) as c:
        yield c


def make_diagram(
    name: str = "Test Diagram",
    content: str = "flowchart TD\n  A --> B",
    **overrides,
) -> dict:
    """Factory for diagram creation payloads."""
    payload = {"name": name, "content": content}
    payload.update(overrides)
    return payload
