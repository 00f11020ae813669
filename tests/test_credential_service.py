"""Tests for the credential store and the keyring-backed encryption."""

import base64

import pytest
from keyring.backends import fail

from mermaid_studio.services import CredentialService, KeyringEncryption
from mermaid_studio.services.credential_service import (
    API_KEY,
    ENCRYPTED_API_KEY,
    LEGACY_API_KEY,
    MASTER_KEY_USERNAME,
)

KEY = "sk-test-0123456789abcdefghijklmnop"


@pytest.fixture()
def plaintext_only(settings_service):
    """Credential store on a machine without OS secret storage."""
    return CredentialService(settings_service, KeyringEncryption("mermaid-studio-test", backend=fail.Keyring()))


class TestKeyringEncryption:

    def test_round_trip(self, encryption):
        blob = encryption.encrypt_string(KEY)
        assert KEY.encode() not in blob
        assert encryption.decrypt_string(blob) == KEY

    def test_master_key_created_once(self, encryption, keyring_backend):
        assert encryption.is_available()
        stored = keyring_backend.get_password("mermaid-studio-test", MASTER_KEY_USERNAME)
        assert len(base64.b64decode(stored)) == 32

        encryption.encrypt_string("x")
        assert keyring_backend.get_password("mermaid-studio-test", MASTER_KEY_USERNAME) == stored

    def test_fail_backend_is_unavailable(self):
        assert KeyringEncryption("svc", backend=fail.Keyring()).is_available() is False

    def test_tampered_blob_rejected(self, encryption):
        blob = bytearray(encryption.encrypt_string(KEY))
        blob[-1] ^= 0x01
        with pytest.raises(ValueError):
            encryption.decrypt_string(bytes(blob))

    def test_short_blob_rejected(self, encryption):
        with pytest.raises(ValueError):
            encryption.decrypt_string(b"short")


class TestCredentialService:

    def test_no_key(self, credential_service):
        assert credential_service.get_api_key() is None
        assert credential_service.has_api_key() is False

    def test_set_then_get_encrypted(self, credential_service, settings_service):
        credential_service.set_api_key(KEY)

        assert credential_service.get_api_key() == KEY
        assert credential_service.has_api_key() is True
        assert settings_service.get(API_KEY) is None
        assert KEY not in settings_service.get(ENCRYPTED_API_KEY)

    def test_set_removes_legacy_plaintext(self, credential_service, settings_service, config):
        settings_service.set(API_KEY, "sk-legacy-key-aaaaaaaaaaaaaaaaaaaa")
        credential_service.set_api_key(KEY)

        assert settings_service.get(API_KEY) is None
        assert KEY not in config.settings_path.read_text(encoding="utf-8")

    def test_legacy_plaintext_read_when_no_encrypted_value(self, credential_service, settings_service):
        settings_service.set(API_KEY, "sk-legacy-key-aaaaaaaaaaaaaaaaaaaa")
        assert credential_service.get_api_key() == "sk-legacy-key-aaaaaaaaaaaaaaaaaaaa"

    def test_reads_key_written_by_earlier_release(self, credential_service, settings_service):
        settings_service.set(LEGACY_API_KEY, KEY)
        assert credential_service.get_api_key() == KEY
        assert credential_service.has_api_key() is True

    def test_set_removes_earlier_release_key(self, credential_service, settings_service, config):
        settings_service.set(LEGACY_API_KEY, "sk-legacy-key-aaaaaaaaaaaaaaaaaaaa")
        credential_service.set_api_key(KEY)

        assert settings_service.get(LEGACY_API_KEY) is None
        assert "sk-legacy-key" not in config.settings_path.read_text(encoding="utf-8")
        assert credential_service.get_api_key() == KEY

    def test_masked_api_key(self, credential_service):
        assert credential_service.masked_api_key() is None
        credential_service.set_api_key(KEY)
        assert credential_service.masked_api_key() == "****mnop"

    def test_masked_short_key_hides_everything(self, credential_service):
        credential_service.set_api_key("abc123")
        assert credential_service.masked_api_key() == "****"

    def test_unavailable_encryption_stores_plaintext(self, plaintext_only, settings_service):
        plaintext_only.set_api_key(KEY)

        assert settings_service.get(API_KEY) == KEY
        assert settings_service.get(ENCRYPTED_API_KEY) is None
        assert plaintext_only.get_api_key() == KEY

    def test_plaintext_fallback_clears_stale_encrypted_value(self, credential_service, settings_service):
        credential_service.set_api_key("sk-old-key-bbbbbbbbbbbbbbbbbbbbbb")
        fallback = CredentialService(
            settings_service, KeyringEncryption("mermaid-studio-test", backend=fail.Keyring())
        )

        fallback.set_api_key(KEY)

        assert settings_service.get(ENCRYPTED_API_KEY) is None
        assert fallback.get_api_key() == KEY

    def test_undecryptable_value_reads_as_none(self, credential_service, settings_service):
        settings_service.set(ENCRYPTED_API_KEY, base64.b64encode(b"x" * 48).decode("ascii"))
        assert credential_service.get_api_key() is None

    def test_invalid_base64_reads_as_none(self, credential_service, settings_service):
        settings_service.set(ENCRYPTED_API_KEY, "not base64!!")
        assert credential_service.get_api_key() is None

    def test_encrypted_value_without_keychain_reads_as_none(self, credential_service, settings_service):
        credential_service.set_api_key(KEY)
        no_keychain = CredentialService(
            settings_service, KeyringEncryption("mermaid-studio-test", backend=fail.Keyring())
        )
        assert no_keychain.get_api_key() is None

    def test_lost_master_key_reads_as_none(self, credential_service, keyring_backend):
        credential_service.set_api_key(KEY)
        keyring_backend.delete_password("mermaid-studio-test", MASTER_KEY_USERNAME)
        assert credential_service.get_api_key() is None
