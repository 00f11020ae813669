"""Credential store for the provider API key.

The key is sealed with an OS-backed encryption primitive and saved,
base64-encoded, in the settings store under ``api_key_encrypted``. When the
primitive is not available the key is kept in plaintext under ``api_key``
(a degraded-security condition that is logged, not an error). The
plaintext key is also read as a fallback so older settings files keep
working.
"""

import base64
import binascii
import logging
from typing import Optional

import keyring
from Crypto.Cipher import AES
from Crypto.Random import get_random_bytes
from keyring.backend import KeyringBackend
from keyring.backends import fail
from keyring.errors import KeyringError

from ..exceptions import EncryptionUnavailableError
from .settings_service import SettingsService

logger = logging.getLogger(__name__)

API_KEY = "api_key"
ENCRYPTED_API_KEY = "api_key_encrypted"

# Key names written by earlier releases. The plaintext one is still read;
# the encrypted one was sealed by a different OS facility and is only hidden.
LEGACY_API_KEY = "openai_api_key"
LEGACY_ENCRYPTED_API_KEY = "openai_api_key_encrypted"

# Settings keys that hold the credential in some form; never echoed back.
CREDENTIAL_KEYS = frozenset({API_KEY, ENCRYPTED_API_KEY, LEGACY_API_KEY, LEGACY_ENCRYPTED_API_KEY})

_VISIBLE_SUFFIX = 4

MASTER_KEY_USERNAME = "master-key"
MASTER_KEY_BYTES = 32  # AES-256
_NONCE_BYTES = 16
_TAG_BYTES = 16


class EncryptionBackend:
    """Reversible string encryption provided by the host OS."""

    def is_available(self) -> bool:
        raise NotImplementedError

    def encrypt_string(self, plaintext: str) -> bytes:
        raise NotImplementedError

    def decrypt_string(self, blob: bytes) -> str:
        raise NotImplementedError


class KeyringEncryption(EncryptionBackend):
    """AES-GCM with a master key held in the OS keychain.

    The keychain (macOS Keychain, Windows Credential Locker, Secret Service)
    is reached through ``keyring``. The master key is created on first use.
    Pass *backend* to pin a specific keyring backend; otherwise the active
    one is looked up on every call, so availability is probed at call time.
    """

    def __init__(self, service_name: str, backend: Optional[KeyringBackend] = None):
        self.service_name = service_name
        self._backend = backend

    def _keyring(self) -> KeyringBackend:
        return self._backend if self._backend is not None else keyring.get_keyring()

    def _master_key(self) -> bytes:
        kr = self._keyring()
        stored = kr.get_password(self.service_name, MASTER_KEY_USERNAME)
        if stored:
            return base64.b64decode(stored)

        key = get_random_bytes(MASTER_KEY_BYTES)
        kr.set_password(self.service_name, MASTER_KEY_USERNAME, base64.b64encode(key).decode("ascii"))
        logger.info("Created master key in OS keychain", extra={"service": self.service_name})
        return key

    def is_available(self) -> bool:
        kr = self._keyring()
        if isinstance(kr, fail.Keyring):
            return False
        try:
            self._master_key()
        except (KeyringError, RuntimeError, binascii.Error) as e:
            logger.warning("OS keychain unavailable: %s", e)
            return False
        return True

    def encrypt_string(self, plaintext: str) -> bytes:
        cipher = AES.new(self._master_key(), AES.MODE_GCM, nonce=get_random_bytes(_NONCE_BYTES))
        ciphertext, tag = cipher.encrypt_and_digest(plaintext.encode("utf-8"))
        return cipher.nonce + tag + ciphertext

    def decrypt_string(self, blob: bytes) -> str:
        if len(blob) < _NONCE_BYTES + _TAG_BYTES:
            raise ValueError("Encrypted value is too short")
        nonce = blob[:_NONCE_BYTES]
        tag = blob[_NONCE_BYTES:_NONCE_BYTES + _TAG_BYTES]
        ciphertext = blob[_NONCE_BYTES + _TAG_BYTES:]
        cipher = AES.new(self._master_key(), AES.MODE_GCM, nonce=nonce)
        # Raises ValueError when the tag does not verify.
        return cipher.decrypt_and_verify(ciphertext, tag).decode("utf-8")


class CredentialService:
    """Stores and retrieves the single provider API key."""

    def __init__(self, settings: SettingsService, encryption: EncryptionBackend):
        self.settings = settings
        self.encryption = encryption

    def get_api_key(self) -> Optional[str]:
        """Return the API key, or None when none is stored or it cannot be decrypted."""
        encrypted = self.settings.get(ENCRYPTED_API_KEY)
        if not encrypted:
            return self.settings.get(API_KEY) or self.settings.get(LEGACY_API_KEY)

        try:
            if self.encryption.is_available():
                return self.encryption.decrypt_string(base64.b64decode(encrypted))
            logger.warning("Encrypted API key present but OS encryption is unavailable")
        except (ValueError, binascii.Error, UnicodeDecodeError, KeyringError) as e:
            logger.error("Failed to decrypt API key: %s", e)

        return None

    def set_api_key(self, api_key: str) -> None:
        """Encrypt and store the key, or store it in plaintext if encryption is unavailable."""
        if self.encryption.is_available():
            try:
                blob = self.encryption.encrypt_string(api_key)
            except KeyringError as e:
                logger.error("Failed to encrypt API key: %s", e)
                raise EncryptionUnavailableError(f"Failed to encrypt API key: {e}") from e
            self.settings.set(ENCRYPTED_API_KEY, base64.b64encode(blob).decode("ascii"))
            self.settings.delete(API_KEY)
            logger.info("Stored encrypted API key")
        else:
            logger.warning("Encryption not available, storing API key in plain text")
            self.settings.set(API_KEY, api_key)
            # A stale encrypted copy would shadow the new key on read.
            self.settings.delete(ENCRYPTED_API_KEY)
        self.settings.delete(LEGACY_API_KEY)

    def has_api_key(self) -> bool:
        return bool(self.get_api_key())

    def masked_api_key(self) -> Optional[str]:
        """The stored key reduced to its last few characters, e.g. ``****mnop``."""
        api_key = self.get_api_key()
        if not api_key:
            return None
        if len(api_key) <= _VISIBLE_SUFFIX * 2:
            return "****"
        return "****" + api_key[-_VISIBLE_SUFFIX:]
