"""AES-256-GCM envelope encryption for export bundles.

Every export bundle is encrypted with its own random data key. The data key
is wrapped with the platform master key and stored next to the bundle
metadata. Destroying the wrapped key destroys the bundle (crypto-shredding),
even if a copy of the ciphertext survives somewhere.

Usage:
    from custos.core.encryption import Encryptor, generate_key

    master = Encryptor(master_key)
    data_key = generate_key()
    ciphertext = Encryptor(data_key).encrypt(payload, associated_data=b"export-id")
    wrapped = master.wrap_key(data_key)
"""

import base64
import binascii
import secrets

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from custos.config.settings import Settings
from custos.utils.exceptions import ConfigurationError, CustosError


class EncryptionError(CustosError):
    """Raised when encryption or decryption fails."""

    pass


class EncryptionKeyError(EncryptionError):
    """Raised when a key is missing or has the wrong size."""

    pass


class DecryptionError(EncryptionError):
    """Raised when ciphertext cannot be authenticated (wrong key or tampered data)."""

    pass


NONCE_SIZE = 12  # 96-bit nonce for AES-GCM
TAG_SIZE = 16
KEY_SIZE = 32  # AES-256


class Encryptor:
    """Authenticated encryption with a single 256-bit key.

    Output format is ``nonce || ciphertext || tag``.
    """

    def __init__(self, key: bytes):
        """Initialize with a raw key.

        Raises:
            EncryptionKeyError: If key is not 32 bytes
        """
        if len(key) != KEY_SIZE:
            raise EncryptionKeyError(f"Encryption key must be {KEY_SIZE} bytes, got {len(key)}")
        self._aesgcm = AESGCM(key)

    def encrypt(self, plaintext: bytes, associated_data: bytes | None = None) -> bytes:
        """Encrypt bytes, binding the optional associated data to the ciphertext."""
        nonce = secrets.token_bytes(NONCE_SIZE)
        return nonce + self._aesgcm.encrypt(nonce, plaintext, associated_data)

    def decrypt(self, ciphertext: bytes, associated_data: bytes | None = None) -> bytes:
        """Decrypt bytes produced by ``encrypt``.

        Raises:
            DecryptionError: If the data is truncated, tampered, or the key is wrong
        """
        if len(ciphertext) < NONCE_SIZE + TAG_SIZE:
            raise DecryptionError("Ciphertext too short")
        try:
            return self._aesgcm.decrypt(
                ciphertext[:NONCE_SIZE], ciphertext[NONCE_SIZE:], associated_data
            )
        except InvalidTag as e:
            raise DecryptionError("Decryption failed: authentication tag mismatch") from e

    def wrap_key(self, data_key: bytes) -> bytes:
        """Encrypt a data key under this (master) key."""
        if len(data_key) != KEY_SIZE:
            raise EncryptionKeyError(f"Data key must be {KEY_SIZE} bytes, got {len(data_key)}")
        return self.encrypt(data_key, associated_data=b"custos:data-key")

    def unwrap_key(self, wrapped_key: bytes) -> bytes:
        """Recover a data key wrapped by ``wrap_key``."""
        return self.decrypt(wrapped_key, associated_data=b"custos:data-key")


def generate_key() -> bytes:
    """Generate a new random 256-bit key."""
    return secrets.token_bytes(KEY_SIZE)


def key_to_string(key: bytes) -> str:
    """Encode a key as base64 for configuration files."""
    return base64.b64encode(key).decode("ascii")


def key_from_string(key_string: str) -> bytes:
    """Decode a base64 key string.

    Raises:
        EncryptionKeyError: If the string is not base64 or not 32 bytes
    """
    try:
        key = base64.b64decode(key_string, validate=True)
    except (binascii.Error, ValueError) as e:
        raise EncryptionKeyError(f"Invalid key string: {e}") from e
    if len(key) != KEY_SIZE:
        raise EncryptionKeyError(f"Key must be {KEY_SIZE} bytes, got {len(key)}")
    return key


def master_encryptor_from_settings(settings: Settings) -> Encryptor:
    """Build the master-key encryptor from settings.

    Outside production a missing key falls back to an ephemeral random key,
    which makes previously written bundles unreadable after restart.

    Raises:
        ConfigurationError: If EXPORT_ENCRYPTION_KEY is missing in production
    """
    if settings.EXPORT_ENCRYPTION_KEY is None:
        if settings.ENVIRONMENT == "production":
            raise ConfigurationError("EXPORT_ENCRYPTION_KEY must be set in production")
        return Encryptor(generate_key())
    return Encryptor(key_from_string(settings.EXPORT_ENCRYPTION_KEY.get_secret_value()))
