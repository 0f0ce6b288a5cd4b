"""
Authenticated Encryption Module

AES-256-GCM encryption for short strings such as PINs and settings values,
using the cryptography library. Each blob is self-contained:

    ENC:<urlsafe-base64( 12-byte nonce || ciphertext || 16-byte tag )>

The key is held by an explicit KeyManager passed to the cipher; nothing is
kept in module globals.
"""

import base64
import binascii
import logging
import os
import threading
from typing import Optional, Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

logger = logging.getLogger(__name__)

# Encryption marker prefix
ENCRYPTION_PREFIX = "ENC:"

KEY_SIZE_BITS = 256
NONCE_SIZE = 12  # 96-bit nonce for GCM
TAG_SIZE = 16    # 128-bit authentication tag


class EncryptionError(Exception):
    """Encryption could not be performed (missing key, primitive failure)"""


class DecryptionError(ValueError):
    """Ciphertext could not be decrypted; no plaintext is returned"""


class MalformedCiphertextError(DecryptionError):
    """Input is not valid base64 or is too short to hold nonce and tag"""


class AuthenticationFailedError(DecryptionError):
    """Authentication tag did not verify: wrong key or tampered data"""


class KeyManager:
    """
    Owns the symmetric key for one process.

    A key can be provisioned up front (raw bytes or base64 text) or generated
    by initialize(). Once set, the key never changes.
    """

    def __init__(self, key: Optional[bytes] = None):
        self._lock = threading.Lock()
        self._key: Optional[bytes] = None
        if key is not None:
            self._key = self._validate(key)

    @classmethod
    def from_encoded(cls, encoded_key: str) -> 'KeyManager':
        """Load a key from urlsafe base64 text"""
        try:
            key = base64.urlsafe_b64decode(encoded_key.strip().encode('ascii'))
        except (binascii.Error, ValueError) as e:
            raise EncryptionError(f"Encryption key is not valid base64: {e}") from e
        return cls(key)

    @staticmethod
    def _validate(key: bytes) -> bytes:
        if not isinstance(key, bytes) or len(key) * 8 != KEY_SIZE_BITS:
            raise EncryptionError(f"Encryption key must be {KEY_SIZE_BITS // 8} bytes")
        return key

    @property
    def is_initialized(self) -> bool:
        return self._key is not None

    def initialize(self) -> 'KeyManager':
        """Generate an ephemeral key unless one is already present (idempotent)"""
        with self._lock:
            if self._key is None:
                try:
                    self._key = AESGCM.generate_key(bit_length=KEY_SIZE_BITS)
                except Exception as e:
                    raise EncryptionError(f"Failed to generate encryption key: {e}") from e
                logger.info("Generated ephemeral AES-256 key for this process")
        return self

    @property
    def key(self) -> bytes:
        if self._key is None:
            raise EncryptionError("Encryption key has not been initialized")
        return self._key

    def export_key(self) -> str:
        """Return the key as urlsafe base64 text for provisioning"""
        return base64.urlsafe_b64encode(self.key).decode('ascii')


class AuthenticatedCipher:
    """AES-256-GCM encrypt/decrypt of text with a random nonce per call"""

    def __init__(self, key_manager: KeyManager):
        self.key_manager = key_manager

    def _aesgcm(self) -> AESGCM:
        return AESGCM(self.key_manager.key)

    def encrypt(self, plaintext: Union[str, int]) -> str:
        """
        Encrypt plaintext and return an encoded blob

        Raises:
            EncryptionError: If the key is missing or the primitive fails
        """
        if not isinstance(plaintext, str):
            plaintext = str(plaintext)

        aesgcm = self._aesgcm()
        nonce = os.urandom(NONCE_SIZE)
        try:
            encrypted_bytes = aesgcm.encrypt(nonce, plaintext.encode('utf-8'), None)
        except Exception as e:
            logger.error(f"Failed to encrypt data: {type(e).__name__}")
            raise EncryptionError(f"Failed to encrypt data: {e}") from e

        encoded = base64.urlsafe_b64encode(nonce + encrypted_bytes).decode('ascii')
        return f"{ENCRYPTION_PREFIX}{encoded}"

    def decrypt(self, ciphertext: str) -> str:
        """
        Decrypt an encoded blob produced by encrypt()

        Raises:
            MalformedCiphertextError: If the blob cannot be decoded or is too short
            AuthenticationFailedError: If the authentication tag does not verify
            EncryptionError: If the key is missing
        """
        if not isinstance(ciphertext, str):
            raise MalformedCiphertextError("Failed to decrypt data: ciphertext must be a string")

        if ciphertext.startswith(ENCRYPTION_PREFIX):
            ciphertext = ciphertext[len(ENCRYPTION_PREFIX):]

        try:
            combined = base64.b64decode(ciphertext.encode('ascii'), altchars=b'-_', validate=True)
        except (binascii.Error, ValueError) as e:
            raise MalformedCiphertextError(f"Failed to decrypt data: invalid encoding ({e})") from e

        # Only the canonical encoding is accepted: '+' or '/' in place of '-'
        # or '_', and stray bits in the final character, would otherwise
        # decode to the same bytes.
        if base64.urlsafe_b64encode(combined).decode('ascii') != ciphertext:
            raise MalformedCiphertextError("Failed to decrypt data: non-canonical encoding")

        if len(combined) < NONCE_SIZE + TAG_SIZE:
            raise MalformedCiphertextError(
                f"Failed to decrypt data: payload of {len(combined)} bytes is too short"
            )

        nonce = combined[:NONCE_SIZE]
        encrypted_bytes = combined[NONCE_SIZE:]

        aesgcm = self._aesgcm()
        try:
            decrypted_bytes = aesgcm.decrypt(nonce, encrypted_bytes, None)
        except InvalidTag as e:
            logger.error("Failed to decrypt data: authentication tag mismatch")
            raise AuthenticationFailedError("Failed to decrypt data: authentication failed") from e

        try:
            return decrypted_bytes.decode('utf-8')
        except UnicodeDecodeError as e:
            raise MalformedCiphertextError("Failed to decrypt data: plaintext is not UTF-8") from e

    @staticmethod
    def is_encrypted(value: object) -> bool:
        """Check if value appears to be encrypted"""
        if not isinstance(value, str):
            return False
        return value.startswith(ENCRYPTION_PREFIX)
