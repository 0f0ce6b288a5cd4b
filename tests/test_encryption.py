"""
Tests for the AES-GCM authenticated cipher and key manager
"""

import base64
import random
import string

import pytest

from smartbank.encryption import (
    AuthenticatedCipher, KeyManager, EncryptionError, DecryptionError,
    MalformedCiphertextError, AuthenticationFailedError,
    ENCRYPTION_PREFIX, NONCE_SIZE, TAG_SIZE
)


URLSAFE_ALPHABET = string.ascii_letters + string.digits + "-_"


def decode_blob(blob: str) -> bytes:
    return base64.urlsafe_b64decode(blob[len(ENCRYPTION_PREFIX):].encode('ascii'))


def encode_blob(raw: bytes) -> str:
    return ENCRYPTION_PREFIX + base64.urlsafe_b64encode(raw).decode('ascii')


class TestKeyManager:
    """Test key provisioning"""

    def test_uninitialized_key_raises(self):
        manager = KeyManager()

        assert not manager.is_initialized
        with pytest.raises(EncryptionError, match="not been initialized"):
            _ = manager.key

    def test_initialize_generates_256_bit_key(self):
        manager = KeyManager().initialize()

        assert manager.is_initialized
        assert len(manager.key) == 32

    def test_initialize_is_idempotent(self):
        manager = KeyManager()
        manager.initialize()
        first = manager.key
        manager.initialize()

        assert manager.key == first

    def test_provisioned_key_is_kept(self):
        key = bytes(range(32))
        manager = KeyManager(key).initialize()

        assert manager.key == key

    def test_export_and_load_encoded_key(self):
        manager = KeyManager().initialize()
        restored = KeyManager.from_encoded(manager.export_key())

        assert restored.key == manager.key

    @pytest.mark.parametrize("key", [b"", b"short", bytes(16), bytes(33)])
    def test_wrong_key_length_rejected(self, key):
        with pytest.raises(EncryptionError, match="32 bytes"):
            KeyManager(key)

    def test_invalid_base64_key_rejected(self):
        with pytest.raises(EncryptionError):
            KeyManager.from_encoded("not base64!")


class TestAuthenticatedCipher:
    """Test encrypt/decrypt behaviour"""

    def setup_method(self):
        self.cipher = AuthenticatedCipher(KeyManager().initialize())

    def test_encrypt_requires_initialized_key(self):
        cipher = AuthenticatedCipher(KeyManager())

        with pytest.raises(EncryptionError):
            cipher.encrypt("1234")

    def test_blob_layout(self):
        blob = self.cipher.encrypt("1234")
        raw = decode_blob(blob)

        assert blob.startswith(ENCRYPTION_PREFIX)
        assert "1234" not in blob
        assert len(raw) == NONCE_SIZE + len("1234") + TAG_SIZE

    def test_roundtrip_random_plaintexts(self):
        rng = random.Random(1234)
        alphabet = string.printable + "éñá€日本"
        for _ in range(1000):
            plaintext = "".join(rng.choice(alphabet) for _ in range(rng.randint(0, 40)))
            assert self.cipher.decrypt(self.cipher.encrypt(plaintext)) == plaintext

    def test_same_plaintext_never_produces_same_blob(self):
        blobs = {self.cipher.encrypt("1234") for _ in range(1000)}

        assert len(blobs) == 1000

    def test_nonces_are_fresh(self):
        nonces = {decode_blob(self.cipher.encrypt("pin"))[:NONCE_SIZE] for _ in range(200)}

        assert len(nonces) == 200

    def test_non_string_input_is_stringified(self):
        assert self.cipher.decrypt(self.cipher.encrypt(4321)) == "4321"

    def test_decrypt_without_prefix(self):
        blob = self.cipher.encrypt("theme=dark")

        assert self.cipher.decrypt(blob[len(ENCRYPTION_PREFIX):]) == "theme=dark"

    def test_every_bit_flip_in_encoded_blob_is_detected(self):
        for _ in range(20):
            blob = self.cipher.encrypt("1234")
            last_data_index = len(blob.rstrip("=")) - 1

            for index, char in enumerate(blob):
                for bit in range(8):
                    flipped = chr(ord(char) ^ (1 << bit))
                    tampered = blob[:index] + flipped + blob[index + 1:]

                    with pytest.raises(DecryptionError) as excinfo:
                        self.cipher.decrypt(tampered)

                    # A changed sextet inside the payload decodes to different
                    # bytes of the same length, so the tag check must catch it.
                    if (len(ENCRYPTION_PREFIX) <= index < last_data_index
                            and flipped in URLSAFE_ALPHABET):
                        assert excinfo.type is AuthenticationFailedError

    @pytest.mark.parametrize("swap", [("-", "+"), ("_", "/")])
    def test_standard_alphabet_characters_rejected(self, swap):
        urlsafe, standard = swap
        blob = self.cipher.encrypt("1234")
        while urlsafe not in blob:
            blob = self.cipher.encrypt("1234")

        with pytest.raises(MalformedCiphertextError, match="non-canonical"):
            self.cipher.decrypt(blob.replace(urlsafe, standard, 1))

    def test_every_single_bit_flip_is_detected(self):
        raw = decode_blob(self.cipher.encrypt("1234"))

        for bit in range(len(raw) * 8):
            tampered = bytearray(raw)
            tampered[bit // 8] ^= 1 << (bit % 8)
            with pytest.raises(AuthenticationFailedError):
                self.cipher.decrypt(encode_blob(bytes(tampered)))

    def test_wrong_key_fails_authentication(self):
        other = AuthenticatedCipher(KeyManager().initialize())
        blob = self.cipher.encrypt("secret")

        with pytest.raises(AuthenticationFailedError, match="Failed to decrypt"):
            other.decrypt(blob)

    @pytest.mark.parametrize("payload", [b"", b"x" * (NONCE_SIZE + TAG_SIZE - 1)])
    def test_short_payload_is_malformed(self, payload):
        with pytest.raises(MalformedCiphertextError, match="too short"):
            self.cipher.decrypt(encode_blob(payload))

    def test_bad_encoding_is_malformed(self):
        with pytest.raises(MalformedCiphertextError):
            self.cipher.decrypt("ENC:abc")

    def test_non_string_ciphertext_is_malformed(self):
        with pytest.raises(MalformedCiphertextError):
            self.cipher.decrypt(b"bytes")

    def test_decryption_errors_are_value_errors(self):
        assert issubclass(AuthenticationFailedError, DecryptionError)
        assert issubclass(MalformedCiphertextError, DecryptionError)
        assert issubclass(DecryptionError, ValueError)

    def test_is_encrypted(self):
        assert AuthenticatedCipher.is_encrypted(self.cipher.encrypt("x"))
        assert not AuthenticatedCipher.is_encrypted("plain")
        assert not AuthenticatedCipher.is_encrypted(None)
