"""
PIN Management Module

Stores a PIN in the settings store as an AES-GCM blob and decrypts it on
load. Decryption failures are raised to the caller, never swallowed.
"""

from typing import Optional

from .encryption import AuthenticatedCipher
from .logging_config import get_logger, log_action
from .storage import SettingsStore

logger = get_logger(__name__)

PIN_SETTING_KEY = "user_pin"


class PinManager:
    """Encrypt-then-store / load-then-decrypt for the user PIN"""

    def __init__(self, store: SettingsStore, cipher: AuthenticatedCipher,
                 setting_key: str = PIN_SETTING_KEY):
        self.store = store
        self.cipher = cipher
        self.setting_key = setting_key

    def save_pin(self, pin: str) -> None:
        if not pin:
            raise ValueError("PIN must be a non-empty string")
        self.store.save_setting(self.setting_key, self.cipher.encrypt(pin))
        log_action(logger, "info", "PIN saved", action="save_pin", resource=self.setting_key)

    def load_pin(self) -> Optional[str]:
        """
        Returns:
            The decrypted PIN, or None if no PIN has been stored

        Raises:
            DecryptionError: If the stored blob is corrupt, tampered with, or
                was written under a different key
        """
        blob = self.store.load_setting(self.setting_key)
        if blob is None:
            return None
        return self.cipher.decrypt(blob)

    def clear_pin(self) -> bool:
        return self.store.delete_setting(self.setting_key)
