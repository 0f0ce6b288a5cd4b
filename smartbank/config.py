"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings


class SmartBankConfig(BaseSettings):
    """SmartBank configuration"""

    # Settings store
    database_path: str = "appdata.db"

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text

    # Encryption configuration
    encryption_key: str = ""  # Base64 AES-256 key, empty = ephemeral key per process

    # Ledger configuration
    currency: str = "EGP"
    seed_demo_accounts: bool = True

    class Config:
        env_prefix = "SMARTBANK_"
        env_file = ".env"
        case_sensitive = False

    @field_validator("log_format")
    @classmethod
    def _check_log_format(cls, value: str) -> str:
        value = value.lower()
        if value not in ("json", "text"):
            raise ValueError("log_format must be 'json' or 'text'")
        return value

    @field_validator("currency")
    @classmethod
    def _check_currency(cls, value: str) -> str:
        return value.strip().upper()


# Global configuration instance
config = SmartBankConfig()


def get_config() -> SmartBankConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> SmartBankConfig:
    """Reload configuration from environment"""
    global config
    config = SmartBankConfig()
    return config
