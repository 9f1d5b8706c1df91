"""Vault configuration - environment-driven settings via pydantic-settings.

Every setting can be overridden with a VAULT_-prefixed environment variable
or a .env file (VAULT_DEFAULT_FEE_RATE=50, VAULT_LOG_FORMAT=json, ...).
get_settings() is cached: one instance per process.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class VaultSettings(BaseSettings):
    """Vault settings from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="VAULT_",
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )

    # Accounting
    # Informational fee rate reported by get_config(); the deployed contract uses 30 bp.
    default_fee_rate: int = Field(default=30, ge=0, le=10_000)
    reject_zero_share_deposits: bool = False

    # Reporting
    display_decimals: int = Field(default=7, ge=0, le=38)

    # Observability
    log_level: str = "INFO"
    log_format: Literal["text", "json"] = "text"


@lru_cache
def get_settings() -> VaultSettings:
    return VaultSettings()
