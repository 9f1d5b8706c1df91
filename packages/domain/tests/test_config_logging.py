"""Tests for environment settings and structured logging."""

import json
import logging

import pytest
from pydantic import ValidationError

from vault_domain import Vault, InMemoryStorage, VaultSettings, VaultReportCFG, get_settings
from vault_domain.observability import JSONFormatter, setup_logging


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# =============================================================================
# Settings
# =============================================================================

def test_settings_defaults(monkeypatch):
    for name in ("VAULT_DEFAULT_FEE_RATE", "VAULT_REJECT_ZERO_SHARE_DEPOSITS", "VAULT_LOG_FORMAT"):
        monkeypatch.delenv(name, raising=False)

    settings = VaultSettings()
    assert settings.default_fee_rate == 30
    assert settings.reject_zero_share_deposits is False
    assert settings.display_decimals == 7
    assert settings.log_format == "text"


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("VAULT_DEFAULT_FEE_RATE", "50")
    monkeypatch.setenv("VAULT_REJECT_ZERO_SHARE_DEPOSITS", "true")
    monkeypatch.setenv("VAULT_LOG_FORMAT", "json")

    settings = VaultSettings()
    assert settings.default_fee_rate == 50
    assert settings.reject_zero_share_deposits is True
    assert settings.log_format == "json"


def test_settings_reject_invalid_fee_rate(monkeypatch):
    monkeypatch.setenv("VAULT_DEFAULT_FEE_RATE", "20000")
    with pytest.raises(ValidationError):
        VaultSettings()


def test_vault_uses_cached_settings(monkeypatch):
    """Test a Vault without explicit settings reads the environment once."""
    monkeypatch.setenv("VAULT_DEFAULT_FEE_RATE", "75")

    vault = Vault(InMemoryStorage())
    vault.initialize("USDC")

    assert vault.get_config().fee_rate == 75
    assert get_settings() is get_settings()


def test_explicit_fee_rate_overrides_settings(monkeypatch):
    monkeypatch.setenv("VAULT_DEFAULT_FEE_RATE", "75")
    vault = Vault(InMemoryStorage(), fee_rate=10)
    vault.initialize("USDC")
    assert vault.get_config().fee_rate == 10


def test_report_decimals_default_from_settings(monkeypatch):
    """Test VAULT_DISPLAY_DECIMALS sets the report's unit scale."""
    monkeypatch.setenv("VAULT_DISPLAY_DECIMALS", "2")

    cfg = VaultReportCFG()
    assert cfg.display_decimals == 2
    assert cfg.unit_scale == 100

    assert VaultReportCFG(display_decimals=7).display_decimals == 7


# =============================================================================
# Logging
# =============================================================================

def test_json_formatter_includes_extras():
    record = logging.LogRecord(
        name="vault_domain.engine.vault",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Deposited %d",
        args=(1_000,),
        exc_info=None,
    )
    record.operation = "deposit"
    record.shares = 1_000
    record.asset_id = "USDC"

    payload = json.loads(JSONFormatter().format(record))

    assert payload["message"] == "Deposited 1000"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "vault_domain.engine.vault"
    assert payload["operation"] == "deposit"
    assert payload["shares"] == 1_000
    assert payload["asset_id"] == "USDC"
    assert "error_code" not in payload


@pytest.mark.parametrize("fmt,formatter_type", [
    ("json", JSONFormatter),
    ("text", logging.Formatter),
])
def test_setup_logging_installs_handler(fmt, formatter_type):
    package_logger = logging.getLogger("vault_domain")
    previous_level = package_logger.level

    handler = setup_logging(level="DEBUG", fmt=fmt)
    try:
        assert handler in package_logger.handlers
        assert isinstance(handler.formatter, formatter_type)
        assert package_logger.level == logging.DEBUG
    finally:
        package_logger.removeHandler(handler)
        package_logger.setLevel(previous_level)


def test_setup_logging_defaults_from_settings(monkeypatch):
    monkeypatch.setenv("VAULT_LOG_FORMAT", "json")
    monkeypatch.setenv("VAULT_LOG_LEVEL", "warning")
    package_logger = logging.getLogger("vault_domain")
    previous_level = package_logger.level

    handler = setup_logging()
    try:
        assert isinstance(handler.formatter, JSONFormatter)
        assert package_logger.level == logging.WARNING
    finally:
        package_logger.removeHandler(handler)
        package_logger.setLevel(previous_level)
