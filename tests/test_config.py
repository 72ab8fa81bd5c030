"""
Tests for wallet settings.
"""

import pytest
from pydantic import ValidationError

from dogewallet.config import WalletSettings, get_settings
from dogewallet.constants import NetworkType


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in (
        "DOGEWALLET_NETWORK",
        "DOGEWALLET_LOG_LEVEL",
        "DOGEWALLET_MNEMONIC_STRENGTH",
        "DOGEWALLET_FEE_WARNING_MULTIPLE",
        "DOGEWALLET_QR_SIZE_MULTIPLIER",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    settings = get_settings()
    assert settings.network == NetworkType.MAINNET
    assert settings.log_level == "INFO"
    assert settings.mnemonic_strength == 256
    assert settings.fee_warning_multiple == 1.0
    assert settings.qr_size_multiplier == 4


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("DOGEWALLET_NETWORK", "testnet")
    monkeypatch.setenv("DOGEWALLET_LOG_LEVEL", "debug")
    monkeypatch.setenv("DOGEWALLET_MNEMONIC_STRENGTH", "128")
    settings = get_settings()
    assert settings.network == NetworkType.TESTNET
    assert settings.log_level == "DEBUG"
    assert settings.mnemonic_strength == 128


def test_dotenv_file(tmp_path) -> None:
    (tmp_path / ".env").write_text("DOGEWALLET_NETWORK=testnet\n")
    assert get_settings().network == NetworkType.TESTNET


def test_invalid_strength() -> None:
    with pytest.raises(ValidationError, match="mnemonic_strength must be one of"):
        WalletSettings(mnemonic_strength=100)


def test_invalid_log_level() -> None:
    with pytest.raises(ValidationError, match="Unknown log level"):
        WalletSettings(log_level="chatty")


def test_invalid_network() -> None:
    with pytest.raises(ValidationError):
        WalletSettings(network="regtest")


@pytest.mark.parametrize("value", [0, -1.0])
def test_fee_multiple_must_be_positive(value) -> None:
    with pytest.raises(ValidationError):
        WalletSettings(fee_warning_multiple=value)


@pytest.mark.parametrize("value", [0, 33])
def test_qr_multiplier_range(value) -> None:
    with pytest.raises(ValidationError):
        WalletSettings(qr_size_multiplier=value)
