"""
Configuration management using pydantic-settings.
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from dogewallet.constants import DEFAULT_FEE_WARNING_MULTIPLE, MNEMONIC_STRENGTHS, NetworkType


class WalletSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="DOGEWALLET_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    network: NetworkType = NetworkType.MAINNET
    log_level: str = "INFO"

    mnemonic_strength: int = 256

    # Advisory only: warn when the implicit fee exceeds this multiple of the output sum
    fee_warning_multiple: float = Field(default=DEFAULT_FEE_WARNING_MULTIPLE, gt=0)

    qr_size_multiplier: int = Field(default=4, ge=1, le=32)

    @field_validator("mnemonic_strength")
    @classmethod
    def validate_strength(cls, v: int) -> int:
        if v not in MNEMONIC_STRENGTHS:
            allowed = ", ".join(str(s) for s in MNEMONIC_STRENGTHS)
            raise ValueError(f"mnemonic_strength must be one of {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


def get_settings() -> WalletSettings:
    return WalletSettings()
