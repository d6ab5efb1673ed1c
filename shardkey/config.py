"""Service configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from shardkey.core.sss import MAX_SHARES, MIN_THRESHOLD

load_dotenv()

KNOWN_ENVIRONMENTS = ("development", "test", "staging", "production")


def _int_env(key: str, default: str) -> int:
    val = os.getenv(key, default)
    try:
        return int(val)
    except (ValueError, TypeError):
        raise ValueError(f"Invalid integer for {key}: {val!r}")


def _float_env(key: str, default: str) -> float:
    val = os.getenv(key, default)
    try:
        return float(val)
    except (ValueError, TypeError):
        raise ValueError(f"Invalid float for {key}: {val!r}")


@dataclass(frozen=True)
class Config:
    environment: str = os.getenv("SHARDKEY_ENV", "development")

    # API
    api_host: str = os.getenv("API_HOST", "127.0.0.1")
    api_port: int = _int_env("API_PORT", "8423")
    max_body_bytes: int = _int_env("MAX_BODY_BYTES", "65536")

    # Rate limits
    rate_limit_capacity: int = _int_env("RATE_LIMIT_CAPACITY", "30")
    rate_limit_rate: float = _float_env("RATE_LIMIT_RATE", "5")

    # Used when a split request omits num_shares/threshold
    default_num_shares: int = _int_env("DEFAULT_NUM_SHARES", "5")
    default_threshold: int = _int_env("DEFAULT_THRESHOLD", "3")

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def validate(self) -> list[str]:
        """Validate config at startup. Raises ValueError on hard errors, returns warnings."""
        warnings: list[str] = []
        if self.environment not in KNOWN_ENVIRONMENTS:
            warnings.append(
                f"SHARDKEY_ENV={self.environment!r} is not a recognized environment "
                f"({', '.join(KNOWN_ENVIRONMENTS)})"
            )
        if self.api_port < 1 or self.api_port > 65535:
            raise ValueError(f"API_PORT must be 1-65535, got {self.api_port}")
        if self.max_body_bytes < 1024:
            raise ValueError(f"MAX_BODY_BYTES must be >= 1024, got {self.max_body_bytes}")
        if self.rate_limit_capacity < 1:
            raise ValueError(f"RATE_LIMIT_CAPACITY must be >= 1, got {self.rate_limit_capacity}")
        if self.rate_limit_rate <= 0:
            raise ValueError(f"RATE_LIMIT_RATE must be > 0, got {self.rate_limit_rate}")
        if not MIN_THRESHOLD <= self.default_threshold <= self.default_num_shares <= MAX_SHARES:
            warnings.append(
                f"DEFAULT_THRESHOLD={self.default_threshold} / DEFAULT_NUM_SHARES="
                f"{self.default_num_shares} will be rejected by split "
                f"(need {MIN_THRESHOLD} <= threshold <= shares <= {MAX_SHARES})"
            )
        if self.is_production and self.api_host == "0.0.0.0":
            warnings.append("API_HOST=0.0.0.0 in production exposes secrets over the network; bind behind TLS")
        return warnings
