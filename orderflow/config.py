"""
Settings — read once from ORDERFLOW_* environment variables.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass


ENV_PREFIX = "ORDERFLOW_"


def _flag(raw: str) -> bool:
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True, slots=True)
class Settings:
    """
    Service configuration.

    Example:
        settings = Settings.from_env()
        settings = Settings(database_url="sqlite+aiosqlite:///:memory:")
    """

    database_url: str = "sqlite+aiosqlite:///./orderflow.db"
    payment_timeout_seconds: float = 5.0
    gateway_latency_seconds: float = 1.0
    # Recompute the total from catalog prices and reject mismatches.
    verify_total: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ
        defaults = cls()

        def get(name: str) -> str | None:
            return env.get(f"{ENV_PREFIX}{name}")

        database_url = get("DATABASE_URL")
        timeout = get("PAYMENT_TIMEOUT_SECONDS")
        latency = get("GATEWAY_LATENCY_SECONDS")
        verify_total = get("VERIFY_TOTAL")
        log_level = get("LOG_LEVEL")

        return cls(
            database_url=database_url or defaults.database_url,
            payment_timeout_seconds=(
                float(timeout) if timeout else defaults.payment_timeout_seconds
            ),
            gateway_latency_seconds=(
                float(latency) if latency else defaults.gateway_latency_seconds
            ),
            verify_total=_flag(verify_total) if verify_total else defaults.verify_total,
            log_level=(log_level or defaults.log_level).upper(),
        )


__all__ = ("ENV_PREFIX", "Settings")
