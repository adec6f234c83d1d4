"""
Settings loaded from ORDERFLOW_* environment variables.
"""

from __future__ import annotations

import logging

from orderflow.config import Settings
from orderflow.log import configure, get_logger


class TestSettings:
    def test_defaults(self):
        settings = Settings.from_env({})
        assert settings == Settings()
        assert settings.payment_timeout_seconds == 5.0
        assert settings.gateway_latency_seconds == 1.0
        assert settings.verify_total is False

    def test_from_env(self):
        settings = Settings.from_env({
            "ORDERFLOW_DATABASE_URL": "sqlite+aiosqlite:///:memory:",
            "ORDERFLOW_PAYMENT_TIMEOUT_SECONDS": "2.5",
            "ORDERFLOW_GATEWAY_LATENCY_SECONDS": "0",
            "ORDERFLOW_VERIFY_TOTAL": "yes",
            "ORDERFLOW_LOG_LEVEL": "debug",
            "UNRELATED": "x",
        })
        assert settings.database_url == "sqlite+aiosqlite:///:memory:"
        assert settings.payment_timeout_seconds == 2.5
        assert settings.gateway_latency_seconds == 0.0
        assert settings.verify_total is True
        assert settings.log_level == "DEBUG"

    def test_false_flag(self):
        assert Settings.from_env({"ORDERFLOW_VERIFY_TOTAL": "off"}).verify_total is False


class TestLogging:
    def test_loggers_are_namespaced(self):
        assert get_logger("saga").name == "orderflow.saga"

    def test_configure_sets_package_level(self):
        configure("WARNING")
        assert logging.getLogger("orderflow").level == logging.WARNING
        configure("INFO")
