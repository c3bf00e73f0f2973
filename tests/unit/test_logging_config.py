"""Logging setup tests."""

import structlog

from trilo.config import Settings
from trilo.logging_config import SERVICE_NAME, setup_logging


class TestSetupLogging:
    def test_binds_service_context(self):
        try:
            setup_logging(Settings(environment="test", log_format="console"))
            context = structlog.contextvars.get_contextvars()
            assert context["service"] == SERVICE_NAME
            assert context["environment"] == "test"
        finally:
            structlog.contextvars.clear_contextvars()
            structlog.reset_defaults()
