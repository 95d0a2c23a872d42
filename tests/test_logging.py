"""
Tests for logging configuration.
"""
import pytest
import structlog

from speech_client.core.logging import REDACTED, log_error_details, redact_credentials, setup_logging


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()


class TestRedactCredentials:
    """Test credential masking."""

    def test_token_values_masked(self):
        """Test token values never reach the renderer, presence flags do."""
        event = {
            "event": "exchange_response_received",
            "access_token": "a1",
            "refresh_token": "r1",
            "has_access_token": True,
        }

        result = redact_credentials(None, "info", event)

        assert result["access_token"] == REDACTED
        assert result["refresh_token"] == REDACTED
        assert result["has_access_token"] is True
        assert result["event"] == "exchange_response_received"

    def test_event_without_credentials_untouched(self):
        event = {"event": "session_restored", "user_id": "u1"}

        assert redact_credentials(None, "info", dict(event)) == event


class TestSetupLogging:
    """Test environment-specific configuration."""

    def test_production_renders_json(self, make_settings):
        setup_logging(make_settings(ENVIRONMENT="production"))

        processors = structlog.get_config()["processors"]
        assert redact_credentials in processors
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_development_renders_console(self, make_settings):
        setup_logging(make_settings())

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)

    def test_log_error_details(self):
        details = log_error_details(ValueError("boom"), platform="ios")

        assert details == {"error_type": "ValueError", "error_message": "boom", "platform": "ios"}
