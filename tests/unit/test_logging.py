"""
Unit Tests for logging setup and credential redaction
"""

import logging

import pytest

from card_advisor.core.logging import (
    AdvisorStreamHandler,
    RedactingFilter,
    get_logger,
    redact,
    setup_logging,
)


@pytest.mark.unit
class TestRedaction:

    @pytest.mark.parametrize("message,secret", [
        ("Authorization: Bearer abc.def-123", "abc.def-123"),
        ("GET /market/trending?token=s3cr3t&limit=10", "s3cr3t"),
        ("api_token: tok_999", "tok_999"),
        ("API-KEY=xyz", "xyz"),
    ])
    def test_secrets_are_masked(self, message, secret):
        redacted = redact(message)

        assert secret not in redacted
        assert "[REDACTED]" in redacted

    def test_plain_message_untouched(self):
        assert redact("Scored 4 candidates") == "Scored 4 candidates"

    def test_filter_rewrites_formatted_record(self):
        record = logging.LogRecord(
            "card_advisor", logging.INFO, __file__, 1, "header %s", ("Bearer abc123",), None
        )

        assert RedactingFilter().filter(record) is True
        assert record.getMessage() == "header Bearer [REDACTED]"


@pytest.mark.unit
class TestSetupLogging:

    def test_installs_single_handler(self, restore_root_logger):
        setup_logging("debug")
        setup_logging("warning")

        handlers = [h for h in restore_root_logger.handlers if isinstance(h, AdvisorStreamHandler)]
        assert len(handlers) == 1
        assert restore_root_logger.level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self, restore_root_logger):
        setup_logging("chatty")
        assert restore_root_logger.level == logging.INFO

    def test_quiets_httpx(self, restore_root_logger):
        setup_logging("debug")
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_get_logger_is_namespaced(self):
        assert get_logger("card_advisor.cli").name == "card_advisor.cli"
