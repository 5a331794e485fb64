"""Tests for structured logging configuration."""

import json
import logging

import structlog

from cli.logging_config import redact, setup_logging


class TestLoggingConfig:
    """Test structlog setup modes."""

    def test_level_filtering(self):
        """Log level filters lower messages."""
        setup_logging(json_mode=False, level="WARNING")
        root = logging.getLogger()
        assert root.level == logging.WARNING

    def test_default_level_is_info(self):
        setup_logging()
        assert logging.getLogger().level == logging.INFO

    def test_noisy_libraries_quieted(self):
        setup_logging(level="DEBUG")
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("apscheduler").level == logging.WARNING

    def test_processor_chain(self):
        setup_logging(json_mode=True, level="DEBUG")
        config = structlog.get_config()
        assert len(config["processors"]) >= 2

    def test_log_file_receives_json(self, tmp_path):
        log_file = tmp_path / "logs" / "engine.log"
        setup_logging(json_mode=False, level="INFO", log_file=log_file)
        logging.getLogger("test_file").info("fix_rejected")
        for handler in logging.getLogger().handlers:
            handler.flush()

        lines = log_file.read_text().strip().splitlines()
        record = json.loads(lines[-1])
        assert record["event"] == "fix_rejected"


class TestRedaction:
    def test_bearer_token(self):
        assert redact("Authorization: Bearer abcdef123456789") == "Authorization: Bearer REDACTED"

    def test_ntfy_token(self):
        assert "tk_abcdefgh1234" not in redact("token tk_abcdefgh1234 used")

    def test_url_credentials(self):
        out = redact("https://user:pw@ntfy.example.com/topic")
        assert "user:pw" not in out
        assert out.startswith("https://REDACTED")

    def test_email(self):
        assert redact("sent to someone@example.com") == "sent to REDACTED@email"

    def test_plain_text_untouched(self):
        assert redact("You're at Joe's Diner.") == "You're at Joe's Diner."
