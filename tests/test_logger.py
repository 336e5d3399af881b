"""
Tests for the BotLogger file output.
"""

import logging

import logger as logger_module
from logger import BotLogger


class TestBotLogger:
    """Test log files and domain helpers."""

    def test_module_exposes_shared_instance(self):
        assert isinstance(logger_module.logger, BotLogger)
        assert not hasattr(logger_module, "get_logger")

    def test_session_events_reach_confirmations_log(self, tmp_path):
        bot_logger = BotLogger(name="ConfirmationsLogTest", log_dir=tmp_path)

        bot_logger.session_invalidated("HTTP 500 for GET /mobileconf/conf?tag=conf")
        bot_logger.debug("noise")
        for handler in bot_logger.logger.handlers:
            handler.flush()

        text = (tmp_path / "confirmations.log").read_text(encoding="utf-8-sig")
        assert "Reason: HTTP 500 for GET /mobileconf/conf?tag=conf" in text
        assert "noise" not in text
        assert "noise" in (tmp_path / "application.log").read_text(encoding="utf-8-sig")

        for handler in list(bot_logger.logger.handlers):
            if isinstance(handler, logging.FileHandler):
                handler.close()
