"""Tests for settings defaults and logging setup."""

import logging
from pathlib import Path
from urllib.parse import urlparse

import pytest
import structlog

from answer_rag.config.logging import CHATTY_LOGGERS, LoggerMixin, setup_logging
from answer_rag.config.settings import Settings


class TestSettingsDefaults:

    @pytest.fixture
    def default_settings(self, monkeypatch) -> Settings:
        for name in ("SERVER_PORT", "EMBEDDING_API_BASE", "GENERATION_API_BASE"):
            monkeypatch.delenv(name, raising=False)
        return Settings(_env_file=None)

    def test_upstream_bases_do_not_point_at_own_port(self, default_settings: Settings):
        port = default_settings.SERVER_PORT
        for base in (default_settings.EMBEDDING_API_BASE, default_settings.GENERATION_API_BASE):
            parsed = urlparse(base)
            assert not (parsed.hostname in ("localhost", "127.0.0.1") and parsed.port == port)

    def test_generation_defaults_to_openai_compatible_base(self, default_settings: Settings):
        assert default_settings.GENERATION_API_BASE == "https://api.openai.com/v1"


class TestLogging:

    def test_chatty_libraries_stay_quiet_in_debug(self, test_settings: Settings):
        test_settings.LOG_LEVEL = "DEBUG"
        setup_logging(test_settings)

        for name in CHATTY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self, test_settings: Settings):
        test_settings.LOG_LEVEL = "chatty"
        setup_logging(test_settings)

        assert Path(test_settings.LOG_DIRECTORY).is_dir()

    def test_mixin_logger_binds_component(self):
        class Reconciler(LoggerMixin):
            pass

        assert structlog.get_context(Reconciler().logger)["component"] == "Reconciler"
