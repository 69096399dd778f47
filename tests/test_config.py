"""
Tests for settings and structured logging.
"""

import json
import logging
from pathlib import Path

import shared.config
from shared.config.logging import DevelopmentFormatter, StructuredFormatter, StructuredLogger, get_logger
from shared.config.settings import Settings


class TestSettings:

    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.default_per_page == 15
        assert settings.page_name == "page"
        assert settings.validate_production_settings() == []

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("REPOKIT_DEFAULT_PER_PAGE", "25")
        monkeypatch.setenv("REPOKIT_PAGE_NAME", "p")

        settings = Settings(_env_file=None)

        assert settings.default_per_page == 25
        assert settings.page_name == "p"

    def test_production_rejects_sqlite_and_debug(self):
        settings = Settings(_env_file=None, environment="production", debug=True)
        errors = settings.validate_production_settings()

        assert any("DATABASE_URL" in error for error in errors)
        assert any("DEBUG" in error for error in errors)

    def test_config_package_exports_settings_object(self):
        assert "DATABASE_URL" not in shared.config.__all__
        assert not hasattr(shared.config, "DATABASE_URL")
        assert shared.config.settings.database_url

    def test_page_size_consistency(self):
        settings = Settings(_env_file=None, default_per_page=50, max_per_page=10)
        assert settings.validate_production_settings() == [
            "MAX_PER_PAGE must not be lower than DEFAULT_PER_PAGE"
        ]


class TestStructuredLogging:

    def _record(self, **extra_data):
        record = logging.LogRecord("repokit.test", logging.INFO, __file__, 1, "Entity created", (), None)
        record.extra_data = extra_data or None
        return record

    def test_get_logger_returns_structured_logger(self):
        assert isinstance(get_logger("repokit.tests.config"), StructuredLogger)

    def test_json_formatter_includes_data(self):
        output = json.loads(StructuredFormatter().format(self._record(entity="User", entity_id=3)))

        assert output["message"] == "Entity created"
        assert output["level"] == "INFO"
        assert output["context"] == {"entity": "User", "entity_id": 3}

    def test_development_formatter_appends_data(self):
        output = DevelopmentFormatter().format(self._record(entity="User"))

        assert "Entity created" in output
        assert "entity=User" in output

    def test_keyword_context_is_attached(self, caplog):
        logger = get_logger("repokit.tests.keywords")
        with caplog.at_level(logging.DEBUG, logger="repokit.tests.keywords"):
            logger.debug("Criteria applied", entity="User", filters=2)

        assert caplog.records[-1].extra_data == {"entity": "User", "filters": 2}


class TestPackaging:

    def test_project_metadata_ships_no_design_documents(self):
        pyproject = (Path(__file__).resolve().parent.parent / "pyproject.toml").read_text()

        assert 'name = "repokit"' in pyproject
        assert "SPEC_FULL.md" not in pyproject
