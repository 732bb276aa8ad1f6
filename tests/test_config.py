"""Tests for Settings configuration model."""

from pathlib import Path

import pytest

from sqlcourier.config import Settings


class TestDefaults:
    def test_config_dir_under_home(self):
        s = Settings()
        assert s.config_dir == Path.home() / ".sqlcourier"

    def test_scratch_dir_name(self):
        s = Settings()
        assert s.scratch_dir.name == "sqlcourier"

    def test_timeouts(self):
        s = Settings()
        assert s.task_timeout == 30.0
        assert s.webhook_timeout == 30.0
        assert s.db_connect_timeout == 10

    def test_dry_run_row_limit(self):
        s = Settings()
        assert s.dry_run_row_limit == 5

    def test_log_level(self):
        s = Settings()
        assert s.log_level == "INFO"


class TestValidation:
    def test_dry_run_row_limit_must_be_positive(self):
        with pytest.raises(ValueError, match="greater than or equal to 1"):
            Settings(dry_run_row_limit=0)

    def test_unknown_field_raises(self):
        with pytest.raises(ValueError, match="extra_forbidden"):
            Settings(**{"nonexistent_field": "value"})


def test_env_ignored_under_pytest(monkeypatch):
    monkeypatch.setenv("SQLCOURIER_LOG_LEVEL", "DEBUG")
    assert Settings().log_level == "INFO"
