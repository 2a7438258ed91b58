"""Tests for settings loading and application."""

import json
import logging
from types import SimpleNamespace

import pytest

from cli_config import apply_config, apply_github_token, apply_settings, load_settings, setup_logging
from constants import Constants


@pytest.fixture
def saved_constants(monkeypatch):
    """Let tests mutate Constants; monkeypatch restores the originals."""
    for name in ("REQUEST_TIMEOUT", "GITHUB_TOKEN", "SEARCH_ROOTS", "HUB_SEARCH_PER_PAGE",
                 "FIXUP_MAX_ATTEMPTS", "SETTINGS_PATHS"):
        monkeypatch.setattr(Constants, name, getattr(Constants, name))
    monkeypatch.delenv(Constants.ENV_GITHUB_TOKEN, raising=False)


class TestLoadSettings:
    """Tests for reading the settings file."""

    def test_yaml_with_section(self, tmp_path):
        path = tmp_path / "settings.yml"
        path.write_text("gitroll:\n  request_timeout: 5\n  search_roots:\n    - ~/pkgs\n")
        assert load_settings(str(path)) == {"request_timeout": 5, "search_roots": ["~/pkgs"]}

    def test_json_without_section(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"request_timeout": 7}))
        assert load_settings(str(path)) == {"request_timeout": 7}

    def test_missing_or_broken_files_are_empty(self, tmp_path):
        assert load_settings(str(tmp_path / "nope.yml")) == {}
        broken = tmp_path / "broken.yml"
        broken.write_text("gitroll: [unclosed\n")
        assert load_settings(str(broken)) == {}
        scalar = tmp_path / "scalar.yml"
        scalar.write_text("just text\n")
        assert load_settings(str(scalar)) == {}

    def test_default_locations(self, tmp_path, saved_constants):
        path = tmp_path / "found.yml"
        path.write_text("request_timeout: 3\n")
        Constants.SETTINGS_PATHS = [str(tmp_path / "absent.yml"), str(path)]
        assert load_settings() == {"request_timeout": 3}


class TestApplySettings:
    """Tests for copying settings onto Constants."""

    def test_recognized_settings_are_coerced(self, saved_constants):
        apply_settings({"request_timeout": "12", "search_per_page": 5, "unknown": 1})
        assert Constants.REQUEST_TIMEOUT == 12
        assert Constants.HUB_SEARCH_PER_PAGE == 5

    def test_invalid_values_are_ignored(self, saved_constants):
        before = Constants.FIXUP_MAX_ATTEMPTS
        apply_settings({"fixup_max_attempts": "many", "search_roots": 3})
        assert Constants.FIXUP_MAX_ATTEMPTS == before
        assert Constants.SEARCH_ROOTS == []

    def test_single_string_becomes_a_list(self, saved_constants):
        apply_settings({"search_roots": "~/pkgs"})
        assert Constants.SEARCH_ROOTS == ["~/pkgs"]

    def test_environment_token_wins(self, saved_constants, monkeypatch):
        apply_settings({"github_token": "from-file"})
        assert Constants.GITHUB_TOKEN == "from-file"
        monkeypatch.setenv(Constants.ENV_GITHUB_TOKEN, "from-env")
        apply_github_token()
        assert Constants.GITHUB_TOKEN == "from-env"

    def test_apply_config_uses_the_named_file(self, tmp_path, saved_constants):
        path = tmp_path / "settings.yml"
        path.write_text("request_timeout: 9\n")
        apply_config(SimpleNamespace(CONFIG=str(path)))
        assert Constants.REQUEST_TIMEOUT == 9


class TestSetupLogging:
    """Tests for CLI driven logging configuration."""

    def test_loglevel_and_logfile(self, tmp_path, monkeypatch):
        monkeypatch.setenv(Constants.ENV_LOG_LEVEL, "INFO")
        root = logging.getLogger()
        level = root.level
        log_file = tmp_path / "gitroll.log"
        setup_logging(SimpleNamespace(LOG_LEVEL="debug", LOG_FILE=str(log_file)))
        try:
            assert root.getEffectiveLevel() == logging.DEBUG
            logging.getLogger("gitroll.test").warning("written")
            for handler in root.handlers:
                handler.flush()
            assert "written" in log_file.read_text()
        finally:
            root.setLevel(level)
            for handler in list(root.handlers):
                if isinstance(handler, logging.FileHandler):
                    root.removeHandler(handler)
                    handler.close()
