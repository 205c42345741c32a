"""Tests for appjson.core.settings module.

Covers:
- Defaults
- APPJSON_* environment overrides
- Validation of log level, log format and attempt id
- get_settings() caching
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from appjson.core.settings import AppJsonSettings, clear_settings_cache, get_settings


class TestAppJsonSettingsDefaults:
    def test_default_roots(self, monkeypatch):
        monkeypatch.delenv("APPJSON_DATA_ROOT")
        monkeypatch.delenv("APPJSON_CONFIG_ROOT")
        s = AppJsonSettings()
        assert s.data_root == Path("/var/lib/dokku/data")
        assert s.config_root == Path("/var/lib/dokku/config")

    def test_default_collaborators(self):
        s = AppJsonSettings()
        assert s.docker_binary == "docker"
        assert s.image_repository == "dokku"
        assert s.script_timeout == 3600

    def test_default_observability(self):
        s = AppJsonSettings()
        assert s.debug is False
        assert s.log_level == "INFO"
        assert s.log_format == "auto"
        assert s.attempt_id is None


class TestAppJsonSettingsEnvOverride:
    def test_data_root_from_env(self, tmp_path):
        s = AppJsonSettings()
        assert s.data_root == tmp_path / "data"

    def test_attempt_id_from_env(self, monkeypatch):
        monkeypatch.setenv("APPJSON_ATTEMPT_ID", "deploy-7")
        assert AppJsonSettings().attempt_id == "deploy-7"

    def test_blank_attempt_id_is_none(self, monkeypatch):
        monkeypatch.setenv("APPJSON_ATTEMPT_ID", "  ")
        assert AppJsonSettings().attempt_id is None

    def test_log_level_uppercased(self, monkeypatch):
        monkeypatch.setenv("APPJSON_LOG_LEVEL", "debug")
        assert AppJsonSettings().log_level == "DEBUG"

    def test_unprefixed_env_ignored(self, monkeypatch):
        monkeypatch.setenv("DOCKER_BINARY", "podman")
        assert AppJsonSettings().docker_binary == "docker"

    def test_dotenv_file(self, tmp_path):
        (tmp_path / ".env").write_text("APPJSON_DOCKER_BINARY=podman\n")
        assert AppJsonSettings().docker_binary == "podman"


class TestAppJsonSettingsValidation:
    def test_invalid_log_format(self, monkeypatch):
        monkeypatch.setenv("APPJSON_LOG_FORMAT", "xml")
        with pytest.raises(ValidationError):
            AppJsonSettings()

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            AppJsonSettings(script_timeout=0)


class TestGetSettings:
    def test_cached(self):
        assert get_settings() is get_settings()

    def test_force_reload(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("APPJSON_DOCKER_BINARY", "podman")
        assert get_settings().docker_binary == "docker"
        reloaded = get_settings(_force_reload=True)
        assert reloaded is not first
        assert reloaded.docker_binary == "podman"

    def test_clear_cache(self):
        first = get_settings()
        clear_settings_cache()
        assert get_settings() is not first
