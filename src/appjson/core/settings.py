"""Environment-driven settings for the app.json deployment engine.

All fields read from ``APPJSON_*`` environment variables or a ``.env``
file. Keyword arguments passed to ``AppJsonSettings(...)`` win over both.

Fields
──────
data_root        : Root of per-plugin data directories (staged/committed documents)
config_root      : Root of the file-backed property store
attempt_id       : Attempt token value shared by all triggers of one deploy
image_repository : Repository prefix of deployed images (``dokku/<app>:<tag>``)
docker_binary    : Docker CLI used for image copies and script runs
script_timeout   : Seconds a single lifecycle script may run
log_level        : Structlog log level
log_format       : ``json`` | ``console`` | ``auto``

Example:
    >>> from appjson.core.settings import AppJsonSettings
    >>> s = AppJsonSettings(data_root="/tmp/appjson")
    >>> s.data_root
    PosixPath('/tmp/appjson')

Tags:
    settings, configuration, pydantic, environment, appjson
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppJsonSettings(BaseSettings):
    """Settings shared by the CLI and the engine services."""

    model_config = SettingsConfigDict(
        env_prefix="APPJSON_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Storage ──────────────────────────────────────────────────
    data_root: Path = Field(
        default=Path("/var/lib/dokku/data"),
        description="Root of per-plugin, per-app data directories",
    )
    config_root: Path = Field(
        default=Path("/var/lib/dokku/config"),
        description="Root of the file-backed property store",
    )

    # ── Deployment attempt ───────────────────────────────────────
    attempt_id: str | None = Field(
        default=None,
        description="Attempt token; falls back to $DOKKU_PID, then the parent process id",
    )

    # ── Collaborators ────────────────────────────────────────────
    docker_binary: str = "docker"
    image_repository: str = Field(default="dokku", description="Repository prefix of deployed images")
    script_timeout: int = Field(default=3600, gt=0)

    # ── Observability ────────────────────────────────────────────
    debug: bool = False
    log_level: str = "INFO"
    log_format: Literal["json", "console", "auto"] = "auto"

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    @field_validator("attempt_id")
    @classmethod
    def _blank_attempt(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: dict[str, AppJsonSettings] = {}


def get_settings(*, _force_reload: bool = False) -> AppJsonSettings:
    """Load, validate, and cache the process-wide settings.

    Parameters
    ----------
    _force_reload:
        Bypass cache and re-read the environment.
    """
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]
    settings = AppJsonSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Forget cached settings."""
    _settings_cache.clear()
