"""
Shared pytest fixtures for appjson tests.

This module provides:
- Isolated data and config roots under ``tmp_path``
- Settings pointed at those roots (cache cleared per test)
- Fake script executor and scale reconciler recording their calls
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import structlog

from appjson.core.settings import clear_settings_cache
from appjson.deploy.executor import ScriptRun
from appjson.deploy.paths import AttemptToken
from appjson.store.properties import FilePropertyStore


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def _isolate(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Point settings at tmp roots and reset global state between tests."""
    monkeypatch.setenv("APPJSON_DATA_ROOT", str(tmp_path / "data"))
    monkeypatch.setenv("APPJSON_CONFIG_ROOT", str(tmp_path / "config"))
    monkeypatch.delenv("APPJSON_ATTEMPT_ID", raising=False)
    monkeypatch.delenv("DOKKU_PID", raising=False)
    monkeypatch.chdir(tmp_path)
    clear_settings_cache()
    yield
    clear_settings_cache()
    structlog.reset_defaults()


# =============================================================================
# Storage
# =============================================================================


@pytest.fixture
def data_root(tmp_path: Path) -> Path:
    return tmp_path / "data"


@pytest.fixture
def config_root(tmp_path: Path) -> Path:
    return tmp_path / "config"


@pytest.fixture
def store(config_root: Path) -> FilePropertyStore:
    return FilePropertyStore(config_root)


@pytest.fixture
def token() -> AttemptToken:
    return AttemptToken("4242")


@pytest.fixture
def source_root(tmp_path: Path) -> Path:
    root = tmp_path / "src"
    root.mkdir()
    return root


def _write_document(directory: Path, document: dict | str, name: str = "app.json") -> Path:
    path = directory / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(document if isinstance(document, str) else json.dumps(document))
    return path


@pytest.fixture
def write_document():
    """Write a document (dict → JSON) to ``directory/name``."""
    return _write_document


# =============================================================================
# Fakes
# =============================================================================


class RecordingExecutor:
    """ScriptExecutor double: records phases, optionally failing some."""

    def __init__(self, fail: set[str] | None = None) -> None:
        self.calls: list[tuple[str, str, str, str]] = []
        self.fail = fail or set()

    def run(self, app: str, image: str, tag: str, phase: str) -> ScriptRun:
        from appjson.core.errors import ScriptExecutionError

        self.calls.append((app, image, tag, phase))
        if phase in self.fail:
            raise ScriptExecutionError(f"Execution of {phase} task failed (exit 1): boom", exit_code=1)
        return ScriptRun(app=app, phase=phase, image=image, command=f"run-{phase}", exit_code=0)

    @property
    def phases(self) -> list[str]:
        return [call[3] for call in self.calls]


class RecordingScaler:
    def __init__(self, error: Exception | None = None) -> None:
        self.calls: list[tuple[str, str]] = []
        self.error = error

    def reconcile(self, app: str, image: str) -> None:
        self.calls.append((app, image))
        if self.error is not None:
            raise self.error


@pytest.fixture
def executor() -> RecordingExecutor:
    return RecordingExecutor()


@pytest.fixture
def scaler() -> RecordingScaler:
    return RecordingScaler()
