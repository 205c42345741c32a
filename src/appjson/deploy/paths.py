"""Staging path resolution.

Pure functions computing where an app's configuration document lives:

    <data_root>/app-json/<app>/app.json                  canonical (committed)
    <data_root>/app-json/<app>/app.json.<attempt>         staged for one attempt
    <data_root>/app-json/<app>/app.json.<attempt>.missing no document this attempt

and where the document is read from in the deployment artifact:

    <source_root>/<build_dir>/<appjson_path>   extracted source tree
    <build_dir>/<appjson_path>                 inside the source image

Related Modules:
    - :mod:`appjson.deploy.stager` - writes the staged paths
    - :mod:`appjson.deploy.commit` - promotes or discards them
"""

from __future__ import annotations

import os
import posixpath
from dataclasses import dataclass
from pathlib import Path

from appjson.core.errors import ConfigError, InvalidAppNameError

NAMESPACE = "app-json"
DEFAULT_DOCUMENT = "app.json"
MISSING_SUFFIX = ".missing"
DEPLOY_PID_ENV = "DOKKU_PID"


@dataclass(frozen=True, slots=True)
class AttemptToken:
    """Identity of one deployment attempt.

    Every trigger fired by the same deploy shares the token; it namespaces
    the staged document so concurrent attempts never share a staging file.
    """

    value: str

    def __post_init__(self) -> None:
        if not self.value or "/" in self.value or self.value.startswith("."):
            raise ConfigError(f"Invalid attempt token: {self.value!r}")

    @classmethod
    def resolve(cls, explicit: str | None = None) -> AttemptToken:
        """Explicit value when given, else $DOKKU_PID, else the parent process id.

        ``DOKKU_PID`` is exported by the deploy process to every trigger it
        fires, so separately spawned triggers of one deploy agree on it.
        """
        if explicit:
            return cls(explicit)
        deploy_pid = os.environ.get(DEPLOY_PID_ENV, "").strip()
        if deploy_pid:
            return cls(deploy_pid)
        return cls(str(os.getppid()))

    def __str__(self) -> str:
        return self.value


def validate_app_name(app: str) -> str:
    """Return ``app`` unchanged, raising for names unusable as a directory."""
    if not app or not app.strip():
        raise InvalidAppNameError("App name must not be empty")
    if "/" in app or app in (".", ".."):
        raise InvalidAppNameError(f"Invalid app name: {app!r}").with_context(app=app)
    return app


def normalize_document_path(configured: str | None) -> str:
    """Strip surrounding slashes; empty means the default file name."""
    path = (configured or "").strip().strip("/")
    return path or DEFAULT_DOCUMENT


@dataclass(frozen=True, slots=True)
class StagingPaths:
    """Canonical and attempt-scoped document paths for one app."""

    app: str
    canonical: Path
    attempt: Path
    missing: Path

    @classmethod
    def for_app(cls, app: str, token: AttemptToken, data_root: str | Path) -> StagingPaths:
        canonical = canonical_path(app, data_root)
        attempt = canonical.with_name(f"{canonical.name}.{token.value}")
        return cls(
            app=app,
            canonical=canonical,
            attempt=attempt,
            missing=attempt.with_name(f"{attempt.name}{MISSING_SUFFIX}"),
        )

    @property
    def directory(self) -> Path:
        return self.canonical.parent

    def leftovers(self) -> list[Path]:
        """Every ``<canonical>.*`` file from this or earlier attempts."""
        if not self.directory.is_dir():
            return []
        return sorted(self.directory.glob(f"{self.canonical.name}.*"))


def canonical_path(app: str, data_root: str | Path) -> Path:
    """The single committed-document path for ``app``."""
    validate_app_name(app)
    return Path(data_root) / NAMESPACE / app / DEFAULT_DOCUMENT


@dataclass(frozen=True, slots=True)
class SourceLocations:
    """Where the document is read from inside the deployment artifact."""

    document_path: str
    tree_path: Path
    image_path: str
    repo_default: Path

    @property
    def is_default(self) -> bool:
        return self.document_path == DEFAULT_DOCUMENT


def source_locations(
    source_root: str | Path,
    build_dir: str = "",
    appjson_path: str | None = None,
) -> SourceLocations:
    """Compute both candidate source locations for a configured document path."""
    document = normalize_document_path(appjson_path)
    build = build_dir.strip().strip("/")
    root = Path(source_root)
    return SourceLocations(
        document_path=document,
        tree_path=root / build / document if build else root / document,
        image_path=posixpath.join(build, document) if build else document,
        repo_default=root / DEFAULT_DOCUMENT,
    )
