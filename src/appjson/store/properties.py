"""
Namespaced key/value property store.

Properties are scoped by ``(namespace, app, key)``. Each plugin owns a
namespace (``app-json``, ``common``, ``git``, ``builder``, ``ps``); values
that apply to every app live under the reserved app name ``--global``.

Architecture:
    ::

        PropertyStore (Protocol)
              │
        FilePropertyStore
              │
        <config_root>/<namespace>/<app>/<key>   (one file per key)

Writes go through a temporary sibling and ``os.replace`` so a reader never
observes a half-written value.

Tags:
    storage, protocol, properties, key-value, appjson
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import Protocol, runtime_checkable

from appjson.core.errors import PropertyStoreError
from appjson.core.logging import get_logger

logger = get_logger(__name__)

GLOBAL_APP = "--global"


@runtime_checkable
class PropertyStore(Protocol):
    """Durable key/value storage scoped to an application namespace."""

    def setup(self, namespace: str) -> None: ...

    def get(self, namespace: str, app: str, key: str, default: str = "") -> str: ...

    def set(self, namespace: str, app: str, key: str, value: str) -> None: ...

    def delete(self, namespace: str, app: str, key: str) -> None: ...

    def exists(self, namespace: str, app: str) -> bool: ...

    def all(self, namespace: str, app: str) -> dict[str, str]: ...

    def clone(self, namespace: str, old_app: str, new_app: str) -> None: ...

    def destroy(self, namespace: str, app: str) -> None: ...


class FilePropertyStore:
    """File-backed :class:`PropertyStore`.

    Parameters
    ----------
    root
        Directory holding one sub-directory per namespace.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def _app_dir(self, namespace: str, app: str) -> Path:
        return self.root / namespace / app

    def _key_path(self, namespace: str, app: str, key: str) -> Path:
        if not key or "/" in key or key in (".", ".."):
            raise PropertyStoreError(f"Invalid property key: {key!r}").with_context(
                namespace=namespace, app=app
            )
        return self._app_dir(namespace, app) / key

    # ------------------------------------------------------------------
    # Namespace lifecycle
    # ------------------------------------------------------------------

    def setup(self, namespace: str) -> None:
        """Create the namespace directory (idempotent)."""
        try:
            (self.root / namespace).mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PropertyStoreError(
                f"Unable to set up property namespace {namespace}: {exc}", cause=exc
            ).with_context(namespace=namespace) from exc

    def exists(self, namespace: str, app: str) -> bool:
        return self._app_dir(namespace, app).is_dir()

    def clone(self, namespace: str, old_app: str, new_app: str) -> None:
        """Copy every key of ``old_app`` under ``new_app``.

        Cloning an app that has no properties is a no-op.
        """
        src = self._app_dir(namespace, old_app)
        if not src.is_dir():
            return
        dst = self._app_dir(namespace, new_app)
        try:
            dst.mkdir(parents=True, exist_ok=True)
            for entry in src.iterdir():
                if entry.is_file() and not entry.name.startswith("."):
                    shutil.copy2(entry, dst / entry.name)
        except OSError as exc:
            raise PropertyStoreError(
                f"Unable to clone properties from {old_app} to {new_app}: {exc}", cause=exc
            ).with_context(namespace=namespace, app=new_app) from exc
        logger.debug("properties.cloned", namespace=namespace, old_app=old_app, new_app=new_app)

    def destroy(self, namespace: str, app: str) -> None:
        """Remove every key of ``app`` (no-op when absent)."""
        target = self._app_dir(namespace, app)
        if not target.exists():
            return
        try:
            shutil.rmtree(target)
        except OSError as exc:
            raise PropertyStoreError(
                f"Unable to destroy properties for {app}: {exc}", cause=exc
            ).with_context(namespace=namespace, app=app) from exc
        logger.debug("properties.destroyed", namespace=namespace, app=app)

    # ------------------------------------------------------------------
    # Key access
    # ------------------------------------------------------------------

    def get(self, namespace: str, app: str, key: str, default: str = "") -> str:
        path = self._key_path(namespace, app, key)
        try:
            return path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return default
        except OSError as exc:
            raise PropertyStoreError(
                f"Unable to read property {key}: {exc}", cause=exc
            ).with_context(namespace=namespace, app=app) from exc

    def set(self, namespace: str, app: str, key: str, value: str) -> None:
        path = self._key_path(namespace, app, key)
        tmp = path.with_name(f".{path.name}.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(f"{value}\n", encoding="utf-8")
            os.replace(tmp, path)
        except OSError as exc:
            raise PropertyStoreError(
                f"Unable to write property {key}: {exc}", cause=exc
            ).with_context(namespace=namespace, app=app) from exc

    def delete(self, namespace: str, app: str, key: str) -> None:
        path = self._key_path(namespace, app, key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise PropertyStoreError(
                f"Unable to delete property {key}: {exc}", cause=exc
            ).with_context(namespace=namespace, app=app) from exc

    def all(self, namespace: str, app: str) -> dict[str, str]:
        src = self._app_dir(namespace, app)
        if not src.is_dir():
            return {}
        return {
            entry.name: entry.read_text(encoding="utf-8").strip()
            for entry in sorted(src.iterdir())
            if entry.is_file() and not entry.name.startswith(".")
        }

