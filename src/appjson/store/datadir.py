"""
Per-application data directories.

Each plugin namespace owns ``<data_root>/<namespace>/<app>``; the app.json
engine keeps its staged and committed documents there. Clone copies the
tree to the new name and leaves the old one alone; migrate moves it.

Tags:
    storage, data-directory, filesystem, appjson
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Protocol, runtime_checkable

from appjson.core.errors import DataDirectoryError
from appjson.core.logging import get_logger

logger = get_logger(__name__)


@runtime_checkable
class DataDirectory(Protocol):
    """Filesystem area holding one app's plugin data."""

    def path(self, namespace: str, app: str) -> Path: ...

    def setup(self, namespace: str) -> None: ...

    def create(self, namespace: str, app: str) -> None: ...

    def clone(self, namespace: str, old_app: str, new_app: str) -> None: ...

    def migrate(self, namespace: str, old_app: str, new_app: str) -> None: ...

    def remove(self, namespace: str, app: str) -> None: ...


class FileDataDirectory:
    """Local-disk :class:`DataDirectory` rooted at ``root``."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def path(self, namespace: str, app: str) -> Path:
        return self.root / namespace / app

    def _fail(self, action: str, namespace: str, app: str, exc: OSError) -> DataDirectoryError:
        return DataDirectoryError(
            f"Unable to {action} data directory for {app}: {exc}", cause=exc
        ).with_context(namespace=namespace, app=app, path=str(self.path(namespace, app)))

    def setup(self, namespace: str) -> None:
        try:
            (self.root / namespace).mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise self._fail("set up", namespace, "", exc) from exc

    def create(self, namespace: str, app: str) -> None:
        try:
            self.path(namespace, app).mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise self._fail("create", namespace, app, exc) from exc
        logger.debug("datadir.created", namespace=namespace, app=app)

    def clone(self, namespace: str, old_app: str, new_app: str) -> None:
        """Copy ``old_app``'s directory to ``new_app`` (creates it when ``old_app`` has none)."""
        src = self.path(namespace, old_app)
        dst = self.path(namespace, new_app)
        try:
            if src.is_dir():
                shutil.copytree(src, dst, dirs_exist_ok=True)
            else:
                dst.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise self._fail("clone", namespace, new_app, exc) from exc
        logger.debug("datadir.cloned", namespace=namespace, old_app=old_app, new_app=new_app)

    def migrate(self, namespace: str, old_app: str, new_app: str) -> None:
        """Move ``old_app``'s contents into ``new_app`` and drop the old directory."""
        src = self.path(namespace, old_app)
        dst = self.path(namespace, new_app)
        if not src.exists():
            return
        try:
            if dst.exists():
                shutil.copytree(src, dst, dirs_exist_ok=True)
                shutil.rmtree(src)
            else:
                dst.parent.mkdir(parents=True, exist_ok=True)
                shutil.move(str(src), str(dst))
        except OSError as exc:
            raise self._fail("migrate", namespace, old_app, exc) from exc
        logger.debug("datadir.migrated", namespace=namespace, old_app=old_app, new_app=new_app)

    def remove(self, namespace: str, app: str) -> None:
        target = self.path(namespace, app)
        if not target.exists():
            return
        try:
            shutil.rmtree(target)
        except OSError as exc:
            raise self._fail("remove", namespace, app, exc) from exc
        logger.debug("datadir.removed", namespace=namespace, app=app)
