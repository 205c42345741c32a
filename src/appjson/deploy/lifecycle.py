"""Keeping the engine's state in step with the application's lifecycle.

Every app owns two pieces of state: its ``app-json`` properties and its
``app-json`` data directory (staged and committed documents). Lifecycle
events mirror both:

    install        set up the namespace and the data root
    post-create    create the data directory
    clone-setup    clone properties, then the data directory
    rename-setup   clone properties, destroy the old ones, clone the data directory
    post-rename    migrate the data directory (old one removed)
    post-delete    remove the data directory AND destroy properties

``post_delete`` attempts both steps even when the first fails and raises
one :class:`LifecycleError` carrying every failure, data directory first.
"""

from __future__ import annotations

from appjson.core.errors import CollaboratorError, LifecycleError
from appjson.core.logging import get_logger
from appjson.deploy.paths import NAMESPACE, validate_app_name
from appjson.store.datadir import DataDirectory
from appjson.store.properties import PropertyStore

logger = get_logger(__name__)


class AppLifecycle:
    """Mirrors app create/clone/rename/delete onto properties and data."""

    def __init__(self, store: PropertyStore, datadir: DataDirectory) -> None:
        self.store = store
        self.datadir = datadir

    def install(self) -> None:
        self.store.setup(NAMESPACE)
        self.datadir.setup(NAMESPACE)
        logger.info("lifecycle.installed", namespace=NAMESPACE)

    def post_create(self, app: str) -> None:
        validate_app_name(app)
        self.datadir.create(NAMESPACE, app)
        logger.debug("lifecycle.created", app=app)

    def clone_setup(self, old_app: str, new_app: str) -> None:
        validate_app_name(old_app)
        validate_app_name(new_app)
        self._clone_properties(old_app, new_app)
        self.datadir.clone(NAMESPACE, old_app, new_app)
        logger.info("lifecycle.cloned", app=new_app, source=old_app)

    def rename_setup(self, old_app: str, new_app: str) -> None:
        validate_app_name(old_app)
        validate_app_name(new_app)
        if self._clone_properties(old_app, new_app):
            self.store.destroy(NAMESPACE, old_app)
        self.datadir.clone(NAMESPACE, old_app, new_app)
        logger.info("lifecycle.renamed", app=new_app, source=old_app)

    def post_rename(self, old_app: str, new_app: str) -> None:
        validate_app_name(old_app)
        validate_app_name(new_app)
        self.datadir.migrate(NAMESPACE, old_app, new_app)
        logger.debug("lifecycle.migrated", app=new_app, source=old_app)

    def _clone_properties(self, old_app: str, new_app: str) -> bool:
        if not self.store.exists(NAMESPACE, old_app):
            logger.debug("lifecycle.no_properties", app=old_app)
            return False
        self.store.clone(NAMESPACE, old_app, new_app)
        return True

    def post_delete(self, app: str) -> None:
        validate_app_name(app)
        errors: list[Exception] = []

        try:
            self.datadir.remove(NAMESPACE, app)
        except CollaboratorError as exc:
            errors.append(exc)
        try:
            self.store.destroy(NAMESPACE, app)
        except CollaboratorError as exc:
            errors.append(exc)

        if errors:
            logger.error("lifecycle.delete_failed", app=app, failures=len(errors))
            raise LifecycleError(f"Unable to clean up app-json state for {app}", errors).with_context(app=app)
        logger.info("lifecycle.deleted", app=app)
