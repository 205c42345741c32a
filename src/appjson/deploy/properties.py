"""Read-only property queries consumed by the engine.

The engine owns the ``app-json`` namespace; every other namespace read
here belongs to another plugin and is never written.

    git/<app>/source-image        image to read the document from ("" = source tree)
    builder/<app>/build-dir       sub-directory of the artifact holding the app
    app-json/<app>/appjson-path   configured document path (global fallback)
    common/<app>/deployed         "true" once the app has deployed
"""

from __future__ import annotations

from dataclasses import dataclass

from appjson.deploy.paths import NAMESPACE, normalize_document_path
from appjson.store.properties import GLOBAL_APP, PropertyStore

APPJSON_PATH_KEY = "appjson-path"
POSTDEPLOY_MARKER_KEY = "heroku.postdeploy"
POSTDEPLOY_MARKER_VALUE = "executed"

# Keys settable through ``appjson set``.
SETTABLE_KEYS = frozenset({APPJSON_PATH_KEY})


@dataclass
class DeployProperties:
    """Typed view over the properties a deploy reads."""

    store: PropertyStore

    def source_image(self, app: str) -> str:
        return self.store.get("git", app, "source-image")

    def build_dir(self, app: str) -> str:
        return self.store.get("builder", app, "build-dir")

    def appjson_path(self, app: str) -> str:
        """App-level ``appjson-path`` (may be empty)."""
        return self.store.get(NAMESPACE, app, APPJSON_PATH_KEY)

    def global_appjson_path(self) -> str:
        return self.store.get(NAMESPACE, GLOBAL_APP, APPJSON_PATH_KEY)

    def computed_appjson_path(self, app: str) -> str:
        """App value, else global value, else ``app.json``; slashes trimmed."""
        return normalize_document_path(self.appjson_path(app) or self.global_appjson_path())

    def is_deployed(self, app: str) -> bool:
        return self.store.get("common", app, "deployed") == "true"

    def postdeploy_executed(self, app: str) -> bool:
        return self.store.get(NAMESPACE, app, POSTDEPLOY_MARKER_KEY) == POSTDEPLOY_MARKER_VALUE

    def mark_postdeploy_executed(self, app: str) -> None:
        self.store.set(NAMESPACE, app, POSTDEPLOY_MARKER_KEY, POSTDEPLOY_MARKER_VALUE)

    def report(self, app: str) -> dict[str, str]:
        """Values shown by ``appjson report``."""
        return {
            "computed-appjson-path": self.computed_appjson_path(app),
            "global-appjson-path": self.global_appjson_path(),
            "appjson-path": self.appjson_path(app),
        }
