"""Reading the committed configuration document.

The engine treats the document as opaque bytes while staging and
promoting. Only the readers in this module look inside it, and only at
the ``scripts`` and ``formation`` sections; every other key is preserved
untouched (``extra="allow"``).

Key Concepts:
    AppJson: Pydantic model of the sections the engine consumes.
    DocumentStore: Resolves an app's :data:`DocumentState` and renders the
        committed content (``{}`` when there is none).

Example:
    >>> store = DocumentStore(data_root="/var/lib/dokku/data")
    >>> store.get_content("never-deployed")
    '{}'
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from appjson.core.errors import DocumentParseError
from appjson.core.logging import get_logger
from appjson.deploy.paths import AttemptToken, StagingPaths, canonical_path
from appjson.deploy.state import Absent, Committed, DocumentState, Pending

logger = get_logger(__name__)

EMPTY_DOCUMENT = "{}"


class DokkuScripts(BaseModel):
    model_config = ConfigDict(extra="allow")

    predeploy: str = ""
    postdeploy: str = ""


class Scripts(BaseModel):
    model_config = ConfigDict(extra="allow")

    dokku: DokkuScripts = Field(default_factory=DokkuScripts)
    postdeploy: str = ""
    release: str = ""


class Formation(BaseModel):
    model_config = ConfigDict(extra="allow")

    quantity: int | None = None
    max_parallel: int | None = None


class AppJson(BaseModel):
    """The parts of ``app.json`` the deploy engine reads."""

    model_config = ConfigDict(extra="allow")

    scripts: Scripts = Field(default_factory=Scripts)
    formation: dict[str, Formation] = Field(default_factory=dict)

    def script_for(self, phase: str) -> str:
        """Command configured for a lifecycle phase ("" when unset).

        ``predeploy`` and ``postdeploy`` live under ``scripts.dokku``;
        ``heroku.postdeploy`` is the Heroku-compatible ``scripts.postdeploy``.
        """
        match phase:
            case "predeploy":
                return self.scripts.dokku.predeploy
            case "postdeploy":
                return self.scripts.dokku.postdeploy
            case "release":
                return self.scripts.release
            case "heroku.postdeploy":
                return self.scripts.postdeploy
            case _:
                raise ValueError(f"Unknown lifecycle phase: {phase!r}")


def parse_document(content: str, *, source: str = "app.json") -> AppJson:
    """Parse document text; blank text is an empty document."""
    if not content.strip():
        return AppJson()
    try:
        return AppJson.model_validate_json(content)
    except ValidationError as exc:
        raise DocumentParseError(f"Cannot parse {source}: {exc}", cause=exc).with_context(path=source) from exc


def validate_document_file(path: Path) -> None:
    """Raise :class:`DocumentParseError` unless ``path`` holds a JSON object."""
    try:
        data = json.loads(path.read_text(encoding="utf-8") or "{}")
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise DocumentParseError(f"Cannot parse app.json: {exc}", cause=exc).with_context(path=str(path)) from exc
    if not isinstance(data, dict):
        raise DocumentParseError("Cannot parse app.json: top-level value must be an object").with_context(
            path=str(path)
        )


class DocumentStore:
    """Read access to staged and committed documents under ``data_root``."""

    def __init__(self, data_root: str | Path) -> None:
        self.data_root = Path(data_root)

    def paths(self, app: str, token: AttemptToken) -> StagingPaths:
        return StagingPaths.for_app(app, token, self.data_root)

    def committed(self, app: str) -> Committed | Absent:
        """The committed document, ignoring anything still pending."""
        path = canonical_path(app, self.data_root)
        try:
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return Absent()
        except OSError as exc:
            raise DocumentParseError(f"Cannot read app.json file: {exc}", cause=exc).with_context(
                app=app, path=str(path)
            ) from exc
        return Committed(path=path, content=content)

    def state(self, app: str, token: AttemptToken | None = None) -> DocumentState:
        """Pending for ``token`` if it staged anything, else the committed state."""
        if token is not None:
            paths = self.paths(app, token)
            if paths.attempt.is_file():
                return Pending(path=paths.attempt)
            if paths.missing.is_file():
                return Pending(path=paths.missing, missing=True)
        return self.committed(app)

    def get_content(self, app: str) -> str:
        """Committed document text, or ``{}`` when absent or blank."""
        match self.committed(app):
            case Committed(content=content) if content.strip():
                return content.strip()
            case _:
                return EMPTY_DOCUMENT

    def load(self, app: str) -> AppJson:
        """Parsed committed document (empty model when absent)."""
        return parse_document(self.get_content(app), source=f"{app}/app.json")

    def process_deploy_parallelism(self, app: str, process_type: str) -> int:
        """Processes of ``process_type`` to deploy in parallel (default 1)."""
        formation = self.load(app).formation.get(process_type)
        if formation is None or formation.max_parallel is None:
            return 1
        return formation.max_parallel if formation.max_parallel > 0 else 1
