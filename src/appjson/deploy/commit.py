"""Promoting or discarding the document staged by an attempt.

Runs once per attempt on ``core-post-deploy``:

    <canonical>.<attempt>           exists → os.replace onto <canonical>
    <canonical>.<attempt>.missing   exists → remove <canonical>, then the marker
    neither                                → no-op

The canonical document is removed *before* the marker. If that removal
fails, the marker survives and a retried commit finishes the discard;
the reverse order would leave a stale document that no later commit
could detect.
"""

from __future__ import annotations

import os
from pathlib import Path

from appjson.core.errors import PromotionError
from appjson.core.logging import get_logger
from appjson.deploy.document import DocumentStore
from appjson.deploy.paths import AttemptToken, StagingPaths
from appjson.deploy.state import CommitOutcome, Discarded, Pending, Promoted, Unchanged

logger = get_logger(__name__)


class CommitManager:
    """Moves an attempt's staged document into the canonical slot."""

    def __init__(self, data_root: str | Path) -> None:
        self.data_root = Path(data_root)
        self.documents = DocumentStore(self.data_root)

    def commit(self, app: str, token: AttemptToken) -> CommitOutcome:
        paths = self.documents.paths(app, token)

        match self.documents.state(app, token):
            case Pending(missing=False):
                return self._promote(paths, token)
            case Pending(missing=True):
                return self._discard(paths, token)
            case _:
                logger.debug("document.nothing_staged", app=app, attempt=token.value)
                return Unchanged()

    def _promote(self, paths: StagingPaths, token: AttemptToken) -> Promoted:
        try:
            os.replace(paths.attempt, paths.canonical)
        except OSError as exc:
            raise PromotionError(f"Unable to promote app.json: {exc}", cause=exc).with_context(
                app=paths.app, attempt=token.value, path=str(paths.attempt)
            ) from exc
        logger.info("document.promoted", app=paths.app, attempt=token.value, path=str(paths.canonical))
        return Promoted(path=paths.canonical)

    def _discard(self, paths: StagingPaths, token: AttemptToken) -> Discarded:
        removed = False
        if paths.canonical.exists():
            try:
                paths.canonical.unlink()
            except OSError as exc:
                raise PromotionError(f"Unable to remove stale app.json: {exc}", cause=exc).with_context(
                    app=paths.app, attempt=token.value, path=str(paths.canonical)
                ) from exc
            removed = True
        try:
            paths.missing.unlink()
        except OSError as exc:
            raise PromotionError(f"Unable to remove missing marker: {exc}", cause=exc).with_context(
                app=paths.app, attempt=token.value, path=str(paths.missing)
            ) from exc
        logger.info("document.discarded", app=paths.app, attempt=token.value, removed_canonical=removed)
        return Discarded(removed_canonical=removed)
