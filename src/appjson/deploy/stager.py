"""Staging the configuration document for one deployment attempt.

Runs on ``post-extract``. Each call:

    1. removes every ``<canonical>.*`` leftover from earlier attempts
    2. copies the document from the source tree or the source image into
       ``<canonical>.<attempt>`` - or writes ``<canonical>.<attempt>.missing``
    3. never touches ``<canonical>`` itself (that is the commit's job)

Expected absence is not an error: a tree without the document, or an
image the document cannot be copied out of, yields :class:`Missing`.
A tree document that exists but cannot be copied is a malformed artifact
and raises :class:`StagingError`.

Related Modules:
    - :mod:`appjson.deploy.paths` - path resolution
    - :mod:`appjson.deploy.commit` - promotion of what is staged here
"""

from __future__ import annotations

from pathlib import Path

from appjson.core.errors import ContainerError, DocumentParseError, StagingError
from appjson.core.logging import get_logger
from appjson.deploy.container import ImageCopier, copy_file, remove_path
from appjson.deploy.document import validate_document_file
from appjson.deploy.paths import AttemptToken, StagingPaths, source_locations
from appjson.deploy.properties import DeployProperties
from appjson.deploy.state import Missing, Staged, StageOutcome

logger = get_logger(__name__)


class DocumentStager:
    """Copies the document into the attempt-scoped staging slot.

    Parameters
    ----------
    data_root
        Root of the per-app data directories.
    properties
        Property queries (source image, build dir, configured path).
    copier
        Image copier used when the app deploys from an image.
    """

    def __init__(
        self,
        data_root: str | Path,
        properties: DeployProperties,
        copier: ImageCopier | None = None,
    ) -> None:
        self.data_root = Path(data_root)
        self.properties = properties
        self.copier = copier or ImageCopier()

    def stage(
        self,
        app: str,
        source_root: str | Path,
        token: AttemptToken,
        source_image: str | None = None,
    ) -> StageOutcome:
        """Stage ``app``'s document for ``token``.

        ``source_image`` defaults to the app's configured source image;
        an empty value means "read from the source tree".
        """
        paths = StagingPaths.for_app(app, token, self.data_root)
        self._remove_leftovers(paths)

        if source_image is None:
            source_image = self.properties.source_image(app)
        locations = source_locations(
            source_root,
            build_dir=self.properties.build_dir(app),
            appjson_path=self.properties.computed_appjson_path(app),
        )
        log = logger.bind(app=app, attempt=token.value, document=locations.document_path)

        if source_image:
            outcome = self._stage_from_image(app, source_image, locations.image_path, paths)
        else:
            outcome = self._stage_from_tree(locations.tree_path, locations.repo_default, locations.is_default, paths)

        if isinstance(outcome, Staged):
            log.info("document.staged", path=str(outcome.path), image=source_image or None)
        else:
            log.debug("document.missing", image=source_image or None)
        return outcome

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _remove_leftovers(self, paths: StagingPaths) -> None:
        for leftover in paths.leftovers():
            try:
                remove_path(leftover)
            except OSError as exc:
                raise StagingError(f"Unable to remove stale {leftover.name}: {exc}", cause=exc).with_context(
                    app=paths.app, path=str(leftover)
                ) from exc
            logger.debug("document.leftover_removed", app=paths.app, path=str(leftover))

    def _stage_from_tree(
        self,
        tree_path: Path,
        repo_default: Path,
        is_default: bool,
        paths: StagingPaths,
    ) -> StageOutcome:
        if not tree_path.is_file():
            # A root app.json under a custom path belongs to no one.
            if not is_default and repo_default.exists():
                try:
                    repo_default.unlink()
                except OSError as exc:
                    raise StagingError(f"Unable to remove {repo_default}: {exc}", cause=exc).with_context(
                        app=paths.app, path=str(repo_default)
                    ) from exc
            return self._write_marker(paths)

        try:
            copy_file(tree_path, paths.attempt)
        except OSError as exc:
            raise StagingError(f"Unable to extract app.json: {exc}", cause=exc).with_context(
                app=paths.app, path=str(tree_path)
            ) from exc
        self._validate(paths)

        if not is_default:
            try:
                copy_file(tree_path, repo_default)
            except OSError as exc:
                raise StagingError(f"Unable to move app.json into place: {exc}", cause=exc).with_context(
                    app=paths.app, path=str(repo_default)
                ) from exc

        return Staged(path=paths.attempt)

    def _stage_from_image(self, app: str, image: str, in_path: str, paths: StagingPaths) -> StageOutcome:
        try:
            self.copier.copy_from_image(app, image, in_path, paths.attempt)
        except (ContainerError, OSError) as exc:
            logger.debug("document.image_copy_failed", app=app, image=image, error=str(exc))
            return self._write_marker(paths)
        self._validate(paths)
        return Staged(path=paths.attempt)

    def _write_marker(self, paths: StagingPaths) -> Missing:
        try:
            paths.directory.mkdir(parents=True, exist_ok=True)
            paths.missing.touch()
        except OSError as exc:
            raise StagingError(f"Unable to record missing app.json: {exc}", cause=exc).with_context(
                app=paths.app, path=str(paths.missing)
            ) from exc
        return Missing(marker=paths.missing)

    def _validate(self, paths: StagingPaths) -> None:
        try:
            validate_document_file(paths.attempt)
        except DocumentParseError:
            paths.attempt.unlink(missing_ok=True)
            raise
