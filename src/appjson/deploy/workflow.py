"""Deploy engine orchestrator.

Wires the storage collaborators, the stager, the commit manager and the
lifecycle script runner together and records each completed phase of
the current attempt:

    post-extract          stage()         → staged
    core-post-deploy      commit()        → committed
    pre-release-builder   pre_release()   → pre-released
    post-release-builder  release()       → released
    post-deploy           post_deploy()   → post-deployed

Key Concepts:
    DeployEngine: One object per invocation. ``from_settings()`` builds
        the file-backed and docker-backed defaults; tests pass fakes to
        the constructor.

Related Modules:
    - :mod:`appjson.deploy.stager` - staging
    - :mod:`appjson.deploy.commit` - promotion
    - :mod:`appjson.deploy.scripts` - lifecycle scripts
    - :mod:`appjson.deploy.lifecycle` - app create/rename/delete mirroring
    - :mod:`appjson.cli.app` - the trigger commands calling this

Tags:
    workflow, orchestration, deploy, appjson
"""

from __future__ import annotations

from pathlib import Path

from appjson.core.logging import get_logger
from appjson.core.settings import AppJsonSettings, get_settings
from appjson.deploy.attempt import AttemptPhase, AttemptTracker
from appjson.deploy.commit import CommitManager
from appjson.deploy.container import ImageCopier
from appjson.deploy.document import DocumentStore
from appjson.deploy.executor import ContainerScriptExecutor, ScriptExecutor, ScriptRun
from appjson.deploy.lifecycle import AppLifecycle
from appjson.deploy.paths import AttemptToken, validate_app_name
from appjson.deploy.properties import DeployProperties
from appjson.deploy.scale import FormationScaler, ScaleReconciler
from appjson.deploy.scripts import LifecycleScriptRunner, ReleaseResult
from appjson.deploy.stager import DocumentStager
from appjson.deploy.state import CommitOutcome, StageOutcome
from appjson.store.datadir import DataDirectory, FileDataDirectory
from appjson.store.properties import FilePropertyStore, PropertyStore

logger = get_logger(__name__)


class DeployEngine:
    """Entry points for every deploy trigger of one host.

    Parameters
    ----------
    data_root
        Root of the per-app data directories.
    store
        Property store shared with the other plugins.
    datadir
        Data directory collaborator; defaults to one under ``data_root``.
    executor
        Lifecycle script executor; defaults to the docker-backed one.
    scaler
        Scale reconciliation; defaults to seeding from ``formation``.
    copier
        Image copier used by the stager.
    image_repository
        Repository prefix of deployed images.
    """

    def __init__(
        self,
        data_root: str | Path,
        store: PropertyStore,
        datadir: DataDirectory | None = None,
        executor: ScriptExecutor | None = None,
        scaler: ScaleReconciler | None = None,
        copier: ImageCopier | None = None,
        image_repository: str = "dokku",
    ) -> None:
        self.data_root = Path(data_root)
        self.store = store
        self.properties = DeployProperties(store)
        self.documents = DocumentStore(self.data_root)
        self.tracker = AttemptTracker(store)
        self.stager = DocumentStager(self.data_root, self.properties, copier)
        self.committer = CommitManager(self.data_root)
        self.lifecycle = AppLifecycle(store, datadir or FileDataDirectory(self.data_root))
        self.scripts = LifecycleScriptRunner(
            executor or ContainerScriptExecutor(self.documents),
            self.properties,
            scaler or FormationScaler(store, self.documents),
            tracker=self.tracker,
            image_repository=image_repository,
        )

    @classmethod
    def from_settings(cls, settings: AppJsonSettings | None = None) -> DeployEngine:
        settings = settings or get_settings()
        documents = DocumentStore(settings.data_root)
        return cls(
            data_root=settings.data_root,
            store=FilePropertyStore(settings.config_root),
            executor=ContainerScriptExecutor(
                documents,
                docker_binary=settings.docker_binary,
                timeout=settings.script_timeout,
            ),
            copier=ImageCopier(docker_binary=settings.docker_binary),
            image_repository=settings.image_repository,
        )

    # ── Document staging ─────────────────────────────────────────

    def stage(
        self,
        app: str,
        source_root: str | Path,
        token: AttemptToken,
        source_image: str | None = None,
    ) -> StageOutcome:
        validate_app_name(app)
        outcome = self.stager.stage(app, source_root, token, source_image)
        self.tracker.prune(app, keep=token)
        self.tracker.advance(app, token, AttemptPhase.STAGED)
        return outcome

    def commit(self, app: str, token: AttemptToken) -> CommitOutcome:
        validate_app_name(app)
        outcome = self.committer.commit(app, token)
        self.tracker.advance(app, token, AttemptPhase.COMMITTED)
        return outcome

    # ── Lifecycle scripts ────────────────────────────────────────

    def pre_release(self, app: str, image: str, token: AttemptToken) -> ScriptRun:
        validate_app_name(app)
        return self.scripts.pre_release(app, image, token)

    def release(self, app: str, image: str, token: AttemptToken) -> ReleaseResult:
        validate_app_name(app)
        return self.scripts.release(app, image, token)

    def post_deploy(self, app: str, tag: str, token: AttemptToken) -> ScriptRun:
        validate_app_name(app)
        return self.scripts.post_deploy(app, tag, token)
