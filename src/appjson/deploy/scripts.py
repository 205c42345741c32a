"""Lifecycle script runner.

Phases run strictly in order within one deployment attempt:

    pre-release   ──▶ predeploy script                      (fatal on failure)
    release       ──▶ release script
                  ──▶ scale reconciliation
                  ──▶ terminal guard ──▶ heroku.postdeploy  (at most once per app)
    post-deploy   ──▶ postdeploy script                     (every time it fires)

Terminal guard, evaluated after a successful release:

    common/<app>/deployed == "true"         → skip (redeploy)
    app-json/<app>/heroku.postdeploy set    → skip (already ran or crashed)
    otherwise                               → set the marker, THEN run

Setting the marker before the script trades exactly-once for at-most-once:
a crash mid-script is never followed by a second run.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from appjson.core.logging import get_logger
from appjson.deploy.attempt import AttemptPhase, AttemptTracker
from appjson.deploy.executor import ScriptExecutor, ScriptRun
from appjson.deploy.paths import AttemptToken
from appjson.deploy.properties import DeployProperties
from appjson.deploy.scale import ScaleReconciler

logger = get_logger(__name__)

PREDEPLOY = "predeploy"
RELEASE = "release"
POSTDEPLOY = "postdeploy"
HEROKU_POSTDEPLOY = "heroku.postdeploy"


class TerminalStatus(str, Enum):
    """What the terminal guard decided."""

    RAN = "ran"
    SKIPPED_DEPLOYED = "skipped-deployed"
    SKIPPED_EXECUTED = "skipped-executed"


class ReleaseResult(BaseModel):
    """Outcome of the release phase."""

    app: str
    image: str
    runs: list[ScriptRun] = Field(default_factory=list)
    terminal: TerminalStatus


def image_tag(image: str) -> str:
    """Tag part of an image reference (text after the last ``:``)."""
    return image.rsplit(":", 1)[-1]


def deploying_image(app: str, tag: str, repository: str = "dokku") -> str:
    """Image reference being deployed for ``tag``."""
    return f"{repository}/{app}:{tag or 'latest'}"


class LifecycleScriptRunner:
    """Drives the lifecycle scripts of one application.

    Parameters
    ----------
    executor
        Runs the script configured for a phase.
    properties
        Deployed flag and execution marker.
    scaler
        Process/scale reconciliation run between release and the terminal phase.
    tracker
        Per-attempt state machine; ``None`` disables ordering checks.
    image_repository
        Repository prefix used to resolve the image for ``post_deploy``.
    """

    def __init__(
        self,
        executor: ScriptExecutor,
        properties: DeployProperties,
        scaler: ScaleReconciler,
        tracker: AttemptTracker | None = None,
        image_repository: str = "dokku",
    ) -> None:
        self.executor = executor
        self.properties = properties
        self.scaler = scaler
        self.tracker = tracker
        self.image_repository = image_repository

    def _check(self, app: str, token: AttemptToken | None, phase: AttemptPhase) -> None:
        if self.tracker is not None and token is not None:
            self.tracker.check(app, token, phase)

    def _advance(self, app: str, token: AttemptToken | None, phase: AttemptPhase) -> None:
        if self.tracker is not None and token is not None:
            self.tracker.advance(app, token, phase)

    def pre_release(self, app: str, image: str, token: AttemptToken | None = None) -> ScriptRun:
        """Run the ``predeploy`` script; any failure aborts the attempt."""
        self._check(app, token, AttemptPhase.PRE_RELEASED)
        run = self.executor.run(app, image, image_tag(image), PREDEPLOY)
        self._advance(app, token, AttemptPhase.PRE_RELEASED)
        return run

    def release(self, app: str, image: str, token: AttemptToken | None = None) -> ReleaseResult:
        """Run ``release``, reconcile scale, then the guarded terminal script."""
        self._check(app, token, AttemptPhase.RELEASED)
        tag = image_tag(image)
        runs = [self.executor.run(app, image, tag, RELEASE)]
        self.scaler.reconcile(app, image)
        self._advance(app, token, AttemptPhase.RELEASED)

        if self.properties.is_deployed(app):
            logger.debug("postdeploy.skipped", app=app, reason="deployed")
            return ReleaseResult(app=app, image=image, runs=runs, terminal=TerminalStatus.SKIPPED_DEPLOYED)

        if self.properties.postdeploy_executed(app):
            logger.info("postdeploy.skipped", app=app, reason="executed")
            return ReleaseResult(app=app, image=image, runs=runs, terminal=TerminalStatus.SKIPPED_EXECUTED)

        self.properties.mark_postdeploy_executed(app)
        logger.info("postdeploy.marked", app=app)
        runs.append(self.executor.run(app, image, tag, HEROKU_POSTDEPLOY))
        return ReleaseResult(app=app, image=image, runs=runs, terminal=TerminalStatus.RAN)

    def post_deploy(self, app: str, tag: str, token: AttemptToken | None = None) -> ScriptRun:
        """Run the ``postdeploy`` script for the image deployed at ``tag``."""
        self._check(app, token, AttemptPhase.POST_DEPLOYED)
        image = deploying_image(app, tag, self.image_repository)
        run = self.executor.run(app, image, tag, POSTDEPLOY)
        self._advance(app, token, AttemptPhase.POST_DEPLOYED)
        return run
