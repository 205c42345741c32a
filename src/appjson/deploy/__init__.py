"""Staged app.json resolution and idempotent lifecycle-script execution.

A deploy fires a sequence of triggers, each in its own process. Together
they move one app's configuration document through three slots and run
the scripts it configures:

    artifact ──stage──▶ app.json.<attempt>  ──commit──▶ app.json
                  └───▶ app.json.<attempt>.missing ──commit──▶ (removed)

    pre-release ──▶ release ──▶ scale ──▶ heroku.postdeploy (first deploy only)
    post-deploy (every deploy and restart)

Key Concepts:
    AttemptToken: Identity of one deployment attempt.
    DocumentStager / CommitManager: The two halves of staging.
    LifecycleScriptRunner: Phase ordering and the at-most-once guard.
    AppLifecycle: Mirrors app create/clone/rename/delete.
    DeployEngine: Wires everything from settings.

Related Modules:
    - :mod:`appjson.store` - property store and data directories
    - :mod:`appjson.cli` - trigger commands

Tags:
    deploy, app.json, staging, lifecycle, scripts
"""

from appjson.deploy.attempt import AttemptPhase, AttemptTracker
from appjson.deploy.commit import CommitManager
from appjson.deploy.document import AppJson, DocumentStore
from appjson.deploy.executor import ContainerScriptExecutor, ScriptExecutor, ScriptRun
from appjson.deploy.lifecycle import AppLifecycle
from appjson.deploy.paths import AttemptToken, StagingPaths
from appjson.deploy.properties import DeployProperties
from appjson.deploy.scripts import LifecycleScriptRunner, ReleaseResult, TerminalStatus
from appjson.deploy.stager import DocumentStager
from appjson.deploy.state import (
    Absent,
    Committed,
    Discarded,
    Missing,
    Pending,
    Promoted,
    Staged,
    Unchanged,
)
from appjson.deploy.workflow import DeployEngine

__all__ = [
    "Absent",
    "AppJson",
    "AppLifecycle",
    "AttemptPhase",
    "AttemptToken",
    "AttemptTracker",
    "CommitManager",
    "Committed",
    "ContainerScriptExecutor",
    "DeployEngine",
    "DeployProperties",
    "Discarded",
    "DocumentStager",
    "DocumentStore",
    "LifecycleScriptRunner",
    "Missing",
    "Pending",
    "Promoted",
    "ReleaseResult",
    "ScriptExecutor",
    "ScriptRun",
    "Staged",
    "StagingPaths",
    "TerminalStatus",
    "Unchanged",
]
