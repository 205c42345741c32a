"""Lifecycle script execution.

A script is the shell command the committed ``app.json`` configures for
a phase. It runs once, in a throwaway container built from the image
being deployed:

    docker run --rm --label com.dokku.app-name=<app> \
        --env DOKKU_APP_NAME=<app> --env DOKKU_IMAGE_TAG=<tag> \
        <image> /bin/sh -c <command>

Output streams straight to the caller's terminal. A phase with no
configured command is skipped.

Key Concepts:
    ScriptExecutor: Protocol the lifecycle runner depends on.
    ContainerScriptExecutor: Docker-backed implementation.
    ScriptRun: Structured outcome of one invocation.

Related Modules:
    - :mod:`appjson.deploy.scripts` - decides which phases run
    - :mod:`appjson.deploy.document` - resolves the command for a phase
"""

from __future__ import annotations

import shutil
import subprocess
import time
from typing import Protocol, runtime_checkable

from pydantic import BaseModel

from appjson.core.errors import ContainerError, ScriptExecutionError
from appjson.core.logging import get_logger
from appjson.deploy.document import DocumentStore

logger = get_logger(__name__)


class ScriptRun(BaseModel):
    """Outcome of one lifecycle script invocation."""

    app: str
    phase: str
    image: str
    command: str = ""
    exit_code: int | None = None
    duration_seconds: float = 0.0
    skipped: bool = False


@runtime_checkable
class ScriptExecutor(Protocol):
    """Runs the script configured for a lifecycle phase."""

    def run(self, app: str, image: str, tag: str, phase: str) -> ScriptRun: ...


class ContainerScriptExecutor:
    """Runs lifecycle scripts inside the image being deployed.

    Parameters
    ----------
    documents
        Source of the committed document.
    docker_binary
        Name or path of the docker CLI.
    timeout
        Seconds a script may run before it is treated as failed.
    """

    def __init__(
        self,
        documents: DocumentStore,
        docker_binary: str = "docker",
        timeout: int = 3600,
    ) -> None:
        self.documents = documents
        self.docker_binary = docker_binary
        self.timeout = timeout

    def run(self, app: str, image: str, tag: str, phase: str) -> ScriptRun:
        command = self.documents.load(app).script_for(phase)
        if not command.strip():
            logger.debug("script.not_configured", app=app, phase=phase)
            return ScriptRun(app=app, phase=phase, image=image, skipped=True)

        docker = shutil.which(self.docker_binary)
        if docker is None:
            raise ContainerError(f"Docker CLI {self.docker_binary!r} not found on PATH").with_context(
                app=app, phase=phase
            )

        cmd = [
            docker, "run", "--rm",
            "--label", f"com.dokku.app-name={app}",
            "--label", f"com.dokku.lifecycle-phase={phase}",
            "--env", f"DOKKU_APP_NAME={app}",
            "--env", f"DOKKU_IMAGE_TAG={tag}",
            image,
            "/bin/sh", "-c", command,
        ]

        logger.info("script.started", app=app, phase=phase, image=image, command=command)
        start = time.time()
        try:
            proc = subprocess.run(cmd, timeout=self.timeout, check=False)  # noqa: S603
        except subprocess.TimeoutExpired as exc:
            raise ScriptExecutionError(
                f"Execution of {phase} task timed out after {self.timeout}s: {command}", cause=exc
            ).with_context(app=app, phase=phase) from exc
        except OSError as exc:
            raise ScriptExecutionError(f"Unable to start {phase} task: {exc}", cause=exc).with_context(
                app=app, phase=phase
            ) from exc

        run = ScriptRun(
            app=app,
            phase=phase,
            image=image,
            command=command,
            exit_code=proc.returncode,
            duration_seconds=time.time() - start,
        )
        if proc.returncode != 0:
            raise ScriptExecutionError(
                f"Execution of {phase} task failed (exit {proc.returncode}): {command}",
                exit_code=proc.returncode,
            ).with_context(app=app, phase=phase)

        logger.info("script.finished", app=app, phase=phase, duration_seconds=round(run.duration_seconds, 3))
        return run
