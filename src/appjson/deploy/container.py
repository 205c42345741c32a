"""Copying the configuration document out of its source.

Two sources exist: a file in the extracted source tree (``copy_file``)
and a path inside a built image (``ImageCopier.copy_from_image``). Image
copies go through the ``docker`` CLI via subprocess:

    docker create <image>          → throwaway container id
    docker cp <id>:<path> <dest>   → file lands next to its final name
    docker rm --force <id>

Both copies write to a temporary sibling of the destination and rename it
into place, so an interrupted copy never leaves a partial file under the
final name.

Key Concepts:
    ImageCopier: Docker CLI wrapper for reading files out of images.
    copy_file: Local copy with the same atomic-rename guarantee.
    remove_path: Removes a leftover file or directory.
    DockerNotFoundError: Raised when ``docker`` is not on PATH.

Related Modules:
    - :mod:`appjson.deploy.stager` - the only caller
    - :mod:`appjson.deploy.executor` - runs scripts with the same CLI

Tags:
    container, docker, subprocess, copy, appjson
"""

from __future__ import annotations

import os
import posixpath
import shutil
import subprocess
from pathlib import Path

from appjson.core.errors import ContainerError
from appjson.core.logging import get_logger

logger = get_logger(__name__)


class DockerNotFoundError(ContainerError):
    """Raised when Docker CLI is not available."""


def _temp_sibling(path: Path) -> Path:
    return path.with_name(f"{path.name}.tmp")


def remove_path(path: Path) -> None:
    """Remove a file or, when ``docker cp`` copied a directory, the whole tree."""
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink(missing_ok=True)


def copy_file(src: str | Path, dst: str | Path) -> None:
    """Copy ``src`` to ``dst`` through a temporary sibling.

    Raises ``OSError`` (e.g. ``FileNotFoundError``) unchanged; callers
    decide whether the failure is fatal.
    """
    dst = Path(dst)
    tmp = _temp_sibling(dst)
    dst.parent.mkdir(parents=True, exist_ok=True)
    try:
        shutil.copyfile(src, tmp)
        os.replace(tmp, dst)
    finally:
        tmp.unlink(missing_ok=True)


class ImageCopier:
    """Reads files out of container images with the docker CLI.

    Parameters
    ----------
    docker_binary
        Name or path of the docker CLI.
    timeout
        Seconds each docker invocation may take.

    Example::

        copier = ImageCopier()
        copier.copy_from_image("api", "dokku/api:latest", "app.json", "/tmp/app.json.42")
    """

    def __init__(self, docker_binary: str = "docker", timeout: int = 120) -> None:
        self.docker_binary = docker_binary
        self.timeout = timeout

    def _find_docker(self) -> str:
        docker = shutil.which(self.docker_binary)
        if docker is None:
            raise DockerNotFoundError(
                f"Docker CLI {self.docker_binary!r} not found on PATH. Install Docker or add it to PATH."
            )
        return docker

    def copy_from_image(self, app: str, image: str, in_path: str, out_path: str | Path) -> None:
        """Copy ``in_path`` from ``image`` to ``out_path`` on the host.

        Relative ``in_path`` values resolve against the image's working
        directory. Any failure (missing file, missing image, docker error)
        raises :class:`ContainerError`.
        """
        out_path = Path(out_path)
        source = self._resolve_in_image(image, in_path)

        result = self._run_docker(["create", "--label", f"com.dokku.app-name={app}", image])
        container_id = result.stdout.strip()
        tmp = _temp_sibling(out_path)
        try:
            out_path.parent.mkdir(parents=True, exist_ok=True)
            self._run_docker(["cp", f"{container_id}:{source}", str(tmp)])
            if not tmp.is_file():
                raise ContainerError(f"{source} in {image} is not a regular file").with_context(app=app)
            os.replace(tmp, out_path)
        finally:
            remove_path(tmp)
            self._run_docker(["rm", "--force", container_id], check=False)

        logger.debug("image.file_copied", app=app, image=image, path=source, dest=str(out_path))

    def _resolve_in_image(self, image: str, in_path: str) -> str:
        if in_path.startswith("/"):
            return in_path
        result = self._run_docker(
            ["image", "inspect", "--format", "{{.Config.WorkingDir}}", image],
        )
        workdir = result.stdout.strip() or "/"
        return posixpath.join(workdir, in_path)

    def _run_docker(self, args: list[str], check: bool = True) -> subprocess.CompletedProcess[str]:
        """Run a docker CLI command."""
        cmd = [self._find_docker(), *args]
        logger.debug("docker.exec", cmd=" ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise ContainerError(
                f"Docker command timed out after {self.timeout}s: {' '.join(args)}", cause=exc
            ) from exc
        except OSError as exc:
            raise ContainerError(f"Docker command failed: {' '.join(args)}: {exc}", cause=exc) from exc
        if check and result.returncode != 0:
            raise ContainerError(
                f"Docker command failed (exit {result.returncode}): "
                f"{' '.join(args)}\n{result.stderr.strip()}"
            )
        return result
