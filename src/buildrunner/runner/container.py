"""ContainerRunner — executes commands inside an ephemeral container.

Uses the container engine CLI (``docker`` by default) through the shared
streaming engine.  Every mount is exposed at the *same* path inside the
container so build scripts work without modification.
"""

from __future__ import annotations

import logging
import os
import subprocess
import sys
from typing import TYPE_CHECKING

from buildrunner.runner.base import base_env, find_executable
from buildrunner.runner.display import container_table, render_text
from buildrunner.runner.errors import ToolMissingError, UnsupportedPlatformError
from buildrunner.runner.models import Command

if TYPE_CHECKING:
    from buildrunner.runner.models import ContainerConfig, ExecutionContext, VolumeMount

logger = logging.getLogger(__name__)

_INSTALL_HINT = "Please install Docker (https://docs.docker.com/get-docker/) to use the container runner."
_WINDOWS_HINT = "Windows cannot reliably build packages for Linux targets; use the host runner instead."
_VERSION_CHECK_TIMEOUT = 30.0


def _is_windows() -> bool:
    return sys.platform == "win32"


class ContainerRunner:
    """Ephemeral container execution.

    Satisfies the :class:`~buildrunner.runner.base.Runner` protocol.

    ``build_command()``:
    1. Refuses on Windows.
    2. Checks that the engine answers ``--version``.
    3. Builds ``run --rm [--user] [--network=none] -v... -w <dir> <image> <cmd>``.
    """

    def __init__(self, config: ContainerConfig) -> None:
        self._config = config

    @property
    def config(self) -> ContainerConfig:
        return self._config

    def build_command(self, context: ExecutionContext) -> Command:
        if _is_windows():
            raise UnsupportedPlatformError("Windows", _WINDOWS_HINT)

        self._check_engine()
        logger.info("\n%s", render_text(container_table(self._config, context.mounts)))

        return Command(
            program=self._config.engine,
            args=self.build_args(context),
            cwd=context.work_dir,
            env=base_env(context),
        )

    def build_args(self, context: ExecutionContext) -> list[str]:
        """Build the engine argument vector (no pre-flight checks)."""
        args: list[str] = ["run", "--rm"]

        # Same user as the caller so files written to mounts keep their owner
        if os.name == "posix":
            args.extend(["--user", f"{os.getuid()}:{os.getgid()}"])

        if not self._config.allow_network:
            args.append("--network=none")

        for mount in context.mounts:
            args.extend(["-v", _mount_spec(mount)])

        args.extend(["-w", str(context.work_dir)])
        args.append(self._config.image)
        args.extend(context.command_args)
        return args

    def _check_engine(self) -> None:
        engine = self._config.engine
        if find_executable(engine) is None:
            raise ToolMissingError(engine, _INSTALL_HINT)

        try:
            proc = subprocess.run(
                [engine, "--version"],
                stdin=subprocess.DEVNULL,
                capture_output=True,
                timeout=_VERSION_CHECK_TIMEOUT,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise ToolMissingError(engine, f"{_INSTALL_HINT} ({exc})") from exc

        if proc.returncode != 0:
            stderr = proc.stderr.decode(errors="replace").strip()
            raise ToolMissingError(engine, f"{_INSTALL_HINT} ({stderr or f'rc={proc.returncode}'})")

        logger.debug("%s", proc.stdout.decode(errors="replace").strip())


def _mount_spec(mount: VolumeMount) -> str:
    path = str(mount.path)
    if mount.is_read_only:
        return f"{path}:{path}:ro"
    return f"{path}:{path}"
