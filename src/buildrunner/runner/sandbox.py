"""SandboxRunner — executes commands through ``rattler-sandbox``."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from buildrunner.runner.base import base_env, find_executable
from buildrunner.runner.errors import ToolMissingError
from buildrunner.runner.models import Command

if TYPE_CHECKING:
    from buildrunner.runner.base import SandboxPolicy
    from buildrunner.runner.models import ExecutionContext

logger = logging.getLogger(__name__)

SANDBOX_EXECUTABLE = "rattler-sandbox"
_INSTALL_HINT = f"Please install it with: pixi global install {SANDBOX_EXECUTABLE}"


class SandboxRunner:
    """OS-level sandbox execution.

    Satisfies the :class:`~buildrunner.runner.base.Runner` protocol.  The
    policy is bound to the working directory and rendered in front of the
    build command, which follows as trailing positional arguments.
    """

    def __init__(self, policy: SandboxPolicy) -> None:
        self._policy = policy

    @property
    def policy(self) -> SandboxPolicy:
        return self._policy

    def build_command(self, context: ExecutionContext) -> Command:
        logger.info("%s", self._policy)

        sandbox_exe = find_executable(SANDBOX_EXECUTABLE)
        if sandbox_exe is None:
            logger.error("%s executable not found in PATH", SANDBOX_EXECUTABLE)
            logger.error(_INSTALL_HINT)
            raise ToolMissingError(SANDBOX_EXECUTABLE, _INSTALL_HINT)

        sandbox_args = self._policy.with_cwd(context.work_dir).to_args()
        return Command(
            program=str(sandbox_exe),
            args=[*sandbox_args, *context.command_args],
            cwd=context.work_dir,
            env=base_env(context),
        )
