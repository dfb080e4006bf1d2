"""HostRunner — executes commands directly on the host system."""

from __future__ import annotations

from typing import TYPE_CHECKING

from buildrunner.runner.base import base_env
from buildrunner.runner.models import Command, HostConfig

if TYPE_CHECKING:
    from buildrunner.runner.models import ExecutionContext


class HostRunner:
    """Host execution (no isolation).

    Satisfies the :class:`~buildrunner.runner.base.Runner` protocol.
    """

    def __init__(self, config: HostConfig | None = None) -> None:
        self._config = config or HostConfig()

    @property
    def config(self) -> HostConfig:
        return self._config

    def build_command(self, context: ExecutionContext) -> Command:
        program, *args = context.command_args
        return Command(
            program=program,
            args=args,
            cwd=context.work_dir,
            env=base_env(context),
        )
