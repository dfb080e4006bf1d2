"""Runner selection — maps a configuration to a prepared backend.

:class:`RunnerConfiguration` is built once per build and is the single
source of truth for which backend runs the build scripts.
:meth:`RunnerConfiguration.prepare` instantiates that backend together with
its bound state so every command of the build reuses one instance.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from buildrunner.runner.container import ContainerRunner
from buildrunner.runner.errors import ConfigurationError
from buildrunner.runner.host import HostRunner
from buildrunner.runner.base import SandboxPolicy
from buildrunner.runner.models import ContainerConfig, ExecutionContext, HostConfig, SandboxConfig, VolumeMount
from buildrunner.runner.mounts import resolve_mounts
from buildrunner.runner.sandbox import SandboxRunner
from buildrunner.runner.streaming import execute
from buildrunner.utils.telemetry import ATTR_RUNNER_KIND, get_tracer

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from buildrunner.runner.base import Runner
    from buildrunner.runner.models import Command, ExecutionResult
    from buildrunner.settings import RunnerSettings

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)


class RunnerKind(str, Enum):
    """The closed set of execution backends."""

    HOST = "host"
    SANDBOX = "sandbox"
    CONTAINER = "container"


class RunnerConfiguration(BaseModel):
    """Tagged union of {host, sandbox(policy), container(config, mounts)}."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: RunnerKind = RunnerKind.HOST
    host_config: HostConfig | None = None
    sandbox_policy: Any = Field(default=None, description="SandboxPolicy for the sandbox backend.")
    container: ContainerConfig | None = None
    mounts: tuple[VolumeMount, ...] = ()

    @model_validator(mode="after")
    def _validate_variant(self) -> RunnerConfiguration:
        if self.kind == RunnerKind.SANDBOX and not isinstance(self.sandbox_policy, SandboxPolicy):
            msg = "sandbox runner requires a sandbox policy with with_cwd() and to_args()"
            raise ValueError(msg)
        if self.kind != RunnerKind.SANDBOX and self.sandbox_policy is not None:
            msg = "only the sandbox runner takes a sandbox policy"
            raise ValueError(msg)
        if self.kind != RunnerKind.HOST and self.host_config is not None:
            msg = "only the host runner takes a host configuration"
            raise ValueError(msg)
        if self.kind == RunnerKind.CONTAINER and self.container is None:
            msg = "container runner requires a container configuration"
            raise ValueError(msg)
        if self.kind != RunnerKind.CONTAINER and self.mounts:
            msg = "only the container runner takes mounts"
            raise ValueError(msg)
        return self

    # -- constructors ---------------------------------------------------------

    @classmethod
    def host(cls, config: HostConfig | None = None) -> RunnerConfiguration:
        return cls(kind=RunnerKind.HOST, host_config=config or HostConfig())

    @classmethod
    def sandbox(cls, policy: SandboxPolicy) -> RunnerConfiguration:
        return cls(kind=RunnerKind.SANDBOX, sandbox_policy=policy)

    @classmethod
    def container_runner(
        cls,
        config: ContainerConfig,
        work_dir: Path,
        extra_mounts: Iterable[VolumeMount] = (),
    ) -> RunnerConfiguration:
        """Container backend with the work dir and *extra_mounts* resolved."""
        mounts = resolve_mounts(work_dir, extra_mounts)
        return cls(kind=RunnerKind.CONTAINER, container=config, mounts=tuple(mounts))

    @classmethod
    def from_settings(cls, settings: RunnerSettings, work_dir: Path) -> RunnerConfiguration:
        """Map the selection surface of *settings* to a configuration.

        Raises:
            ConfigurationError: Sandbox and container are both enabled, or
                the container is enabled without an image.
        """
        if settings.sandbox and settings.container:
            raise ConfigurationError(
                "the sandbox and container runners are mutually exclusive; enable only one"
            )

        if settings.container:
            if not settings.container_image:
                raise ConfigurationError(
                    "the container runner requires an image; set container_image (--container-image)"
                )
            config = ContainerConfig(
                image=settings.container_image,
                allow_network=settings.container_allow_network,
                engine=settings.container_engine,
            )
            extra = [m.to_mount() for m in settings.extra_mounts]
            return cls.container_runner(config, work_dir, extra)

        if settings.sandbox:
            return cls.sandbox(
                SandboxConfig(
                    allow_network=settings.sandbox_allow_network,
                    read=[Path(p) for p in settings.sandbox_read],
                    read_execute=[Path(p) for p in settings.sandbox_read_execute],
                    read_write=[Path(p) for p in settings.sandbox_read_write],
                )
            )

        return cls.host()

    # -- predicates -----------------------------------------------------------

    @property
    def is_host(self) -> bool:
        return self.kind == RunnerKind.HOST

    @property
    def is_sandbox(self) -> bool:
        return self.kind == RunnerKind.SANDBOX

    @property
    def is_container(self) -> bool:
        return self.kind == RunnerKind.CONTAINER

    def prepare(self) -> PreparedRunner:
        """Instantiate the backend and bind its mounts."""
        runner: Runner
        if self.kind == RunnerKind.SANDBOX:
            runner = SandboxRunner(self.sandbox_policy)
        elif self.kind == RunnerKind.CONTAINER:
            assert self.container is not None
            runner = ContainerRunner(self.container)
        else:
            runner = HostRunner(self.host_config)
        return PreparedRunner(runner, self.kind, list(self.mounts))


class PreparedRunner:
    """A backend instance plus its bound mounts, reused across a build."""

    def __init__(self, runner: Runner, kind: RunnerKind, mounts: list[VolumeMount] | None = None) -> None:
        self._runner = runner
        self._kind = kind
        self._mounts = list(mounts or [])

    @property
    def runner(self) -> Runner:
        return self._runner

    @property
    def mounts(self) -> list[VolumeMount]:
        return list(self._mounts)

    def build_command(
        self,
        command_args: list[str],
        work_dir: Path,
        env_vars: Mapping[str, str] | None = None,
    ) -> Command:
        """Build (without spawning) the command for *command_args*."""
        context = ExecutionContext(
            command_args=list(command_args),
            work_dir=work_dir,
            env_vars=dict(env_vars or {}),
            mounts=self._mounts,
        )
        return self._runner.build_command(context)

    async def execute_command(
        self,
        command_args: list[str],
        work_dir: Path,
        env_vars: Mapping[str, str] | None = None,
        redactions: Mapping[str, str] | None = None,
        *,
        timeout: float | None = None,
    ) -> ExecutionResult:
        """Build the command for this environment and run it to completion."""
        with _tracer.start_as_current_span("runner.execute_command") as span:
            span.set_attribute(ATTR_RUNNER_KIND, self._kind.value)
            command = self.build_command(command_args, work_dir, env_vars)
            return await execute(command, work_dir, redactions, timeout=timeout)
