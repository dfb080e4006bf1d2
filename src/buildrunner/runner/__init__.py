"""Runner subsystem — backends, command construction and streaming capture."""

from buildrunner.runner.base import Runner, SandboxPolicy, find_executable
from buildrunner.runner.configuration import PreparedRunner, RunnerConfiguration, RunnerKind
from buildrunner.runner.container import ContainerRunner
from buildrunner.runner.errors import (
    ConfigurationError,
    RunnerError,
    RunnerTimeoutError,
    SpawnError,
    ToolMissingError,
    UnsupportedPlatformError,
)
from buildrunner.runner.host import HostRunner
from buildrunner.runner.models import (
    AccessMode,
    Command,
    ContainerConfig,
    ExecutionContext,
    ExecutionResult,
    HostConfig,
    SandboxConfig,
    VolumeMount,
)
from buildrunner.runner.mounts import resolve_mounts
from buildrunner.runner.sandbox import SandboxRunner
from buildrunner.runner.streaming import LOG_FILE_NAME, execute

__all__ = [
    "LOG_FILE_NAME",
    "AccessMode",
    "Command",
    "ConfigurationError",
    "ContainerConfig",
    "ContainerRunner",
    "ExecutionContext",
    "ExecutionResult",
    "HostConfig",
    "HostRunner",
    "PreparedRunner",
    "Runner",
    "RunnerConfiguration",
    "RunnerError",
    "RunnerKind",
    "RunnerTimeoutError",
    "SandboxConfig",
    "SandboxPolicy",
    "SandboxRunner",
    "SpawnError",
    "ToolMissingError",
    "UnsupportedPlatformError",
    "execute",
    "find_executable",
    "resolve_mounts",
]
