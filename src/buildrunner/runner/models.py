"""Data models for the runner subsystem."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class AccessMode(str, Enum):
    """How a mount is exposed inside an isolated environment."""

    READ_ONLY = "ro"
    READ_WRITE = "rw"


class VolumeMount(BaseModel):
    """A filesystem path exposed inside an isolated environment."""

    model_config = ConfigDict(frozen=True)

    path: Path = Field(..., description="Path mounted at the same location inside and outside.")
    access_mode: AccessMode = Field(default=AccessMode.READ_WRITE)
    label: str | None = Field(default=None, description="Display name used in the environment table.")

    @classmethod
    def read_only(cls, path: str | Path, *, label: str | None = None) -> VolumeMount:
        return cls(path=Path(path), access_mode=AccessMode.READ_ONLY, label=label)

    @classmethod
    def read_write(cls, path: str | Path, *, label: str | None = None) -> VolumeMount:
        return cls(path=Path(path), access_mode=AccessMode.READ_WRITE, label=label)

    @property
    def is_read_only(self) -> bool:
        return self.access_mode == AccessMode.READ_ONLY


class HostConfig(BaseModel):
    """Direct host execution needs no parameters."""

    model_config = ConfigDict(frozen=True)


class SandboxConfig(BaseModel):
    """Default sandbox policy rendered into ``rattler-sandbox`` arguments.

    Satisfies the :class:`~buildrunner.runner.base.SandboxPolicy` protocol.
    Any other object with ``with_cwd()`` and ``to_args()`` can be used in
    its place.
    """

    model_config = ConfigDict(frozen=True)

    allow_network: bool = Field(default=False, description="Allow network access inside the sandbox.")
    read: list[Path] = Field(default_factory=list, description="Paths readable by the build.")
    read_execute: list[Path] = Field(default_factory=list, description="Paths readable and executable.")
    read_write: list[Path] = Field(default_factory=list, description="Paths readable and writable.")

    def with_cwd(self, work_dir: Path) -> SandboxConfig:
        """Return a copy with *work_dir* added to the writable paths."""
        if work_dir in self.read_write:
            return self
        return self.model_copy(update={"read_write": [*self.read_write, work_dir]})

    def to_args(self) -> list[str]:
        args: list[str] = []
        if self.allow_network:
            args.append("--network")
        for path in self.read_execute:
            args.extend(["--fs-exec-and-read", str(path)])
        for path in self.read_write:
            args.extend(["--fs-write-and-read", str(path)])
        for path in self.read:
            args.extend(["--fs-read", str(path)])
        return args

    def __str__(self) -> str:
        lines = ["Sandbox configuration:"]
        lines.append(f"  network: {'allowed' if self.allow_network else 'blocked'}")
        for title, paths in (
            ("read", self.read),
            ("read + execute", self.read_execute),
            ("read + write", self.read_write),
        ):
            for path in paths:
                lines.append(f"  {title}: {path}")
        return "\n".join(lines)


class ContainerConfig(BaseModel):
    """How to reach the container environment."""

    model_config = ConfigDict(frozen=True)

    image: str = Field(..., min_length=1, description="Container image used for the build.")
    allow_network: bool = Field(default=False, description="Allow network access inside the container.")
    engine: str = Field(default="docker", min_length=1, description="Container engine executable.")


class ExecutionContext(BaseModel):
    """Inputs shared by all backends for one invocation."""

    command_args: list[str] = Field(..., min_length=1, description="Program followed by its arguments.")
    work_dir: Path = Field(..., description="Working directory of the command.")
    env_vars: dict[str, str] = Field(default_factory=dict, description="Extra environment, insertion ordered.")
    mounts: list[VolumeMount] = Field(default_factory=list, description="Mounts exposed to the environment.")


class Command(BaseModel):
    """A fully configured, not-yet-spawned process invocation.

    stdin is always closed and stdout/stderr are always piped by the
    execution engine; ``env`` is layered over the parent environment.
    """

    program: str
    args: list[str] = Field(default_factory=list)
    cwd: Path
    env: dict[str, str] = Field(default_factory=dict)

    @property
    def argv(self) -> list[str]:
        return [self.program, *self.args]


class ExecutionResult(BaseModel):
    """Aggregated outcome of one command invocation."""

    exit_code: int = Field(..., description="Process exit code (negative for a signal).")
    stdout: bytes = Field(default=b"", description="Redacted stdout, one newline-terminated line at a time.")
    stderr: bytes = Field(default=b"", description="Redacted stderr, one newline-terminated line at a time.")

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    @property
    def stdout_text(self) -> str:
        return self.stdout.decode(errors="replace")

    @property
    def stderr_text(self) -> str:
        return self.stderr.decode(errors="replace")
