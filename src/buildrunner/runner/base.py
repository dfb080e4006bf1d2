"""Runner protocol — the common interface for execution backends."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from buildrunner.runner.models import Command, ExecutionContext


@runtime_checkable
class Runner(Protocol):
    """Turns an :class:`ExecutionContext` into a concrete :class:`Command`.

    Implementations must not spawn the child process.  Synchronous
    pre-flight checks (e.g. locating an external tool) are allowed and
    surface as :class:`~buildrunner.runner.errors.ToolMissingError` or
    :class:`~buildrunner.runner.errors.UnsupportedPlatformError`.
    """

    def build_command(self, context: ExecutionContext) -> Command:
        """Build the command for this environment."""
        ...


@runtime_checkable
class SandboxPolicy(Protocol):
    """Opaque sandbox policy consumed by the sandbox backend."""

    def with_cwd(self, work_dir: Path) -> SandboxPolicy:
        """Return the policy bound to *work_dir*."""
        ...

    def to_args(self) -> list[str]:
        """Render the policy as sandbox tool arguments."""
        ...


def find_executable(name: str) -> Path | None:
    """Look *name* up on ``PATH``."""
    found = shutil.which(name)
    return Path(found) if found else None


def base_env(context: ExecutionContext) -> dict[str, str]:
    """Environment overlay shared by the host-like backends.

    ``PWD`` is set explicitly because some shells trust a stale inherited
    value over the real working directory.
    """
    return {"PWD": str(context.work_dir), **context.env_vars}
