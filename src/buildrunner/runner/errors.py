"""Shared error types for the runner execution engine."""

from __future__ import annotations


class RunnerError(Exception):
    """Base error for all runner failures."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__("Runner error" + (f": {detail}" if detail else ""))


class ConfigurationError(RunnerError):
    """The runner configuration is inconsistent (rejected before any backend exists)."""


class ToolMissingError(RunnerError):
    """A required external executable is absent from ``PATH`` or not functional."""

    def __init__(self, tool: str, remediation: str = "") -> None:
        self.tool = tool
        self.remediation = remediation
        msg = f"{tool} executable not found or not working"
        if remediation:
            msg += f". {remediation}"
        super().__init__(msg)


class UnsupportedPlatformError(RunnerError):
    """The backend cannot run on the host operating system."""

    def __init__(self, platform: str, remediation: str = "") -> None:
        self.platform = platform
        self.remediation = remediation
        msg = f"not supported on {platform}"
        if remediation:
            msg += f". {remediation}"
        super().__init__(msg)


class SpawnError(RunnerError):
    """The operating system could not create the child process."""


class RunnerTimeoutError(RunnerError):
    """Command execution exceeded the configured timeout."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"Execution timed out after {timeout}s")
