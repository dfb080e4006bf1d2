"""Tests for runner data models."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from buildrunner.runner.models import (
    AccessMode,
    Command,
    ContainerConfig,
    ExecutionContext,
    ExecutionResult,
    SandboxConfig,
    VolumeMount,
)


class TestVolumeMount:
    def test_read_only(self) -> None:
        mount = VolumeMount.read_only("/opt/cache")
        assert mount.path == Path("/opt/cache")
        assert mount.access_mode == AccessMode.READ_ONLY
        assert mount.is_read_only is True

    def test_read_write(self) -> None:
        mount = VolumeMount.read_write("/work", label="work dir")
        assert mount.access_mode == AccessMode.READ_WRITE
        assert mount.label == "work dir"
        assert mount.is_read_only is False

    def test_frozen(self) -> None:
        mount = VolumeMount.read_write("/work")
        with pytest.raises(ValidationError):
            mount.path = Path("/elsewhere")  # type: ignore[misc]


class TestContainerConfig:
    def test_defaults(self) -> None:
        cfg = ContainerConfig(image="ubuntu:24.04")
        assert cfg.allow_network is False
        assert cfg.engine == "docker"

    def test_empty_image_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ContainerConfig(image="")


class TestSandboxConfig:
    def test_with_cwd_adds_writable_path(self) -> None:
        cfg = SandboxConfig(read=[Path("/")])
        bound = cfg.with_cwd(Path("/work"))
        assert bound.read_write == [Path("/work")]
        assert cfg.read_write == []

    def test_with_cwd_is_idempotent(self) -> None:
        cfg = SandboxConfig().with_cwd(Path("/work"))
        assert cfg.with_cwd(Path("/work")).read_write == [Path("/work")]

    def test_to_args(self) -> None:
        cfg = SandboxConfig(
            allow_network=True,
            read=[Path("/")],
            read_execute=[Path("/usr")],
            read_write=[Path("/tmp")],
        )
        assert cfg.to_args() == [
            "--network",
            "--fs-exec-and-read", "/usr",
            "--fs-write-and-read", "/tmp",
            "--fs-read", "/",
        ]

    def test_summary(self) -> None:
        text = str(SandboxConfig(read=[Path("/etc")]))
        assert "network: blocked" in text
        assert "read: /etc" in text


class TestExecutionContext:
    def test_requires_command(self) -> None:
        with pytest.raises(ValidationError):
            ExecutionContext(command_args=[], work_dir=Path("/work"))

    def test_env_order_preserved(self) -> None:
        ctx = ExecutionContext(
            command_args=["true"],
            work_dir=Path("/work"),
            env_vars={"B": "1", "A": "2", "C": "3"},
        )
        assert list(ctx.env_vars) == ["B", "A", "C"]


class TestCommand:
    def test_argv(self) -> None:
        cmd = Command(program="bash", args=["-e", "build.sh"], cwd=Path("/work"))
        assert cmd.argv == ["bash", "-e", "build.sh"]


class TestExecutionResult:
    def test_success(self) -> None:
        result = ExecutionResult(exit_code=0, stdout=b"hello\n")
        assert result.success is True
        assert result.stdout_text == "hello\n"
        assert result.stderr == b""

    def test_failure(self) -> None:
        result = ExecutionResult(exit_code=2, stderr=b"oops\n")
        assert result.success is False
        assert result.stderr_text == "oops\n"
