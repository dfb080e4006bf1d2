"""Tests for ContainerRunner (container engine mocked)."""

import os
import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from buildrunner.runner.container import ContainerRunner
from buildrunner.runner.errors import ToolMissingError, UnsupportedPlatformError
from buildrunner.runner.models import ContainerConfig, ExecutionContext, VolumeMount

_FIND = "buildrunner.runner.container.find_executable"
_RUN = "buildrunner.runner.container.subprocess.run"

posix_only = pytest.mark.skipif(os.name != "posix", reason="user mapping is POSIX only")


def _version_ok(*args, **kwargs) -> subprocess.CompletedProcess[bytes]:
    return subprocess.CompletedProcess(args=["docker", "--version"], returncode=0, stdout=b"Docker version 27.0.1", stderr=b"")


class TestContainerRunner:
    def _make_runner(self, **kwargs) -> ContainerRunner:
        return ContainerRunner(ContainerConfig(image="ghcr.io/prefix-dev/build:latest", **kwargs))

    def _ctx(self) -> ExecutionContext:
        return ExecutionContext(
            command_args=["bash", "build.sh"],
            work_dir=Path("/work"),
            env_vars={"PREFIX": "/work/prefix"},
            mounts=[VolumeMount.read_only("/opt/cache"), VolumeMount.read_write("/work")],
        )

    @posix_only
    def test_build_command_shape(self) -> None:
        with patch(_FIND, return_value=Path("/usr/bin/docker")), patch(_RUN, side_effect=_version_ok):
            cmd = self._make_runner().build_command(self._ctx())

        assert cmd.program == "docker"
        assert cmd.args == [
            "run", "--rm",
            "--user", f"{os.getuid()}:{os.getgid()}",
            "--network=none",
            "-v", "/opt/cache:/opt/cache:ro",
            "-v", "/work:/work",
            "-w", "/work",
            "ghcr.io/prefix-dev/build:latest",
            "bash", "build.sh",
        ]
        assert cmd.cwd == Path("/work")

    @pytest.mark.parametrize("allow_network", [False, True])
    def test_network_flag(self, allow_network: bool) -> None:
        args = self._make_runner(allow_network=allow_network).build_args(self._ctx())
        assert ("--network=none" in args) is (not allow_network)

    def test_custom_engine(self) -> None:
        runner = self._make_runner(engine="podman")
        with patch(_FIND, return_value=Path("/usr/bin/podman")), patch(_RUN, side_effect=_version_ok) as mock_run:
            cmd = runner.build_command(self._ctx())

        assert cmd.program == "podman"
        assert mock_run.call_args.args[0] == ["podman", "--version"]

    def test_engine_missing(self) -> None:
        with patch(_FIND, return_value=None), patch(_RUN) as mock_run:
            with pytest.raises(ToolMissingError, match="install Docker"):
                self._make_runner().build_command(self._ctx())
        mock_run.assert_not_called()

    def test_engine_not_responding(self) -> None:
        failed = subprocess.CompletedProcess(
            args=["docker", "--version"],
            returncode=1,
            stdout=b"",
            stderr=b"Cannot connect to the Docker daemon",
        )
        with patch(_FIND, return_value=Path("/usr/bin/docker")), patch(_RUN, return_value=failed):
            with pytest.raises(ToolMissingError, match="Cannot connect"):
                self._make_runner().build_command(self._ctx())

    def test_engine_version_check_oserror(self) -> None:
        with (
            patch(_FIND, return_value=Path("/usr/bin/docker")),
            patch(_RUN, side_effect=PermissionError("denied")),
        ):
            with pytest.raises(ToolMissingError):
                self._make_runner().build_command(self._ctx())

    def test_refuses_on_windows(self) -> None:
        with (
            patch("buildrunner.runner.container._is_windows", return_value=True),
            patch(_FIND) as mock_find,
        ):
            with pytest.raises(UnsupportedPlatformError, match="Windows"):
                self._make_runner().build_command(self._ctx())
        mock_find.assert_not_called()

    def test_build_twice_identical(self) -> None:
        runner = self._make_runner()
        with patch(_FIND, return_value=Path("/usr/bin/docker")), patch(_RUN, side_effect=_version_ok):
            first = runner.build_command(self._ctx())
            second = runner.build_command(self._ctx())
        assert first.argv == second.argv
