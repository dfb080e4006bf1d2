"""Smoke test to verify the project scaffolding works."""

from __future__ import annotations


def test_import() -> None:
    import buildrunner

    assert buildrunner.__version__ == "0.1.0"


def test_cli_entrypoint() -> None:
    from buildrunner.cli import main

    assert callable(main)


def test_runner_exports() -> None:
    from buildrunner.runner import (
        ContainerRunner,
        HostRunner,
        PreparedRunner,
        RunnerConfiguration,
        SandboxRunner,
        ToolMissingError,
        execute,
    )

    assert RunnerConfiguration is not None
    assert PreparedRunner is not None
    assert HostRunner is not None
    assert SandboxRunner is not None
    assert ContainerRunner is not None
    assert ToolMissingError is not None
    assert callable(execute)
