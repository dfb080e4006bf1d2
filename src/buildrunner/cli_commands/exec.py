"""``buildrunner exec`` — run one build command in the selected environment."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click
from rich.markup import escape

from buildrunner.cli_commands._output import (
    configure_logging,
    console,
    print_command,
    print_configuration,
)


def _parse_pairs(values: tuple[str, ...], option: str) -> dict[str, str]:
    pairs: dict[str, str] = {}
    for value in values:
        key, sep, val = value.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {value!r}", param_hint=option)
        pairs[key] = val
    return pairs


@click.command("exec", context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False})
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML runner settings file.",
)
@click.option(
    "--cwd",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Working directory (defaults to the current directory).",
)
@click.option("--sandbox", is_flag=True, help="Run inside rattler-sandbox.")
@click.option("--sandbox-allow-network", is_flag=True, help="Allow network access in the sandbox.")
@click.option("--container", is_flag=True, help="Run inside a container.")
@click.option("--container-image", default=None, help="Container image (required with --container).")
@click.option("--container-allow-network", is_flag=True, help="Allow network access in the container.")
@click.option("--mount", "mounts", multiple=True, help="Extra container mount, PATH or PATH:ro.")
@click.option("--env", "-e", "env", multiple=True, help="Environment variable KEY=VALUE.")
@click.option("--redact", multiple=True, help="Replace FROM with TO in captured output (FROM=TO).")
@click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Kill the command after this many seconds.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--telemetry", is_flag=True, help="Export tracing spans to the console.")
@click.option("--otlp-endpoint", default=None, help="Export tracing spans via OTLP/gRPC to this endpoint.")
@click.option("--dry-run", is_flag=True, help="Show the environment and command, do not execute.")
def exec_cmd(
    command: tuple[str, ...],
    config_path: Path | None,
    cwd: Path | None,
    sandbox: bool,
    sandbox_allow_network: bool,
    container: bool,
    container_image: str | None,
    container_allow_network: bool,
    mounts: tuple[str, ...],
    env: tuple[str, ...],
    redact: tuple[str, ...],
    timeout: float | None,
    verbose: bool,
    telemetry: bool,
    otlp_endpoint: str | None,
    dry_run: bool,
) -> None:
    """Execute COMMAND and append its output to conda_build.log."""
    from buildrunner.runner.configuration import RunnerConfiguration
    from buildrunner.runner.errors import RunnerError
    from buildrunner.settings import MountSetting, RunnerSettings, SettingsError, load_settings

    configure_logging(verbose=verbose)

    if telemetry or otlp_endpoint:
        from buildrunner.utils.telemetry import configure_telemetry

        configure_telemetry(export_to_console=telemetry, otlp_endpoint=otlp_endpoint)

    try:
        settings = load_settings(config_path) if config_path else RunnerSettings()
    except SettingsError as exc:
        console.print(f"[red]Settings error:[/red] {escape(str(exc))}", soft_wrap=True)
        sys.exit(1)

    env_vars = _parse_pairs(env, "--env")
    redactions = {**settings.redactions, **_parse_pairs(redact, "--redact")}

    settings = settings.model_copy(
        update={
            "sandbox": settings.sandbox or sandbox,
            "sandbox_allow_network": settings.sandbox_allow_network or sandbox_allow_network,
            "container": settings.container or container,
            "container_image": container_image or settings.container_image,
            "container_allow_network": settings.container_allow_network or container_allow_network,
            "extra_mounts": [*settings.extra_mounts, *(MountSetting.parse(m) for m in mounts)],
            "timeout": timeout if timeout is not None else settings.timeout,
        }
    )

    work_dir = (cwd or Path.cwd()).absolute()

    try:
        configuration = RunnerConfiguration.from_settings(settings, work_dir)
        prepared = configuration.prepare()

        if dry_run:
            print_configuration(configuration)
            print_command(prepared.build_command(list(command), work_dir, env_vars))
            return

        result = asyncio.run(
            prepared.execute_command(
                list(command),
                work_dir,
                env_vars,
                redactions,
                timeout=settings.timeout,
            )
        )
    except RunnerError as exc:
        console.print(f"[red]Runner error:[/red] {escape(exc.detail or str(exc))}", soft_wrap=True)
        sys.exit(1)

    if verbose:
        console.print(f"Exit code: {result.exit_code}")

    # Signals come back negative; report them the way shells do
    sys.exit(result.exit_code if result.exit_code >= 0 else 128 - result.exit_code)
