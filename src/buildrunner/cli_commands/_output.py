"""Shared CLI output formatters."""

from __future__ import annotations

import logging
import shlex

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from buildrunner.runner.configuration import RunnerConfiguration  # noqa: TC001
from buildrunner.runner.display import container_table
from buildrunner.runner.models import Command  # noqa: TC001

console = Console()


def configure_logging(*, verbose: bool = False) -> None:
    """Route ``buildrunner`` log records (including build output) to stderr."""
    logger = logging.getLogger("buildrunner")
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(console=Console(stderr=True), show_path=False, markup=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)


def print_configuration(configuration: RunnerConfiguration) -> None:
    """Pretty-print the selected execution environment."""
    if configuration.container is not None:
        console.print(container_table(configuration.container, list(configuration.mounts)))
        return

    table = Table(title="Build Environment", show_header=False)
    table.add_column("Key", style="bold")
    table.add_column("Value")
    table.add_row("Runner:", configuration.kind.value)
    if configuration.sandbox_policy is not None:
        table.add_row("Policy:", str(configuration.sandbox_policy))
    console.print(table)


def print_command(command: Command) -> None:
    console.print(f"[bold]Command:[/bold] {escape(shlex.join(command.argv))}", soft_wrap=True)
    console.print(f"[bold]Working directory:[/bold] {escape(str(command.cwd))}", soft_wrap=True)
