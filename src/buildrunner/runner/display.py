"""Rich renderings of execution environments for logs and the CLI."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich import box
from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from buildrunner.runner.models import ContainerConfig, VolumeMount


def container_table(config: ContainerConfig, mounts: list[VolumeMount]) -> Table:
    """Summarize image, network policy and mounts of a container build."""
    table = Table(title="Container Build Environment", box=box.ROUNDED, show_header=False)
    table.add_column("Key", style="bold")
    table.add_column("Value")

    table.add_row("Image:", f"[bold cyan]{config.image}[/bold cyan]")
    network = "[green]Enabled[/green]" if config.allow_network else "[dim]Isolated (--network=none)[/dim]"
    table.add_row("Network:", network)
    table.add_row("Engine:", config.engine)

    table.add_row("Volume Mounts:", "" if mounts else "-")
    for mount in mounts:
        name = f"[cyan]{mount.label}[/cyan]" if mount.label else str(mount.path)
        access = "(read-only)" if mount.is_read_only else "(read-write)"
        table.add_row("  •", f"{name} [dim]{access}[/dim]")

    return table


def render_text(renderable: Table, width: int = 100) -> str:
    """Render *renderable* to plain text suitable for a log record."""
    console = Console(width=width, no_color=True)
    with console.capture() as capture:
        console.print(renderable)
    return capture.get()
