"""buildrunner CLI entrypoint."""

from __future__ import annotations

import click

from buildrunner import __version__


@click.group()
@click.version_option(version=__version__, prog_name="buildrunner")
def main() -> None:
    """buildrunner — run build scripts on the host, in a sandbox or in a container."""


# Register subcommands
from buildrunner.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
