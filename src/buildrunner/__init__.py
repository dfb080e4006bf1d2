"""buildrunner — run package build scripts on the host, in a sandbox or in a container."""

from __future__ import annotations

__version__ = "0.1.0"
