"""Mount resolution for the container backend."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from buildrunner.runner.models import AccessMode, VolumeMount

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)


def canonicalize(path: Path) -> Path:
    """Resolve symlinks in *path*; paths that do not exist yet are kept as given."""
    try:
        return path.resolve(strict=True)
    except (OSError, RuntimeError):
        logger.debug("Cannot canonicalize %s, using it as given", path)
        return path.absolute()


def resolve_mounts(work_dir: Path, extra: Iterable[VolumeMount] = ()) -> list[VolumeMount]:
    """Expand *work_dir* and *extra* into the mount list of a container build.

    Every path and its parent directory are mounted with the path's access
    mode.  Duplicates collapse into one mount (read-write wins) and the
    result is sorted by path, so identical inputs give identical output.
    """
    requested = [VolumeMount.read_write(work_dir), *extra]

    modes: dict[Path, AccessMode] = {}
    labels: dict[Path, str] = {}
    for mount in requested:
        path = canonicalize(mount.path)
        if mount.label:
            labels.setdefault(path, mount.label)
        for candidate in (path, path.parent):
            if modes.get(candidate) != AccessMode.READ_WRITE:
                modes[candidate] = mount.access_mode

    return [
        VolumeMount(path=path, access_mode=modes[path], label=labels.get(path))
        for path in sorted(modes, key=str)
    ]
