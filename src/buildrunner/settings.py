"""Runner settings — the selection surface read from YAML or CLI flags."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from buildrunner.runner.models import AccessMode, VolumeMount


class SettingsError(Exception):
    """Raised when a settings file fails parsing or validation."""


class MountSetting(BaseModel):
    """An additional container mount."""

    path: str
    read_only: bool = False
    label: str | None = None

    @classmethod
    def parse(cls, spec: str) -> MountSetting:
        """Parse ``PATH`` or ``PATH:ro`` / ``PATH:rw``."""
        path, sep, mode = spec.rpartition(":")
        if sep and mode in ("ro", "rw"):
            return cls(path=path, read_only=mode == "ro")
        return cls(path=spec)

    def to_mount(self) -> VolumeMount:
        mode = AccessMode.READ_ONLY if self.read_only else AccessMode.READ_WRITE
        return VolumeMount(path=Path(self.path), access_mode=mode, label=self.label)


class RunnerSettings(BaseModel):
    """Which backend to use and how to reach it."""

    sandbox: bool = False
    sandbox_allow_network: bool = False
    sandbox_read: list[str] = Field(default_factory=list)
    sandbox_read_execute: list[str] = Field(default_factory=list)
    sandbox_read_write: list[str] = Field(default_factory=list)

    container: bool = False
    container_image: str | None = None
    container_allow_network: bool = False
    container_engine: str = "docker"
    extra_mounts: list[MountSetting] = Field(default_factory=list)

    redactions: dict[str, str] = Field(default_factory=dict)
    timeout: float | None = Field(default=None, gt=0)


def load_settings(path: Path) -> RunnerSettings:
    """Read YAML, interpolate env vars, and validate.

    The file may hold the settings at top level or under a ``runner`` key.

    Raises:
        SettingsError: On read errors, YAML parse errors or schema failures.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SettingsError(f"Cannot read {path}: {exc}") from exc

    expanded = os.path.expandvars(raw)

    try:
        data: Any = yaml.safe_load(expanded)
    except yaml.YAMLError as exc:
        raise SettingsError(f"YAML parse error: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise SettingsError("Settings YAML must be a mapping")
    if isinstance(data.get("runner"), dict):
        data = data["runner"]

    try:
        return RunnerSettings.model_validate(data)
    except ValidationError as exc:
        raise SettingsError(str(exc)) from exc
