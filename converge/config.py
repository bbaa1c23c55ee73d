"""Configuration loading for converge (.converge.yml)."""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .errors import ConvergeError

CONFIG_FILENAME = ".converge.yml"
DEFAULT_FORMATTER = ("gofmt",)
MAX_WORKERS = 32


class ConfigError(ConvergeError):
    """Raised when configuration values cannot be parsed or are invalid."""


@dataclass
class ConvergeSettings:
    """Effective settings for one merge run."""

    workers: Optional[int] = None
    timeout: Optional[float] = None
    exclude: List[str] = field(default_factory=list)
    packages: List[str] = field(default_factory=list)
    formatter: List[str] = field(default_factory=lambda: list(DEFAULT_FORMATTER))
    format_output: bool = True
    source: Optional[Path] = None

    def with_overrides(
        self,
        *,
        workers: Optional[int] = None,
        timeout: Optional[float] = None,
        exclude: Optional[Sequence[str]] = None,
        packages: Optional[Sequence[str]] = None,
        formatter: Optional[Sequence[str]] = None,
        format_output: Optional[bool] = None,
    ) -> "ConvergeSettings":
        """Return a copy where every non-None argument replaces the file value."""
        changes: Dict[str, Any] = {}
        if workers is not None:
            changes["workers"] = workers
        if timeout is not None:
            changes["timeout"] = timeout
        if exclude:
            changes["exclude"] = list(exclude)
        if packages:
            changes["packages"] = list(packages)
        if formatter:
            changes["formatter"] = list(formatter)
        if format_output is not None:
            changes["format_output"] = format_output
        return replace(self, **changes)

    @property
    def effective_workers(self) -> int:
        return resolve_workers(self.workers)

    @property
    def effective_timeout(self) -> Optional[float]:
        if self.timeout is None or self.timeout <= 0:
            return None
        return self.timeout


def resolve_workers(requested: Optional[int]) -> int:
    """Map a missing or non-positive worker count to the hardware default."""
    if requested is not None and requested > 0:
        return requested
    return max(1, min(os.cpu_count() or 1, MAX_WORKERS))


def load_config(config_path: Path) -> ConvergeSettings:
    """Load settings from ``config_path`` (a file, or a directory holding one)."""
    config_file = _resolve_config_path(config_path)
    if not config_file.exists():
        return ConvergeSettings()

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{config_file.name} must contain a mapping at the root")

    settings = ConvergeSettings(source=config_file)
    if "workers" in data:
        settings.workers = _as_int(data.get("workers"), "workers")
    if "timeout" in data:
        settings.timeout = _as_float(data.get("timeout"), "timeout")
    settings.exclude = _as_str_list(data.get("exclude"))
    settings.packages = _as_str_list(data.get("packages"))

    formatter = data.get("formatter")
    if formatter is not None:
        settings.formatter = parse_command(formatter)
    fmt = data.get("format")
    if fmt is not None:
        if not isinstance(fmt, bool):
            raise ConfigError("format must be true or false")
        settings.format_output = fmt
    return settings


def split_csv(value: Optional[str]) -> List[str]:
    """Split a comma-separated CLI value, dropping empty entries."""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def parse_command(value: Any) -> List[str]:
    if isinstance(value, str):
        parts = shlex.split(value)
    elif isinstance(value, Sequence):
        parts = [str(item) for item in value]
    else:
        raise ConfigError("formatter must be a command string or a list")
    if not parts:
        raise ConfigError("formatter command is empty")
    return parts


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read {path}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_int(value: Any, key: str) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ConfigError(f"{key} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            pass
    raise ConfigError(f"{key} must be an integer")


def _as_float(value: Any, key: str) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ConfigError(f"{key} must be a number")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            pass
    raise ConfigError(f"{key} must be a number")


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "ConvergeSettings",
    "DEFAULT_FORMATTER",
    "MAX_WORKERS",
    "load_config",
    "parse_command",
    "resolve_workers",
    "split_csv",
]
