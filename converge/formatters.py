"""Adapters for the canonical Go source formatter."""

from __future__ import annotations

import subprocess
from typing import Optional, Protocol, Sequence

from .config import DEFAULT_FORMATTER
from .errors import FormatError


class Formatter(Protocol):
    """Turns unformatted source text into canonical bytes or raises FormatError.

    ``timeout`` is the most time, in seconds, the call may take; ``None``
    leaves it unbounded.
    """

    def format(self, source: str, *, timeout: Optional[float] = None) -> bytes:
        ...


class CommandFormatter:
    """Pipes source through an external formatter such as gofmt or gofumpt."""

    def __init__(
        self,
        command: Sequence[str] | None = None,
        *,
        timeout: Optional[float] = None,
    ) -> None:
        self.command = list(command or DEFAULT_FORMATTER)
        self.timeout = timeout

    def format(self, source: str, *, timeout: Optional[float] = None) -> bytes:
        limit = _tighter(self.timeout, timeout)
        try:
            completed = subprocess.run(
                self.command,
                input=source.encode("utf-8"),
                capture_output=True,
                check=True,
                timeout=limit,
            )
        except FileNotFoundError as exc:
            raise FormatError(f"unable to locate formatter executable '{self.command[0]}'") from exc
        except subprocess.TimeoutExpired as exc:
            raise FormatError(f"{self.command[0]} did not finish within {limit:.2f}s") from exc
        except subprocess.CalledProcessError as exc:
            message = exc.stderr.decode("utf-8", errors="replace").strip()
            raise FormatError(message or f"{self.command[0]} exited with status {exc.returncode}") from exc
        return completed.stdout


class IdentityFormatter:
    """Leaves the rendered source untouched."""

    def format(self, source: str, *, timeout: Optional[float] = None) -> bytes:
        return source.encode("utf-8")


def _tighter(first: Optional[float], second: Optional[float]) -> Optional[float]:
    if first is None:
        return second
    if second is None:
        return first
    return min(first, second)


__all__ = ["CommandFormatter", "Formatter", "IdentityFormatter"]
