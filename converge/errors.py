"""Error types raised by the converge pipeline."""

from __future__ import annotations

from pathlib import Path


class ConvergeError(RuntimeError):
    """Base class for errors raised deliberately by converge."""


class PipelineError(ConvergeError):
    """A failure that terminates a merge run; the first one raised wins."""


class ScanError(PipelineError):
    """Raised when the source directory or one of its entries cannot be read."""

    def __init__(self, path: Path | str, cause: BaseException) -> None:
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"failed to scan {self.path}: {cause}")


class ParseError(PipelineError):
    """Raised when a source file cannot be opened or read."""

    def __init__(self, path: Path | str, cause: BaseException) -> None:
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"failed to parse {self.path}: {cause}")


class FormatError(PipelineError):
    """Raised when the external formatter rejects the merged source."""

    def __init__(self, cause: BaseException | str) -> None:
        self.cause = cause
        super().__init__(f"failed to format merged source: {cause}")


class Cancelled(PipelineError):
    """Raised when a run is cancelled explicitly or its deadline elapses."""

    def __init__(self, reason: str = "operation cancelled", *, timed_out: bool = False) -> None:
        self.reason = reason
        self.timed_out = timed_out
        super().__init__(reason)


__all__ = [
    "Cancelled",
    "ConvergeError",
    "FormatError",
    "ParseError",
    "PipelineError",
    "ScanError",
]
