"""The converge command: resolves its inputs, then runs the merge."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import BinaryIO, Optional

from .cancellation import CancelToken
from .converger import GoFileConverger
from .logging import get_logger


class ConvergeCommand:
    """Validates the source and destination before any scanning starts.

    When a destination file is given it is created (or truncated) up front
    and wins over ``writer``; otherwise output goes to ``writer`` or stdout.
    The merged bytes are written only after the merge fully succeeds.
    """

    def __init__(
        self,
        converger: GoFileConverger,
        src: Path | str,
        *,
        dst: Path | str | None = None,
        writer: Optional[BinaryIO] = None,
    ) -> None:
        self.converger = converger
        self.src = Path(src)
        self.dst = Path(dst) if dst is not None else None
        self.writer = writer
        self.logger = get_logger("command")

    def run(self, cancel: CancelToken | None = None) -> int:
        """Run the merge and return the number of bytes written."""
        self._build()
        self._validate()

        if self.dst is None:
            sink = self.writer or sys.stdout.buffer
            return self.converger.converge_to(self.src, sink, cancel)

        with self.dst.open("wb") as handle:
            self.logger.debug("Writing merged output to %s", self.dst)
            return self.converger.converge_to(self.src, handle, cancel)

    def _build(self) -> None:
        self.src = self.src.expanduser().resolve()
        if self.dst is not None:
            self.dst = self.dst.expanduser().resolve()

    def _validate(self) -> None:
        if not self.src.exists():
            raise FileNotFoundError(f"Source directory not found: {self.src}")
        if not self.src.is_dir():
            raise NotADirectoryError(f"Source path is not a directory: {self.src}")
        if self.dst is not None and self.dst.is_dir():
            raise IsADirectoryError(f"Destination file is a directory: {self.dst}")


__all__ = ["ConvergeCommand"]
