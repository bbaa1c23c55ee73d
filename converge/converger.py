"""Concurrent scan, parse and merge of the Go files in one directory."""

from __future__ import annotations

import queue
import threading
from pathlib import Path
from typing import BinaryIO, Iterable, Optional

from .aggregator import aggregate
from .cancellation import CancelToken, FailureSignal
from .config import resolve_workers
from .errors import FormatError
from .formatters import CommandFormatter, Formatter
from .logging import get_logger
from .models import Document, ScanRule
from .parser import parse_file
from .renderer import render
from .scanner import DirectoryScanner, build_scan_rule
from .workers import ParseFn, WorkerPool


class GoFileConverger:
    """Merges the top-level Go files of a package into one formatted file.

    One scanner thread feeds a bounded path queue (capacity = worker count),
    a pool of worker threads parses files into partial documents, and the
    calling thread aggregates them. With more than one worker the order of
    the merged code follows completion order and is not deterministic.
    """

    def __init__(
        self,
        *,
        workers: Optional[int] = None,
        excludes: Iterable[str] = (),
        packages: Iterable[str] = (),
        rule: ScanRule | None = None,
        formatter: Formatter | None = None,
        parse: ParseFn = parse_file,
    ) -> None:
        self.workers = resolve_workers(workers)
        self.rule = rule if rule is not None else build_scan_rule(excludes, packages)
        self.formatter = formatter or CommandFormatter()
        self._parse = parse
        self.logger = get_logger("converger")

    def build_document(self, src_dir: Path | str, cancel: CancelToken | None = None) -> Document:
        """Run the scan/parse/aggregate pipeline and return the merged document."""
        cancel = cancel or CancelToken()
        failure = FailureSignal()
        paths: "queue.Queue[object]" = queue.Queue(maxsize=self.workers)
        results: "queue.Queue[object]" = queue.Queue()

        if cancel.cancelled:
            raise cancel.error()

        WorkerPool(self.workers, parse=self._parse).start(paths, results, failure, cancel)

        scanner = DirectoryScanner(self.rule)
        self.logger.debug("Producing files in directory: %s", src_dir)
        threading.Thread(
            target=scanner.produce,
            args=(src_dir, paths, failure, cancel),
            name="converge-scanner",
            daemon=True,
        ).start()

        return aggregate(results, failure, cancel, self.workers)

    def converge(self, src_dir: Path | str, cancel: CancelToken | None = None) -> bytes:
        """Return the formatted, merged source of ``src_dir``."""
        cancel = cancel or CancelToken()
        document = self.build_document(src_dir, cancel)
        if cancel.cancelled:
            raise cancel.error()
        try:
            output = render(document, self.formatter, timeout=cancel.remaining())
        except FormatError as exc:
            # A formatter stopped by the deadline reports the timeout, not a format failure.
            if cancel.cancelled:
                raise cancel.error() from exc
            raise
        if cancel.cancelled:
            raise cancel.error()
        return output

    def converge_to(
        self,
        src_dir: Path | str,
        sink: BinaryIO,
        cancel: CancelToken | None = None,
    ) -> int:
        """Merge ``src_dir`` and write the result to ``sink`` in a single write.

        Nothing is written unless the whole run, formatting included, succeeds.
        """
        output = self.converge(src_dir, cancel)
        sink.write(output)
        sink.flush()
        return len(output)


__all__ = ["GoFileConverger"]
