"""Consumer side of the pipeline: threads that parse queued file paths."""

from __future__ import annotations

import queue
import threading
from pathlib import Path
from typing import Callable, List

from .cancellation import CancelToken, FailureSignal
from .errors import ParseError
from .logging import get_logger
from .models import Document
from .parser import parse_file
from .scanner import END_OF_PATHS

# Queued on the result queue by every consumer as it exits.
WORKER_DONE = object()

_GET_POLL_SECONDS = 0.05

ParseFn = Callable[[Path], Document]


class FileConsumer:
    """Takes paths off the path queue and forwards parsed documents.

    Parsing is all or nothing: the first failure is recorded on the shared
    FailureSignal and the consumer stops, as do its siblings once they see
    the signal.
    """

    def __init__(
        self,
        name: str,
        paths: "queue.Queue[object]",
        results: "queue.Queue[object]",
        failure: FailureSignal,
        cancel: CancelToken,
        parse: ParseFn = parse_file,
    ) -> None:
        self.name = name
        self._paths = paths
        self._results = results
        self._failure = failure
        self._cancel = cancel
        self._parse = parse
        self.logger = get_logger("workers")

    def consume(self) -> None:
        processed = 0
        try:
            while not (self._failure.is_set() or self._cancel.cancelled):
                try:
                    item = self._paths.get(timeout=_GET_POLL_SECONDS)
                except queue.Empty:
                    continue

                if item is END_OF_PATHS:
                    # Hand the marker on so every sibling sees the end.
                    self._paths.put(END_OF_PATHS)
                    break

                path = Path(item)  # type: ignore[arg-type]
                try:
                    document = self._parse(path)
                except ParseError as exc:
                    self._fail(exc)
                    return
                except Exception as exc:
                    self._fail(ParseError(path, exc))
                    return

                self._results.put(document)
                processed += 1
        finally:
            self.logger.debug("%s exiting after %d file(s)", self.name, processed)
            self._results.put(WORKER_DONE)

    def _fail(self, error: ParseError) -> None:
        if self._failure.set(error):
            self.logger.debug("%s failed: %s", self.name, error)


class WorkerPool:
    """Starts a fixed number of FileConsumer threads."""

    def __init__(self, size: int, parse: ParseFn = parse_file) -> None:
        if size < 1:
            raise ValueError("worker pool size must be >= 1")
        self.size = size
        self._parse = parse
        self.logger = get_logger("workers")

    def start(
        self,
        paths: "queue.Queue[object]",
        results: "queue.Queue[object]",
        failure: FailureSignal,
        cancel: CancelToken,
    ) -> List[threading.Thread]:
        self.logger.debug("Starting %d consumer worker(s)", self.size)
        threads: List[threading.Thread] = []
        for index in range(self.size):
            consumer = FileConsumer(
                f"worker-{index}",
                paths,
                results,
                failure,
                cancel,
                parse=self._parse,
            )
            thread = threading.Thread(
                target=consumer.consume,
                name=f"converge-worker-{index}",
                daemon=True,
            )
            thread.start()
            threads.append(thread)
        return threads


__all__ = ["FileConsumer", "WORKER_DONE", "WorkerPool"]
