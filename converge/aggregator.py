"""Single-owner merge of partial documents into the final document."""

from __future__ import annotations

import queue

from .cancellation import CancelToken, FailureSignal
from .logging import get_logger
from .models import Document
from .workers import WORKER_DONE

_GET_POLL_SECONDS = 0.05

logger = get_logger("aggregator")


def aggregate(
    results: "queue.Queue[object]",
    failure: FailureSignal,
    cancel: CancelToken,
    workers: int,
) -> Document:
    """Merge documents from ``results`` until every worker has finished.

    Returns as soon as the outcome is known: the first recorded failure is
    raised immediately, as is Cancelled, without waiting for the remaining
    threads. Merge order follows completion order, so the code section is
    only in directory order when a single worker is used.
    """
    document = Document()
    finished = 0
    merged = 0

    while True:
        _raise_if_stopped(failure, cancel)
        try:
            item = results.get(timeout=_GET_POLL_SECONDS)
        except queue.Empty:
            continue

        if item is WORKER_DONE:
            finished += 1
            if finished < workers:
                continue
            # Workers also exit on failure or cancellation; check again
            # before treating the run as complete.
            _raise_if_stopped(failure, cancel)
            logger.info("Merged %d file(s)", merged)
            return document

        document.merge(item)  # type: ignore[arg-type]
        merged += 1
        logger.debug("Merged document %d (package %r)", merged, document.package_name)


def _raise_if_stopped(failure: FailureSignal, cancel: CancelToken) -> None:
    error = failure.error
    if error is not None:
        raise error
    if cancel.cancelled:
        raise cancel.error()


__all__ = ["aggregate"]
