"""Directory scanning: decides which files of a package get merged."""

from __future__ import annotations

import os
import queue
import re
from pathlib import Path
from typing import Iterable, Iterator, Optional, Tuple

import tree_sitter_go
from tree_sitter import Language, Parser

from .cancellation import CancelToken, FailureSignal
from .config import ConfigError
from .errors import ScanError
from .logging import get_logger
from .models import ExcludePattern, ScanRule

# Marker placed on the path queue once enumeration is over.
END_OF_PATHS = object()

_PUT_POLL_SECONDS = 0.05
_CLAUSE_PREFIX_BYTES = 4096

_GO_LANGUAGE = Language(tree_sitter_go.language())


def build_scan_rule(
    excludes: Iterable[str] = (),
    packages: Iterable[str] = (),
    *,
    exclude_tests: bool = True,
) -> ScanRule:
    """Compile user-supplied exclude patterns and package names into a ScanRule."""
    compiled: dict[str, ExcludePattern] = {}
    for raw in excludes:
        raw = raw.strip()
        if not raw or raw in compiled:
            continue
        try:
            regex = re.compile(raw)
        except re.error as exc:
            raise ConfigError(f"invalid exclude pattern {raw!r}: {exc}") from exc
        compiled[raw] = ExcludePattern(raw=raw, regex=regex)

    package_set = frozenset(name.strip() for name in packages if name.strip())
    return ScanRule(
        exclude_tests=exclude_tests,
        excludes=tuple(compiled.values()),
        packages=package_set,
    )


class PackageClauseReader:
    """Reads only the package clause of a Go file using tree-sitter.

    Only a prefix of the file is parsed. The prefix doubles until it holds a
    complete clause or the whole file has been read, so long leading comments
    still resolve. A parser instance is not shared between threads; the
    scanner owns one.
    """

    def __init__(self, prefix_bytes: int = _CLAUSE_PREFIX_BYTES) -> None:
        self._parser = Parser(_GO_LANGUAGE)
        self.prefix_bytes = prefix_bytes

    def read(self, path: Path) -> Optional[str]:
        with path.open("rb") as handle:
            chunk_size = self.prefix_bytes
            source = handle.read(chunk_size)
            at_eof = len(source) < chunk_size
            while True:
                name, complete = self._clause_in(source, at_eof)
                if complete or at_eof:
                    return name
                chunk = handle.read(chunk_size)
                at_eof = len(chunk) < chunk_size
                source += chunk
                chunk_size = len(source)

    def _clause_in(self, source: bytes, at_eof: bool) -> Tuple[Optional[str], bool]:
        """Return ``(name, complete)`` for the package clause in ``source``."""
        tree = self._parser.parse(source)
        for node in tree.root_node.children:
            if node.type == "ERROR" and not at_eof:
                # Most likely a comment or literal cut off by the prefix.
                return None, False
            if node.type != "package_clause":
                continue
            for child in node.children:
                if child.type != "package_identifier" or not child.text:
                    continue
                if child.end_byte >= len(source) and not at_eof:
                    return None, False
                return child.text.decode("utf-8", errors="replace"), True
            return None, at_eof
        return None, at_eof


class DirectoryScanner:
    """Enumerates the direct entries of a directory and applies a ScanRule."""

    def __init__(self, rule: ScanRule | None = None) -> None:
        self.rule = rule or ScanRule()
        self.logger = get_logger("scanner")
        self._clause_reader: PackageClauseReader | None = None

    def iter_paths(self, directory: Path | str) -> Iterator[Path]:
        """Yield eligible absolute file paths in name order.

        Subdirectories are skipped, never descended into. Any I/O failure
        while listing or inspecting entries raises ScanError.
        """
        root = Path(directory).expanduser().resolve()
        try:
            with os.scandir(root) as listing:
                entries = sorted(listing, key=lambda entry: entry.name)
        except OSError as exc:
            raise ScanError(root, exc) from exc

        for entry in entries:
            path = root / entry.name
            try:
                if entry.is_dir():
                    continue
                if not entry.is_file():
                    self.logger.debug("Skipping %s: not a regular file", path)
                    continue
            except OSError as exc:
                raise ScanError(path, exc) from exc

            if self.is_eligible(path):
                self.logger.debug("File is eligible: %s", path)
                yield path

    def is_eligible(self, path: Path) -> bool:
        name = path.name
        rule = self.rule

        if not name.endswith(rule.extension):
            self.logger.debug("Skipping %s: not a %s file", name, rule.extension)
            return False

        pattern = rule.excluded_by(name)
        if pattern is not None:
            self.logger.debug("Skipping %s: matches exclude pattern %r", name, pattern.raw)
            return False

        # Selecting packages overrides the default test-file exclusion.
        if rule.selects_packages:
            return self._in_selected_package(path)

        if rule.exclude_tests and name.endswith(rule.test_suffix):
            self.logger.debug("Skipping %s: test file", name)
            return False

        return True

    def produce(
        self,
        directory: Path | str,
        paths: "queue.Queue[object]",
        failure: FailureSignal,
        cancel: CancelToken,
    ) -> None:
        """Feed eligible paths into ``paths`` until done, failed or cancelled.

        END_OF_PATHS is queued on the way out so consumers blocked on the
        queue can exit; after a failure or cancellation the consumers stop
        on their own and the marker is dropped if the queue stays full.
        """
        count = 0
        try:
            for path in self.iter_paths(directory):
                if not self._put(paths, path, failure, cancel):
                    self.logger.debug("Scanner stopping early after %d file(s)", count)
                    return
                count += 1
            self.logger.debug("Scanner finished: %d eligible file(s)", count)
        except ScanError as exc:
            self.logger.debug("Scanner failed: %s", exc)
            failure.set(exc)
        except Exception as exc:
            self.logger.debug("Scanner crashed", exc_info=True)
            failure.set(ScanError(directory, exc))
        finally:
            self._put(paths, END_OF_PATHS, failure, cancel)

    def _put(
        self,
        paths: "queue.Queue[object]",
        item: object,
        failure: FailureSignal,
        cancel: CancelToken,
    ) -> bool:
        while not (failure.is_set() or cancel.cancelled):
            try:
                paths.put(item, timeout=_PUT_POLL_SECONDS)
                return True
            except queue.Full:
                continue
        return False

    def _in_selected_package(self, path: Path) -> bool:
        if self._clause_reader is None:
            self._clause_reader = PackageClauseReader()
        try:
            package = self._clause_reader.read(path)
        except OSError as exc:
            raise ScanError(path, exc) from exc

        if package is None:
            self.logger.debug("Skipping %s: no package clause found", path.name)
            return False
        if package not in self.rule.packages:
            self.logger.debug(
                "Skipping %s: package %s not in %s",
                path.name,
                package,
                sorted(self.rule.packages),
            )
            return False
        return True


__all__ = [
    "DirectoryScanner",
    "END_OF_PATHS",
    "PackageClauseReader",
    "build_scan_rule",
]
