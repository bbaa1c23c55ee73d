"""Core data models shared across converge components."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import FrozenSet, List, Set, Tuple

GO_SOURCE_SUFFIX = ".go"
GO_TEST_SUFFIX = "_test.go"


@dataclass
class Document:
    """Package name, import set and code lines of one file or of a merge result."""

    package_name: str = ""
    imports: Set[str] = field(default_factory=set)
    code: List[str] = field(default_factory=list)

    def add_import(self, spec: str) -> None:
        self.imports.add(spec)

    def append_code(self, line: str) -> None:
        self.code.append(line)

    def merge(self, other: "Document") -> None:
        """Fold a partial document into this one.

        The first non-empty package name wins, imports are unioned and code
        lines are appended after the lines already held.
        """
        if not self.package_name:
            self.package_name = other.package_name
        self.imports.update(other.imports)
        self.code.extend(other.code)

    def sorted_imports(self) -> List[str]:
        return sorted(self.imports)

    def code_text(self) -> str:
        return "".join(f"{line}\n" for line in self.code)

    @property
    def is_empty(self) -> bool:
        return not self.package_name and not self.imports and not self.code


@dataclass(frozen=True)
class ExcludePattern:
    """A file name to skip, given literally or as a regular expression.

    The regular expression is unanchored: it excludes any name it matches
    anywhere, so ``_gen`` skips ``api_gen.go``.
    """

    raw: str
    regex: "re.Pattern[str]"

    def matches(self, name: str) -> bool:
        if name == self.raw:
            return True
        return self.regex.search(name) is not None


@dataclass(frozen=True)
class ScanRule:
    """Which directory entries the scanner hands to the workers."""

    extension: str = GO_SOURCE_SUFFIX
    test_suffix: str = GO_TEST_SUFFIX
    exclude_tests: bool = True
    excludes: Tuple[ExcludePattern, ...] = ()
    packages: FrozenSet[str] = frozenset()

    @property
    def selects_packages(self) -> bool:
        return bool(self.packages)

    def excluded_by(self, name: str) -> ExcludePattern | None:
        for pattern in self.excludes:
            if pattern.matches(name):
                return pattern
        return None


__all__ = [
    "Document",
    "ExcludePattern",
    "GO_SOURCE_SUFFIX",
    "GO_TEST_SUFFIX",
    "ScanRule",
]
