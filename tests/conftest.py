from __future__ import annotations

from pathlib import Path

import pytest

from tests._fixtures.go_package import GoPackageBuilder, RecordingFormatter


@pytest.fixture
def go_package(tmp_path: Path) -> GoPackageBuilder:
    """Provide a package directory builder rooted at the pytest tmp_path."""
    return GoPackageBuilder(tmp_path)


@pytest.fixture
def formatter() -> RecordingFormatter:
    return RecordingFormatter()
