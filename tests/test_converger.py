"""End-to-end tests for converge.converger.GoFileConverger."""

from __future__ import annotations

import io
import sys
import time
from pathlib import Path

import pytest

from converge.cancellation import CancelToken
from converge.converger import GoFileConverger
from converge.errors import Cancelled, FormatError, ParseError, ScanError
from converge.formatters import CommandFormatter, IdentityFormatter
from converge.models import Document
from tests._fixtures.go_package import GoPackageBuilder, RecordingFormatter


@pytest.mark.parametrize(
    ("files", "excludes", "expected"),
    [
        pytest.param({}, [], "", id="empty-directory"),
        pytest.param(
            {"file.go": "package main\nfunc main() {}"},
            [],
            "package main\n\nfunc main() {}\n",
            id="single-file",
        ),
        pytest.param(
            {
                "file1.go": "package main\nfunc func1() {}",
                "file2.go": "package main\nfunc func2() {}",
            },
            [],
            "package main\n\nfunc func1() {}\nfunc func2() {}\n",
            id="multiple-files",
        ),
        pytest.param(
            {
                "file1.go": "package main\nfunc func1() {}",
                "file2.go": "package main\nfunc func2() {}",
                "exclude.go": "package main\nfunc exclude() {}",
            },
            ["exclude.go"],
            "package main\n\nfunc func1() {}\nfunc func2() {}\n",
            id="exclusion",
        ),
        pytest.param(
            {
                "file1.go": "package main\nfunc func1() {}",
                "file2.go": "package main\nfunc func2() {}",
            },
            ["exclude.go"],
            "package main\n\nfunc func1() {}\nfunc func2() {}\n",
            id="exclusion-without-matching-file",
        ),
        pytest.param(
            {
                "file1.go": "package main\nfunc func1() {}",
                "file.txt": "This is a text file",
                "file2.go": "package main\nfunc func2() {}",
            },
            [],
            "package main\n\nfunc func1() {}\nfunc func2() {}\n",
            id="non-go-files",
        ),
    ],
)
def test_converge_single_worker_is_deterministic(
    go_package: GoPackageBuilder, files, excludes, expected
) -> None:
    root = go_package.write(files)
    # One worker keeps merge order equal to directory order.
    converger = GoFileConverger(workers=1, excludes=excludes, formatter=IdentityFormatter())

    assert converger.converge(root).decode("utf-8") == expected


def test_converge_deduplicates_and_sorts_imports(go_package: GoPackageBuilder) -> None:
    root = go_package.write(
        {
            "a.go": 'package main\nimport "os"\nfunc a() { _ = os.Args }\n',
            "b.go": 'package main\nimport "fmt"\nfunc b() { fmt.Println() }\n',
            "c.go": 'package main\nimport (\n\t"fmt"\n\t"os"\n)\nfunc c() {}\n',
        }
    )

    output = GoFileConverger(workers=1, formatter=IdentityFormatter()).converge(root).decode("utf-8")

    assert output.startswith('package main\n\nimport (\n\t"fmt"\n\t"os"\n)\n\n')
    assert output.count('"fmt"') == 1
    assert output.count('"os"') == 1


def test_converge_many_workers_merges_every_file(go_package: GoPackageBuilder) -> None:
    files = {f"f{index:02d}.go": f"package main\nfunc f{index:02d}() {{}}\n" for index in range(40)}
    root = go_package.write(files)

    document = GoFileConverger(workers=8, formatter=IdentityFormatter()).build_document(root)

    expected = sorted(f"func f{index:02d}() {{}}" for index in range(40))
    assert sorted(document.code) == expected
    assert document.package_name == "main"


def test_excluded_file_imports_are_absent(go_package: GoPackageBuilder) -> None:
    root = go_package.write(
        {
            "keep.go": 'package main\nimport "fmt"\nfunc keep() {}\n',
            "drop.go": 'package main\nimport "net/http"\nfunc drop() {}\n',
        }
    )

    output = GoFileConverger(
        workers=2, excludes=["drop.go"], formatter=IdentityFormatter()
    ).converge(root).decode("utf-8")

    assert "net/http" not in output
    assert "func drop" not in output
    assert "func keep() {}" in output


def test_test_files_are_merged_only_when_package_is_selected(go_package: GoPackageBuilder) -> None:
    root = go_package.write(
        {
            "lib.go": "package lib\nfunc Lib() {}\n",
            "lib_test.go": "package lib\nfunc TestLib() {}\n",
        }
    )

    default = GoFileConverger(workers=1, formatter=IdentityFormatter()).converge(root)
    selected = GoFileConverger(workers=1, packages=["lib"], formatter=IdentityFormatter()).converge(root)

    assert b"TestLib" not in default
    assert selected == b"package lib\n\nfunc Lib() {}\nfunc TestLib() {}\n"


def test_converge_missing_directory_raises_scan_error(tmp_path: Path) -> None:
    converger = GoFileConverger(formatter=IdentityFormatter())
    with pytest.raises(ScanError):
        converger.converge(tmp_path / "non-existent-directory")


def test_converge_parse_failure_yields_no_output(go_package: GoPackageBuilder) -> None:
    root = go_package.write({"good.go": "package main\nfunc good() {}\n"})
    (root / "bad.go").write_bytes(b"package main\n\xff\xfe\n")
    sink = io.BytesIO()

    with pytest.raises(ParseError) as excinfo:
        GoFileConverger(workers=2, formatter=IdentityFormatter()).converge_to(root, sink)

    assert excinfo.value.path.name == "bad.go"
    assert sink.getvalue() == b""


def test_converge_format_failure_is_not_retried(go_package: GoPackageBuilder) -> None:
    root = go_package.write({"main.go": "package main\nfunc main() {\n"})
    formatter = RecordingFormatter(fail_with="unexpected EOF")
    sink = io.BytesIO()

    with pytest.raises(FormatError):
        GoFileConverger(workers=1, formatter=formatter).converge_to(root, sink)

    assert len(formatter.calls) == 1
    assert sink.getvalue() == b""


def test_converge_cancelled_before_start(go_package: GoPackageBuilder) -> None:
    root = go_package.write({"main.go": "package main\n"})
    cancel = CancelToken()
    cancel.cancel()
    sink = io.BytesIO()

    with pytest.raises(Cancelled):
        GoFileConverger(workers=2, formatter=IdentityFormatter()).converge_to(root, sink, cancel)

    assert sink.getvalue() == b""


def test_converge_cancelled_mid_run_discards_partial_merge(go_package: GoPackageBuilder) -> None:
    files = {f"f{index}.go": f"package main\nfunc f{index}() {{}}\n" for index in range(5)}
    root = go_package.write(files)
    cancel = CancelToken()
    seen: list[Path] = []

    def _parse_then_cancel(path: Path) -> Document:
        seen.append(path)
        if len(seen) == 2:
            cancel.cancel()
        return Document(package_name="main", code=[path.stem])

    converger = GoFileConverger(workers=1, formatter=IdentityFormatter(), parse=_parse_then_cancel)
    sink = io.BytesIO()

    with pytest.raises(Cancelled):
        converger.converge_to(root, sink, cancel)

    assert sink.getvalue() == b""
    assert len(seen) < 5


def test_converge_times_out(go_package: GoPackageBuilder) -> None:
    root = go_package.write({"slow.go": "package main\n"})

    def _slow_parse(path: Path) -> Document:
        time.sleep(0.5)
        return Document(package_name="main")

    converger = GoFileConverger(workers=1, formatter=IdentityFormatter(), parse=_slow_parse)

    with pytest.raises(Cancelled) as excinfo:
        converger.converge(root, CancelToken(timeout=0.05))

    assert excinfo.value.timed_out is True


def test_converge_deadline_bounds_a_hung_formatter(go_package: GoPackageBuilder) -> None:
    root = go_package.write({"main.go": "package main\nfunc main() {}\n"})
    formatter = CommandFormatter(
        [sys.executable, "-c", "import sys, time; time.sleep(5); sys.stdout.write(sys.stdin.read())"]
    )
    sink = io.BytesIO()
    started = time.monotonic()

    with pytest.raises(Cancelled) as excinfo:
        GoFileConverger(workers=1, formatter=formatter).converge_to(root, sink, CancelToken(timeout=0.5))

    assert time.monotonic() - started < 3.0
    assert excinfo.value.timed_out is True
    assert sink.getvalue() == b""


def test_converge_passes_remaining_time_to_formatter(go_package: GoPackageBuilder) -> None:
    root = go_package.write({"main.go": "package main\n"})
    received: list = []

    class _TimeoutRecorder(IdentityFormatter):
        def format(self, source, *, timeout=None):
            received.append(timeout)
            return super().format(source, timeout=timeout)

    converger = GoFileConverger(workers=1, formatter=_TimeoutRecorder())
    converger.converge(root, CancelToken(timeout=30))
    converger.converge(root)

    assert 0 < received[0] <= 30
    assert received[1] is None
