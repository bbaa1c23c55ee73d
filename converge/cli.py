"""CLI entrypoint for the converge command."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from . import __version__
from .cancellation import CancelToken
from .command import ConvergeCommand
from .config import CONFIG_FILENAME, ConfigError, load_config, parse_command, split_csv
from .converger import GoFileConverger
from .errors import Cancelled, ConvergeError
from .formatters import CommandFormatter, IdentityFormatter
from .logging import configure_logging

_EPILOG = """\
examples:
  converge . -f converged.go               all Go files in the current dir into converged.go
  converge . -p included_test,included     files whose package is included_test or included
  converge . -t 60                         give up after 60 seconds
  converge . -w 4                          use at most 4 workers
  converge . -e "file1.go,pattern(.*).go"  skip file1.go and anything matching pattern(.*).go
"""


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="converge",
        description=(
            "Converge the top-level Go source files of a package into a single file. "
            "Subdirectories are not merged and test files (_test.go) are skipped "
            "unless their package is selected with --pkg."
        ),
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "source",
        help="Path to the directory containing the Go source files to converge.",
    )
    parser.add_argument(
        "-f",
        "--file",
        help="Output file for the merged source; defaults to stdout.",
    )
    parser.add_argument(
        "-p",
        "--pkg",
        help="Comma-separated list of package names to include (also admits test files).",
    )
    parser.add_argument(
        "-e",
        "--exclude",
        help="Comma-separated list of file names or regular expressions to exclude.",
    )
    parser.add_argument(
        "-w",
        "--workers",
        type=int,
        help="Maximum number of concurrent workers (defaults to the CPU count, at most 32).",
    )
    parser.add_argument(
        "-t",
        "--timeout",
        type=float,
        help="Maximum time in seconds before cancelling the operation.",
    )
    parser.add_argument(
        "--formatter",
        help="Formatter command the merged source is piped through (default: gofmt).",
    )
    parser.add_argument(
        "--no-format",
        action="store_true",
        help="Write the merged source without running the formatter.",
    )
    parser.add_argument(
        "--config",
        help="Path to a .converge.yml file (defaults to one in the source directory).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Increase log verbosity for troubleshooting.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        help="Also write log records to this file.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for converge."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    logger = configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    cancel: CancelToken | None = None
    try:
        if args.config:
            config_path = Path(args.config)
            if not config_path.is_file():
                raise ConfigError(f"Config file not found: {config_path}")
        else:
            config_path = Path(args.source) / CONFIG_FILENAME
        settings = load_config(config_path).with_overrides(
            workers=args.workers,
            timeout=args.timeout,
            exclude=split_csv(args.exclude),
            packages=split_csv(args.pkg),
            formatter=parse_command(args.formatter) if args.formatter else None,
            format_output=False if args.no_format else None,
        )
        if settings.source is not None:
            logger.debug("Loaded settings from %s", settings.source)

        formatter = (
            CommandFormatter(settings.formatter)
            if settings.format_output
            else IdentityFormatter()
        )
        converger = GoFileConverger(
            workers=settings.workers,
            excludes=settings.exclude,
            packages=settings.packages,
            formatter=formatter,
        )
        cancel = CancelToken(settings.effective_timeout)
        ConvergeCommand(converger, args.source, dst=args.file).run(cancel)
    except KeyboardInterrupt:
        if cancel is not None:
            cancel.cancel("interrupted")
        logger.error("Run interrupted")
        parser.exit(1, "converge cancelled\n")
    except Cancelled as exc:
        logger.debug("Run cancelled", exc_info=True)
        logger.error("%s", exc)
        if exc.timed_out:
            parser.exit(1, "converge timed out before the merge completed\n")
        parser.exit(1, f"converge cancelled: {exc}\n")
    except (ConvergeError, OSError) as exc:
        logger.debug("Run failed", exc_info=True)
        logger.error("%s", exc)
        parser.exit(1, f"converge failed: {exc}\nRun with --verbose for more details.\n")


if __name__ == "__main__":
    main(sys.argv[1:])
