"""Merge the top-level Go source files of a package into one file."""

__version__ = "0.1.0"

from .cancellation import CancelToken
from .command import ConvergeCommand
from .converger import GoFileConverger
from .errors import Cancelled, ConvergeError, FormatError, ParseError, PipelineError, ScanError
from .models import Document, ScanRule

__all__ = [
    "CancelToken",
    "Cancelled",
    "ConvergeCommand",
    "ConvergeError",
    "Document",
    "FormatError",
    "GoFileConverger",
    "ParseError",
    "PipelineError",
    "ScanError",
    "ScanRule",
    "__version__",
]
