"""Turns a single Go source file into a partial Document."""

from __future__ import annotations

from pathlib import Path

from .classifier import ActionKind, ClassifierState, classify
from .errors import ParseError
from .models import Document


def parse_file(path: Path | str) -> Document:
    """Classify every line of ``path`` and collect the result.

    Raises ParseError when the file cannot be opened, read or decoded; no
    partial document is returned in that case.
    """
    document = Document()
    state = ClassifierState.CODING
    try:
        with open(path, "r", encoding="utf-8") as handle:
            for raw_line in handle:
                state, action = classify(state, raw_line.rstrip("\n"))
                if action.kind is ActionKind.SET_PACKAGE_NAME:
                    document.package_name = action.text
                elif action.kind is ActionKind.ADD_IMPORT:
                    document.add_import(action.text)
                elif action.kind is ActionKind.APPEND_CODE:
                    document.append_code(action.text)
    except (OSError, UnicodeDecodeError) as exc:
        raise ParseError(path, exc) from exc
    return document


__all__ = ["parse_file"]
