"""Serialises a merged Document back into Go source."""

from __future__ import annotations

from typing import List, Optional

from .formatters import Formatter
from .models import Document


def render_source(document: Document) -> str:
    """Build the unformatted source for ``document``.

    Layout: package clause, blank line, import declaration (omitted without
    imports, single-line for one import, parenthesised and sorted otherwise),
    then the code lines in stored order.
    """
    parts: List[str] = [f"package {document.package_name}\n\n"]

    imports = document.sorted_imports()
    if len(imports) == 1:
        parts.append(f"import {imports[0]}\n\n")
    elif imports:
        parts.append("import (\n")
        parts.extend(f"\t{spec}\n" for spec in imports)
        parts.append(")\n\n")

    parts.append(document.code_text())
    return "".join(parts)


def render(document: Document, formatter: Formatter, *, timeout: Optional[float] = None) -> bytes:
    """Render and format ``document``; an empty document renders to no bytes."""
    if document.is_empty:
        return b""
    return formatter.format(render_source(document), timeout=timeout)


__all__ = ["render", "render_source"]
