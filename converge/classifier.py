"""Line classifier for Go source files.

A two-state machine that labels each line as a package clause, part of an
import declaration, or plain code. Decisions are strictly line-local; there
is no lookahead and no attempt to understand Go beyond these tokens, so any
import syntax the classifier does not recognise (aliased single-line imports,
for instance) is carried through as code.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

TOKEN_PACKAGE = "package "
TOKEN_IMPORT = "import"
TOKEN_IMPORT_SINGLE = TOKEN_IMPORT + ' "'
TOKEN_IMPORT_BLOCK_START = TOKEN_IMPORT + " ("
TOKEN_IMPORT_BLOCK_END = ")"


class ClassifierState(Enum):
    CODING = "coding"
    IMPORTING = "importing"


class ActionKind(Enum):
    SET_PACKAGE_NAME = "set_package_name"
    ADD_IMPORT = "add_import"
    START_CODE = "start_code"
    APPEND_CODE = "append_code"
    SKIP = "skip"


@dataclass(frozen=True)
class Action:
    kind: ActionKind
    text: str = ""


_SKIP = Action(ActionKind.SKIP)
_START_CODE = Action(ActionKind.START_CODE)


def classify(state: ClassifierState, line: str) -> Tuple[ClassifierState, Action]:
    """Return the next state and the action to take for ``line``."""
    if line.startswith(TOKEN_PACKAGE):
        name = line[len(TOKEN_PACKAGE):].strip()
        return ClassifierState.CODING, Action(ActionKind.SET_PACKAGE_NAME, name)

    if line.startswith(TOKEN_IMPORT_BLOCK_START):
        return ClassifierState.IMPORTING, _SKIP

    if line.startswith(TOKEN_IMPORT_SINGLE):
        spec = line[len(TOKEN_IMPORT):].strip()
        return state, Action(ActionKind.ADD_IMPORT, spec)

    if state is ClassifierState.IMPORTING:
        stripped = line.strip()
        if stripped == TOKEN_IMPORT_BLOCK_END:
            return ClassifierState.CODING, _START_CODE
        if not stripped:
            return state, _SKIP
        return state, Action(ActionKind.ADD_IMPORT, stripped)

    return state, Action(ActionKind.APPEND_CODE, line)


__all__ = [
    "Action",
    "ActionKind",
    "ClassifierState",
    "TOKEN_IMPORT",
    "TOKEN_IMPORT_BLOCK_END",
    "TOKEN_IMPORT_BLOCK_START",
    "TOKEN_IMPORT_SINGLE",
    "TOKEN_PACKAGE",
    "classify",
]
