"""Single-pass scanner locating ``{{name}}`` placeholders in template text."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List

from webio_macros.errors import UnterminatedPlaceholderError

OPEN_DELIMITER = "{{"
CLOSE_DELIMITER = "}}"


class ScannerState(Enum):
    LITERAL = "literal"
    IN_PLACEHOLDER = "in_placeholder"


@dataclass(frozen=True)
class PlaceholderToken:
    """A placeholder occurrence.

    ``start`` is the offset of the opening ``{{`` and ``end`` the offset just
    past the closing ``}}``, so ``content[start:end]`` is the whole marker.
    """

    name: str
    start: int
    end: int


def scan(content: str) -> List[PlaceholderToken]:
    """
    Return the placeholder tokens of *content* in order of appearance.

    The first ``}}`` after an opening ``{{`` always closes the placeholder;
    nested delimiters get no special treatment and names are not trimmed.

    Raises:
        UnterminatedPlaceholderError: If the input ends inside a placeholder.
    """
    tokens: List[PlaceholderToken] = []
    state = ScannerState.LITERAL
    index = 0
    length = len(content)
    token_start = 0
    name_start = 0

    while index < length:
        if state is ScannerState.LITERAL:
            if content.startswith(OPEN_DELIMITER, index):
                state = ScannerState.IN_PLACEHOLDER
                token_start = index
                index += len(OPEN_DELIMITER)
                name_start = index
                continue
            index += 1
        else:
            if content.startswith(CLOSE_DELIMITER, index):
                end = index + len(CLOSE_DELIMITER)
                tokens.append(PlaceholderToken(content[name_start:index], token_start, end))
                state = ScannerState.LITERAL
                index = end
                continue
            index += 1

    if state is ScannerState.IN_PLACEHOLDER:
        raise UnterminatedPlaceholderError(token_start)
    return tokens


__all__ = ["OPEN_DELIMITER", "CLOSE_DELIMITER", "ScannerState", "PlaceholderToken", "scan"]
