"""Normalize Python string literal source into template content.

Raw pieces (``r"..."``) are taken verbatim so templates can embed markup,
scripts or regular expressions without escaping. Non-raw pieces have their
escape sequences decoded. Implicitly concatenated pieces may mix both forms.
"""

from __future__ import annotations

import ast
import io
import re
import tokenize
from typing import List

from webio_macros.errors import TemplateLiteralError

_LITERAL_RE = re.compile(
    r"(?P<prefix>[A-Za-z]*)(?P<quote>'''|\"\"\"|'|\")(?P<body>.*)(?P=quote)\Z",
    re.DOTALL,
)


def _literal_pieces(source_text: str) -> List[str]:
    # Parenthesized so multi-line implicit concatenation tokenizes on its own.
    readline = io.StringIO(f"({source_text})").readline
    try:
        tokens = list(tokenize.generate_tokens(readline))
    except (tokenize.TokenError, SyntaxError) as exc:
        raise TemplateLiteralError(f"Malformed string literal: {exc}") from exc
    pieces = []
    for token in tokens:
        if token.type == tokenize.STRING:
            pieces.append(token.string)
        elif token.type == getattr(tokenize, "FSTRING_START", None):
            raise TemplateLiteralError("f-strings cannot be used as template content")
    if not pieces:
        raise TemplateLiteralError(f"Not a string literal: {source_text!r}")
    return pieces


def _split_piece(piece: str):
    match = _LITERAL_RE.match(piece)
    if match is None:
        raise TemplateLiteralError(f"Not a string literal: {piece!r}")
    prefix = match.group("prefix").lower()
    if "b" in prefix:
        raise TemplateLiteralError("Bytes literals cannot be used as template content")
    if "f" in prefix:
        raise TemplateLiteralError("f-strings cannot be used as template content")
    return prefix, match.group("body")


def is_raw_literal(source_text: str) -> bool:
    """True when any piece of the literal uses the raw form."""
    return any("r" in _split_piece(piece)[0] for piece in _literal_pieces(source_text))


def normalize_literal(source_text: str) -> str:
    """Return the template content denoted by the literal *source_text*."""
    parts = []
    for piece in _literal_pieces(source_text):
        prefix, body = _split_piece(piece)
        if "r" in prefix:
            parts.append(body)
        else:
            parts.append(ast.literal_eval(piece))
    return "".join(parts)


__all__ = ["is_raw_literal", "normalize_literal"]
