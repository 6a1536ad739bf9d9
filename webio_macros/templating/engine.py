"""
Substitution engine for ``{{name}}`` templates.

The same engine backs every invocation name: ``replace`` is the primary
entry, ``html`` and any alias built with :func:`make_alias` only change how a
call site reads. The pre-build pass in :mod:`webio_macros.codegen` expands
literal invocations with these functions at build time; calling them directly
is the explicit fallback for code that is not run through the pass.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from webio_macros.errors import ErrorLocation, UnknownPlaceholderError
from webio_macros.templating.scanner import PlaceholderToken, scan

Arguments = Union[Mapping[str, Any], Sequence[Tuple[str, Any]]]
Segment = Union[str, PlaceholderToken]


def _argument_pairs(arguments: Arguments) -> List[Tuple[str, Any]]:
    if isinstance(arguments, Mapping):
        return list(arguments.items())
    return [(name, value) for name, value in arguments]


def resolve_arguments(arguments: Arguments) -> Dict[str, Any]:
    """Build the lookup table for *arguments*; the first pair wins on duplicate names."""
    table: Dict[str, Any] = {}
    for name, value in _argument_pairs(arguments):
        if name not in table:
            table[name] = value
    return table


def iter_segments(content: str) -> Iterator[Segment]:
    """Yield literal chunks and placeholder tokens of *content* in order.

    Empty literal chunks are skipped.
    """
    cursor = 0
    for token in scan(content):
        if token.start > cursor:
            yield content[cursor:token.start]
        yield token
        cursor = token.end
    if cursor < len(content):
        yield content[cursor:]


def substitute(content: str, arguments: Arguments = ()) -> str:
    """
    Replace every ``{{name}}`` in *content* with ``str()`` of its argument.

    Args:
        content: Template text.
        arguments: Mapping or ordered ``(name, value)`` pairs.

    Returns:
        The rendered text. Content without placeholders is returned unchanged.

    Raises:
        UnterminatedPlaceholderError: If a placeholder is never closed.
        UnknownPlaceholderError: If a placeholder names no argument.
    """
    table = resolve_arguments(arguments)
    parts: List[str] = []
    for segment in iter_segments(content):
        if isinstance(segment, str):
            parts.append(segment)
            continue
        if segment.name not in table:
            raise UnknownPlaceholderError(segment.name)
        parts.append(str(table[segment.name]))
    return "".join(parts)


def unused_arguments(content: str, arguments: Arguments) -> List[str]:
    """Names of *arguments* that no placeholder in *content* refers to."""
    referenced = {token.name for token in scan(content)}
    return [name for name in resolve_arguments(arguments) if name not in referenced]


def replace(content: str, /, **arguments: Any) -> str:
    """Primary template invocation: ``replace("Hello {{name}}", name="Ahmed")``."""
    return substitute(content, arguments)


def html(content: str, /, **arguments: Any) -> str:
    """Markup-flavoured alias of :func:`replace` with identical behavior."""
    return replace(content, **arguments)


def make_alias(name: str) -> Callable[..., str]:
    """Create another invocation name (``css``, ``glsl``, ...) delegating to :func:`replace`."""

    def alias(content: str, /, **arguments: Any) -> str:
        return replace(content, **arguments)

    alias.__name__ = name
    alias.__qualname__ = name
    alias.__doc__ = f"Alias of replace() used for {name} templates."
    return alias


INVOCATIONS: Dict[str, Callable[..., str]] = {
    "replace": replace,
    "html": html,
}


@dataclass
class TemplateInvocation:
    """One use site of a template invocation."""

    content: str
    arguments: Tuple[Tuple[str, Any], ...] = ()
    invocation: str = "replace"
    location: Optional[ErrorLocation] = None
    tokens: List[PlaceholderToken] = field(default_factory=list)


__all__ = [
    "Arguments",
    "INVOCATIONS",
    "TemplateInvocation",
    "html",
    "iter_segments",
    "make_alias",
    "replace",
    "resolve_arguments",
    "substitute",
    "unused_arguments",
]
