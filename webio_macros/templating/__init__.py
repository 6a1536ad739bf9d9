"""Zero-runtime-cost ``{{name}}`` templating."""

from .engine import (
    INVOCATIONS,
    TemplateInvocation,
    html,
    iter_segments,
    make_alias,
    replace,
    resolve_arguments,
    substitute,
    unused_arguments,
)
from .raw import is_raw_literal, normalize_literal
from .scanner import PlaceholderToken, ScannerState, scan

__all__ = [
    "INVOCATIONS",
    "PlaceholderToken",
    "ScannerState",
    "TemplateInvocation",
    "html",
    "is_raw_literal",
    "iter_segments",
    "make_alias",
    "normalize_literal",
    "replace",
    "resolve_arguments",
    "scan",
    "substitute",
    "unused_arguments",
]
