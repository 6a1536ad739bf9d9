"""
Build-time macros for the WebIO ecosystem.

Two transformations make up the toolkit:

* ``@webio_main`` turns an ``async def`` program entry into a synchronous
  ``main()`` that drives it on an async runtime (``asyncio`` by default).
* ``replace()`` and its alias ``html()`` resolve ``{{name}}`` placeholders in
  string literals.

Both are applied to source files by the ``webio-macros build`` pre-build pass
(see :mod:`webio_macros.codegen`), which expands them before the program runs.
Imported directly, the same names work at runtime with identical semantics.
"""

import re
from pathlib import Path
from importlib import metadata as _metadata

from webio_macros.entrypoint import webio_main
from webio_macros.errors import (
    DuplicateEntryPointError,
    MacroError,
    MalformedEntrySignatureError,
    RuntimeDriverInitFailure,
    UnknownPlaceholderError,
    UnterminatedPlaceholderError,
)
from webio_macros.runtime import launch
from webio_macros.templating import html, make_alias, replace, substitute


def _local_version() -> str | None:
    root = Path(__file__).resolve().parents[1]
    pyproject = root / "pyproject.toml"
    if not pyproject.exists():
        return None
    try:
        text = pyproject.read_text(encoding="utf-8")
    except OSError:  # pragma: no cover - IO errors should not break imports
        return None
    match = re.search(r"^version\s*=\s*\"([^\"]+)\"", text, flags=re.MULTILINE)
    if match:
        return match.group(1)
    return None


try:  # pragma: no cover - metadata fallback for editable installs
    __version__ = _metadata.version("webio-macros")
except _metadata.PackageNotFoundError:  # pragma: no cover - source tree
    __version__ = _local_version() or "0.1.0"

__all__ = [
    "DuplicateEntryPointError",
    "MacroError",
    "MalformedEntrySignatureError",
    "RuntimeDriverInitFailure",
    "UnknownPlaceholderError",
    "UnterminatedPlaceholderError",
    "__version__",
    "html",
    "launch",
    "make_alias",
    "replace",
    "substitute",
    "webio_main",
]
