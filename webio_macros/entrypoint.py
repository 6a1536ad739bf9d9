"""
The ``webio_main`` entry annotation.

Run through the pre-build pass, ``@webio_main`` is consumed by
:mod:`webio_macros.codegen.rewriter` and never executes. Without the pass the
decorator performs the same validation at import time and returns the
synchronous bootstrap directly, so the program start stays an explicit call::

    @webio_main
    async def main():
        ...

    if __name__ == "__main__":
        main()
"""

from __future__ import annotations

import functools
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from webio_macros.errors import DuplicateEntryPointError, ErrorLocation, MalformedEntrySignatureError
from webio_macros.runtime import DEFAULT_DRIVER, launch

logger = logging.getLogger(__name__)

ENTRY_DECORATOR = "webio_main"
ALLOWED_RETURN_ANNOTATIONS = frozenset({"None", "int"})


@dataclass(frozen=True)
class EntryPointDeclaration:
    name: str
    qualified_name: str
    location: ErrorLocation


class EntryPointRegistry:
    """Tracks the single entry point allowed per program."""

    def __init__(self) -> None:
        self._entries: Dict[str, EntryPointDeclaration] = {}

    @property
    def current(self) -> Optional[EntryPointDeclaration]:
        return next(iter(self._entries.values()), None)

    def register(self, declaration: EntryPointDeclaration) -> None:
        """
        Record *declaration*, rejecting a second, different entry point.

        Registering the same declaration again (a reloaded module) is allowed.
        """
        existing = self.current
        if existing is not None and existing != declaration:
            raise DuplicateEntryPointError(
                f"Entry point '{declaration.qualified_name}' conflicts with "
                f"'{existing.qualified_name}' declared at {existing.location.describe()}",
                path=declaration.location.path,
                line=declaration.location.line,
                column=declaration.location.column,
                hint=f"Only one function per program may be decorated with @{ENTRY_DECORATOR}.",
            )
        self._entries[declaration.qualified_name] = declaration

    def clear(self) -> None:
        self._entries.clear()


_process_registry = EntryPointRegistry()


def get_process_registry() -> EntryPointRegistry:
    return _process_registry


def _annotation_name(annotation: Any) -> Optional[str]:
    if annotation is None or annotation is type(None):
        return "None"
    if isinstance(annotation, str):
        return annotation
    return getattr(annotation, "__name__", None)


def validate_entry_callable(func: Callable[..., Any]) -> None:
    """Check that *func* is a zero-parameter ``async def`` returning nothing or an int."""
    name = getattr(func, "__qualname__", repr(func))
    if not inspect.iscoroutinefunction(func):
        raise MalformedEntrySignatureError(
            f"@{ENTRY_DECORATOR} requires an async function, '{name}' is synchronous",
            hint="Declare the entry point with 'async def'.",
        )
    signature = inspect.signature(func)
    if signature.parameters:
        raise MalformedEntrySignatureError(
            f"@{ENTRY_DECORATOR} function '{name}' must not take parameters",
        )
    annotation = signature.return_annotation
    if annotation is not inspect.Signature.empty and _annotation_name(annotation) not in ALLOWED_RETURN_ANNOTATIONS:
        raise MalformedEntrySignatureError(
            f"@{ENTRY_DECORATOR} function '{name}' must return None or int",
        )


def _declaration_for(func: Callable[..., Any]) -> EntryPointDeclaration:
    code = getattr(func, "__code__", None)
    location = ErrorLocation(
        path=code.co_filename if code else None,
        line=code.co_firstlineno if code else None,
    )
    qualified = f"{func.__module__}.{func.__qualname__}"
    return EntryPointDeclaration(name=func.__name__, qualified_name=qualified, location=location)


def webio_main(func: Optional[Callable[..., Any]] = None) -> Callable[[], Any]:
    """Turn an ``async def`` program entry into a synchronous bootstrap."""
    if func is None or not callable(func):
        raise MalformedEntrySignatureError(f"@{ENTRY_DECORATOR} takes no options")
    validate_entry_callable(func)
    get_process_registry().register(_declaration_for(func))

    @functools.wraps(func)
    def bootstrap() -> Any:
        return launch(func, driver=DEFAULT_DRIVER)

    bootstrap.__webio_entry__ = func  # type: ignore[attr-defined]
    logger.debug("Registered entry point %s", func.__qualname__)
    return bootstrap


__all__ = [
    "ALLOWED_RETURN_ANNOTATIONS",
    "ENTRY_DECORATOR",
    "EntryPointDeclaration",
    "EntryPointRegistry",
    "get_process_registry",
    "validate_entry_callable",
    "webio_main",
]
