"""Unified diagnostic model for webio-macros."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class ErrorLocation:
    path: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None

    def describe(self) -> str:
        if self.path and self.line is not None and self.column is not None:
            return f"{self.path}:{self.line}:{self.column}"
        if self.path and self.line is not None:
            return f"{self.path}:{self.line}"
        if self.line is not None and self.column is not None:
            return f"<source>:{self.line}:{self.column}"
        if self.path:
            return self.path
        return "unknown location"


class MacroError(Exception):
    """Base class for all build-time diagnostics surfaced to users."""

    code: Optional[str] = None
    hint: Optional[str] = None

    def __init__(
        self,
        message: str,
        *,
        path: Optional[str] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
        code: Optional[str] = None,
        hint: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.location = ErrorLocation(path=path, line=line, column=column)
        if code is not None:
            self.code = code
        if hint is not None:
            self.hint = hint

    @property
    def path(self) -> Optional[str]:
        return self.location.path

    @property
    def line(self) -> Optional[int]:
        return self.location.line

    @property
    def column(self) -> Optional[int]:
        return self.location.column

    def relocate(
        self,
        *,
        path: Optional[str] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> "MacroError":
        """Attach the source location of the construct that triggered the error."""
        if path is not None:
            self.location.path = path
        if line is not None:
            self.location.line = line
        if column is not None:
            self.location.column = column
        return self

    def format(self) -> str:
        components = [self.message]
        meta_parts = []
        location_desc = self.location.describe()
        if location_desc != "unknown location":
            meta_parts.append(location_desc)
        if self.code:
            meta_parts.append(self.code)
        if meta_parts:
            components[-1] = f"{components[-1]} ({'; '.join(meta_parts)})"
        if self.hint:
            components.append(f"Hint: {self.hint}")
        return " ".join(part for part in components if part)


class SourceSyntaxError(MacroError):
    """Raised when an input file is not valid Python."""

    code = "SYNTAX_ERROR"


class TemplateError(MacroError):
    """Raised when a template invocation cannot be expanded."""


class UnterminatedPlaceholderError(TemplateError):
    """Raised when ``{{`` has no matching ``}}`` before the end of content."""

    code = "UNTERMINATED_PLACEHOLDER"

    def __init__(self, offset: int, **kwargs) -> None:
        kwargs.setdefault("hint", "Close the placeholder with '}}'.")
        super().__init__(f"Unterminated placeholder starting at offset {offset}", **kwargs)
        self.offset = offset


class UnknownPlaceholderError(TemplateError):
    """Raised when a placeholder names no supplied argument."""

    code = "UNKNOWN_PLACEHOLDER"

    def __init__(self, name: str, **kwargs) -> None:
        kwargs.setdefault("hint", f"Pass '{name}=...' to the template invocation.")
        super().__init__(f"Unknown placeholder '{{{{{name}}}}}'", **kwargs)
        self.name = name


class TemplateLiteralError(TemplateError):
    """Raised when template content is not a plain or raw str literal."""

    code = "TEMPLATE_LITERAL"


class EntryPointError(MacroError):
    """Raised when the asynchronous entry point cannot be rewritten."""


class MalformedEntrySignatureError(EntryPointError):
    """Raised when the annotated entry function has the wrong shape."""

    code = "MALFORMED_ENTRY_SIGNATURE"


class DuplicateEntryPointError(EntryPointError):
    """Raised when more than one function carries the entry annotation."""

    code = "DUPLICATE_ENTRY_POINT"


class ConfigError(MacroError):
    """Raised when the workspace configuration is unreadable or invalid."""

    code = "CONFIG_ERROR"


class RuntimeDriverInitFailure(SystemExit):
    """Abort raised when the bootstrap cannot initialize the async driver.

    Derives from ``SystemExit`` so that it terminates the process instead of
    being handled like an ordinary error value by program code.
    """

    exit_code = 70

    def __init__(self, driver: str, reason: str) -> None:
        super().__init__(self.exit_code)
        self.driver = driver
        self.reason = reason

    def __str__(self) -> str:
        return f"Failed to initialize async driver '{self.driver}': {self.reason}"


__all__ = [
    "ErrorLocation",
    "MacroError",
    "SourceSyntaxError",
    "TemplateError",
    "UnterminatedPlaceholderError",
    "UnknownPlaceholderError",
    "TemplateLiteralError",
    "EntryPointError",
    "MalformedEntrySignatureError",
    "DuplicateEntryPointError",
    "ConfigError",
    "RuntimeDriverInitFailure",
]
