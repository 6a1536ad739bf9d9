"""
Error handling for the webio-macros CLI.

Build diagnostics (:class:`webio_macros.errors.MacroError`) format
themselves; everything else the CLI raises goes through :class:`CLIError`.
"""

import os
import sys
import traceback
from typing import Any, Dict, Optional

# Maximum length for traceback output in CLI
_CLI_TRACE_LIMIT = 4000


class CLIError(Exception):
    """
    Base exception for all CLI operations.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code
        hint: Optional suggestion for resolving the error
        context: Additional metadata about the error
    """

    def __init__(
        self,
        message: str,
        *,
        code: str,
        hint: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.hint = hint
        self.context = context or {}

    def __str__(self) -> str:
        return self.message


class CLIValidationError(CLIError):
    """Invalid command arguments or options."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault('code', 'CLI_VALIDATION_ERROR')
        super().__init__(message, **kwargs)


class CLIFileNotFoundError(CLIError):
    """Source tree or configuration file not found."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault('code', 'CLI_FILE_NOT_FOUND')
        super().__init__(message, **kwargs)


class CLIBuildError(CLIError):
    """
    Build command failures.

    Raised when one or more modules produced diagnostics; the individual
    diagnostics are printed before this error.
    """

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault('code', 'CLI_BUILD_ERROR')
        super().__init__(message, **kwargs)


def format_cli_error(
    exc: BaseException,
    *,
    verbose: bool = False,
    include_traceback: bool = False
) -> str:
    """
    Format exception for CLI display with context and hints.

    Examples:
        >>> print(format_cli_error(CLIValidationError("Bad argument", hint="Use name=value")))
        Error [CLI_VALIDATION_ERROR]: Bad argument
        Hint: Use name=value
    """
    formatter = getattr(exc, "format", None)
    if callable(formatter):
        lines = [f"Error: {formatter()}"]
    elif isinstance(exc, CLIError):
        lines = [f"Error [{exc.code}]: {exc.message}"]
        if exc.hint:
            lines.append(f"Hint: {exc.hint}")
        if verbose and exc.context:
            lines.append("\nContext:")
            for key, value in exc.context.items():
                lines.append(f"  {key}: {value}")
    else:
        lines = [f"Error: {exc.__class__.__name__}: {exc}"]

    if include_traceback:
        lines.append("\nTraceback:")
        lines.append(format_traceback_excerpt())

    return "\n".join(lines)


def format_traceback_excerpt() -> str:
    """Format the current exception traceback, truncated to the CLI limit."""
    trace = traceback.format_exc().strip()
    if len(trace) <= _CLI_TRACE_LIMIT:
        return trace
    return f"{trace[:_CLI_TRACE_LIMIT - 3]}..."


def _env_flag(name: str) -> bool:
    val = os.getenv(name)
    if val is None:
        return False
    return val.strip().lower() in {"1", "true", "yes", "on"}


def cli_verbose_enabled(verbose_flag: bool = False) -> bool:
    """Verbose output from the flag or WEBIO_MACROS_VERBOSE/WEBIO_MACROS_DEBUG."""
    return verbose_flag or _env_flag("WEBIO_MACROS_VERBOSE") or _env_flag("WEBIO_MACROS_DEBUG")


def cli_reraise_enabled() -> bool:
    """Re-raise instead of exiting when WEBIO_MACROS_RERAISE/WEBIO_MACROS_DEBUG is set."""
    return _env_flag("WEBIO_MACROS_RERAISE") or _env_flag("WEBIO_MACROS_DEBUG")


def handle_cli_exception(
    exc: BaseException,
    *,
    verbose: bool = False,
    exit_code: int = 1
) -> None:
    """
    Print *exc* for the user and exit.

    Note:
        This function calls sys.exit() and does not return.
    """
    verbose_effective = cli_verbose_enabled(verbose)
    if cli_reraise_enabled():
        raise exc

    error_message = format_cli_error(
        exc,
        verbose=verbose_effective,
        include_traceback=verbose_effective
    )
    print(error_message, file=sys.stderr)
    sys.exit(exit_code)
