"""Render command: run the substitution engine on text from the command line."""

import argparse
from pathlib import Path
from typing import List, Sequence, Tuple

from webio_macros.errors import MacroError
from webio_macros.templating import INVOCATIONS, normalize_literal

from ..errors import CLIFileNotFoundError, CLIValidationError, handle_cli_exception


def parse_assignments(values: Sequence[str]) -> List[Tuple[str, str]]:
    """Parse ``name=value`` pairs, keeping their order."""
    pairs: List[Tuple[str, str]] = []
    for item in values:
        name, sep, value = item.partition("=")
        if not sep or not name:
            raise CLIValidationError(
                f"Invalid argument {item!r}",
                hint="Pass template arguments as name=value.",
            )
        pairs.append((name, value))
    return pairs


def _template_content(args: argparse.Namespace) -> str:
    if args.file:
        path = Path(args.file)
        if not path.is_file():
            raise CLIFileNotFoundError(f"Template file not found: {path}")
        # File contents are taken verbatim, like a raw literal.
        return path.read_text(encoding="utf-8")
    if args.literal:
        return normalize_literal(args.literal)
    if args.text is None:
        raise CLIValidationError("No template given", hint="Pass TEXT, --file or --literal.")
    return args.text


def cmd_render(args: argparse.Namespace) -> None:
    """Handle the 'render' subcommand and print the rendered text."""
    try:
        content = _template_content(args)
        arguments = parse_assignments(args.arg or [])
        invocation = INVOCATIONS["html" if args.html else "replace"]
        # Reversed so the first occurrence of a repeated name wins.
        keywords = dict(reversed(arguments))
        print(invocation(content, **keywords), end="" if args.file else "\n")
    except (MacroError, CLIValidationError, CLIFileNotFoundError) as exc:
        handle_cli_exception(exc, verbose=getattr(args, "verbose", False))
