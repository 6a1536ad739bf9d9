"""
webio-macros CLI entry point.

Subcommands:

* ``build``  - run the pre-build pass over a source tree and write the result
* ``check``  - run the pass and report diagnostics without writing
* ``render`` - expand a template from the command line
"""

import argparse
import logging
import os
import sys
from typing import Optional

from webio_macros import __version__

from .commands import cmd_build, cmd_check, cmd_render

LOG_LEVELS = {
    'debug': logging.DEBUG,
    'info': logging.INFO,
    'warn': logging.WARNING,
    'warning': logging.WARNING,
    'error': logging.ERROR,
}


def _configure_logging(args) -> None:
    """Configure the webio_macros logger from --log-level or WEBIO_MACROS_LOG_LEVEL."""
    log_level = (
        getattr(args, 'log_level', None) or
        os.getenv('WEBIO_MACROS_LOG_LEVEL', 'warn')
    ).lower()
    numeric_level = LOG_LEVELS.get(log_level, logging.WARNING)

    package_logger = logging.getLogger('webio_macros')
    package_logger.setLevel(numeric_level)

    if not package_logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        handler.setFormatter(formatter)
        package_logger.addHandler(handler)
        # Prevent propagation to root logger to avoid duplicate messages
        package_logger.propagate = False


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Build-time macros: async entry point rewriting and {{name}} templates",
        prog="webio-macros",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument('--config', help='Path to a webio.toml, pyproject.toml or .webiorc file')
    parser.add_argument(
        '--workspace',
        default=None,
        help='Workspace root directory (defaults to current working directory)'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Print full tracebacks and detailed errors (or set WEBIO_MACROS_VERBOSE=1)'
    )
    parser.add_argument(
        '--log-level',
        choices=['debug', 'info', 'warn', 'error'],
        default=None,
        help='Logging level (or set WEBIO_MACROS_LOG_LEVEL)'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    build_parser = subparsers.add_parser('build', help='Transform a source tree into an output tree')
    build_parser.add_argument('source', nargs='?', help='Source file or directory (default: configured source)')
    build_parser.add_argument('--out', '-o', help='Output directory (default: configured out)')
    build_parser.set_defaults(func=cmd_build)

    check_parser = subparsers.add_parser('check', help='Report diagnostics without writing output')
    check_parser.add_argument('source', nargs='?', help='Source file or directory (default: configured source)')
    check_parser.set_defaults(func=cmd_check)

    render_parser = subparsers.add_parser('render', help='Expand a {{name}} template')
    render_parser.add_argument('text', nargs='?', help='Template text')
    source_group = render_parser.add_mutually_exclusive_group()
    source_group.add_argument('--file', '-f', help='Read the template from a file (taken verbatim)')
    source_group.add_argument('--literal', '-l', help='Template given as a Python string literal, e.g. r"..."')
    render_parser.add_argument(
        '--arg', '-a', action='append', metavar='NAME=VALUE', help='Template argument (repeatable)'
    )
    render_parser.add_argument('--html', action='store_true', help='Use the html() alias')
    render_parser.set_defaults(func=cmd_render)

    return parser


def main(argv: Optional[list] = None) -> None:
    """
    Main CLI entrypoint with subcommand support.

    Examples:
        >>> main(['render', 'Hello {{name}}', '-a', 'name=Ahmed'])  # doctest: +SKIP
        Hello Ahmed
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args)

    if not getattr(args, 'func', None):
        parser.print_help()
        sys.exit(1)

    args.func(args)


__all__ = ["build_parser", "main"]
