"""
Build and check command implementations.

``build`` runs the pre-build pass over a source tree and writes the
transformed tree; ``check`` runs the same pass and only reports diagnostics.
"""

import argparse
import logging
import sys
from pathlib import Path

from webio_macros.codegen import BuildReport, build_program, write_build
from webio_macros.loader import load_sources

from ..context import get_cli_context, resolve_source
from ..errors import CLIBuildError, CLIFileNotFoundError, handle_cli_exception

logger = logging.getLogger(__name__)


def _run_pass(args: argparse.Namespace):
    ctx = get_cli_context(args)
    source = resolve_source(args, ctx)
    try:
        sources = load_sources(source, include=ctx.config.include, exclude=ctx.config.exclude)
    except FileNotFoundError as exc:
        raise CLIFileNotFoundError(str(exc)) from exc
    logger.info("Transforming %d modules from %s", len(sources), source)
    report = build_program(sources, ctx.config.settings)
    return ctx, source, report


def _report_diagnostics(report: BuildReport) -> None:
    for diagnostic in report.diagnostics:
        print(f"error: {diagnostic.format()}", file=sys.stderr)
    raise CLIBuildError(
        f"{len(report.diagnostics)} module(s) failed; no output was written",
    )


def _summary(report: BuildReport) -> str:
    folded = sum(result.folded for result in report.results)
    entry = report.entry_point
    parts = [
        f"{len(report.results)} modules",
        f"{len(report.changed)} rewritten",
        f"{folded} templates expanded",
    ]
    if entry is not None:
        parts.append(f"entry point {entry.qualified_name}")
    return ", ".join(parts)


def cmd_build(args: argparse.Namespace) -> None:
    """
    Handle the 'build' subcommand.

    Transforms every module of the source tree and writes the result under
    ``--out`` (default from the configuration). Other files, including modules
    outside the include/exclude selection, are copied verbatim. Nothing is
    written when any module produced a diagnostic.
    """
    try:
        ctx, source, report = _run_pass(args)
        if not report.ok:
            _report_diagnostics(report)
        out_dir = Path(args.out).resolve() if getattr(args, "out", None) else ctx.config.out
        write_build(report, source, out_dir)
        print(f"✓ Built {_summary(report)} into {out_dir}")
    except Exception as exc:
        handle_cli_exception(exc, verbose=getattr(args, "verbose", False))


def cmd_check(args: argparse.Namespace) -> None:
    """Handle the 'check' subcommand: run the pass without writing anything."""
    try:
        _, _, report = _run_pass(args)
        if not report.ok:
            _report_diagnostics(report)
        print(f"✓ Checked {_summary(report)}")
    except Exception as exc:
        handle_cli_exception(exc, verbose=getattr(args, "verbose", False))
