"""
Build pipeline: run the rewriter over every module of a program.

A build is all-or-nothing. Diagnostics are collected across all modules so
that one run reports every problem, but nothing is written when any module
failed.
"""

from __future__ import annotations

import ast
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from webio_macros.codegen.rewriter import rewrite_module
from webio_macros.config import MacroSettings
from webio_macros.entrypoint import EntryPointDeclaration, EntryPointRegistry
from webio_macros.errors import MacroError
from webio_macros.loader import SourceFile, copy_support_files, write_output

logger = logging.getLogger(__name__)

GENERATED_HEADER = "# Generated by webio-macros from {path}. Do not edit.\n"


@dataclass
class TransformResult:
    path: Optional[str]
    output: str
    changed: bool = False
    folded: int = 0
    entry_points: List[EntryPointDeclaration] = field(default_factory=list)


@dataclass
class BuildReport:
    results: List[TransformResult] = field(default_factory=list)
    diagnostics: List[MacroError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.diagnostics

    @property
    def changed(self) -> List[TransformResult]:
        return [result for result in self.results if result.changed]

    @property
    def entry_point(self) -> Optional[EntryPointDeclaration]:
        for result in self.results:
            if result.entry_points:
                return result.entry_points[0]
        return None


def derive_module_name(relative: Path) -> str:
    """``pkg/app.py`` -> ``pkg.app``; ``pkg/__init__.py`` -> ``pkg``."""
    parts = list(relative.with_suffix("").parts)
    if parts and parts[-1] == "__init__":
        parts.pop()
    return ".".join(parts) or relative.stem


def transform_source(
    source: str,
    *,
    path: Optional[str] = None,
    module_name: str = "__main__",
    settings: Optional[MacroSettings] = None,
    registry: Optional[EntryPointRegistry] = None,
) -> TransformResult:
    """
    Transform one module's source text.

    Modules without template invocations or entry points are returned
    byte-for-byte unchanged.
    """
    rewritten = rewrite_module(source, path=path, module_name=module_name, settings=settings, registry=registry)
    if not rewritten.changed:
        return TransformResult(path=path, output=source)
    header = GENERATED_HEADER.format(path=path or "<source>")
    output = header + ast.unparse(rewritten.tree) + "\n"
    return TransformResult(
        path=path,
        output=output,
        changed=True,
        folded=rewritten.folded,
        entry_points=rewritten.entry_points,
    )


def build_program(sources: Sequence[SourceFile], settings: Optional[MacroSettings] = None) -> BuildReport:
    """Transform every module of one program with a shared entry point registry."""
    settings = settings or MacroSettings()
    registry = EntryPointRegistry()
    report = BuildReport()
    for source in sources:
        try:
            result = transform_source(
                source.text,
                path=source.display_path,
                module_name=derive_module_name(source.relative),
                settings=settings,
                registry=registry,
            )
        except MacroError as exc:
            logger.debug("Diagnostic in %s: %s", source.display_path, exc.format())
            report.diagnostics.append(exc)
            continue
        report.results.append(result)
    return report


def write_build(report: BuildReport, source_root: Path, out_dir: Path) -> List[Path]:
    """
    Write the outputs of a successful build under *out_dir*.

    Transformed modules are written from *report*; every other file of
    *source_root*, including modules outside the include/exclude selection,
    is copied verbatim.
    """
    if not report.ok:
        raise ValueError("Refusing to write a build that produced diagnostics")
    written = copy_support_files(source_root, out_dir, skip=[Path(result.path) for result in report.results])
    for result in report.results:
        written.append(write_output(out_dir, Path(result.path), result.output))
    logger.info("Wrote %d files to %s", len(written), out_dir)
    return written


__all__ = [
    "BuildReport",
    "GENERATED_HEADER",
    "TransformResult",
    "build_program",
    "derive_module_name",
    "transform_source",
    "write_build",
]
