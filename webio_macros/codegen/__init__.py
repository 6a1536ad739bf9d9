"""Pre-build source generation for template invocations and the async entry point."""

from .pipeline import BuildReport, TransformResult, build_program, transform_source, write_build
from .rewriter import ModuleRewriter, RewriteResult, rewrite_module

__all__ = [
    "BuildReport",
    "ModuleRewriter",
    "RewriteResult",
    "TransformResult",
    "build_program",
    "rewrite_module",
    "transform_source",
    "write_build",
]
