"""
CLI context and workspace resolution.

The context is built once per invocation from ``--workspace`` and
``--config`` and attached to the parsed arguments for the command handlers.
"""

import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..config import WorkspaceConfig, load_workspace_config
from .errors import CLIFileNotFoundError


@dataclass
class CLIContext:
    """
    Shared context resolved from workspace configuration.

    Attributes:
        workspace_root: Root directory of the workspace
        config: Parsed workspace configuration
    """

    workspace_root: Path
    config: WorkspaceConfig


def build_cli_context(workspace: Optional[str], config: Optional[str]) -> CLIContext:
    workspace_root = Path(workspace).resolve() if workspace else Path.cwd().resolve()
    if not workspace_root.is_dir():
        raise CLIFileNotFoundError(f"Workspace directory not found: {workspace_root}")
    config_path = Path(config).resolve() if config else None
    return CLIContext(
        workspace_root=workspace_root,
        config=load_workspace_config(workspace_root, config_path),
    )


def get_cli_context(args: argparse.Namespace) -> CLIContext:
    """Return the context attached to *args*, building it on first use."""
    ctx = getattr(args, "_cli_context", None)
    if ctx is None:
        ctx = build_cli_context(getattr(args, "workspace", None), getattr(args, "config", None))
        args._cli_context = ctx
    return ctx


def resolve_source(args: argparse.Namespace, ctx: CLIContext) -> Path:
    """The source tree from the positional argument, else from the configuration."""
    raw = getattr(args, "source", None)
    source = Path(raw).resolve() if raw else ctx.config.source
    if not source.exists():
        raise CLIFileNotFoundError(
            f"Source path does not exist: {source}",
            hint="Pass a source directory or set 'source' in webio.toml.",
        )
    return source
