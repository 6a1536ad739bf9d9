"""Subcommand handlers for the webio-macros CLI."""

from .build import cmd_build, cmd_check
from .render import cmd_render

__all__ = ["cmd_build", "cmd_check", "cmd_render"]
