"""Utilities for discovering Python source trees and writing build outputs."""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from os import PathLike
from pathlib import Path
from typing import Iterable, List, Sequence

VALID_EXTENSIONS = {".py"}


@dataclass
class SourceFile:
    path: Path
    relative: Path
    text: str

    @property
    def display_path(self) -> str:
        return self.relative.as_posix()


def _matches(relative: Path, patterns: Iterable[str]) -> bool:
    for pattern in patterns:
        if relative.match(pattern):
            return True
        # Path.match does not let "**/" match zero directories.
        if pattern.startswith("**/") and relative.match(pattern[3:]):
            return True
    return False


def discover_source_files(
    root: str | PathLike[str],
    *,
    include: Sequence[str] = ("**/*.py",),
    exclude: Sequence[str] = (),
) -> List[Path]:
    """Discover source files under *root* matching *include* and not *exclude*."""
    root = Path(root)
    if root.is_file():
        return [root] if root.suffix.lower() in VALID_EXTENSIONS else []
    paths = []
    for path in root.rglob("*"):
        if not path.is_file() or path.suffix.lower() not in VALID_EXTENSIONS:
            continue
        relative = path.relative_to(root)
        if _matches(relative, include) and not _matches(relative, exclude):
            paths.append(path)
    return sorted(paths)


def load_sources(
    root: str | PathLike[str],
    *,
    include: Sequence[str] = ("**/*.py",),
    exclude: Sequence[str] = (),
) -> List[SourceFile]:
    """
    Read every selected source file under *root*.

    Raises:
        FileNotFoundError: If *root* does not exist or holds no source files.
    """
    root = Path(root).resolve()
    if not root.exists():
        raise FileNotFoundError(f"Source path does not exist: {root}")
    base = root.parent if root.is_file() else root
    paths = discover_source_files(root, include=include, exclude=exclude)
    if not paths:
        raise FileNotFoundError(f"No Python source files found at {root}")
    return [
        SourceFile(path=path, relative=path.relative_to(base), text=path.read_text(encoding="utf-8"))
        for path in paths
    ]


def write_output(out_dir: Path, relative: Path, text: str) -> Path:
    target = out_dir / relative
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(text, encoding="utf-8")
    return target


def copy_support_files(source_root: Path, out_dir: Path, skip: Iterable[Path] = ()) -> List[Path]:
    """
    Copy the files of *source_root* into *out_dir* verbatim.

    *skip* lists paths relative to *source_root* that the build writes itself.
    Modules left out by the include/exclude patterns are copied unchanged, as
    is package data.
    """
    if source_root.is_file():
        return []
    skipped = {Path(relative) for relative in skip}
    copied = []
    for path in sorted(source_root.rglob("*")):
        if not path.is_file() or "__pycache__" in path.parts:
            continue
        relative = path.relative_to(source_root)
        if relative in skipped:
            continue
        target = out_dir / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(path, target)
        copied.append(target)
    return copied


__all__ = [
    "SourceFile",
    "VALID_EXTENSIONS",
    "copy_support_files",
    "discover_source_files",
    "load_sources",
    "write_output",
]
