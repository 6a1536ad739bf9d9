"""Workspace configuration support for webio-macros."""

from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from webio_macros.errors import ConfigError

CONFIG_CANDIDATES = ("webio.toml", "pyproject.toml", ".webiorc")
PYPROJECT_TABLE = "webio-macros"


@dataclass
class MacroSettings:
    """Options of the pre-build pass."""

    entry_name: str = "main"
    driver: str = "asyncio"
    aliases: List[str] = field(default_factory=list)
    main_guard: bool = True
    fold_constants: bool = True
    warn_unused_arguments: bool = False

    def invocation_names(self) -> List[str]:
        names = ["replace", "html"]
        for alias in self.aliases:
            if alias not in names:
                names.append(alias)
        return names


@dataclass
class WorkspaceConfig:
    """Resolved workspace configuration."""

    root: Path
    source: Path
    out: Path
    include: List[str] = field(default_factory=lambda: ["**/*.py"])
    exclude: List[str] = field(default_factory=list)
    settings: MacroSettings = field(default_factory=MacroSettings)
    config_path: Optional[Path] = None
    raw: Dict[str, Any] = field(default_factory=dict)


def _read_json_config(path: Path) -> Dict[str, Any]:
    content = path.read_text(encoding="utf-8")
    try:
        return json.loads(content)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON configuration: {exc.msg}", path=str(path), line=exc.lineno) from exc


def _read_toml_config(path: Path) -> Dict[str, Any]:
    with path.open("rb") as handle:
        try:
            data = tomllib.load(handle)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Invalid TOML configuration: {exc}", path=str(path)) from exc
    if path.name == "pyproject.toml":
        return data.get("tool", {}).get(PYPROJECT_TABLE, {})
    return data


def _string_list(data: Dict[str, Any], key: str, default: List[str], path: Path) -> List[str]:
    value = data.get(key)
    if value is None:
        return list(default)
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)) and all(isinstance(item, str) for item in value):
        return list(value)
    raise ConfigError(f"'{key}' must be a string or a list of strings", path=str(path))


def _identifier(data: Dict[str, Any], key: str, default: str, path: Path) -> str:
    value = data.get(key, default)
    if not isinstance(value, str) or not value.isidentifier():
        raise ConfigError(f"'{key}' must be a Python identifier, got {value!r}", path=str(path))
    return value


def _flag(data: Dict[str, Any], key: str, default: bool, path: Path) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"'{key}' must be true or false", path=str(path))
    return value


def _parse_settings(data: Dict[str, Any], path: Path) -> MacroSettings:
    defaults = MacroSettings()
    aliases = _string_list(data, "aliases", defaults.aliases, path)
    for alias in aliases:
        if not alias.isidentifier():
            raise ConfigError(f"Alias {alias!r} is not a Python identifier", path=str(path))
    driver = data.get("driver", defaults.driver)
    if not isinstance(driver, str) or not driver:
        raise ConfigError("'driver' must be a non-empty string", path=str(path))
    return MacroSettings(
        entry_name=_identifier(data, "entry_name", defaults.entry_name, path),
        driver=driver,
        aliases=aliases,
        main_guard=_flag(data, "main_guard", defaults.main_guard, path),
        fold_constants=_flag(data, "fold_constants", defaults.fold_constants, path),
        warn_unused_arguments=_flag(data, "warn_unused_arguments", defaults.warn_unused_arguments, path),
    )


def _resolve_dir(root: Path, raw: Any, default: str, key: str, path: Path) -> Path:
    if raw is None:
        raw = default
    if not isinstance(raw, str):
        raise ConfigError(f"'{key}' must be a path string", path=str(path))
    resolved = Path(raw)
    if not resolved.is_absolute():
        resolved = (root / resolved).resolve()
    return resolved


def locate_config_file(root: Path, explicit: Optional[Path] = None) -> Optional[Path]:
    if explicit is not None:
        return explicit if explicit.exists() else None
    for candidate in CONFIG_CANDIDATES:
        path = root / candidate
        if not path.exists():
            continue
        if candidate == "pyproject.toml" and not _read_toml_config(path):
            continue
        return path
    return None


def load_workspace_config(root: Path, explicit: Optional[Path] = None) -> WorkspaceConfig:
    """
    Load the configuration of the workspace rooted at *root*.

    Looks for ``webio.toml``, a ``[tool.webio-macros]`` table in
    ``pyproject.toml`` and a JSON ``.webiorc``, in that order. Without any of
    them the defaults apply.

    Raises:
        ConfigError: If an explicit file is missing or any value is invalid.
    """
    root = root.resolve()
    config_path = locate_config_file(root, explicit)
    if config_path is None:
        if explicit is not None:
            raise ConfigError(f"Configuration file not found: {explicit}")
        return WorkspaceConfig(root=root, source=root / "src", out=root / "build")

    if config_path.suffix == ".toml":
        data = _read_toml_config(config_path)
    else:
        data = _read_json_config(config_path)
    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a table of settings", path=str(config_path))

    return WorkspaceConfig(
        root=root,
        source=_resolve_dir(root, data.get("source"), "src", "source", config_path),
        out=_resolve_dir(root, data.get("out"), "build", "out", config_path),
        include=_string_list(data, "include", ["**/*.py"], config_path),
        exclude=_string_list(data, "exclude", [], config_path),
        settings=_parse_settings(data, config_path),
        config_path=config_path,
        raw=data,
    )


__all__ = [
    "CONFIG_CANDIDATES",
    "MacroSettings",
    "WorkspaceConfig",
    "load_workspace_config",
    "locate_config_file",
]
