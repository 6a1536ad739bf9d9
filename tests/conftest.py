import logging
import textwrap
from pathlib import Path

import pytest

from webio_macros.entrypoint import get_process_registry


def pytest_configure(config):
    """Register markers for pytest."""
    config.addinivalue_line("markers", "integration: mark test as integration test")


@pytest.fixture(autouse=True)
def clean_process_registry():
    """Each test starts without a registered runtime entry point."""
    registry = get_process_registry()
    registry.clear()
    yield registry
    registry.clear()


@pytest.fixture(autouse=True)
def restore_package_logger():
    """Undo the CLI's logging configuration so caplog keeps working."""
    package_logger = logging.getLogger("webio_macros")
    handlers = list(package_logger.handlers)
    level = package_logger.level
    propagate = package_logger.propagate
    yield
    package_logger.handlers[:] = handlers
    package_logger.setLevel(level)
    package_logger.propagate = propagate


@pytest.fixture
def write_tree(tmp_path):
    """Write ``{relative path: source}`` under tmp_path/src and return that directory."""

    def _write(files, root: str = "src") -> Path:
        base = tmp_path / root
        for relative, text in files.items():
            target = base / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(textwrap.dedent(text), encoding="utf-8")
        return base

    return _write
