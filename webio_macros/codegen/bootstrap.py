"""Synthesize the synchronous bootstrap that replaces an async entry point."""

from __future__ import annotations

import ast

from jinja2 import Environment, BaseLoader, StrictUndefined

RENAMED_PREFIX = "_webio_async_"

_BOOTSTRAP_TEMPLATE = '''\
def {{ entry_name }}():
    """Synchronous bootstrap generated for async entry point ``{{ original_name }}``."""
    from webio_macros.runtime import launch as _webio_launch
    return _webio_launch({{ target }}, driver={{ driver_literal }})
'''

_MAIN_GUARD_TEMPLATE = '''\
if __name__ == "__main__":
    raise SystemExit({{ entry_name }}())
'''

_env = Environment(
    loader=BaseLoader(),
    autoescape=False,  # generating Python, not HTML
    keep_trailing_newline=True,
    undefined=StrictUndefined,
)


def renamed_entry(name: str) -> str:
    return f"{RENAMED_PREFIX}{name}"


def render_bootstrap_source(entry_name: str, original_name: str, driver: str) -> str:
    return _env.from_string(_BOOTSTRAP_TEMPLATE).render(
        entry_name=entry_name,
        original_name=original_name,
        target=renamed_entry(original_name),
        driver_literal=repr(driver),
    )


def build_bootstrap(entry_name: str, original_name: str, driver: str) -> ast.FunctionDef:
    """Return the ``def`` of the synchronous bootstrap."""
    source = render_bootstrap_source(entry_name, original_name, driver)
    (function,) = ast.parse(source).body
    return function


def build_main_guard(entry_name: str) -> ast.If:
    source = _env.from_string(_MAIN_GUARD_TEMPLATE).render(entry_name=entry_name)
    (guard,) = ast.parse(source).body
    return guard


def is_main_guard(node: ast.stmt) -> bool:
    """Recognize ``if __name__ == "__main__":`` in either operand order."""
    if not isinstance(node, ast.If) or not isinstance(node.test, ast.Compare):
        return False
    test = node.test
    if len(test.ops) != 1 or not isinstance(test.ops[0], ast.Eq):
        return False
    operands = [test.left, test.comparators[0]]
    has_name = any(isinstance(op, ast.Name) and op.id == "__name__" for op in operands)
    has_main = any(isinstance(op, ast.Constant) and op.value == "__main__" for op in operands)
    return has_name and has_main


__all__ = ["RENAMED_PREFIX", "build_bootstrap", "build_main_guard", "is_main_guard", "render_bootstrap_source", "renamed_entry"]
