"""
AST rewriting for template invocations and the ``@webio_main`` entry point.

Template calls with a string literal as content are expanded at build time:
to a plain string when every argument is a constant, otherwise to an f-string
whose replacement fields are the argument expressions. Each argument is
evaluated once, in keyword order, as in a call; an f-string that would
evaluate differently is wrapped in a lambda binding the arguments. Calls that
cannot be expanded (non-literal content, ``*args``/``**kwargs``) are left for
the runtime functions, which have identical semantics.
"""

from __future__ import annotations

import ast
import copy
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Union

from webio_macros.codegen.bootstrap import build_bootstrap, build_main_guard, is_main_guard, renamed_entry
from webio_macros.config import MacroSettings
from webio_macros.entrypoint import (
    ALLOWED_RETURN_ANNOTATIONS,
    ENTRY_DECORATOR,
    EntryPointDeclaration,
    EntryPointRegistry,
)
from webio_macros.errors import (
    ErrorLocation,
    MacroError,
    MalformedEntrySignatureError,
    SourceSyntaxError,
    UnknownPlaceholderError,
)
from webio_macros.templating.engine import (
    TemplateInvocation,
    iter_segments,
    resolve_arguments,
    unused_arguments,
)
from webio_macros.templating.raw import normalize_literal
from webio_macros.templating.scanner import scan

logger = logging.getLogger(__name__)

PACKAGE = "webio_macros"
TEMPLATE_MODULES = frozenset({PACKAGE, f"{PACKAGE}.templating", f"{PACKAGE}.templating.engine"})
ENTRY_MODULES = frozenset({PACKAGE, f"{PACKAGE}.entrypoint"})
BUILTIN_INVOCATIONS = ("replace", "html")

FunctionNode = Union[ast.FunctionDef, ast.AsyncFunctionDef]


@dataclass
class RewriteResult:
    tree: ast.Module
    changed: bool = False
    folded: int = 0
    entry_points: List[EntryPointDeclaration] = field(default_factory=list)


class _ImportTracker(ast.NodeVisitor):
    """Collects the module-level names bound to webio_macros objects.

    Imports inside functions and classes bind local names only; calls through
    them are left to the runtime functions.
    """

    def __init__(self) -> None:
        self.template_names: Dict[str, str] = {}
        self.entry_names: Set[str] = set()
        self.module_aliases: Dict[str, str] = {}

    def visit_FunctionDef(self, node: ast.FunctionDef) -> None:
        pass

    visit_AsyncFunctionDef = visit_FunctionDef
    visit_ClassDef = visit_FunctionDef

    def visit_Import(self, node: ast.Import) -> None:
        for alias in node.names:
            if alias.name.split(".")[0] != PACKAGE:
                continue
            if alias.asname:
                self.module_aliases[alias.asname] = alias.name
            else:
                self.module_aliases[PACKAGE] = PACKAGE

    def visit_ImportFrom(self, node: ast.ImportFrom) -> None:
        module = node.module or ""
        if node.level or module.split(".")[0] != PACKAGE:
            return
        for alias in node.names:
            local = alias.asname or alias.name
            if module in TEMPLATE_MODULES and alias.name in BUILTIN_INVOCATIONS:
                self.template_names[local] = alias.name
            elif module in ENTRY_MODULES and alias.name == ENTRY_DECORATOR:
                self.entry_names.add(local)
            else:
                self.module_aliases[local] = f"{module}.{alias.name}"

    def dotted(self, node: ast.expr) -> Optional[str]:
        """Resolve ``alias.attr.attr`` to its full webio_macros dotted path."""
        parts: List[str] = []
        while isinstance(node, ast.Attribute):
            parts.append(node.attr)
            node = node.value
        if not isinstance(node, ast.Name) or node.id not in self.module_aliases:
            return None
        parts.append(self.module_aliases[node.id])
        return ".".join(reversed(parts))


class ModuleRewriter(ast.NodeTransformer):
    """Rewrites one module; entry points are registered in a registry shared by the program."""

    def __init__(
        self,
        source: str,
        *,
        path: Optional[str] = None,
        module_name: str = "__main__",
        settings: Optional[MacroSettings] = None,
        registry: Optional[EntryPointRegistry] = None,
    ) -> None:
        self.source = source
        self.path = path
        self.module_name = module_name
        self.settings = settings or MacroSettings()
        self.registry = registry if registry is not None else EntryPointRegistry()
        self.imports = _ImportTracker()
        self.result: Optional[RewriteResult] = None

    # -- helpers -----------------------------------------------------------

    def _location(self, node: ast.AST) -> ErrorLocation:
        col_offset = getattr(node, "col_offset", None)
        return ErrorLocation(
            path=self.path,
            line=getattr(node, "lineno", None),
            column=col_offset + 1 if col_offset is not None else None,
        )

    def _fail(self, exc: MacroError, node: ast.AST) -> MacroError:
        location = self._location(node)
        return exc.relocate(path=location.path, line=location.line, column=location.column)

    def _invocation_name(self, func: ast.expr) -> Optional[str]:
        if isinstance(func, ast.Name):
            if func.id in self.imports.template_names:
                return self.imports.template_names[func.id]
            if func.id in self.settings.aliases:
                return func.id
            return None
        dotted = self.imports.dotted(func)
        if dotted is None:
            return None
        module, _, name = dotted.rpartition(".")
        if module in TEMPLATE_MODULES and name in BUILTIN_INVOCATIONS:
            return name
        return None

    def _is_entry_decorator(self, node: ast.expr) -> bool:
        if isinstance(node, ast.Call):
            node = node.func
        if isinstance(node, ast.Name):
            return node.id in self.imports.entry_names
        dotted = self.imports.dotted(node)
        if dotted is None:
            return False
        module, _, name = dotted.rpartition(".")
        return module in ENTRY_MODULES and name == ENTRY_DECORATOR

    def _entry_decorator(self, node: ast.stmt) -> Optional[ast.expr]:
        if not isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            return None
        for decorator in node.decorator_list:
            if self._is_entry_decorator(decorator):
                return decorator
        return None

    # -- templates ---------------------------------------------------------

    def _literal_content(self, node: ast.Constant) -> str:
        segment = ast.get_source_segment(self.source, node)
        if segment is None:
            return node.value
        return normalize_literal(segment)

    def visit_Call(self, node: ast.Call) -> ast.AST:
        self.generic_visit(node)
        invocation_name = self._invocation_name(node.func)
        if invocation_name is None:
            return node
        if (
            len(node.args) != 1
            or not isinstance(node.args[0], ast.Constant)
            or not isinstance(node.args[0].value, str)
            or any(keyword.arg is None for keyword in node.keywords)
        ):
            logger.debug("Leaving %s() at line %s for runtime expansion", invocation_name, node.lineno)
            return node

        try:
            content = self._literal_content(node.args[0])
            invocation = TemplateInvocation(
                content=content,
                arguments=tuple((keyword.arg, keyword.value) for keyword in node.keywords),
                invocation=invocation_name,
                location=self._location(node),
                tokens=scan(content),
            )
        except MacroError as exc:
            raise self._fail(exc, node.args[0]) from None

        expanded = self._expand(invocation, node)
        self.result.folded += 1
        self.result.changed = True
        logger.debug("Expanded %s() at %s", invocation_name, invocation.location.describe())
        return ast.copy_location(expanded, node)

    def _expand(self, invocation: TemplateInvocation, node: ast.Call) -> ast.expr:
        table = resolve_arguments(invocation.arguments)
        for token in invocation.tokens:
            if token.name not in table:
                raise self._fail(UnknownPlaceholderError(token.name), node)
        if self.settings.warn_unused_arguments:
            for name in unused_arguments(invocation.content, invocation.arguments):
                logger.warning(
                    "Argument '%s' of %s() is not used by any placeholder (%s)",
                    name,
                    invocation.invocation,
                    invocation.location.describe(),
                )

        # Arguments whose value is only known at runtime, in keyword order.
        dynamic = [
            name
            for name, value in invocation.arguments
            if not (self.settings.fold_constants and isinstance(value, ast.Constant))
        ]
        if not dynamic:
            return self._joined(invocation.content, table, dynamic, inline=True)

        # A plain f-string evaluates its fields in placeholder order, once per
        # occurrence; that matches the call only when each runtime argument
        # is used exactly once, in keyword order.
        referenced = [token.name for token in invocation.tokens if token.name in dynamic]
        if referenced == dynamic:
            return self._joined(invocation.content, table, dynamic, inline=True)

        # Otherwise bind the arguments once, left to right:
        # (lambda a, b: f'{b!s}{a!s}{a!s}')(expr_a, expr_b)
        parameters = ast.arguments(
            posonlyargs=[],
            args=[ast.arg(arg=name, annotation=None, type_comment=None) for name in dynamic],
            vararg=None,
            kwonlyargs=[],
            kw_defaults=[],
            kwarg=None,
            defaults=[],
        )
        body = self._joined(invocation.content, table, dynamic, inline=False)
        return ast.Call(
            func=ast.Lambda(args=parameters, body=body),
            args=[table[name] for name in dynamic],
            keywords=[],
        )

    def _joined(self, content: str, table: Dict[str, ast.expr], dynamic: List[str], *, inline: bool) -> ast.expr:
        """Build the text of *content*; placeholders of *dynamic* arguments become fields.

        With *inline* the fields hold the argument expressions themselves,
        otherwise a reference to the lambda parameter of the same name.
        """
        values: List[ast.expr] = []
        text: List[str] = []
        for segment in iter_segments(content):
            if isinstance(segment, str):
                text.append(segment)
                continue
            if segment.name not in dynamic:
                text.append(str(table[segment.name].value))
                continue
            if text:
                values.append(ast.Constant(value="".join(text)))
                text = []
            if inline:
                field_value = copy.deepcopy(table[segment.name])
            else:
                field_value = ast.Name(id=segment.name, ctx=ast.Load())
            values.append(ast.FormattedValue(value=field_value, conversion=ord("s"), format_spec=None))
        if not values:
            return ast.Constant(value="".join(text))
        if text:
            values.append(ast.Constant(value="".join(text)))
        return ast.JoinedStr(values=values)

    # -- entry point ---------------------------------------------------------

    def _validate_entry(self, node: FunctionNode, decorator: ast.expr, module: ast.Module) -> None:
        name = node.name
        if isinstance(decorator, ast.Call):
            raise self._fail(MalformedEntrySignatureError(f"@{ENTRY_DECORATOR} takes no options"), decorator)
        if not isinstance(node, ast.AsyncFunctionDef):
            raise self._fail(
                MalformedEntrySignatureError(
                    f"@{ENTRY_DECORATOR} requires an async function, '{name}' is synchronous",
                    hint="Declare the entry point with 'async def'.",
                ),
                node,
            )
        args = node.args
        if args.posonlyargs or args.args or args.vararg or args.kwonlyargs or args.kwarg:
            raise self._fail(
                MalformedEntrySignatureError(f"@{ENTRY_DECORATOR} function '{name}' must not take parameters"),
                node,
            )
        returns = node.returns
        if returns is not None:
            if isinstance(returns, ast.Name):
                annotation = returns.id
            elif isinstance(returns, ast.Constant):
                annotation = "None" if returns.value is None else returns.value
            else:
                annotation = None
            if annotation not in ALLOWED_RETURN_ANNOTATIONS:
                raise self._fail(
                    MalformedEntrySignatureError(f"@{ENTRY_DECORATOR} function '{name}' must return None or int"),
                    returns,
                )
        entry_name = self.settings.entry_name
        for other in module.body:
            # Other annotated functions are reported as duplicates instead.
            if other is node or self._entry_decorator(other) is not None:
                continue
            if _binds_name(other, entry_name):
                raise self._fail(
                    MalformedEntrySignatureError(
                        f"Cannot synthesize '{entry_name}' for entry point '{name}': "
                        f"the module already defines '{entry_name}'",
                        hint="Rename the existing definition or set 'entry_name' in the configuration.",
                    ),
                    other,
                )

    def _reject_nested_entries(self, module: ast.Module) -> None:
        top_level = {id(stmt) for stmt in module.body}
        for node in ast.walk(module):
            if id(node) in top_level:
                continue
            decorator = self._entry_decorator(node)
            if decorator is not None:
                raise self._fail(
                    MalformedEntrySignatureError(
                        f"@{ENTRY_DECORATOR} function '{node.name}' must be declared at module level"
                    ),
                    node,
                )

    def _rewrite_entry(self, node: FunctionNode, decorator: ast.expr, module: ast.Module) -> List[ast.stmt]:
        self._validate_entry(node, decorator, module)
        declaration = EntryPointDeclaration(
            name=node.name,
            qualified_name=f"{self.module_name}.{node.name}",
            location=self._location(node),
        )
        self.registry.register(declaration)
        self.result.entry_points.append(declaration)

        original_name = node.name
        node.decorator_list = [item for item in node.decorator_list if item is not decorator]
        node.name = renamed_entry(original_name)
        bootstrap = build_bootstrap(self.settings.entry_name, original_name, self.settings.driver)
        ast.copy_location(bootstrap, node)
        logger.debug("Rewrote entry point %s into %s()", declaration.qualified_name, self.settings.entry_name)
        return [node, bootstrap]

    def visit_Module(self, node: ast.Module) -> ast.AST:
        self.imports.visit(node)
        self.result = RewriteResult(tree=node)
        self._reject_nested_entries(node)
        self.generic_visit(node)

        body: List[ast.stmt] = []
        rewritten = False
        for stmt in node.body:
            decorator = self._entry_decorator(stmt)
            if decorator is None:
                body.append(stmt)
                continue
            body.extend(self._rewrite_entry(stmt, decorator, node))
            rewritten = True
        if rewritten:
            if self.settings.main_guard and not any(is_main_guard(stmt) for stmt in body):
                body.append(build_main_guard(self.settings.entry_name))
            node.body = body
            self.result.changed = True
        return node

    def rewrite(self, tree: ast.Module) -> RewriteResult:
        self.visit(tree)
        ast.fix_missing_locations(tree)
        return self.result


def _binds_name(stmt: ast.stmt, name: str) -> bool:
    if isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
        return stmt.name == name
    if isinstance(stmt, ast.Assign):
        return any(isinstance(target, ast.Name) and target.id == name for target in stmt.targets)
    if isinstance(stmt, ast.AnnAssign):
        return isinstance(stmt.target, ast.Name) and stmt.target.id == name
    if isinstance(stmt, (ast.Import, ast.ImportFrom)):
        return any((alias.asname or alias.name.split(".")[0]) == name for alias in stmt.names)
    return False


def rewrite_module(
    source: str,
    *,
    path: Optional[str] = None,
    module_name: str = "__main__",
    settings: Optional[MacroSettings] = None,
    registry: Optional[EntryPointRegistry] = None,
) -> RewriteResult:
    """
    Parse *source* and apply both transformations.

    Raises:
        MacroError: Any build-time diagnostic, located in *path*.
    """
    try:
        tree = ast.parse(source, filename=path or "<source>")
    except SyntaxError as exc:
        raise SourceSyntaxError(
            f"Invalid Python source: {exc.msg}",
            path=path,
            line=exc.lineno,
            column=exc.offset,
        ) from exc
    rewriter = ModuleRewriter(source, path=path, module_name=module_name, settings=settings, registry=registry)
    return rewriter.rewrite(tree)


__all__ = ["ModuleRewriter", "RewriteResult", "rewrite_module"]
