"""Static analysis of system logic for common synthesis mistakes.

Every finding is advisory: logic that triggers a warning may still run
correctly, and logic that passes may still fault.
"""

from __future__ import annotations

import ast
from collections.abc import Iterable

from ecsforge.core.errors import LogicRejectedError
from ecsforge.execution.sandbox import PRIMITIVE_NAMES, SAFE_BUILTINS, parse_logic

# Primitives whose second positional argument names a component
_COMPONENT_ARG_CALLS = frozenset({"get", "set", "has_component", "attach", "detach"})
_GUARD_CALLS = frozenset({"has_component", "exists"})
_KNOWN_CALLABLES = frozenset(PRIMITIVE_NAMES) | frozenset(SAFE_BUILTINS) | {"range"}


class _LogicScanner(ast.NodeVisitor):
    def __init__(self, declared: frozenset[str], registered: frozenset[str]) -> None:
        self.declared = declared
        self.registered = registered
        self.defined: set[str] = set()
        self.warnings: list[str] = []
        self._guard_depth = 0

    def _warn(self, node: ast.AST, message: str) -> None:
        warning = f"{message} (line {getattr(node, 'lineno', '?')})"
        if warning not in self.warnings:
            self.warnings.append(warning)

    def _component_ref(self, node: ast.AST, name: str) -> None:
        if name in self.declared:
            return
        if name in self.registered:
            self._warn(node, f"References undeclared component {name}")
        else:
            self._warn(node, f"References unknown component {name}")

    def _is_guard_iter(self, node: ast.expr) -> bool:
        if isinstance(node, ast.Name):
            return node.id == "entities" or node.id in self.declared
        if isinstance(node, ast.Call) and isinstance(node.func, ast.Name):
            return node.func.id in {"query", "world"}
        if isinstance(node, ast.Call) and isinstance(node.func, ast.Attribute):
            return node.func.attr in {"query", "entities"}
        return False

    def _is_guard_test(self, node: ast.expr) -> bool:
        for sub in ast.walk(node):
            if isinstance(sub, ast.Call):
                func = sub.func
                name = func.id if isinstance(func, ast.Name) else getattr(func, "attr", None)
                if name in _GUARD_CALLS:
                    return True
            if isinstance(sub, ast.Compare) and any(isinstance(op, ast.In) for op in sub.ops):
                return True
        return False

    def _visit_guarded(self, guarded: bool, body: Iterable[ast.stmt]) -> None:
        if guarded:
            self._guard_depth += 1
        for stmt in body:
            self.visit(stmt)
        if guarded:
            self._guard_depth -= 1

    def visit_For(self, node: ast.For) -> None:
        self.visit(node.target)
        self.visit(node.iter)
        self._visit_guarded(self._is_guard_iter(node.iter), node.body)
        for stmt in node.orelse:
            self.visit(stmt)

    def visit_If(self, node: ast.If) -> None:
        self.visit(node.test)
        self._visit_guarded(self._is_guard_test(node.test), node.body)
        for stmt in node.orelse:
            self.visit(stmt)

    def visit_Subscript(self, node: ast.Subscript) -> None:
        target = node.value
        if (
            isinstance(node.ctx, ast.Store)
            and isinstance(target, ast.Attribute)
            and isinstance(target.value, ast.Name)
            and target.value.id in self.declared
            and self._guard_depth == 0
        ):
            self._warn(
                node,
                f"Writes {target.value.id}.{target.attr} without checking the entity "
                f"holds {target.value.id}",
            )
        self.generic_visit(node)

    def visit_Attribute(self, node: ast.Attribute) -> None:
        # Capitalized bare names used as column namespaces, e.g. Velocity.dx
        if (
            isinstance(node.value, ast.Name)
            and node.value.id[:1].isupper()
            and node.value.id not in self.defined
            and node.value.id != "ABSENT"
        ):
            self._component_ref(node, node.value.id)
        self.generic_visit(node)

    def visit_Call(self, node: ast.Call) -> None:
        func = node.func
        if isinstance(func, ast.Name):
            if func.id in _COMPONENT_ARG_CALLS and len(node.args) >= 2:
                self._check_constant_component(node.args[1])
            elif func.id == "query":
                for arg in node.args:
                    self._check_constant_component(arg)
            elif func.id not in _KNOWN_CALLABLES and func.id not in self.defined:
                if func.id not in self.declared and func.id not in self.registered:
                    self._warn(node, f"Calls undefined helper {func.id}")
        self.generic_visit(node)

    def _check_constant_component(self, node: ast.expr) -> None:
        if isinstance(node, ast.Constant) and isinstance(node.value, str):
            self._component_ref(node, node.value)


def _defined_names(tree: ast.Module) -> set[str]:
    """Functions and variables bound anywhere in the logic."""
    names: set[str] = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.FunctionDef):
            names.add(node.name)
            names.update(a.arg for a in node.args.args + node.args.kwonlyargs)
        elif isinstance(node, ast.Name) and isinstance(node.ctx, ast.Store):
            names.add(node.id)
    return names


def analyze_logic(
    logic: str,
    declared: Iterable[str],
    registered: Iterable[str] = (),
    subject: str | None = None,
) -> list[str]:
    """Advisory warnings for one system's logic.

    Args:
        logic: Logic text.
        declared: The system's required components.
        registered: All component names currently in the registry.
        subject: System name for error messages.

    Returns:
        Warning strings in source order, de-duplicated. Logic the sandbox
        would reject yields a single warning describing why.
    """
    try:
        tree = parse_logic(logic, subject)
    except LogicRejectedError as e:
        return [f"Logic rejected by sandbox: {e.message}"]

    scanner = _LogicScanner(frozenset(declared), frozenset(registered))
    scanner.defined = _defined_names(tree)
    scanner.visit(tree)
    return scanner.warnings
