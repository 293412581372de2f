"""Restricted-Python sandbox for system logic.

System logic is a block of Python statements run once per tick. Before it
ever runs it is parsed, checked against a node/name whitelist, and
instrumented with a step budget so a runaway loop faults instead of hanging
the host.

Allowed: assignment, arithmetic, comparisons, if/for/while, comprehensions,
helper ``def`` functions, calls, attribute access on non-private names,
subscripts, f-strings, ``raise``.

Rejected: imports, ``global``/``nonlocal``, ``with``, ``try``, ``lambda``,
``class``, ``async``, ``yield``, decorators, ``del`` of names, attribute
assignment, names and attributes starting with an underscore (``_`` itself
is allowed), and escape hatches such as ``eval``,
``exec``, ``open``, ``getattr`` or ``str.format``.

Usage:
    code = compile_logic("Move", logic)          # raises LogicRejectedError
    budget = StepBudget(limit=100_000)
    namespace = build_namespace(access, budget)
    exec(code, namespace)
"""

from __future__ import annotations

import ast
import copy
import math
from collections.abc import Callable, Iterable, Iterator, Sized
from types import CodeType, TracebackType
from typing import Any

from ecsforge.core.errors import LogicRejectedError, StepLimitExceeded
from ecsforge.core.types import ABSENT
from ecsforge.world.access import ScopedAccess, UndeclaredView

_STEP = "__budget_step__"
_ITER = "__budget_iter__"
_BINOP = "__budget_binop__"

# Operators whose result size grows with an operand value, e.g. [0] * n
_SIZED_OPS: dict[type[ast.operator], str] = {ast.Mult: "*", ast.Pow: "**", ast.LShift: "<<"}
_WORD_BITS = 64

ALLOWED_NODES: tuple[type[ast.AST], ...] = (
    ast.Module,
    ast.Expr,
    ast.Assign,
    ast.AugAssign,
    ast.AnnAssign,
    ast.Delete,
    ast.Pass,
    ast.If,
    ast.For,
    ast.While,
    ast.Break,
    ast.Continue,
    ast.FunctionDef,
    ast.arguments,
    ast.arg,
    ast.Return,
    ast.Raise,
    ast.Name,
    ast.Constant,
    ast.Attribute,
    ast.Subscript,
    ast.Slice,
    ast.Starred,
    ast.Call,
    ast.keyword,
    ast.BinOp,
    ast.BoolOp,
    ast.UnaryOp,
    ast.Compare,
    ast.IfExp,
    ast.List,
    ast.Tuple,
    ast.Dict,
    ast.Set,
    ast.ListComp,
    ast.SetComp,
    ast.DictComp,
    ast.GeneratorExp,
    ast.comprehension,
    ast.JoinedStr,
    ast.FormattedValue,
    ast.expr_context,
    ast.operator,
    ast.boolop,
    ast.unaryop,
    ast.cmpop,
)

FORBIDDEN_NAMES = frozenset(
    {
        "open",
        "eval",
        "exec",
        "compile",
        "globals",
        "locals",
        "vars",
        "dir",
        "getattr",
        "setattr",
        "delattr",
        "type",
        "object",
        "super",
        "input",
        "breakpoint",
        "help",
        "memoryview",
        "exit",
        "quit",
    }
)

# Frame/generator internals and str.format, which can reach attributes indirectly
FORBIDDEN_ATTRIBUTES = frozenset(
    {
        "format",
        "format_map",
        "gi_frame",
        "gi_code",
        "cr_frame",
        "ag_frame",
        "tb_frame",
        "f_globals",
        "f_locals",
        "f_back",
        "f_builtins",
    }
)

_NODE_LABELS: dict[type[ast.AST], str] = {
    ast.Import: "import",
    ast.ImportFrom: "import",
    ast.Global: "global",
    ast.Nonlocal: "nonlocal",
    ast.With: "with",
    ast.Try: "try",
    ast.Lambda: "lambda",
    ast.ClassDef: "class",
    ast.AsyncFunctionDef: "async def",
    ast.Await: "await",
    ast.Yield: "yield",
    ast.YieldFrom: "yield",
}


def _is_private(name: str) -> bool:
    # A bare "_" is the usual throwaway variable
    return name.startswith("_") and name != "_"


def filename_for(system_name: str) -> str:
    """Pseudo-filename compiled logic is attributed to in tracebacks."""
    return f"<system:{system_name}>"


class LogicValidator(ast.NodeVisitor):
    """Whitelist validator. Raises LogicRejectedError on the first violation."""

    def __init__(self, subject: str | None = None) -> None:
        self.subject = subject

    def _reject(self, node: ast.AST, reason: str) -> None:
        line = getattr(node, "lineno", None)
        where = f" (line {line})" if line is not None else ""
        raise LogicRejectedError(f"Forbidden {reason}{where}", self.subject, line)

    def visit(self, node: ast.AST) -> None:
        if not isinstance(node, ALLOWED_NODES):
            label = _NODE_LABELS.get(type(node), type(node).__name__)
            self._reject(node, f"construct: {label}")
        if isinstance(node, ast.Name):
            if _is_private(node.id) or node.id in FORBIDDEN_NAMES:
                self._reject(node, f"name: {node.id}")
        elif isinstance(node, ast.Attribute):
            if node.attr.startswith("_") or node.attr in FORBIDDEN_ATTRIBUTES:
                self._reject(node, f"attribute: {node.attr}")
            if not isinstance(node.ctx, ast.Load):
                self._reject(node, f"attribute assignment: {node.attr}")
        elif isinstance(node, ast.FunctionDef):
            if node.decorator_list:
                self._reject(node, "construct: decorator")
            if _is_private(node.name):
                self._reject(node, f"name: {node.name}")
        elif isinstance(node, ast.arg):
            if _is_private(node.arg):
                self._reject(node, f"name: {node.arg}")
        elif isinstance(node, ast.keyword):
            if node.arg is not None and node.arg.startswith("_"):
                self._reject(node, f"name: {node.arg}")
        elif isinstance(node, ast.Delete):
            for target in node.targets:
                if not isinstance(target, ast.Subscript):
                    self._reject(node, "construct: del of a name")
        super().generic_visit(node)


def parse_logic(logic: str, subject: str | None = None) -> ast.Module:
    """Parse and validate logic text.

    Args:
        logic: Restricted-Python statements.
        subject: System name for error reporting.

    Returns:
        The validated module AST.

    Raises:
        LogicRejectedError: On syntax errors or whitelist violations.
    """
    try:
        tree = ast.parse(logic, filename=filename_for(subject or "anonymous"), mode="exec")
    except SyntaxError as e:
        message = f"SyntaxError: {e.msg} (line {e.lineno})"
        raise LogicRejectedError(message, subject, e.lineno) from e
    LogicValidator(subject).visit(tree)
    return tree


def validate_logic(logic: str, subject: str | None = None) -> None:
    """Raise LogicRejectedError unless the logic would compile in the sandbox."""
    parse_logic(logic, subject)


class StepBudgetTransformer(ast.NodeTransformer):
    """Inject step accounting into loops, helper functions and size-growing operators.

    ``while`` bodies and function bodies start with a budget step; ``for``
    and comprehension iterables are wrapped in a budgeted iterator; ``*``,
    ``**`` and ``<<`` go through a checked helper that refuses results larger
    than the remaining budget. An augmented ``a[k] *= n`` becomes
    ``a[k] = helper("*", a[k], n)``, so its target is evaluated twice.
    """

    def _step(self, anchor: ast.AST) -> ast.stmt:
        call = ast.Expr(ast.Call(ast.Name(_STEP, ast.Load()), [], []))
        return ast.copy_location(call, anchor)

    def _wrap(self, iterable: ast.expr) -> ast.expr:
        call = ast.Call(ast.Name(_ITER, ast.Load()), [iterable], [])
        return ast.copy_location(call, iterable)

    def visit_While(self, node: ast.While) -> ast.While:
        self.generic_visit(node)
        node.body.insert(0, self._step(node))
        return node

    def visit_For(self, node: ast.For) -> ast.For:
        self.generic_visit(node)
        node.iter = self._wrap(node.iter)
        return node

    def visit_FunctionDef(self, node: ast.FunctionDef) -> ast.FunctionDef:
        self.generic_visit(node)
        node.body.insert(0, self._step(node))
        return node

    def visit_comprehension(self, node: ast.comprehension) -> ast.comprehension:
        self.generic_visit(node)
        node.iter = self._wrap(node.iter)
        return node

    def _checked(
        self, node: ast.AST, op: ast.operator, left: ast.expr, right: ast.expr
    ) -> ast.expr:
        symbol = ast.Constant(_SIZED_OPS[type(op)])
        call = ast.Call(ast.Name(_BINOP, ast.Load()), [symbol, left, right], [])
        return ast.copy_location(call, node)

    def visit_BinOp(self, node: ast.BinOp) -> ast.expr:
        self.generic_visit(node)
        if type(node.op) not in _SIZED_OPS:
            return node
        return self._checked(node, node.op, node.left, node.right)

    def visit_AugAssign(self, node: ast.AugAssign) -> ast.stmt:
        self.generic_visit(node)
        if type(node.op) not in _SIZED_OPS:
            return node
        current = copy.deepcopy(node.target)
        current.ctx = ast.Load()
        value = self._checked(node, node.op, current, node.value)
        return ast.copy_location(ast.Assign([node.target], value), node)


def compile_logic(system_name: str, logic: str) -> CodeType:
    """Validate, instrument and compile system logic.

    Raises:
        LogicRejectedError: If the logic fails validation.
    """
    tree = parse_logic(logic, system_name)
    tree = StepBudgetTransformer().visit(tree)
    ast.fix_missing_locations(tree)
    return compile(tree, filename_for(system_name), "exec")


class StepBudget:
    """Per-tick budget shared by every instrumented loop, call and operator in one run.

    Args:
        limit: Steps allowed before StepLimitExceeded is raised.
    """

    def __init__(self, limit: int) -> None:
        self.limit = limit
        self.steps = 0

    def charge(self, steps: int) -> None:
        """Spend several steps at once, for work done inside a single call."""
        self.steps += steps
        if self.steps > self.limit:
            raise StepLimitExceeded(f"Step limit of {self.limit} exceeded")

    def step(self) -> None:
        self.charge(1)

    def iterate(self, iterable: Iterable[Any]) -> Iterator[Any]:
        for item in iterable:
            self.step()
            yield item

    def metered(self, iterable: Iterable[Any]) -> Iterable[Any]:
        """Charge a sized iterable up front; meter anything else per item."""
        if isinstance(iterable, Sized):
            self.charge(len(iterable))
            return iterable
        return self.iterate(iterable)

    def range(self, *args: int) -> range:
        """``range`` that refuses spans larger than the whole budget."""
        r = range(*args)
        if len(r) > self.limit:
            raise StepLimitExceeded(f"range of {len(r)} exceeds step limit of {self.limit}")
        return r

    def _repeat(self, seq: Any, times: Any) -> None:
        if isinstance(seq, str | bytes | list | tuple) and isinstance(times, int) and times > 1:
            self.charge(len(seq) * times)

    def binop(self, op: str, left: Any, right: Any) -> Any:
        """Evaluate ``*``, ``**`` or ``<<``, charging for the size of the result first.

        Sequence repetition costs one step per resulting item; big integers
        cost one step per machine word.
        """
        if op == "*":
            self._repeat(left, right)
            self._repeat(right, left)
            return left * right
        if op == "**":
            if isinstance(left, int) and isinstance(right, int) and right > 0 and abs(left) > 1:
                self.charge(right * left.bit_length() // _WORD_BITS)
            return left**right
        if op == "<<":
            if isinstance(left, int) and isinstance(right, int) and right > 0:
                self.charge(right // _WORD_BITS)
            return left << right
        raise ValueError(f"Unbudgeted operator {op}")


SAFE_BUILTINS: dict[str, Any] = {
    "abs": abs,
    "all": all,
    "any": any,
    "bool": bool,
    "dict": dict,
    "divmod": divmod,
    "enumerate": enumerate,
    "filter": filter,
    "float": float,
    "frozenset": frozenset,
    "int": int,
    "isinstance": isinstance,
    "len": len,
    "list": list,
    "map": map,
    "max": max,
    "min": min,
    "pow": pow,
    "reversed": reversed,
    "round": round,
    "sorted": sorted,
    "str": str,
    "sum": sum,
    "tuple": tuple,
    "zip": zip,
    "Exception": Exception,
    "ValueError": ValueError,
    "KeyError": KeyError,
    "RuntimeError": RuntimeError,
    "ZeroDivisionError": ZeroDivisionError,
}

def metered_builtins(budget: StepBudget) -> dict[str, Any]:
    """SAFE_BUILTINS plus versions of the iterating builtins that spend ``budget``.

    Lazy consumers (``map``, ``filter``, ``zip``, ``enumerate``, ``any``,
    ``all``) are charged per item drawn; eager ones (``sum``, ``sorted``,
    ``min``/``max`` over one iterable, ``reversed``) are charged for the
    whole input before they run. Type builtins such as ``list`` stay real
    types so ``isinstance`` keeps working.
    """
    lazy = budget.iterate
    eager = budget.metered

    def _sum(iterable: Iterable[Any], /, start: Any = 0) -> Any:
        return sum(eager(iterable), start)

    def _sorted(iterable: Iterable[Any], /, **kwargs: Any) -> list[Any]:
        return sorted(eager(iterable), **kwargs)

    def _extreme(fn: Callable[..., Any]) -> Callable[..., Any]:
        def call(*args: Any, **kwargs: Any) -> Any:
            if len(args) == 1:
                return fn(eager(args[0]), **kwargs)
            return fn(*args, **kwargs)

        return call

    def _reversed(seq: Any, /) -> Iterator[Any]:
        budget.charge(len(seq))
        return reversed(seq)

    def _map(func: Callable[..., Any], /, *iterables: Iterable[Any]) -> Iterator[Any]:
        return map(func, *(lazy(it) for it in iterables))

    def _filter(func: Callable[[Any], Any] | None, iterable: Iterable[Any], /) -> Iterator[Any]:
        return filter(func, lazy(iterable))

    def _zip(*iterables: Iterable[Any], strict: bool = False) -> Iterator[tuple[Any, ...]]:
        return zip(*(lazy(it) for it in iterables), strict=strict)

    def _enumerate(iterable: Iterable[Any], start: int = 0) -> Iterator[tuple[int, Any]]:
        return enumerate(lazy(iterable), start)

    def _any(iterable: Iterable[Any], /) -> bool:
        return any(lazy(iterable))

    def _all(iterable: Iterable[Any], /) -> bool:
        return all(lazy(iterable))

    def _pow(base: Any, exp: Any, mod: Any = None) -> Any:
        if mod is None:
            return budget.binop("**", base, exp)
        return pow(base, exp, mod)

    return {
        **SAFE_BUILTINS,
        "sum": _sum,
        "sorted": _sorted,
        "min": _extreme(min),
        "max": _extreme(max),
        "reversed": _reversed,
        "map": _map,
        "filter": _filter,
        "zip": _zip,
        "enumerate": _enumerate,
        "any": _any,
        "all": _all,
        "pow": _pow,
        "range": budget.range,
    }


PRIMITIVE_NAMES = (
    "world",
    "entities",
    "query",
    "has_component",
    "get",
    "set",
    "spawn",
    "destroy",
    "exists",
    "attach",
    "detach",
    "entity",
    "relate",
    "unrelate",
    "targets",
    "sources",
    "log",
)


class EntitySelection:
    """Restartable iterable over the entities holding a system's components.

    Each iteration runs a fresh query, so ``for e in entities`` works any
    number of times within one tick.
    """

    __slots__ = ("_access",)

    def __init__(self, access: ScopedAccess) -> None:
        self._access = access

    def __iter__(self) -> Iterator[Any]:
        return self._access.entities()

    def __len__(self) -> int:
        return sum(1 for _ in self._access.entities())

    def __bool__(self) -> bool:
        return next(iter(self), None) is not None

    def __repr__(self) -> str:
        return f"<entities of {self._access.system_name}>"


def build_namespace(access: ScopedAccess, budget: StepBudget) -> dict[str, Any]:
    """Globals for one tick of a system.

    Declared component views are bound last, so a component name shadows a
    primitive of the same name. Undeclared registered components get a
    stand-in that raises AccessViolationError on use, unless the name is
    already taken.
    """
    builtins = metered_builtins(budget)
    primitives: dict[str, Callable[..., Any] | Any] = {
        "world": access,
        "entities": EntitySelection(access),
        "query": access.query,
        "has_component": access.has_component,
        "get": access.get,
        "set": access.set,
        "spawn": access.spawn,
        "destroy": access.destroy,
        "exists": access.exists,
        "attach": access.attach,
        "detach": access.detach,
        "entity": access.entity,
        "relate": access.relate,
        "unrelate": access.unrelate,
        "targets": access.targets,
        "sources": access.sources,
        "log": access.log,
        "math": math,
        "ABSENT": ABSENT,
    }
    namespace: dict[str, Any] = {
        "__builtins__": builtins,
        _STEP: budget.step,
        _ITER: budget.iterate,
        _BINOP: budget.binop,
    }
    namespace.update(primitives)
    for name in access.undeclared_components():
        namespace.setdefault(name, UndeclaredView(access, name))
    for name in sorted(access.declared):
        namespace[name] = access.view(name)
    return namespace


def fault_line(tb: TracebackType | None, system_name: str) -> int | None:
    """Innermost traceback line that belongs to the system's logic."""
    filename = filename_for(system_name)
    line: int | None = None
    while tb is not None:
        if tb.tb_frame.f_code.co_filename == filename:
            line = tb.tb_lineno
        tb = tb.tb_next
    return line


def excerpt(logic: str, line: int | None, context: int = 0) -> str | None:
    """Logic lines around ``line`` (1-based), or None if out of range."""
    if line is None:
        return None
    lines = logic.splitlines()
    if not 1 <= line <= len(lines):
        return None
    start = max(0, line - 1 - context)
    return "\n".join(lines[start : line + context])
