"""Execution context for template expressions.

Expressions are written in a small Python-like expression language: literals,
names, attribute and index access, arithmetic, comparisons, boolean logic,
conditional expressions and calls to a fixed set of builtins and methods.
"""

from __future__ import annotations

import ast
import operator
import threading
from typing import Any, Callable, Mapping

from leapsql.template_globals import predeclared
from leapsql.values import Struct, TargetInfo, ThisInfo, format_value

_BUILTIN_NAMES = frozenset({"config", "env", "target", "this"})


def _to_str(value: Any = "") -> str:
    if isinstance(value, str):
        return value
    return format_value(value)


_FUNCTIONS: dict[str, Callable[..., Any]] = {
    "str": _to_str,
    "repr": format_value,
    "len": len,
    "int": int,
    "float": float,
    "bool": bool,
    "list": list,
    "dict": dict,
    "tuple": tuple,
    "min": min,
    "max": max,
    "sorted": sorted,
    "range": lambda *args: list(range(*args)),
    "abs": abs,
}

_BINARY = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.BitAnd: operator.and_,
    ast.BitOr: operator.or_,
    ast.BitXor: operator.xor,
    ast.LShift: operator.lshift,
    ast.RShift: operator.rshift,
}

_UNARY = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
    ast.Not: operator.not_,
    ast.Invert: operator.invert,
}

_COMPARE = {
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
    ast.In: lambda a, b: a in b,
    ast.NotIn: lambda a, b: a not in b,
}


def evaluate(expr: str, globals: Mapping[str, Any], filename: str = "<expr>") -> Any:
    """Evaluate one expression against ``globals`` and return its value.

    Raises SyntaxError for malformed expressions, NameError for undefined
    names and the usual errors for failing operations.
    """
    tree = ast.parse(expr.strip(), filename=filename, mode="eval")
    return _Evaluator(globals).visit(tree.body)


class _Evaluator:
    def __init__(self, names: Mapping[str, Any]) -> None:
        self.names = names

    def visit(self, node: ast.AST) -> Any:
        method = getattr(self, "_" + type(node).__name__, None)
        if method is None:
            raise SyntaxError(f"unsupported expression: {type(node).__name__}")
        return method(node)

    def _Constant(self, node: ast.Constant) -> Any:
        return node.value

    def _Name(self, node: ast.Name) -> Any:
        if node.id in self.names:
            return self.names[node.id]
        if node.id in _FUNCTIONS:
            return _FUNCTIONS[node.id]
        raise NameError(f"undefined: {node.id}")

    def _List(self, node: ast.List) -> Any:
        return [self.visit(item) for item in node.elts]

    def _Tuple(self, node: ast.Tuple) -> Any:
        return tuple(self.visit(item) for item in node.elts)

    def _Dict(self, node: ast.Dict) -> Any:
        result = {}
        for key, value in zip(node.keys, node.values):
            if key is None:
                raise SyntaxError("unsupported expression: dict unpacking")
            result[self.visit(key)] = self.visit(value)
        return result

    def _BinOp(self, node: ast.BinOp) -> Any:
        func = _BINARY.get(type(node.op))
        if func is None:
            raise SyntaxError(f"unsupported operator: {type(node.op).__name__}")
        return func(self.visit(node.left), self.visit(node.right))

    def _UnaryOp(self, node: ast.UnaryOp) -> Any:
        return _UNARY[type(node.op)](self.visit(node.operand))

    def _BoolOp(self, node: ast.BoolOp) -> Any:
        is_and = isinstance(node.op, ast.And)
        value: Any = None
        for item in node.values:
            value = self.visit(item)
            if bool(value) != is_and:
                return value
        return value

    def _Compare(self, node: ast.Compare) -> Any:
        left = self.visit(node.left)
        for op, comparator in zip(node.ops, node.comparators):
            func = _COMPARE.get(type(op))
            if func is None:
                raise SyntaxError(f"unsupported comparison: {type(op).__name__}")
            right = self.visit(comparator)
            if not func(left, right):
                return False
            left = right
        return True

    def _IfExp(self, node: ast.IfExp) -> Any:
        if self.visit(node.test):
            return self.visit(node.body)
        return self.visit(node.orelse)

    def _Attribute(self, node: ast.Attribute) -> Any:
        target = self.visit(node.value)
        name = node.attr
        if name.startswith("_"):
            raise AttributeError(f"no .{name} attribute")
        if isinstance(target, (Struct, str, list, dict)):
            return getattr(target, name)
        if hasattr(target, name):
            return getattr(target, name)
        raise AttributeError(f"{type(target).__name__} has no .{name} attribute")

    def _Subscript(self, node: ast.Subscript) -> Any:
        return self.visit(node.value)[self.visit(node.slice)]

    def _Slice(self, node: ast.Slice) -> Any:
        parts = (node.lower, node.upper, node.step)
        return slice(*(None if part is None else self.visit(part) for part in parts))

    def _Call(self, node: ast.Call) -> Any:
        func = self.visit(node.func)
        if not callable(func):
            raise TypeError(f"{format_value(func)} is not callable")
        args = []
        for arg in node.args:
            if isinstance(arg, ast.Starred):
                args.extend(self.visit(arg.value))
            else:
                args.append(self.visit(arg))
        kwargs = {}
        for keyword in node.keywords:
            if keyword.arg is None:
                kwargs.update(self.visit(keyword.value))
            else:
                kwargs[keyword.arg] = self.visit(keyword.value)
        return func(*args, **kwargs)


class EvalError(Exception):
    """An expression in a template failed to evaluate."""

    def __init__(self, file: str, expr: str, message: str, line: int = 0) -> None:
        super().__init__(message)
        self.file = file
        self.line = line
        self.expr = expr
        self.message = message

    def __str__(self) -> str:
        quoted = format_value(self.expr)
        if self.line > 0:
            return f"{self.file}:{self.line}: error evaluating {quoted}: {self.message}"
        return f"{self.file}: error evaluating {quoted}: {self.message}"


class ExecutionContext:
    """Globals and state for evaluating template expressions."""

    def __init__(
        self,
        config: Any,
        env: str,
        target: TargetInfo | None = None,
        this: ThisInfo | None = None,
        macros: Mapping[str, Any] | None = None,
    ) -> None:
        self.config = config
        self.env = env
        self.target = target
        self.this = this
        self.macros: dict[str, Any] = dict(macros or {})
        self._lock = threading.RLock()
        self._globals: dict[str, Any] = {}
        self._build_globals()

    def _build_globals(self) -> None:
        with self._lock:
            result = predeclared(self.config, self.env, self.target, self.this)
            result.update(self.macros)
            self._globals = result

    @property
    def globals(self) -> dict[str, Any]:
        """The combined globals used for evaluation."""
        with self._lock:
            return self._globals

    def add_macros(self, macros: Mapping[str, Any]) -> None:
        """Add macro namespaces; a name that clashes with a builtin is rejected."""
        for name in macros:
            if name in _BUILTIN_NAMES:
                raise ValueError(
                    f"macro namespace {format_value(name)} conflicts with builtin"
                )
        with self._lock:
            self.macros.update(macros)
            self._build_globals()

    def eval_expr(
        self,
        expr: str,
        filename: str,
        line: int = 0,
        locals: Mapping[str, Any] | None = None,
    ) -> Any:
        """Evaluate an expression; ``locals`` take precedence over globals."""
        names: Mapping[str, Any] = self.globals
        if locals:
            names = {**names, **locals}
        try:
            return evaluate(expr, names, filename)
        except Exception as exc:
            raise EvalError(filename, expr, str(exc), line) from exc

    def eval_expr_string(
        self,
        expr: str,
        filename: str,
        line: int = 0,
        locals: Mapping[str, Any] | None = None,
    ) -> str:
        """Evaluate an expression and render the result as text."""
        result = self.eval_expr(expr, filename, line, locals)
        if result is None:
            return ""
        if isinstance(result, str):
            return result
        return format_value(result)


def new_context(
    config: Any,
    env: str,
    target: TargetInfo | None = None,
    this: ThisInfo | None = None,
    macros: Mapping[str, Any] | None = None,
) -> ExecutionContext:
    """Create a context with the given macros installed as-is."""
    return ExecutionContext(config, env, target, this, macros)