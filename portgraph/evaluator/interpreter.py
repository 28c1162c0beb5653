"""Sandboxed tree-walking interpreter for cell sources.

Cell sources are Python statement blocks whose value is given by a top-level
``return``. The source is parsed with the ast module and walked node by node;
nothing is compiled or handed to ``exec``. Only the names in the supplied
bindings, plus names the block assigns itself, are visible.
"""

from __future__ import annotations

import ast
import inspect
import logging
import operator
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from portgraph.core.exceptions import EvaluationError
from portgraph.evaluator.base import EvalResult

logger = logging.getLogger(__name__)

DEFAULT_MAX_STEPS = 1_000_000

_BIN_OPS: dict[type[ast.operator], Callable[[Any, Any], Any]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
    ast.LShift: operator.lshift,
    ast.RShift: operator.rshift,
    ast.BitOr: operator.or_,
    ast.BitXor: operator.xor,
    ast.BitAnd: operator.and_,
    ast.MatMult: operator.matmul,
}

_UNARY_OPS: dict[type[ast.unaryop], Callable[[Any], Any]] = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
    ast.Not: operator.not_,
    ast.Invert: operator.invert,
}

_CMP_OPS: dict[type[ast.cmpop], Callable[[Any, Any], Any]] = {
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
    ast.Is: operator.is_,
    ast.IsNot: operator.is_not,
    ast.In: lambda a, b: a in b,
    ast.NotIn: lambda a, b: a not in b,
}

_MISSING = object()

# str.format can reach attributes through "{0.attr}" fields
_REFUSED_ATTRIBUTES = frozenset({"format", "format_map"})


def evaluate(
    source: str, bindings: Mapping[str, Any], max_steps: int = DEFAULT_MAX_STEPS
) -> EvalResult:
    """Evaluate a block of source with exactly ``bindings`` in scope.

    Every failure, whether a syntax error, a runtime error or an error raised
    by a binding, is returned as ``EvalResult.fail``.
    """
    try:
        tree = ast.parse(source, mode="exec")
        result = _Interpreter(bindings, max_steps).run(tree)
    except SyntaxError as e:
        message = f"SyntaxError: {e.msg} (line {e.lineno})"
        logger.debug("Evaluation failed: %s", message)
        return EvalResult.fail(message)
    except Exception as e:
        message = f"{type(e).__name__}: {e}" if str(e) else type(e).__name__
        logger.debug("Evaluation failed: %s", message)
        return EvalResult.fail(message)
    return EvalResult.ok(result)


class SandboxEvaluator:
    """Evaluator protocol implementation backed by the tree-walking interpreter."""

    def __init__(self, max_steps: int = DEFAULT_MAX_STEPS) -> None:
        self.max_steps = max_steps

    def evaluate(self, source: str, bindings: Mapping[str, Any]) -> EvalResult:
        return evaluate(source, bindings, self.max_steps)


class _Return(Exception):
    def __init__(self, value: Any) -> None:
        self.value = value


class _Break(Exception):
    pass


class _Continue(Exception):
    pass


class _Env:
    """A variable scope chained to its enclosing scope."""

    __slots__ = ("vars", "parent")

    def __init__(self, vars: Mapping[str, Any], parent: _Env | None = None) -> None:
        self.vars = vars
        self.parent = parent

    def lookup(self, name: str) -> Any:
        env: _Env | None = self
        while env is not None:
            if name in env.vars:
                return env.vars[name]
            env = env.parent
        raise NameError(f"name {name!r} is not defined")

    def assign(self, name: str, value: Any) -> None:
        self.vars[name] = value  # type: ignore[index]

    def delete(self, name: str) -> None:
        if name not in self.vars:
            raise NameError(f"name {name!r} is not defined")
        del self.vars[name]  # type: ignore[attr-defined]


class _Function:
    """A function defined by a cell source (``def`` or ``lambda``)."""

    def __init__(
        self,
        interp: _Interpreter,
        node: ast.FunctionDef | ast.Lambda,
        closure: _Env,
        defaults: list[Any],
        kw_defaults: list[Any],
    ) -> None:
        self._interp = interp
        self._node = node
        self._closure = closure
        self._defaults = defaults
        self._kw_defaults = kw_defaults
        self.__name__ = node.name if isinstance(node, ast.FunctionDef) else "<lambda>"

    @property
    def __signature__(self) -> inspect.Signature:
        """Parameter list, so host code can inspect sandbox functions."""
        P = inspect.Parameter
        args = self._node.args
        positional = [(a.arg, P.POSITIONAL_ONLY) for a in args.posonlyargs]
        positional += [(a.arg, P.POSITIONAL_OR_KEYWORD) for a in args.args]
        first_default = len(positional) - len(self._defaults)

        params = []
        for i, (name, kind) in enumerate(positional):
            default = self._defaults[i - first_default] if i >= first_default else P.empty
            params.append(P(name, kind, default=default))
        if args.vararg is not None:
            params.append(P(args.vararg.arg, P.VAR_POSITIONAL))
        for a, default in zip(args.kwonlyargs, self._kw_defaults):
            params.append(
                P(a.arg, P.KEYWORD_ONLY, default=P.empty if default is _MISSING else default)
            )
        if args.kwarg is not None:
            params.append(P(args.kwarg.arg, P.VAR_KEYWORD))
        return inspect.Signature(params)

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        env = _Env(self._bind(args, kwargs), self._closure)
        if isinstance(self._node, ast.Lambda):
            with self._interp.scope(env):
                return self._interp.visit(self._node.body)
        with self._interp.scope(env):
            try:
                self._interp.exec_block(self._node.body)
            except _Return as r:
                return r.value
            except (_Break, _Continue) as e:
                raise EvaluationError("'break' or 'continue' outside loop") from e
        return None

    def _bind(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> dict[str, Any]:
        params = self._node.args
        positional = [a.arg for a in params.posonlyargs + params.args]
        kwonly = [a.arg for a in params.kwonlyargs]
        posonly = {a.arg for a in params.posonlyargs}
        name = self.__name__
        bound: dict[str, Any] = {}

        if len(args) > len(positional) and params.vararg is None:
            raise TypeError(
                f"{name}() takes {len(positional)} positional arguments but {len(args)} were given"
            )
        bound.update(zip(positional, args))
        if params.vararg is not None:
            bound[params.vararg.arg] = tuple(args[len(positional) :])

        extra: dict[str, Any] = {}
        for key, value in kwargs.items():
            if (key in positional and key not in posonly) or key in kwonly:
                if key in bound:
                    raise TypeError(f"{name}() got multiple values for argument {key!r}")
                bound[key] = value
            elif params.kwarg is not None:
                extra[key] = value
            else:
                raise TypeError(f"{name}() got an unexpected keyword argument {key!r}")
        if params.kwarg is not None:
            bound[params.kwarg.arg] = extra

        first_default = len(positional) - len(self._defaults)
        for i, param in enumerate(positional):
            if param not in bound:
                if i < first_default:
                    raise TypeError(f"{name}() missing required argument {param!r}")
                bound[param] = self._defaults[i - first_default]
        for param, default in zip(kwonly, self._kw_defaults):
            if param not in bound:
                if default is _MISSING:
                    raise TypeError(f"{name}() missing keyword-only argument {param!r}")
                bound[param] = default

        return bound

    def __repr__(self) -> str:
        return f"<function {self.__name__}>"


class _Interpreter(ast.NodeVisitor):
    """Walks statements and expressions, tracking the current scope."""

    def __init__(self, bindings: Mapping[str, Any], max_steps: int) -> None:
        self._env = _Env({}, _Env(bindings))
        self._steps = 0
        self._max_steps = max_steps

    def run(self, tree: ast.Module) -> Any:
        try:
            self.exec_block(tree.body)
        except _Return as r:
            return r.value
        except (_Break, _Continue) as e:
            raise EvaluationError("'break' or 'continue' outside loop") from e
        return None

    @contextmanager
    def scope(self, env: _Env) -> Iterator[None]:
        saved = self._env
        self._env = env
        try:
            yield
        finally:
            self._env = saved

    def _tick(self) -> None:
        self._steps += 1
        if self._steps > self._max_steps:
            raise EvaluationError(f"step budget of {self._max_steps} exceeded")

    def generic_visit(self, node: ast.AST) -> Any:
        raise EvaluationError(f"{type(node).__name__} is not supported in cell sources")

    def exec_block(self, body: list[ast.stmt]) -> None:
        for stmt in body:
            self._tick()
            self.visit(stmt)

    # Statements

    def visit_Expr(self, node: ast.Expr) -> None:
        self.visit(node.value)

    def visit_Assign(self, node: ast.Assign) -> None:
        value = self.visit(node.value)
        for target in node.targets:
            self._assign(target, value)

    def visit_AnnAssign(self, node: ast.AnnAssign) -> None:
        if node.value is not None:
            self._assign(node.target, self.visit(node.value))

    def visit_AugAssign(self, node: ast.AugAssign) -> None:
        target = node.target
        op = _BIN_OPS[type(node.op)]
        if isinstance(target, ast.Name):
            current = self._env.lookup(target.id)
            self._env.assign(target.id, op(current, self.visit(node.value)))
        elif isinstance(target, ast.Attribute):
            obj = self.visit(target.value)
            _check_attribute(target.attr)
            setattr(obj, target.attr, op(getattr(obj, target.attr), self.visit(node.value)))
        elif isinstance(target, ast.Subscript):
            obj = self.visit(target.value)
            key = self.visit(target.slice)
            obj[key] = op(obj[key], self.visit(node.value))
        else:
            self.generic_visit(target)

    def visit_Return(self, node: ast.Return) -> None:
        raise _Return(self.visit(node.value) if node.value is not None else None)

    def visit_Pass(self, node: ast.Pass) -> None:
        pass

    def visit_Break(self, node: ast.Break) -> None:
        raise _Break

    def visit_Continue(self, node: ast.Continue) -> None:
        raise _Continue

    def visit_If(self, node: ast.If) -> None:
        self.exec_block(node.body if self.visit(node.test) else node.orelse)

    def visit_For(self, node: ast.For) -> None:
        for item in self.visit(node.iter):
            self._tick()
            self._assign(node.target, item)
            try:
                self.exec_block(node.body)
            except _Break:
                break
            except _Continue:
                continue
        else:
            self.exec_block(node.orelse)

    def visit_While(self, node: ast.While) -> None:
        while self.visit(node.test):
            self._tick()
            try:
                self.exec_block(node.body)
            except _Break:
                break
            except _Continue:
                continue
        else:
            self.exec_block(node.orelse)

    def visit_FunctionDef(self, node: ast.FunctionDef) -> None:
        if node.decorator_list:
            raise EvaluationError("decorators are not supported in cell sources")
        self._env.assign(node.name, self._make_function(node))

    def visit_Delete(self, node: ast.Delete) -> None:
        for target in node.targets:
            if isinstance(target, ast.Name):
                self._env.delete(target.id)
            elif isinstance(target, ast.Subscript):
                del self.visit(target.value)[self.visit(target.slice)]
            else:
                self.generic_visit(target)

    def visit_Assert(self, node: ast.Assert) -> None:
        if not self.visit(node.test):
            message = self.visit(node.msg) if node.msg is not None else ""
            raise AssertionError(message)

    # Expressions

    def visit_Constant(self, node: ast.Constant) -> Any:
        return node.value

    def visit_Name(self, node: ast.Name) -> Any:
        return self._env.lookup(node.id)

    def visit_NamedExpr(self, node: ast.NamedExpr) -> Any:
        value = self.visit(node.value)
        self._env.assign(node.target.id, value)
        return value

    def visit_BinOp(self, node: ast.BinOp) -> Any:
        return _BIN_OPS[type(node.op)](self.visit(node.left), self.visit(node.right))

    def visit_UnaryOp(self, node: ast.UnaryOp) -> Any:
        return _UNARY_OPS[type(node.op)](self.visit(node.operand))

    def visit_BoolOp(self, node: ast.BoolOp) -> Any:
        value: Any = None
        for operand in node.values:
            value = self.visit(operand)
            if isinstance(node.op, ast.And) and not value:
                return value
            if isinstance(node.op, ast.Or) and value:
                return value
        return value

    def visit_Compare(self, node: ast.Compare) -> bool:
        left = self.visit(node.left)
        for op, comparator in zip(node.ops, node.comparators):
            right = self.visit(comparator)
            if not _CMP_OPS[type(op)](left, right):
                return False
            left = right
        return True

    def visit_IfExp(self, node: ast.IfExp) -> Any:
        return self.visit(node.body) if self.visit(node.test) else self.visit(node.orelse)

    def visit_Call(self, node: ast.Call) -> Any:
        self._tick()
        func = self.visit(node.func)
        args: list[Any] = []
        for arg in node.args:
            if isinstance(arg, ast.Starred):
                args.extend(self.visit(arg.value))
            else:
                args.append(self.visit(arg))
        kwargs: dict[str, Any] = {}
        for kw in node.keywords:
            if kw.arg is None:
                kwargs.update(self.visit(kw.value))
            else:
                kwargs[kw.arg] = self.visit(kw.value)
        return func(*args, **kwargs)

    def visit_Attribute(self, node: ast.Attribute) -> Any:
        _check_attribute(node.attr)
        return getattr(self.visit(node.value), node.attr)

    def visit_Subscript(self, node: ast.Subscript) -> Any:
        return self.visit(node.value)[self.visit(node.slice)]

    def visit_Slice(self, node: ast.Slice) -> slice:
        return slice(
            self.visit(node.lower) if node.lower is not None else None,
            self.visit(node.upper) if node.upper is not None else None,
            self.visit(node.step) if node.step is not None else None,
        )

    def visit_List(self, node: ast.List) -> list[Any]:
        return self._elements(node.elts)

    def visit_Tuple(self, node: ast.Tuple) -> tuple[Any, ...]:
        return tuple(self._elements(node.elts))

    def visit_Set(self, node: ast.Set) -> set[Any]:
        return set(self._elements(node.elts))

    def visit_Dict(self, node: ast.Dict) -> dict[Any, Any]:
        result: dict[Any, Any] = {}
        for key, value in zip(node.keys, node.values):
            if key is None:
                result.update(self.visit(value))
            else:
                result[self.visit(key)] = self.visit(value)
        return result

    def visit_JoinedStr(self, node: ast.JoinedStr) -> str:
        return "".join(str(self.visit(part)) for part in node.values)

    def visit_FormattedValue(self, node: ast.FormattedValue) -> str:
        value = self.visit(node.value)
        if node.conversion == ord("r"):
            value = repr(value)
        elif node.conversion == ord("s"):
            value = str(value)
        elif node.conversion == ord("a"):
            value = ascii(value)
        spec = self.visit(node.format_spec) if node.format_spec is not None else ""
        return format(value, spec)

    def visit_Lambda(self, node: ast.Lambda) -> _Function:
        return self._make_function(node)

    def visit_ListComp(self, node: ast.ListComp) -> list[Any]:
        result: list[Any] = []
        self._comprehension(node.generators, lambda: result.append(self.visit(node.elt)))
        return result

    def visit_GeneratorExp(self, node: ast.GeneratorExp) -> Iterator[Any]:
        result: list[Any] = []
        self._comprehension(node.generators, lambda: result.append(self.visit(node.elt)))
        return iter(result)

    def visit_SetComp(self, node: ast.SetComp) -> set[Any]:
        result: set[Any] = set()
        self._comprehension(node.generators, lambda: result.add(self.visit(node.elt)))
        return result

    def visit_DictComp(self, node: ast.DictComp) -> dict[Any, Any]:
        result: dict[Any, Any] = {}

        def emit() -> None:
            result[self.visit(node.key)] = self.visit(node.value)

        self._comprehension(node.generators, emit)
        return result

    # Helpers

    def _elements(self, elts: list[ast.expr]) -> list[Any]:
        values: list[Any] = []
        for elt in elts:
            if isinstance(elt, ast.Starred):
                values.extend(self.visit(elt.value))
            else:
                values.append(self.visit(elt))
        return values

    def _comprehension(self, generators: list[ast.comprehension], emit: Callable[[], None]) -> None:
        inner = _Env({}, self._env)

        def loop(i: int) -> None:
            if i == len(generators):
                emit()
                return
            gen = generators[i]
            if gen.is_async:
                raise EvaluationError("async comprehensions are not supported in cell sources")
            for item in self.visit(gen.iter):
                self._tick()
                self._assign(gen.target, item)
                if all(self.visit(cond) for cond in gen.ifs):
                    loop(i + 1)

        with self.scope(inner):
            loop(0)

    def _make_function(self, node: ast.FunctionDef | ast.Lambda) -> _Function:
        defaults = [self.visit(d) for d in node.args.defaults]
        kw_defaults = [self.visit(d) if d is not None else _MISSING for d in node.args.kw_defaults]
        return _Function(self, node, self._env, defaults, kw_defaults)

    def _assign(self, target: ast.expr, value: Any) -> None:
        if isinstance(target, ast.Name):
            self._env.assign(target.id, value)
        elif isinstance(target, (ast.Tuple, ast.List)):
            self._unpack(target.elts, value)
        elif isinstance(target, ast.Attribute):
            _check_attribute(target.attr)
            setattr(self.visit(target.value), target.attr, value)
        elif isinstance(target, ast.Subscript):
            self.visit(target.value)[self.visit(target.slice)] = value
        else:
            self.generic_visit(target)

    def _unpack(self, targets: list[ast.expr], value: Any) -> None:
        items = list(value)
        starred = [i for i, t in enumerate(targets) if isinstance(t, ast.Starred)]
        if not starred:
            if len(items) != len(targets):
                raise ValueError(f"expected {len(targets)} values to unpack, got {len(items)}")
            for target, item in zip(targets, items):
                self._assign(target, item)
            return

        star = starred[0]
        after = len(targets) - star - 1
        if len(items) < star + after:
            raise ValueError(f"not enough values to unpack (expected at least {star + after})")
        for target, item in zip(targets[:star], items[:star]):
            self._assign(target, item)
        rest_target = targets[star]
        assert isinstance(rest_target, ast.Starred)
        self._assign(rest_target.value, items[star : len(items) - after])
        for target, item in zip(targets[star + 1 :], items[len(items) - after :]):
            self._assign(target, item)


def _check_attribute(name: str) -> None:
    if name.startswith("_") or name in _REFUSED_ATTRIBUTES:
        raise EvaluationError(f"access to attribute {name!r} is not allowed")
