"""The standard binding table cell sources are evaluated against."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any, TypeVar

from portgraph.core.graph import (
    DecoratedGraph,
    Decoration,
    builder,
    decorated_graph,
    decoration,
    graph,
)
from portgraph.core.graph.analysis import has_cycle, topological_sort
from portgraph.core.graph.pathfinding import shortest_path
from portgraph.core.graph.traversal import bfs, dfs
from portgraph.core.models import DEFAULT_PORT, FormattedContent, Vector2
from portgraph.core.vec2 import Vec2

logger = logging.getLogger(__name__)

T = TypeVar("T")


def vec2(x: float, y: float) -> Vector2:
    return Vector2(x, y)


def clamp(value: float, min: float | None = None, max: float | None = None) -> float:
    if min is not None and value < min:
        return min
    if max is not None and value > max:
        return max
    return value


def degrees(angle_in_degrees: float) -> float:
    """Degrees to radians, so ``direction.set("a", degrees(-90))`` reads naturally."""
    return math.radians(angle_in_degrees)


def radians(angle_in_radians: float) -> float:
    """Radians to degrees."""
    return math.degrees(angle_in_radians)


def latex(s: str) -> FormattedContent:
    return FormattedContent("latex", s)


def text(s: str) -> FormattedContent:
    return FormattedContent("text", s)


def intersperse(items: Iterable[T], sep: T) -> list[T]:
    result: list[T] = []
    for i, item in enumerate(items):
        if i:
            result.append(sep)
        result.append(item)
    return result


def _print(*args: Any) -> None:
    logger.info(" ".join(str(a) for a in args))


_SAFE_BUILTINS: dict[str, Any] = {
    "len": len,
    "range": range,
    "min": min,
    "max": max,
    "abs": abs,
    "round": round,
    "sum": sum,
    "sorted": sorted,
    "reversed": reversed,
    "enumerate": enumerate,
    "zip": zip,
    "list": list,
    "dict": dict,
    "set": set,
    "tuple": tuple,
    "str": str,
    "int": int,
    "float": float,
    "bool": bool,
    "isinstance": isinstance,
    "any": any,
    "all": all,
    "map": map,
    "filter": filter,
    "print": _print,
}

DEFAULT_BINDINGS: Mapping[str, Any] = MappingProxyType(
    {
        **_SAFE_BUILTINS,
        # Graph building
        "graph": graph,
        "builder": builder,
        "decoration": decoration,
        "decorated_graph": decorated_graph,
        "DecoratedGraph": DecoratedGraph,
        "Decoration": Decoration,
        "DEFAULT_PORT": DEFAULT_PORT,
        # Graph algorithms
        "dfs": dfs,
        "bfs": bfs,
        "shortest_path": shortest_path,
        "has_cycle": has_cycle,
        "topological_sort": topological_sort,
        # Math
        "Vec2": Vec2,
        "vec2": vec2,
        "clamp": clamp,
        "degrees": degrees,
        "radians": radians,
        "pi": math.pi,
        "tau": math.tau,
        "sin": math.sin,
        "cos": math.cos,
        "sqrt": math.sqrt,
        "atan2": math.atan2,
        # Content formatting
        "latex": latex,
        "text": text,
        "intersperse": intersperse,
    }
)


def with_bindings(base: Mapping[str, Any], **extra: Any) -> dict[str, Any]:
    """Copy of ``base`` with ``extra`` names added or replaced."""
    return {**base, **extra}
