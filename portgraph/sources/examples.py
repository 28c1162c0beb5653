"""Built-in example graphs.

Each ``example_*`` function is written against the standard bindings, so it
runs as plain Python and its body is also a valid cell source.
ExampleCellSource turns the bodies into cells named after the functions.
"""

from __future__ import annotations

import inspect
import textwrap
from collections.abc import Callable
from math import tau
from typing import Any

from portgraph.core.exceptions import CellNotFoundError
from portgraph.core.vec2 import Vec2
from portgraph.evaluator.bindings import (
    decorated_graph,
    decoration,
    degrees,
    dfs,
    graph,
    latex,
    vec2,
)
from portgraph.notebook.models import Cell


def cell(cell_id: str) -> Any:
    """Stand-in for the notebook's ``cell`` binding when examples run directly."""
    raise CellNotFoundError(f"Cell with id {cell_id} does not exist.")


def example_1():
    g = graph()

    g.node("a")
    g.node("b")
    g.node("c")
    g.node("d")

    e1 = g.arrow(("a", "0"), ("b", "1"))
    e2 = g.arrow(("b", "2"), ("c", "3"))
    g.arrow(("c", "4"), ("a", "5"))

    g.undirected("a", ("d", "6"))

    position = decoration()
    position.set("a", vec2(150, 100))
    position.set("b", vec2(300, 100))
    position.set("c", vec2(225, 200))
    position.set("d", vec2(75, 200))

    label = decoration()
    label.set(e1, latex("x"))
    label.set(e2, latex("x^2"))

    style = decoration()
    style.set(e1, {"color": "red"})
    style.set(e2, {"color": "blue"})

    return decorated_graph(g, {"position": position, "label": label, "style": style})


def example_2():
    g = graph()

    for v in ["a", "b", "c", "d", "e", "f", "g", "h"]:
        g.node(v)

    g.arrow("a", "b")
    g.arrow("a", "c")
    g.arrow("b", "d")
    g.arrow("c", "d")
    g.arrow("d", "e")
    g.arrow("a", "d")
    g.arrow("d", "f")
    g.arrow("e", "g")
    g.arrow("f", "g")
    g.arrow("c", "f")
    g.arrow("h", "g")
    g.arrow("e", "h")
    g.arrow("b", "h")
    g.arrow("b", "e")

    position = decoration()
    position.set("a", vec2(175, 90))
    position.set("b", vec2(65, 200))
    position.set("c", vec2(340, 130))
    position.set("d", vec2(210, 240))
    position.set("e", vec2(140, 375))
    position.set("f", vec2(280, 370))
    position.set("g", vec2(215, 500))
    position.set("h", vec2(35, 425))

    start = decoration()
    start.set("a", True)

    style = decoration()
    style.set("a", {"color": "orange"})

    return decorated_graph(g, {"position": position, "start": start, "style": style})


def example_dfs():
    g = cell("example_2")

    start_node = g.decorations["start"].keys()[0]

    style = decoration()
    for e in dfs(g.graph, start_node):
        style.set(e, {"color": "orange"})

    return decorated_graph(g.graph, {**g.decorations, "style": style})


def example_flowgraph():
    g = graph()

    for v in ["a", "b", "c", "d", "h1", "h2"]:
        g.node(v)

    g.arrow(("a", "out"), ("d", "in"))

    g.arrow(("d", "out"), ("b", "in"))
    g.arrow(("d", "out"), ("c", "in"))
    g.arrow(("c", "out"), ("b", "in"))

    g.path(("b", "out"), ("h1", ("in", "out")), ("a", "in"))
    g.path(("c", "out"), ("h2", ("in", "out")), ("a", "in"))

    position = decoration()
    position.set("a", vec2(50, 0))
    position.set("d", vec2(50, -75))
    position.set("c", vec2(100, -200))
    position.set("b", vec2(0, -250))
    position.set("h1", vec2(-100, -250))
    position.set("h2", vec2(200, -250))

    direction = decoration()
    direction.set("a", degrees(-90))
    direction.set("b", degrees(-90))
    direction.set("c", degrees(-90))
    direction.set("d", degrees(-90))
    direction.set("h1", degrees(115))
    direction.set("h2", degrees(40))

    return decorated_graph(g, {"position": position, "direction": direction})


def example_trefoil():
    g = graph()

    g.node("c1")
    g.node("c2")
    g.node("c3")

    g.undirected(("c1", "2"), ("c2", "3"))
    g.undirected(("c2", "1"), ("c3", "0"))
    g.undirected(("c3", "2"), ("c1", "3"))
    g.undirected(("c1", "1"), ("c2", "0"))
    g.undirected(("c2", "2"), ("c3", "1"))
    g.undirected(("c3", "3"), ("c1", "0"))

    position = decoration()
    position.set("c1", Vec2.scale(Vec2.rotor(2 * tau / 3), 100))
    position.set("c2", Vec2.scale(Vec2.rotor(0 * tau / 3), 100))
    position.set("c3", Vec2.scale(Vec2.rotor(1 * tau / 3), 100))

    flip = decoration()
    flip.set("c3", True)

    angle = decoration()
    angle.set("c1", degrees(10))
    angle.set("c2", degrees(10))
    angle.set("c3", degrees(10))

    return decorated_graph(g, {"position": position, "angle": angle, "flip": flip})


EXAMPLES: list[Callable[[], Any]] = [
    example_1,
    example_2,
    example_dfs,
    example_flowgraph,
    example_trefoil,
]


def function_body(fn: Callable[..., Any]) -> str:
    """Source of a function's body, dedented, without the ``def`` line."""
    lines = textwrap.dedent(inspect.getsource(fn)).splitlines()
    start = next(i for i, line in enumerate(lines) if line.rstrip().endswith(":")) + 1
    return textwrap.dedent("\n".join(lines[start:])).strip() + "\n"


class ExampleCellSource:
    """Cells built from the example functions, named after them."""

    def __init__(self, examples: list[Callable[[], Any]] | None = None) -> None:
        self.examples = examples if examples is not None else EXAMPLES

    def load(self) -> list[Cell]:
        return [Cell(id=fn.__name__, source=function_body(fn)) for fn in self.examples]
