"""
Expression evaluator: run cell sources against a closed set of bindings.

Components:
    - evaluate(): Parse and interpret a source block, returning EvalResult
    - SandboxEvaluator: Evaluator protocol implementation with a step budget
    - DEFAULT_BINDINGS: Graph DSL, Vec2 and math helpers, content constructors

Cell sources are Python statement blocks. A top-level ``return`` gives the
cell its value:

    g = graph()
    g.arrow("a", "b")
    return decorated_graph(g, {"position": decoration({"a": vec2(0, 0)})})
"""

from portgraph.evaluator.base import EvalResult, Evaluator
from portgraph.evaluator.bindings import DEFAULT_BINDINGS, with_bindings
from portgraph.evaluator.interpreter import DEFAULT_MAX_STEPS, SandboxEvaluator, evaluate

__all__ = [
    "DEFAULT_BINDINGS",
    "DEFAULT_MAX_STEPS",
    "EvalResult",
    "Evaluator",
    "SandboxEvaluator",
    "evaluate",
    "with_bindings",
]
