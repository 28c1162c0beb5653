"""Result type and protocol for cell source evaluators."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol


@dataclass(frozen=True)
class EvalResult:
    """Outcome of evaluating a block of source: a value or an error message."""

    success: bool
    result: Any = None
    error: str | None = None

    @classmethod
    def ok(cls, result: Any) -> EvalResult:
        return cls(success=True, result=result)

    @classmethod
    def fail(cls, error: str) -> EvalResult:
        return cls(success=False, error=error)


class Evaluator(Protocol):
    """Protocol for source evaluators."""

    def evaluate(self, source: str, bindings: Mapping[str, Any]) -> EvalResult:
        """Evaluate ``source`` with exactly ``bindings`` in scope. Never raises."""
        ...
