"""Data models for port graphs and decoration payloads."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

DEFAULT_PORT = "*"


@dataclass(frozen=True)
class Port:
    """An attachment point: a vertex plus a port name on it."""

    vertex: str
    port: str = DEFAULT_PORT

    @classmethod
    def of(cls, spec: str | tuple[str, str] | Port) -> Port:
        """Normalize a bare vertex id, a ``(vertex, port)`` pair or a Port."""
        if isinstance(spec, Port):
            return spec
        if isinstance(spec, str):
            return cls(spec)
        vertex, port = spec
        return cls(vertex, port)

    def __str__(self) -> str:
        if self.port == DEFAULT_PORT:
            return self.vertex
        return f"{self.vertex}:{self.port}"


@dataclass(frozen=True)
class Edge:
    """An edge between two ports.

    ``source``/``target`` are ordered for directed edges. Undirected edges keep
    the order they were given in, which renderers rely on.
    """

    id: str
    directed: bool
    source: Port
    target: Port

    @property
    def key(self) -> tuple[Port, Port, bool]:
        """Structural identity used for de-duplication."""
        return (self.source, self.target, self.directed)

    def __str__(self) -> str:
        arrow = "->" if self.directed else "--"
        return f"{self.id}: {self.source} {arrow} {self.target}"


@dataclass(frozen=True)
class Vector2:
    """A 2D point or direction."""

    x: float
    y: float

    def __iter__(self):
        yield self.x
        yield self.y


@dataclass(frozen=True)
class FormattedContent:
    """Text payload tagged with how a renderer should typeset it."""

    format: Literal["latex", "text"]
    value: str


@dataclass(frozen=True)
class CellError:
    """Error descriptor stored as a cell's result when evaluation fails."""

    message: str

    def __str__(self) -> str:
        return self.message
