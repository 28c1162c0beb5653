"""Decoration: a sparse map from vertex or edge id to an annotation value."""

from __future__ import annotations

import inspect
from collections.abc import Callable, Iterable, Iterator, Mapping
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from portgraph.core.exceptions import ReadOnlyError

if TYPE_CHECKING:
    from portgraph.core.graph.base import PortGraph

T = TypeVar("T")
U = TypeVar("U")


def _takes_key(fn: Callable[..., Any]) -> bool:
    """True when ``fn`` accepts a second positional argument."""
    try:
        inspect.signature(fn).bind(None, "")
    except TypeError:
        return False
    except ValueError:
        # No introspectable signature (str, int, ...): treat as one-argument
        return False
    return True


class Decoration(Generic[T]):
    """Annotation values keyed by vertex id or edge id.

    A decoration holds no reference to a graph, so the same value can be
    checked against several versions of one with ``compatible_with``.
    ``set`` mutates and is meant for construction only. Wrapping a
    decoration in a DecoratedGraph freezes it; after that ``set`` raises
    ReadOnlyError and ``with_entry`` gives a modified copy.
    """

    __slots__ = ("_data", "_frozen")

    def __init__(self, initial: Mapping[str, T] | Iterable[tuple[str, T]] | None = None) -> None:
        self._data: dict[str, T] = dict(initial) if initial is not None else {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> Decoration[T]:
        """Make this decoration read-only. Returns self."""
        self._frozen = True
        return self

    def has(self, key: str) -> bool:
        return key in self._data

    def get(self, key: str, default: T | None = None) -> T | None:
        return self._data.get(key, default)

    def set(self, key: str, value: T) -> None:
        if self._frozen:
            raise ReadOnlyError(
                f"Cannot set {key!r}: decoration is read-only, use with_entry() for a copy"
            )
        self._data[key] = value

    def with_entry(self, key: str, value: T) -> Decoration[T]:
        """Copy with one entry added or replaced. The copy is writable."""
        data = dict(self._data)
        data[key] = value
        return Decoration(data)

    def keys(self) -> list[str]:
        return list(self._data)

    def values(self) -> list[T]:
        return list(self._data.values())

    def entries(self) -> list[tuple[str, T]]:
        return list(self._data.items())

    def map_values(self, fn: Callable[..., U]) -> Decoration[U]:
        """Transform every value, keeping keys and their order.

        ``fn`` is called as ``fn(value, key)`` when it accepts two positional
        arguments, otherwise as ``fn(value)``.
        """
        if _takes_key(fn):
            return Decoration({k: fn(v, k) for k, v in self._data.items()})
        return Decoration({k: fn(v) for k, v in self._data.items()})

    def compatible_with(self, graph: PortGraph) -> bool:
        """True when every key names a vertex or an edge of ``graph``."""
        return all(graph.has_node(k) or graph.has_edge_id(k) for k in self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._data))

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Decoration):
            return NotImplemented
        return self.entries() == other.entries()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Decoration({self._data!r})"
