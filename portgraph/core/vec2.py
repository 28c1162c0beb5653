"""2D vector helpers exposed to cell sources as ``Vec2``."""

from __future__ import annotations

import math
from collections.abc import Sequence

from portgraph.core.models import Vector2


class Vec2:
    """Namespace of pure functions over Vector2 values."""

    ZERO = Vector2(0.0, 0.0)

    @staticmethod
    def of(x: float, y: float) -> Vector2:
        return Vector2(x, y)

    @staticmethod
    def add(a: Vector2, b: Vector2) -> Vector2:
        return Vector2(a.x + b.x, a.y + b.y)

    @staticmethod
    def sub(a: Vector2, b: Vector2) -> Vector2:
        return Vector2(a.x - b.x, a.y - b.y)

    @staticmethod
    def lerp(a: Vector2, b: Vector2, t: float) -> Vector2:
        return Vector2(a.x + (b.x - a.x) * t, a.y + (b.y - a.y) * t)

    @staticmethod
    def scale(v: Vector2, s: float) -> Vector2:
        return Vector2(v.x * s, v.y * s)

    @staticmethod
    def dot(a: Vector2, b: Vector2) -> float:
        return a.x * b.x + a.y * b.y

    @staticmethod
    def length(v: Vector2) -> float:
        return math.hypot(v.x, v.y)

    @staticmethod
    def normalize(v: Vector2) -> Vector2:
        n = Vec2.length(v)
        if n == 0:
            return Vec2.ZERO
        return Vector2(v.x / n, v.y / n)

    @staticmethod
    def distance(a: Vector2, b: Vector2) -> float:
        return Vec2.length(Vec2.sub(a, b))

    @staticmethod
    def average(points: Sequence[Vector2]) -> Vector2:
        if not points:
            return Vec2.ZERO
        return Vector2(
            sum(p.x for p in points) / len(points),
            sum(p.y for p in points) / len(points),
        )

    @staticmethod
    def is_close(a: Vector2, b: Vector2, epsilon: float = 1e-6) -> bool:
        return Vec2.distance(a, b) < epsilon

    @staticmethod
    def perpendicular(v: Vector2) -> Vector2:
        return Vector2(-v.y, v.x)

    @staticmethod
    def rotor(angle: float) -> Vector2:
        """Unit vector at ``angle`` radians."""
        return Vector2(math.cos(angle), math.sin(angle))
