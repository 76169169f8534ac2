"""Points on a lane map and small geometric helpers."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Optional, Protocol

DUPLICATE_S_TOLERANCE = 1e-6


class HasXY(Protocol):
    x: float
    y: float


@dataclass(eq=False)
class MapPoint:
    """A planar point that belongs to a lane, with its arc length ``s``."""

    x: float = 666.0
    y: float = 420.0
    parent_id: int = 0
    s: float = 0.0
    max_speed: Optional[float] = None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MapPoint):
            return NotImplemented
        return self.x == other.x and self.y == other.y

    __hash__ = None  # type: ignore[assignment]

    def __str__(self) -> str:
        return f"x: {self.x:.2f}, y: {self.y:.2f}, s: {self.s:.2f}, parent_id: {self.parent_id}"


def distance_2d(a: HasXY, b: HasXY) -> float:
    """Euclidean distance between two points in the plane."""
    return math.hypot(a.x - b.x, a.y - b.y)


def squared_distance_2d(a: HasXY, b: HasXY) -> float:
    """Squared Euclidean distance between two points in the plane."""
    dx = a.x - b.x
    dy = a.y - b.y
    return dx * dx + dy * dy


def remove_duplicate_points(points: Iterable[MapPoint]) -> list[MapPoint]:
    """Drop consecutive points whose ``s`` matches the last kept point's ``s``."""
    kept: list[MapPoint] = []
    for point in points:
        if kept and abs(kept[-1].s - point.s) < DUPLICATE_S_TOLERANCE:
            continue
        kept.append(point)
    return kept