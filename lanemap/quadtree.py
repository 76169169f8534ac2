"""Point quadtree with rectangle, circle and nearest-neighbour queries."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Generic, Optional, Protocol, TypeVar

from lanemap.map_point import distance_2d

logger = logging.getLogger(__name__)


class _Located(Protocol):
    x: float
    y: float


P = TypeVar("P", bound=_Located)


@dataclass
class Boundary:
    """Axis-aligned rectangle."""

    x_min: float = 0.0
    x_max: float = 0.0
    y_min: float = 0.0
    y_max: float = 0.0

    def contains(self, point: _Located) -> bool:
        return self.x_min <= point.x <= self.x_max and self.y_min <= point.y <= self.y_max

    def intersects(self, other: Boundary) -> bool:
        return not (
            other.x_min > self.x_max
            or other.x_max < self.x_min
            or other.y_min > self.y_max
            or other.y_max < self.y_min
        )

    def distance_to_point(self, point: _Located) -> float:
        """Shortest distance from ``point`` to the rectangle; zero inside it."""
        dx = max(self.x_min - point.x, 0.0, point.x - self.x_max)
        dy = max(self.y_min - point.y, 0.0, point.y - self.y_max)
        return math.hypot(dx, dy)

    def intersects_circle(self, center_x: float, center_y: float, radius: float) -> bool:
        closest_x = min(max(center_x, self.x_min), self.x_max)
        closest_y = min(max(center_y, self.y_min), self.y_max)
        return math.hypot(closest_x - center_x, closest_y - center_y) <= radius


@dataclass
class Quadtree(Generic[P]):
    """Quadtree node holding up to ``capacity`` points before it subdivides."""

    boundary: Boundary = field(default_factory=Boundary)
    capacity: int = 10
    _points: list[P] = field(default_factory=list, init=False, repr=False)
    _children: Optional[tuple[Quadtree[P], ...]] = field(default=None, init=False, repr=False)

    def __init__(self, boundary: Optional[Boundary] = None, capacity: int = 10) -> None:
        self.boundary = boundary if boundary is not None else Boundary()
        self.capacity = capacity
        self._points = []
        self._children = None

    def insert(self, point: P) -> bool:
        """Store ``point``; return False when it lies outside this node."""
        if not self.boundary.contains(point):
            return False
        if len(self._points) < self.capacity and self._children is None:
            self._points.append(point)
            return True
        if self._children is None:
            self._subdivide()
        return self._insert_into_children(point)

    def _insert_into_children(self, point: P) -> bool:
        assert self._children is not None
        return any(child.insert(point) for child in self._children)

    def _subdivide(self) -> None:
        b = self.boundary
        x_mid = (b.x_min + b.x_max) / 2
        y_mid = (b.y_min + b.y_max) / 2
        self._children = (
            Quadtree(Boundary(b.x_min, x_mid, y_mid, b.y_max), self.capacity),  # north-west
            Quadtree(Boundary(x_mid, b.x_max, y_mid, b.y_max), self.capacity),  # north-east
            Quadtree(Boundary(b.x_min, x_mid, b.y_min, y_mid), self.capacity),  # south-west
            Quadtree(Boundary(x_mid, b.x_max, b.y_min, y_mid), self.capacity),  # south-east
        )
        for point in self._points:
            if not self._insert_into_children(point):
                logger.error("subdivision problem: point not in any sub-quadrant")
        self._points = []

    def query(self, boundary: Boundary) -> list[P]:
        """All points lying inside ``boundary``."""
        found: list[P] = []
        self._query(boundary, found)
        return found

    def _query(self, boundary: Boundary, found: list[P]) -> None:
        if not self.boundary.intersects(boundary):
            return
        found.extend(p for p in self._points if boundary.contains(p))
        for child in self._children or ():
            child._query(boundary, found)

    def query_range(self, center: _Located, radius: float) -> list[P]:
        """All points within ``radius`` of ``center``."""
        found: list[P] = []
        self._query_range(center, radius, found)
        return found

    def _query_range(self, center: _Located, radius: float, found: list[P]) -> None:
        if not self.boundary.intersects_circle(center.x, center.y, radius):
            return
        found.extend(
            p for p in self._points if math.hypot(p.x - center.x, p.y - center.y) <= radius
        )
        for child in self._children or ():
            child._query_range(center, radius, found)

    def nearest_point(
        self,
        query_point: _Located,
        accept: Optional[Callable[[P], bool]] = None,
    ) -> Optional[tuple[P, float]]:
        """Nearest accepted point and its distance, or None when there is none."""
        best, best_dist = self._nearest(query_point, math.inf, accept or (lambda _p: True))
        if best is None:
            return None
        return best, best_dist

    def _nearest(
        self,
        query_point: _Located,
        min_dist: float,
        accept: Callable[[P], bool],
    ) -> tuple[Optional[P], float]:
        nearest: Optional[P] = None
        for point in self._points:
            if not accept(point):
                continue
            dist = distance_2d(point, query_point)
            if dist < min_dist:
                min_dist = dist
                nearest = point

        if self._children is not None:
            ranked = sorted(
                self._children, key=lambda child: child.boundary.distance_to_point(query_point)
            )
            for child in ranked:
                if child.boundary.distance_to_point(query_point) >= min_dist:
                    break
                candidate, min_dist = child._nearest(query_point, min_dist, accept)
                if candidate is not None:
                    nearest = candidate
        return nearest, min_dist