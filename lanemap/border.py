"""Lane borders: polylines with arc length, spline smoothing and clipping."""

from __future__ import annotations

import logging
import math
from bisect import bisect_left, bisect_right
from dataclasses import dataclass, field, replace
from typing import Iterable, Optional

from lanemap.border_spline import BorderSpline
from lanemap.map_point import MapPoint, distance_2d, squared_distance_2d

logger = logging.getLogger(__name__)

SHARP_TURN_ANGLE = 0.1
TURN_OFFSET_FACTOR = 0.1
REFERENCE_SNAP_THRESHOLD = 5.0
CLIP_EPSILON = 1e-6

_NEAREST_SAMPLES = 5
_NEWTON_TOLERANCE = 1e-3
_NEWTON_MAX_ITERATIONS = 100


@dataclass
class Border:
    """A lane border given by its original points and resampled points."""

    points: list[MapPoint] = field(default_factory=list)
    spline: Optional[BorderSpline] = None
    interpolated_points: list[MapPoint] = field(default_factory=list)
    length: float = 0.0

    def compute_length(self) -> float:
        """Sum the segment lengths of ``points``, store and return it."""
        self.length = sum(distance_2d(a, b) for a, b in zip(self.points, self.points[1:]))
        return self.length

    def compute_s_values(self) -> None:
        """Assign cumulative chord length to each point's ``s``."""
        if not self.points:
            return
        self.points[0].s = 0.0
        for previous, current in zip(self.points, self.points[1:]):
            current.s = previous.s + distance_2d(current, previous)

    def preprocess_points_for_spline(self, angle_threshold: float) -> None:
        """Add a point just before and after every turn sharper than the threshold."""
        if len(self.points) < 3:
            return

        new_points = [self.points[0]]
        for prev, curr, nxt in zip(self.points, self.points[1:], self.points[2:]):
            vx1, vy1 = curr.x - prev.x, curr.y - prev.y
            vx2, vy2 = nxt.x - curr.x, nxt.y - curr.y
            mag1 = math.hypot(vx1, vy1)
            mag2 = math.hypot(vx2, vy2)
            if mag1 == 0.0 or mag2 == 0.0:
                new_points.append(curr)
                continue

            cos_theta = (vx1 * vx2 + vy1 * vy2) / (mag1 * mag2)
            angle = math.acos(min(max(cos_theta, -1.0), 1.0))
            if angle < angle_threshold:
                new_points.append(curr)
                continue

            offset = min(mag1, mag2) * TURN_OFFSET_FACTOR
            before = MapPoint(
                curr.x - offset * vx1 / mag1,
                curr.y - offset * vy1 / mag1,
                curr.parent_id,
                s=curr.s - offset,
            )
            after = MapPoint(
                curr.x + offset * vx2 / mag2,
                curr.y + offset * vy2 / mag2,
                curr.parent_id,
                s=curr.s + offset,
            )
            new_points.extend((before, curr, after))

        new_points.append(self.points[-1])
        self.points = new_points

    def initialize_spline(self) -> None:
        """Fit the spline through the points, or clear it when there are too few."""
        if len(self.points) >= 2:
            self.preprocess_points_for_spline(SHARP_TURN_ANGLE)
            self.spline = BorderSpline(self.points)
        else:
            self.spline = None

    def find_nearest_s(self, point: MapPoint) -> float:
        """Arc length on the spline closest to ``point``, within [0, length]."""
        spline = self.spline
        if spline is None:
            raise RuntimeError("Reference line spline is not initialized.")

        best_s = 0.0
        min_distance = math.inf
        for i in range(_NEAREST_SAMPLES + 1):
            s_sample = self.length * i / _NEAREST_SAMPLES
            distance = squared_distance_2d(spline.get_point_at_s(s_sample), point)
            if distance < min_distance:
                min_distance = distance
                best_s = s_sample

        s = best_s
        for _ in range(_NEWTON_MAX_ITERATIONS):
            on_curve = spline.get_point_at_s(s)
            ex = on_curve.x - point.x
            ey = on_curve.y - point.y
            dx = spline.get_x_derivative_at_s(s)
            dy = spline.get_y_derivative_at_s(s)
            ddx = spline.get_x_second_derivative_at_s(s)
            ddy = spline.get_y_second_derivative_at_s(s)

            f = ex * dx + ey * dy
            f_prime = dx * dx + ex * ddx + dy * dy + ey * ddy
            if abs(f_prime) < 1e-12:
                break

            s_new = min(max(s - f / f_prime, 0.0), self.length)
            if abs(s_new - s) < _NEWTON_TOLERANCE:
                s = s_new
                break
            s = s_new
        return s

    def reparameterize_based_on_reference(self, reference_line: Border) -> None:
        """Give the points ``s`` values measured along ``reference_line``."""
        points = self.points
        points[0].s = reference_line.find_nearest_s(points[0])
        points[-1].s = reference_line.find_nearest_s(points[-1])

        if points[-1].s < points[0].s:
            points.reverse()

        if points[0].s < REFERENCE_SNAP_THRESHOLD:
            points[0].s = 0.0
        if reference_line.length - points[-1].s < REFERENCE_SNAP_THRESHOLD:
            points[-1].s = reference_line.length

        total_length = self.compute_length()
        s_start = points[0].s
        s_span = points[-1].s - s_start

        cumulative = 0.0
        for previous, current in zip(points, points[1:]):
            cumulative += distance_2d(previous, current)
            current.s = s_start + cumulative / total_length * s_span

        points.sort(key=lambda p: p.s)

    def make_clipped(self, s_start: float, s_end: float) -> Border:
        """New border covering [s_start, s_end]; empty when there is no overlap."""
        clipped_start = max(s_start, self.points[0].s)
        clipped_end = min(s_end, self.points[-1].s)
        if clipped_start >= clipped_end - CLIP_EPSILON:
            return Border()

        start_point = self.interpolated_point(clipped_start)
        start_point.s = clipped_start
        end_point = self.interpolated_point(clipped_end)
        end_point.s = clipped_end

        lower = bisect_left(self.points, clipped_start, key=lambda p: p.s)
        upper = bisect_right(self.points, clipped_end, key=lambda p: p.s)

        clipped = Border()
        clipped.points = [start_point, *(replace(p) for p in self.points[lower:upper]), end_point]
        clipped.initialize_spline()
        return clipped

    def interpolated_point(self, s: float) -> MapPoint:
        """Point at arc length ``s``: from the spline, else linearly from the points."""
        if self.spline is not None:
            result = self.spline.get_point_at_s(s)
            result.parent_id = self.points[0].parent_id
            result.s = s
            return result

        if not self.points and not self.interpolated_points:
            raise ValueError("Border is empty.")
        source = self.points or self.interpolated_points

        if len(source) == 1:
            return replace(source[0])
        if s <= source[0].s:
            return replace(source[0])
        if s >= source[-1].s:
            return replace(source[-1])

        for p1, p2 in zip(source, source[1:]):
            if s < p2.s:
                t = (s - p1.s) / (p2.s - p1.s)
                return MapPoint(
                    p1.x + t * (p2.x - p1.x),
                    p1.y + t * (p2.y - p1.y),
                    p1.parent_id,
                    s=s,
                )
        return replace(source[-1])

    def interpolate_border(self, s_values: Iterable[float]) -> None:
        """Replace ``interpolated_points`` with points sampled at ``s_values``."""
        self.interpolated_points = []
        for s in s_values:
            try:
                self.interpolated_points.append(self.interpolated_point(s))
            except Exception as error:  # noqa: BLE001 - a failed sample is skipped
                logger.error("Interpolation error at s=%s: %s", s, error)

    def __str__(self) -> str:
        lines = ["Border Points:"]
        lines.extend(str(p) for p in self.points)
        lines.append("Interpolated Points:")
        lines.extend(str(p) for p in self.interpolated_points)
        return "\n".join(lines) + "\n"


@dataclass
class Borders:
    """The inner, outer and center borders of one lane."""

    inner: Border = field(default_factory=Border)
    outer: Border = field(default_factory=Border)
    center: Border = field(default_factory=Border)


def process_center(borders: Borders) -> None:
    """Build the center line as the midpoints of inner and outer samples."""
    inner = borders.inner.interpolated_points
    outer = borders.outer.interpolated_points
    if len(inner) != len(outer):
        raise ValueError("Borders need equal size inner and outer to process center.")

    borders.center.interpolated_points = [
        MapPoint(
            (inner_point.x + outer_point.x) / 2.0,
            (inner_point.y + outer_point.y) / 2.0,
            outer_point.parent_id,
            s=inner_point.s,
        )
        for inner_point, outer_point in zip(inner, outer)
    ]


def interpolate_borders(borders: Borders, spacing_s: float) -> None:
    """Resample inner and outer borders at the same number of aligned samples."""
    inner, outer = borders.inner, borders.outer
    if len(inner.points) < 2 or len(outer.points) < 2:
        return

    inner.initialize_spline()
    outer.initialize_spline()
    inner_length = inner.compute_length()
    outer_length = outer.compute_length()

    max_length = max(inner_length, outer_length)
    num_samples = max(int(max_length / spacing_s) + 1, 2)
    t_values = [i / (num_samples - 1) for i in range(num_samples)]

    inner.interpolate_border(t * inner_length for t in t_values)
    outer.interpolate_border(t * outer_length for t in t_values)

    for t, inner_point, outer_point in zip(t_values, inner.interpolated_points, outer.interpolated_points):
        inner_point.s = t * max_length
        outer_point.s = t * max_length


def set_parent_id(borders: Borders, parent_id: int) -> None:
    """Assign ``parent_id`` to every point of every border."""
    for border in (borders.inner, borders.outer, borders.center):
        for point in (*border.points, *border.interpolated_points):
            point.parent_id = parent_id