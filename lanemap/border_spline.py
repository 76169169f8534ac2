"""Natural cubic spline through border points, parameterised by arc length."""

from __future__ import annotations

from bisect import bisect_left
from typing import Iterable, Sequence

import numpy as np

from lanemap.map_point import MapPoint, distance_2d


def _evaluate_cubic(a: float, b: float, c: float, d: float, ds: float) -> float:
    return a + ds * (b + ds * (c + ds * d))


class _Coefficients:
    """Per-interval cubic coefficients of one coordinate."""

    def __init__(self, distances: np.ndarray, values: np.ndarray) -> None:
        n = len(values) - 1
        h = np.diff(distances)
        slopes = np.diff(values) / h

        matrix = np.zeros((n + 1, n + 1))
        rhs = np.zeros(n + 1)
        inner = np.arange(1, n)
        matrix[inner, inner - 1] = h[:-1]
        matrix[inner, inner] = 2.0 * (h[:-1] + h[1:])
        matrix[inner, inner + 1] = h[1:]
        rhs[1:n] = 3.0 * (slopes[1:] - slopes[:-1])
        # natural boundary conditions
        matrix[0, 0] = 1.0
        matrix[n, n] = 1.0

        c = np.linalg.solve(matrix, rhs)
        if not np.all(np.isfinite(c)):
            raise ValueError("Solution contains NaNs or Infs, indicating an unstable system.")

        self.a: list[float] = values[:-1].tolist()
        self.b: list[float] = (slopes - (2.0 * c[:-1] + c[1:]) * h / 3.0).tolist()
        self.c: list[float] = c.tolist()
        self.d: list[float] = (np.diff(c) / (3.0 * h)).tolist()

    def value(self, i: int, ds: float) -> float:
        return _evaluate_cubic(self.a[i], self.b[i], self.c[i], self.d[i], ds)

    def first_derivative(self, i: int, ds: float) -> float:
        return self.b[i] + ds * (2.0 * self.c[i] + 3.0 * self.d[i] * ds)

    def second_derivative(self, i: int, ds: float) -> float:
        return 2.0 * self.c[i] + 6.0 * self.d[i] * ds


class BorderSpline:
    """Cubic spline x(s), y(s) through points, skipping repeated points."""

    def __init__(self, points: Sequence[MapPoint]) -> None:
        if len(points) < 2:
            raise ValueError("Insufficient points for spline calculation.")

        distances = [0.0]
        xs = [points[0].x]
        ys = [points[0].y]
        for previous, current in zip(points, points[1:]):
            step = distance_2d(previous, current)
            if step == 0.0:
                continue
            distances.append(distances[-1] + step)
            xs.append(current.x)
            ys.append(current.y)

        if len(distances) < 2:
            raise ValueError("Insufficient unique points for spline calculation.")

        self._distances = distances
        dist_array = np.asarray(distances)
        self._x = _Coefficients(dist_array, np.asarray(xs))
        self._y = _Coefficients(dist_array, np.asarray(ys))

    def _locate(self, s: float) -> tuple[int, float]:
        """Interval index holding ``s`` (clamped) and the offset of ``s`` in it."""
        distances = self._distances
        clamped = min(max(s, distances[0]), distances[-1])
        i = bisect_left(distances, clamped)
        if i == 0:
            index = 0
        elif i >= len(distances):
            index = len(distances) - 2
        else:
            index = i - 1
        return index, s - distances[index]

    def get_point_at_s(self, s: float) -> MapPoint:
        i, ds = self._locate(s)
        return MapPoint(self._x.value(i, ds), self._y.value(i, ds), 0)

    def get_x_derivative_at_s(self, s: float) -> float:
        i, ds = self._locate(s)
        return self._x.first_derivative(i, ds)

    def get_y_derivative_at_s(self, s: float) -> float:
        i, ds = self._locate(s)
        return self._y.first_derivative(i, ds)

    def get_x_second_derivative_at_s(self, s: float) -> float:
        i, ds = self._locate(s)
        return self._x.second_derivative(i, ds)

    def get_y_second_derivative_at_s(self, s: float) -> float:
        i, ds = self._locate(s)
        return self._y.second_derivative(i, ds)

    def get_points_at_s_values(self, s_values: Iterable[float]) -> list[MapPoint]:
        return [self.get_point_at_s(s) for s in s_values]

    @property
    def total_length(self) -> float:
        """Cumulative chord length from the first to the last unique point."""
        return self._distances[-1]