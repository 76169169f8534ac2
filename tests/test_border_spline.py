import math

import pytest

from lanemap.border_spline import BorderSpline
from lanemap.map_point import MapPoint, distance_2d


def _points(coords):
    return [MapPoint(x, y, 0) for x, y in coords]


CURVE = _points([(0.0, 0.0), (2.0, 1.0), (4.0, 0.5), (5.0, 3.0), (7.0, 4.0)])


def _knot_distances(points):
    distances = [0.0]
    for a, b in zip(points, points[1:]):
        distances.append(distances[-1] + distance_2d(a, b))
    return distances


def test_spline_passes_through_knots():
    spline = BorderSpline(CURVE)
    for s, original in zip(_knot_distances(CURVE), CURVE):
        point = spline.get_point_at_s(s)
        assert point.x == pytest.approx(original.x)
        assert point.y == pytest.approx(original.y)


def test_total_length_is_chord_length():
    spline = BorderSpline(CURVE)
    assert spline.total_length == pytest.approx(_knot_distances(CURVE)[-1])


def test_duplicate_points_are_skipped():
    with_duplicates = _points([(0.0, 0.0), (0.0, 0.0), (3.0, 4.0), (3.0, 4.0), (6.0, 8.0)])
    spline = BorderSpline(with_duplicates)
    clean = BorderSpline(_points([(0.0, 0.0), (3.0, 4.0), (6.0, 8.0)]))
    assert spline.total_length == pytest.approx(clean.total_length)
    mid = spline.get_point_at_s(2.5)
    assert mid == clean.get_point_at_s(2.5)


def test_straight_line_is_linear():
    spline = BorderSpline(_points([(0.0, 0.0), (1.0, 0.0), (2.0, 0.0), (4.0, 0.0)]))
    for s in (0.0, 0.3, 1.7, 3.2, 4.0):
        point = spline.get_point_at_s(s)
        assert point.x == pytest.approx(s)
        assert point.y == pytest.approx(0.0)
        assert spline.get_x_derivative_at_s(s) == pytest.approx(1.0)


def test_natural_boundary_conditions():
    spline = BorderSpline(CURVE)
    end = spline.total_length
    assert spline.get_x_second_derivative_at_s(0.0) == pytest.approx(0.0, abs=1e-9)
    assert spline.get_y_second_derivative_at_s(0.0) == pytest.approx(0.0, abs=1e-9)
    assert spline.get_x_second_derivative_at_s(end) == pytest.approx(0.0, abs=1e-9)
    assert spline.get_y_second_derivative_at_s(end) == pytest.approx(0.0, abs=1e-9)


@pytest.mark.parametrize("s", [0.5, 2.0, 4.3, 6.1])
def test_derivatives_match_finite_differences(s):
    spline = BorderSpline(CURVE)
    h = 1e-5
    ahead = spline.get_point_at_s(s + h)
    behind = spline.get_point_at_s(s - h)
    assert spline.get_x_derivative_at_s(s) == pytest.approx((ahead.x - behind.x) / (2 * h), rel=1e-4)
    assert spline.get_y_derivative_at_s(s) == pytest.approx((ahead.y - behind.y) / (2 * h), rel=1e-4)
    dx_ahead = spline.get_x_derivative_at_s(s + h)
    dx_behind = spline.get_x_derivative_at_s(s - h)
    assert spline.get_x_second_derivative_at_s(s) == pytest.approx((dx_ahead - dx_behind) / (2 * h), rel=1e-3, abs=1e-6)


def test_s_beyond_range_is_clamped_to_interval():
    spline = BorderSpline(_points([(0.0, 0.0), (1.0, 0.0)]))
    before = spline.get_point_at_s(-1.0)
    after = spline.get_point_at_s(spline.total_length + 1.0)
    # the cubic of the first/last interval is extrapolated from the clamped interval
    assert before.y == pytest.approx(0.0)
    assert after.y == pytest.approx(0.0)
    assert after.x > before.x


def test_points_at_s_values_matches_single_evaluation():
    spline = BorderSpline(CURVE)
    s_values = [0.0, 1.1, 3.3, spline.total_length]
    batch = spline.get_points_at_s_values(s_values)
    assert batch == [spline.get_point_at_s(s) for s in s_values]
    assert all(p.parent_id == 0 for p in batch)


def test_too_few_points_raises():
    with pytest.raises(ValueError):
        BorderSpline(_points([(1.0, 1.0)]))


def test_only_duplicate_points_raises():
    with pytest.raises(ValueError):
        BorderSpline(_points([(1.0, 1.0), (1.0, 1.0), (1.0, 1.0)]))


def test_arc_is_smooth_and_finite():
    arc = _points([(math.cos(t / 10), math.sin(t / 10)) for t in range(16)])
    spline = BorderSpline(arc)
    samples = spline.get_points_at_s_values([i * spline.total_length / 50 for i in range(51)])
    assert all(math.isfinite(p.x) and math.isfinite(p.y) for p in samples)
    assert all(abs(math.hypot(p.x, p.y) - 1.0) < 1e-3 for p in samples)