import numpy as np
import pytest

from lanemap.border import Border
from lanemap.lane import Lane
from lanemap.map import Map
from lanemap.map_point import MapPoint
from lanemap.quadtree import Boundary, Quadtree
from lanemap.rasterizer import (
    map_point_to_pixel,
    raster_lane_center_distances,
    raster_lane_centerlines,
)

SIZE = 100
PIXEL = 0.5
CENTER = MapPoint(10.0, 0.0)


def _border(y):
    border = Border(points=[MapPoint(0.0, y, 1), MapPoint(20.0, y, 1)])
    border.compute_s_values()
    return border


def _make_map(with_lane=True):
    road_map = Map(quadtree=Quadtree(Boundary(-100.0, 100.0, -100.0, 100.0)))
    if with_lane:
        lane = Lane(_border(1.0), _border(-1.0), 1, 1, False)
        road_map.lanes[1] = lane
        for point in lane.borders.center.interpolated_points:
            road_map.quadtree.insert(point)
    return road_map


def test_origin_maps_to_image_center():
    assert map_point_to_pixel(CENTER, CENTER, SIZE, PIXEL) == (SIZE // 2, SIZE // 2)


def test_pixel_axes_directions():
    cx, cy = map_point_to_pixel(CENTER, CENTER, SIZE, PIXEL)
    east = map_point_to_pixel(MapPoint(CENTER.x + 3.0, CENTER.y), CENTER, SIZE, PIXEL)
    north = map_point_to_pixel(MapPoint(CENTER.x, CENTER.y + 3.0), CENTER, SIZE, PIXEL)
    assert east[0] > cx and east[1] == cy
    assert north[1] < cy and north[0] == cx


def test_centerline_drawn_on_row():
    image = raster_lane_centerlines(_make_map(), CENTER, SIZE, PIXEL)
    assert image.shape == (SIZE, SIZE)
    assert image.dtype == np.uint8
    col_start, row = map_point_to_pixel(MapPoint(0.0, 0.0), CENTER, SIZE, PIXEL)
    col_end, _ = map_point_to_pixel(MapPoint(20.0, 0.0), CENTER, SIZE, PIXEL)
    assert np.all(image[row, col_start:col_end + 1] == 0)
    assert int((image == 0).sum()) == col_end - col_start + 1
    assert set(np.unique(image)) == {0, 255}


def test_empty_map_is_blank():
    image = raster_lane_centerlines(_make_map(False), CENTER, SIZE, PIXEL)
    assert image.shape == (SIZE, SIZE)
    assert image.tolist() == [[255] * SIZE] * SIZE


def test_distances_zero_on_line_and_grow():
    distances = raster_lane_center_distances(_make_map(), CENTER, SIZE, PIXEL)
    col, row = map_point_to_pixel(CENTER, CENTER, SIZE, PIXEL)
    assert distances.dtype == np.float32
    assert distances[row, col] == 0.0
    assert distances[row - 3, col] == pytest.approx(3.0)
    assert np.all(distances >= 0.0)


def test_distances_without_lines_are_infinite():
    distances = raster_lane_center_distances(_make_map(False), CENTER, SIZE, PIXEL)
    assert distances.shape == (SIZE, SIZE)
    assert int(np.count_nonzero(np.isinf(distances))) == SIZE * SIZE


def test_far_away_lane_not_drawn():
    image = raster_lane_centerlines(_make_map(), MapPoint(90.0, 90.0), 20, PIXEL)
    assert image.shape == (20, 20)
    assert int(image.min()) == 255