"""Raster images of lane center lines around a point of a map."""

from __future__ import annotations

from typing import Optional

import numpy as np
from scipy.ndimage import distance_transform_edt

from lanemap.map import Map
from lanemap.map_point import HasXY
from lanemap.quadtree import Boundary

BACKGROUND = 255
LINE = 0


def map_point_to_pixel(point: HasXY, origin: HasXY, image_size: int, pixel_size: float) -> tuple[int, int]:
    """Pixel (column, row) of ``point`` in an image centred on ``origin``."""
    x_pixel = int((point.x - origin.x) / pixel_size) + image_size // 2
    y_pixel = image_size // 2 - int((point.y - origin.y) / pixel_size)
    return x_pixel, y_pixel


def _clip_segment(
    x0: float, y0: float, x1: float, y1: float, x_max: float, y_max: float
) -> Optional[tuple[float, float, float, float]]:
    """Clip a segment to [0, x_max] x [0, y_max]; None when it lies outside."""
    dx = x1 - x0
    dy = y1 - y0
    t0, t1 = 0.0, 1.0
    for p, q in ((-dx, x0), (dx, x_max - x0), (-dy, y0), (dy, y_max - y0)):
        if p == 0:
            if q < 0:
                return None
            continue
        ratio = q / p
        if p < 0:
            if ratio > t1:
                return None
            t0 = max(t0, ratio)
        else:
            if ratio < t0:
                return None
            t1 = min(t1, ratio)
    return x0 + t0 * dx, y0 + t0 * dy, x0 + t1 * dx, y0 + t1 * dy


def _draw_segment(image: np.ndarray, start: tuple[int, int], end: tuple[int, int]) -> None:
    height, width = image.shape
    clipped = _clip_segment(*start, *end, width - 1, height - 1)
    if clipped is None:
        return
    x0, y0, x1, y1 = clipped
    steps = int(round(max(abs(x1 - x0), abs(y1 - y0)))) + 1
    xs = np.clip(np.rint(np.linspace(x0, x1, steps)).astype(int), 0, width - 1)
    ys = np.clip(np.rint(np.linspace(y0, y1, steps)).astype(int), 0, height - 1)
    image[ys, xs] = LINE


def raster_lane_centerlines(road_map: Map, center: HasXY, image_size: int, pixel_size: float) -> np.ndarray:
    """Square uint8 image, white background, with lane center lines drawn in black."""
    image = np.full((image_size, image_size), BACKGROUND, dtype=np.uint8)

    half = image_size * pixel_size / 2.0
    query = Boundary(center.x - half, center.x + half, center.y - half, center.y + half)
    lane_ids = sorted({point.parent_id for point in road_map.quadtree.query(query)})

    for lane_id in lane_ids:
        lane = road_map.lanes.get(lane_id)
        if lane is None:
            continue
        pixels = [
            map_point_to_pixel(point, center, image_size, pixel_size)
            for point in lane.borders.center.interpolated_points
        ]
        for start, end in zip(pixels, pixels[1:]):
            _draw_segment(image, start, end)
    return image


def raster_lane_center_distances(road_map: Map, center: HasXY, image_size: int, pixel_size: float) -> np.ndarray:
    """Distance in pixels from each pixel to the nearest lane center line.

    Without any center line in view every pixel is infinitely far.
    """
    lines = raster_lane_centerlines(road_map, center, image_size, pixel_size)
    on_line = lines == LINE
    if not on_line.any():
        return np.full(lines.shape, np.inf, dtype=np.float32)
    return distance_transform_edt(~on_line).astype(np.float32)