"""A 3x3 grid of raster tiles around a moving point."""

from __future__ import annotations

import logging
import math
from typing import Any, Callable

import numpy as np

from lanemap.map_point import HasXY

logger = logging.getLogger(__name__)

TileFunction = Callable[[Any, float, float, int, float], np.ndarray]


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


class TileMap:
    """Nine square tiles of ``mat_size`` pixels, the middle one centred on the grid center.

    ``grid[i][j]`` is the tile of column ``i`` (west to east) and row ``j``
    (north to south).
    """

    def __init__(
        self,
        road_map: Any,
        tile_function: TileFunction,
        mat_size: int,
        pixel_size: float,
        initial_x: float,
        initial_y: float,
    ) -> None:
        self.road_map = road_map
        self.tile_function = tile_function
        self.mat_size = mat_size
        self.pixel_size = pixel_size
        self.center_x = initial_x
        self.center_y = initial_y
        self.grid: list[list[np.ndarray]] = self._build_grid()

    def _build_grid(self) -> list[list[np.ndarray]]:
        span = self.mat_size * self.pixel_size
        grid: list[list[Any]] = [[None] * 3 for _ in range(3)]
        for i in range(3):
            for j in range(3):
                grid[i][2 - j] = self.tile_function(
                    self.road_map,
                    self.center_x + (i - 1) * span,
                    self.center_y + (j - 1) * span,
                    self.mat_size,
                    self.pixel_size,
                )
        return grid

    def cropped(self, point: HasXY, crop_size: int) -> np.ndarray:
        """Square window of ``crop_size`` pixels around ``point``, zero outside the tiles."""
        half = crop_size // 2
        result = np.zeros((crop_size, crop_size), dtype=self.grid[1][1].dtype)

        global_x = (point.x - self.center_x) / self.pixel_size + (3 * self.mat_size // 2)
        global_y = 3 * self.mat_size // 2 - (point.y - self.center_y) / self.pixel_size

        for i in range(3):
            for j in range(3):
                origin_x = i * self.mat_size
                origin_y = j * self.mat_size
                in_tile_x = global_x - origin_x
                in_tile_y = global_y - origin_y

                start_x = max(0, _round_half_away(in_tile_x - half))
                start_y = max(0, _round_half_away(in_tile_y - half))
                end_x = min(self.mat_size, _round_half_away(in_tile_x + half))
                end_y = min(self.mat_size, _round_half_away(in_tile_y + half))
                if start_x >= end_x or start_y >= end_y:
                    continue

                width = end_x - start_x
                height = end_y - start_y
                dest_x = int(start_x + origin_x - global_x + half)
                dest_y = int(start_y + origin_y - global_y + half)
                if dest_x < 0 or dest_y < 0 or dest_x + width > crop_size or dest_y + height > crop_size:
                    continue

                result[dest_y:dest_y + height, dest_x:dest_x + width] = (
                    self.grid[i][j][start_y:end_y, start_x:end_x]
                )
        return result

    def update(self, point: HasXY) -> None:
        """Move the grid by whole tiles when ``point`` leaves the middle tile's span."""
        span = self.mat_size * self.pixel_size
        shift_x = math.floor((point.x - self.center_x) / span)
        shift_y = math.floor((point.y - self.center_y) / span)
        if shift_x == 0 and shift_y == 0:
            return
        self.center_x += shift_x * span
        self.center_y += shift_y * span
        self.grid = self._build_grid()
        logger.info("Grid shifted. New center: center_x = %s, center_y = %s", self.center_x, self.center_y)