"""Routes through a lane map: lane sections and a resampled center line."""

from __future__ import annotations

import copy
import logging
import math
from bisect import bisect_left, bisect_right
from dataclasses import dataclass, replace
from typing import Optional

from lanemap.border import Border
from lanemap.map import Map
from lanemap.map_point import HasXY, MapPoint

logger = logging.getLogger(__name__)

MIN_CENTER_POINT_SPACING = 0.5
_DEGENERATE = 1e-9


@dataclass
class Pose2d:
    """Planar position with heading."""

    x: float = 0.0
    y: float = 0.0
    yaw: float = 0.0


@dataclass
class RouteSection:
    """The part of one lane that a route uses, from ``start_s`` to ``end_s``."""

    lane_id: int = 0
    route_s: float = 0.0
    start_s: float = 0.0
    end_s: float = 0.0


@dataclass
class _Sample:
    x: float
    y: float
    yaw: Optional[float]
    nearest: MapPoint


class Route:
    """A lane-level route between two points of a map."""

    def __init__(
        self,
        start: Optional[HasXY] = None,
        destination: Optional[HasXY] = None,
        reference_map: Optional[Map] = None,
    ) -> None:
        self.lane_to_sections: dict[int, RouteSection] = {}
        self.s_to_sections: dict[float, RouteSection] = {}
        self.sections: list[RouteSection] = []
        self.center_lane: dict[float, MapPoint] = {}
        self.start = MapPoint(start.x, start.y) if start is not None else None
        self.destination = MapPoint(destination.x, destination.y) if destination is not None else None
        self.road_map = copy.deepcopy(reference_map) if reference_map is not None else None

        if self.road_map is None or self.start is None or self.destination is None:
            return

        nearest_start = self.road_map.quadtree.nearest_point(self.start)
        nearest_end = self.road_map.quadtree.nearest_point(self.destination)
        if nearest_start is None or nearest_end is None:
            return
        start_point, _ = nearest_start
        end_point, _ = nearest_end

        path = self.road_map.lane_graph.best_path(start_point.parent_id, end_point.parent_id)
        for lane_id in path:
            lane = self.road_map.lanes[lane_id]
            self.add_route_section(lane.borders.center, start_point, end_point, lane.left_of_reference)
        self.initialize_center_lane()

    def add_route_section(
        self,
        border: Border,
        start_point: MapPoint,
        end_point: MapPoint,
        reverse: bool = False,
    ) -> None:
        """Append the lane of ``border``, cut at the start or end point if they lie on it."""
        points = border.interpolated_points
        if not points:
            return
        section = RouteSection(lane_id=points[0].parent_id)
        if reverse:
            section.start_s = points[-1].s
            section.end_s = points[0].s
        else:
            section.start_s = points[0].s
            section.end_s = points[-1].s
        if start_point.parent_id == section.lane_id:
            section.start_s = start_point.s
        if end_point.parent_id == section.lane_id:
            section.end_s = end_point.s

        self.lane_to_sections[section.lane_id] = section
        self.sections.append(section)

    def length(self) -> float:
        """Route distance of the last center-line point."""
        if not self.center_lane:
            return 0.0
        return next(reversed(self.center_lane))

    def shortened_route(self, start_s: float, desired_length: float) -> list[MapPoint]:
        """Center-line points with route distance in [start_s, start_s + desired_length]."""
        keys = list(self.center_lane)
        lower = bisect_left(keys, start_s)
        upper = bisect_right(keys, start_s + desired_length)
        if upper < lower:
            upper = len(keys)
        return [self.center_lane[key] for key in keys[lower:upper]]

    def map_point_at_s(self, distance: float) -> MapPoint:
        """Point on the center line at route distance ``distance``."""
        sample = self._interpolate(distance)
        if sample is None:
            if not self.center_lane:
                return MapPoint()
            only = next(iter(self.center_lane.values()))
            return MapPoint(only.x, only.y)
        return MapPoint(sample.x, sample.y, sample.nearest.parent_id, s=distance)

    def pose_at_s(self, distance: float) -> Pose2d:
        """Pose on the center line at route distance ``distance``."""
        sample = self._interpolate(distance)
        if sample is None:
            if not self.center_lane:
                return Pose2d()
            only = next(iter(self.center_lane.values()))
            return Pose2d(only.x, only.y, 0.0)
        return Pose2d(sample.x, sample.y, sample.yaw if sample.yaw is not None else 0.0)

    def _interpolate(self, distance: float) -> Optional[_Sample]:
        """Linear interpolation between neighbouring center points; None for fewer than two."""
        keys = list(self.center_lane)
        if len(keys) < 2:
            return None

        index = bisect_left(keys, distance)
        if index == len(keys):
            lower, upper, frac = len(keys) - 2, len(keys) - 1, 1.0
        elif index == 0:
            lower, upper, frac = 0, 1, 0.0
        else:
            lower, upper = index - 1, index
            denom = keys[upper] - keys[lower]
            frac = 0.0 if abs(denom) < _DEGENERATE else (distance - keys[lower]) / denom

        p1 = self.center_lane[keys[lower]]
        p2 = self.center_lane[keys[upper]]
        dx = p2.x - p1.x
        dy = p2.y - p1.y
        yaw = None
        if not (abs(dx) < _DEGENERATE and abs(dy) < _DEGENERATE):
            yaw = math.atan2(dy, dx)

        if index == len(keys):
            near_lower, near_upper = len(keys) - 2, len(keys) - 1
        elif index == 0:
            near_lower = near_upper = 0
        else:
            near_lower, near_upper = index - 1, index
        if abs(distance - keys[near_lower]) < abs(distance - keys[near_upper]):
            nearest = self.center_lane[keys[near_lower]]
        else:
            nearest = self.center_lane[keys[near_upper]]

        return _Sample(p1.x + frac * dx, p1.y + frac * dy, yaw, nearest)

    def initialize_center_lane(self) -> None:
        """Collect the center points of all sections, keyed by route distance."""
        self.center_lane = {}
        if self.road_map is None:
            return

        collected: dict[float, MapPoint] = {}
        s = 0.0
        for section in self.sections:
            section.route_s = s
            self.s_to_sections[s] = section

            lane = self.road_map.lanes.get(section.lane_id)
            if lane is None:
                continue

            points = lane.borders.center.interpolated_points
            reverse = section.end_s < section.start_s
            low = section.end_s if reverse else section.start_s
            high = section.start_s if reverse else section.end_s
            ordered = reversed(points) if reverse else points
            for point in ordered:
                local_s = (high - point.s) if reverse else (point.s - low)
                if low <= point.s <= high:
                    collected[s + local_s] = replace(point)
            s = max(collected, default=0.0)

        keys = sorted(collected)
        kept = [key for key, following in zip(keys, keys[1:]) if abs(following - key) >= MIN_CENTER_POINT_SPACING]
        kept.extend(keys[-1:])
        self.center_lane = {key: collected[key] for key in kept}

    def s_of(self, state: HasXY) -> float:
        """Route distance of the route point nearest to ``state``; infinity if there is none."""
        if self.road_map is None:
            logger.error("route needs map")
            return math.inf

        found = self.road_map.quadtree.nearest_point(
            state, lambda p: p.parent_id in self.lane_to_sections
        )
        if found is None:
            logger.error("no nearest route point")
            return math.inf

        nearest, _ = found
        section = self.lane_to_sections[nearest.parent_id]
        if section.start_s < section.end_s:
            along = nearest.s - section.start_s
        else:
            along = section.start_s - nearest.s
        return section.route_s + along