"""A lane map: lanes, roads, lane graph and a spatial index of center points."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field

from lanemap.lane import Lane, Road
from lanemap.map_point import HasXY, MapPoint
from lanemap.quadtree import Boundary, Quadtree
from lanemap.road_graph import RoadGraph

logger = logging.getLogger(__name__)

DEFAULT_SPEED_LIMIT = 13.6


@dataclass
class Map:
    """Lanes and roads by id, the lane graph, and a quadtree of center points."""

    quadtree: Quadtree[MapPoint] = field(default_factory=Quadtree)
    lane_graph: RoadGraph = field(default_factory=RoadGraph)
    roads: dict[int, Road] = field(default_factory=dict)
    lanes: dict[int, Lane] = field(default_factory=dict)

    def lane_speed_limit(self, lane_id: int) -> float:
        """Speed limit of the lane, or a default when the lane is not known."""
        lane = self.lanes.get(lane_id)
        if lane is None:
            return DEFAULT_SPEED_LIMIT
        return lane.speed_limit

    def submap(self, center: HasXY, width: float, height: float) -> Map:
        """Copy of the lanes with center points inside the given rectangle."""
        query_boundary = Boundary(
            center.x - width / 2.0,
            center.x + width / 2.0,
            center.y - height / 2.0,
            center.y + height / 2.0,
        )
        result = Map(quadtree=Quadtree(query_boundary, self.quadtree.capacity))

        lane_ids = {point.parent_id for point in self.quadtree.query(query_boundary)}
        for lane_id in sorted(lane_ids):
            lane = self.lanes.get(lane_id)
            if lane is None:
                continue
            copied_lane = copy.deepcopy(lane)
            result.lanes[lane_id] = copied_lane
            for point in copied_lane.borders.center.interpolated_points:
                result.quadtree.insert(point)

            road = self.roads.get(lane.road_id)
            if road is None:
                continue
            if road.id in result.roads:
                result.roads[road.id].lanes.add(copied_lane)
            else:
                copied_road = copy.copy(road)
                copied_road.lanes = {copied_lane}
                result.roads[lane.road_id] = copied_road

        result.lane_graph = self.lane_graph.create_subgraph(lane_ids)
        return result

    def is_point_on_road(self, point: HasXY) -> bool:
        """True when ``point`` lies within half a lane width of a center point."""
        nearest = self.quadtree.nearest_point(point)
        if nearest is None:
            return False
        near_point, distance = nearest
        lane = self.lanes.get(near_point.parent_id)
        if lane is None:
            logger.error("is_point_on_road: nearest point not in lanes")
            return False
        return distance < lane.width(near_point.s) / 2