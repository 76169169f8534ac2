"""Build lane maps from R2S reference lines and lane boundaries."""

from __future__ import annotations

import itertools
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence, Union

from lanemap.border import Border
from lanemap.lane import Lane, Road
from lanemap.map import Map
from lanemap.map_point import MapPoint, distance_2d
from lanemap.quadtree import Boundary, Quadtree
from lanemap.r2s_parser import (
    BorderDataR2SL,
    BorderDataR2SR,
    load_border_data_from_r2sl_file,
    load_border_data_from_r2sr_file,
)
from lanemap.road_graph import Connection, ConnectionType, RoadGraph

logger = logging.getLogger(__name__)

LANE_CONNECTION_DIST = 1.2
MIN_LANE_LENGTH = 0.5
QUADTREE_MARGIN = 100.0
LATERAL_OFFSET_DELTA_S = 0.01

PathLike = Union[str, Path]

_lane_ids = itertools.count(1)

# Which lane directions may be joined by each kind of connection:
# (from lane left of reference, to lane left of reference).
_ALLOWED_DIRECTIONS = {
    ConnectionType.END_TO_START: (False, False),
    ConnectionType.START_TO_END: (True, True),
    ConnectionType.START_TO_START: (True, False),
    ConnectionType.END_TO_END: (False, True),
}


@dataclass
class BorderWithOffset:
    """A clipped border with its lateral offset from the reference line."""

    clipped_border: Border
    lateral_offset: float


def _generate_lane_id() -> int:
    return next(_lane_ids)


def load_from_file(path: PathLike, ignore_non_driving: bool = False) -> Map:
    """Load a map, choosing the reader by the file extension."""
    name = str(path)
    dot = name.rfind(".")
    if dot == -1:
        raise ValueError(f"File has no extension: {name}")
    extension = name[dot + 1:].lower()
    if extension == "r2sr":
        return load_from_r2s_file(name, ignore_non_driving)
    if extension == "xodr":
        raise ValueError("Unsupported file extension: xodr (OpenDRIVE maps cannot be read)")
    raise ValueError(f"Unsupported file extension: {extension}")


def load_from_r2s_file(path: PathLike, ignore_non_driving: bool = False) -> Map:
    """Load a map from an .r2sr file and its sibling .r2sl file.

    Only boundaries of type ``driving`` are used, whatever ``ignore_non_driving`` says.
    """
    standard_lines = load_border_data_from_r2sr_file(path)
    lane_boundaries = load_border_data_from_r2sl_file(path)
    return create_from_r2s(standard_lines, lane_boundaries)


def _quadtree_bounds(
    standard_lines: Iterable[BorderDataR2SR], lane_boundaries: Iterable[BorderDataR2SL]
) -> Boundary:
    x_min = y_min = math.inf
    x_max = y_max = -math.inf
    for line in itertools.chain(standard_lines, lane_boundaries):
        if line.x:
            x_min = min(x_min, min(line.x))
            x_max = max(x_max, max(line.x))
        if line.y:
            y_min = min(y_min, min(line.y))
            y_max = max(y_max, max(line.y))
    return Boundary(
        x_min - QUADTREE_MARGIN,
        x_max + QUADTREE_MARGIN,
        y_min - QUADTREE_MARGIN,
        y_max + QUADTREE_MARGIN,
    )


def create_from_r2s(
    standard_lines: Sequence[BorderDataR2SR], lane_boundaries: Sequence[BorderDataR2SL]
) -> Map:
    """Build lanes between neighbouring driving boundaries of each reference line."""
    road_map = Map(quadtree=Quadtree(_quadtree_bounds(standard_lines, lane_boundaries)))

    refline_to_borders: dict[int, list[BorderDataR2SL]] = {}
    id_to_border: dict[int, BorderDataR2SL] = {}
    for boundary in lane_boundaries:
        if boundary.linetype != "driving":
            continue
        refline_to_borders.setdefault(boundary.parent_id, []).append(boundary)
        id_to_border[boundary.id] = boundary

    for ref_line in standard_lines:
        road = Road(ref_line.streetname, ref_line.id, ref_line.category, ref_line.oneway)
        reference_line = create_reference_line(ref_line)
        relevant = _relevant_borders(refline_to_borders.get(ref_line.id, ()), reference_line)
        s_positions = collect_s_positions(reference_line, relevant)
        if len(s_positions) < 2:
            continue
        for s_start, s_end in zip(s_positions, s_positions[1:]):
            clipped = get_clipped_borders(relevant, reference_line, s_start, s_end)
            for left, right in zip(clipped, clipped[1:]):
                _make_lane(left, right, road, road_map, id_to_border)
        road_map.roads[ref_line.id] = road

    road_map.lane_graph = infer_graph_from_proximity_of_lanes(road_map, LANE_CONNECTION_DIST)
    return road_map


def _make_lane(
    left: BorderWithOffset,
    right: BorderWithOffset,
    road: Road,
    road_map: Map,
    id_to_border: dict[int, BorderDataR2SL],
) -> None:
    left_of_reference = left.lateral_offset < 0.0
    lane = Lane(
        left.clipped_border, right.clipped_border, _generate_lane_id(), road.id, left_of_reference
    )
    source = left if left_of_reference else right
    boundary = id_to_border.get(source.clipped_border.points[0].parent_id)
    if boundary is not None:
        lane.set_material(boundary.material)
        lane.set_type(boundary.linetype, road.category)

    road_map.lanes[lane.id] = lane
    road.lanes.add(lane)
    for point in lane.borders.center.interpolated_points:
        road_map.quadtree.insert(point)


def _relevant_borders(
    boundaries: Iterable[BorderDataR2SL], reference_line: Border
) -> list[Border]:
    borders = []
    for boundary in boundaries:
        border = Border(points=[MapPoint(x, y, boundary.id) for x, y in zip(boundary.x, boundary.y)])
        border.reparameterize_based_on_reference(reference_line)
        borders.append(border)
    return borders


def create_reference_line(ref_line: BorderDataR2SR) -> Border:
    """Reference line border with spline, cumulative ``s`` values and length."""
    reference_line = Border(
        points=[MapPoint(x, y, ref_line.id) for x, y in zip(ref_line.x, ref_line.y)]
    )
    reference_line.initialize_spline()
    reference_line.compute_s_values()
    reference_line.compute_length()
    return reference_line


def collect_s_positions(reference_line: Border, borders: Iterable[Border]) -> list[float]:
    """Sorted start and end positions along the reference line, merged within tolerance."""
    positions = [0.0, reference_line.length]
    for border in borders:
        positions.append(border.points[0].s)
        positions.append(border.points[-1].s)
    positions.sort()

    kept: list[float] = []
    for s in positions:
        if kept and abs(kept[-1] - s) <= MIN_LANE_LENGTH:
            continue
        kept.append(s)
    return kept


def get_clipped_borders(
    borders: Iterable[Border], reference_line: Border, s_start: float, s_end: float
) -> list[BorderWithOffset]:
    """Reference line and borders clipped to [s_start, s_end], ordered by lateral offset."""
    ref_clipped = reference_line.make_clipped(s_start, s_end)
    if len(ref_clipped.points) < 2:
        return []
    result = [BorderWithOffset(ref_clipped, 0.0)]

    for border in borders:
        if border.points[-1].s <= s_start or border.points[0].s >= s_end:
            continue
        clipped = border.make_clipped(s_start, s_end)
        if len(clipped.points) < 2:
            continue
        point = clipped.interpolated_point((s_start + s_end) / 2.0)
        result.append(BorderWithOffset(clipped, compute_lateral_offset(ref_clipped, point)))

    result.sort(key=lambda item: item.lateral_offset)
    return result


def compute_lateral_offset(reference_line: Border, target_point: MapPoint) -> float:
    """Signed distance of ``target_point`` from the reference line; negative to the left."""
    mid_s = (reference_line.points[0].s + reference_line.points[-1].s) / 2.0
    ref_point = reference_line.interpolated_point(mid_s)
    ref_next = reference_line.interpolated_point(ref_point.s + LATERAL_OFFSET_DELTA_S)

    dx = ref_next.x - ref_point.x
    dy = ref_next.y - ref_point.y
    magnitude = math.hypot(dx, dy)
    if magnitude == 0.0:
        return 0.0

    nx = -dy / magnitude
    ny = dx / magnitude
    tx = target_point.x - ref_point.x
    ty = target_point.y - ref_point.y
    return -(tx * nx + ty * ny)


def infer_graph_from_proximity_of_lanes(road_map: Map, proximity_threshold: float) -> RoadGraph:
    """Connect lanes whose center-line ends lie within ``proximity_threshold``."""
    graph = RoadGraph()
    for lane_id, lane in sorted(road_map.lanes.items()):
        centers = lane.borders.center.interpolated_points
        if not centers:
            continue
        nearby = road_map.quadtree.query_range(centers[0], proximity_threshold)
        nearby += road_map.quadtree.query_range(centers[-1], proximity_threshold)

        for other_id in sorted({point.parent_id for point in nearby}):
            if other_id == lane_id or other_id not in road_map.lanes:
                continue
            other = road_map.lanes[other_id]
            distance, connection_type = calculate_lane_distance(lane, other)
            if distance > proximity_threshold:
                continue
            if _ALLOWED_DIRECTIONS[connection_type] != (
                lane.left_of_reference,
                other.left_of_reference,
            ):
                continue
            graph.add_connection(
                Connection(
                    from_id=lane.id,
                    to_id=other.id,
                    weight=lane.length,
                    connection_type=connection_type,
                )
            )
    return graph


def calculate_lane_distance(from_lane: Lane, to_lane: Lane) -> tuple[float, ConnectionType]:
    """Smallest distance between center-line ends and the kind of connection it gives."""
    from_points = from_lane.borders.center.interpolated_points
    to_points = to_lane.borders.center.interpolated_points
    if not from_points or not to_points:
        return math.inf, ConnectionType.END_TO_START

    candidates = (
        (distance_2d(from_points[0], to_points[0]), ConnectionType.START_TO_START),
        (distance_2d(from_points[0], to_points[-1]), ConnectionType.START_TO_END),
        (distance_2d(from_points[-1], to_points[0]), ConnectionType.END_TO_START),
        (distance_2d(from_points[-1], to_points[-1]), ConnectionType.END_TO_END),
    )
    return min(candidates, key=lambda item: item[0])