"""Lanes and roads: lane geometry, surface material, type and speed limits."""

from __future__ import annotations

import copy
import logging
from enum import Enum

from lanemap.border import Border, Borders, interpolate_borders, process_center, set_parent_id
from lanemap.map_point import distance_2d

logger = logging.getLogger(__name__)

_KMH = 0.27778

DRIVING_SPEED_LIMIT_RURAL = 100.0 * _KMH
DRIVING_SPEED_LIMIT_MOTORWAY = 130.0 * _KMH
DRIVING_SPEED_LIMIT_TOWN = 50.0 * _KMH
DRIVING_SPEED_LIMIT_LOW_SPEED = 30.0 * _KMH
PARKING_SPEED_LIMIT = 5.0 * _KMH
RESTRICTED_SPEED_LIMIT = 10.0 * _KMH
BIKING_SPEED_LIMIT = 25.0 * _KMH
PEDESTRIAN_SPEED_LIMIT = 5.0 * _KMH
UNDEFINED_TYPE_SPEED_LIMIT = 2.0
DEFAULT_LANE_SPEED_LIMIT = 5.0

LANE_SAMPLE_SPACING = 0.5


class LaneMaterial(Enum):
    ASPHALT = "asphalt"
    CONCRETE = "concrete"
    PAVEMENT = "pavement"
    COBBLE = "cobble"
    VEGETATION = "vegetation"
    SOIL = "soil"
    GRAVEL = "gravel"


class LaneType(Enum):
    DRIVING = "driving"
    PARKING = "parking"
    RESTRICTED = "restricted"
    NONE = "none"
    SIDEWALK = "sidewalk"
    BIKING = "biking"
    SHOULDER = "shoulder"
    TRAM = "tram"
    BUS = "bus"


class RoadCategory(Enum):
    UNKNOWN = "unknown"
    RURAL = "rural"
    MOTORWAY = "motorway"
    TOWN = "town"
    LOW_SPEED = "low_speed"
    PEDESTRIAN = "pedestrian"
    BICYCLE = "bicycle"


_MATERIALS = {material.value: material for material in LaneMaterial}

_LANE_TYPES = {
    "driving": LaneType.DRIVING,
    "parking": LaneType.PARKING,
    "restricted": LaneType.RESTRICTED,
    "none": LaneType.NONE,
    "sidewalk": LaneType.SIDEWALK,
    "walking": LaneType.SIDEWALK,
    "biking": LaneType.BIKING,
    "Bicycle": LaneType.BIKING,
    "shoulder": LaneType.SHOULDER,
    "bus": LaneType.BUS,
    "tram": LaneType.TRAM,
}

_ROAD_CATEGORIES = {category.value: category for category in RoadCategory}

_DRIVING_LIMITS = {
    RoadCategory.RURAL: DRIVING_SPEED_LIMIT_RURAL,
    RoadCategory.MOTORWAY: DRIVING_SPEED_LIMIT_MOTORWAY,
    RoadCategory.TOWN: DRIVING_SPEED_LIMIT_TOWN,
    RoadCategory.LOW_SPEED: DRIVING_SPEED_LIMIT_LOW_SPEED,
}

_TYPE_LIMITS = {
    LaneType.PARKING: PARKING_SPEED_LIMIT,
    LaneType.RESTRICTED: RESTRICTED_SPEED_LIMIT,
    LaneType.SIDEWALK: PEDESTRIAN_SPEED_LIMIT,
    LaneType.SHOULDER: PEDESTRIAN_SPEED_LIMIT,
    LaneType.BUS: PEDESTRIAN_SPEED_LIMIT,
    LaneType.BIKING: BIKING_SPEED_LIMIT,
    LaneType.TRAM: DRIVING_SPEED_LIMIT_TOWN,
}


def parse_material(name: str) -> LaneMaterial:
    """Material for ``name``; asphalt when the name is not known."""
    return _MATERIALS.get(name, LaneMaterial.ASPHALT)


def parse_lane_type(name: str) -> LaneType:
    """Lane type for ``name``; ``NONE`` when the name is not known."""
    return _LANE_TYPES.get(name, LaneType.NONE)


def parse_road_category(name: str) -> RoadCategory:
    """Road category for ``name``; low speed when the name is not known."""
    return _ROAD_CATEGORIES.get(name, RoadCategory.LOW_SPEED)


def speed_limit_for(lane_type: LaneType, road_category: RoadCategory) -> float:
    """Speed limit in m/s for a lane type on a road of the given category."""
    if lane_type is LaneType.DRIVING:
        return _DRIVING_LIMITS.get(road_category, DRIVING_SPEED_LIMIT_RURAL)
    return _TYPE_LIMITS.get(lane_type, UNDEFINED_TYPE_SPEED_LIMIT)


class Lane:
    """A lane between two borders, resampled with a computed center line."""

    def __init__(
        self,
        left: Border,
        right: Border,
        lane_id: int,
        road_id: int,
        left_of_reference: bool,
    ) -> None:
        self.left_of_reference = left_of_reference
        inner, outer = (right, left) if left_of_reference else (left, right)

        borders = Borders(inner=copy.deepcopy(inner), outer=copy.deepcopy(outer))
        interpolate_borders(borders, LANE_SAMPLE_SPACING)
        process_center(borders)
        set_parent_id(borders, lane_id)

        self.borders = borders
        self.id = lane_id
        self.road_id = road_id
        self.type = LaneType.NONE
        self.material = LaneMaterial.ASPHALT
        self.speed_limit = DEFAULT_LANE_SPEED_LIMIT
        self.length = left.points[-1].s - left.points[0].s
        if self.length < 0:
            logger.warning("negative length lane %s", lane_id)

    def width(self, s: float) -> float:
        """Distance between the inner and outer border at arc length ``s``."""
        inner = self.borders.inner
        outer = self.borders.outer
        if not inner.interpolated_points or not outer.interpolated_points:
            return 0.0
        return distance_2d(inner.interpolated_point(s), outer.interpolated_point(s))

    def set_material(self, material: str) -> None:
        self.material = parse_material(material)

    def set_type(self, type_name: str, road_category: RoadCategory) -> None:
        """Set the lane type from its name and derive the speed limit."""
        self.type = parse_lane_type(type_name)
        self.speed_limit = speed_limit_for(self.type, road_category)


class Road:
    """A named road holding a set of lanes."""

    def __init__(
        self,
        name: str = "",
        road_id: int = 0,
        category: str = "unknown",
        one_way: bool = False,
    ) -> None:
        self.name = name
        self.lanes: set[Lane] = set()
        self.one_way = one_way
        self.id = road_id
        self.category = RoadCategory.UNKNOWN
        self.set_category(category)

    def set_category(self, category: str) -> None:
        self.category = parse_road_category(category)