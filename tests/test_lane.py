import pytest

from lanemap.border import Border
from lanemap.lane import (
    BIKING_SPEED_LIMIT,
    DRIVING_SPEED_LIMIT_MOTORWAY,
    DRIVING_SPEED_LIMIT_RURAL,
    DRIVING_SPEED_LIMIT_TOWN,
    PARKING_SPEED_LIMIT,
    PEDESTRIAN_SPEED_LIMIT,
    RESTRICTED_SPEED_LIMIT,
    Lane,
    LaneMaterial,
    LaneType,
    Road,
    RoadCategory,
    parse_lane_type,
    parse_material,
    parse_road_category,
    speed_limit_for,
)
from lanemap.map_point import MapPoint


def make_border(coords, parent_id=0):
    border = Border(points=[MapPoint(x, y, parent_id) for x, y in coords])
    border.compute_s_values()
    return border


def straight_lane(left_of_reference=False, lane_id=4):
    left = make_border([(0.0, 0.0), (10.0, 0.0)])
    right = make_border([(0.0, -3.0), (10.0, -3.0)])
    return left, right, Lane(left, right, lane_id, 9, left_of_reference)


def test_parse_material_known_and_unknown():
    assert parse_material("gravel") is LaneMaterial.GRAVEL
    assert parse_material("cobble") is LaneMaterial.COBBLE
    assert parse_material("marble") is LaneMaterial.ASPHALT


@pytest.mark.parametrize(
    "name, expected",
    [
        ("driving", LaneType.DRIVING),
        ("walking", LaneType.SIDEWALK),
        ("sidewalk", LaneType.SIDEWALK),
        ("Bicycle", LaneType.BIKING),
        ("biking", LaneType.BIKING),
        ("tram", LaneType.TRAM),
        ("hovercraft", LaneType.NONE),
    ],
)
def test_parse_lane_type(name, expected):
    assert parse_lane_type(name) is expected


def test_parse_road_category_defaults_to_low_speed():
    assert parse_road_category("motorway") is RoadCategory.MOTORWAY
    assert parse_road_category("highway") is RoadCategory.LOW_SPEED


@pytest.mark.parametrize(
    "lane_type, category, expected",
    [
        (LaneType.DRIVING, RoadCategory.MOTORWAY, DRIVING_SPEED_LIMIT_MOTORWAY),
        (LaneType.DRIVING, RoadCategory.TOWN, DRIVING_SPEED_LIMIT_TOWN),
        (LaneType.DRIVING, RoadCategory.PEDESTRIAN, DRIVING_SPEED_LIMIT_RURAL),
        (LaneType.PARKING, RoadCategory.TOWN, PARKING_SPEED_LIMIT),
        (LaneType.RESTRICTED, RoadCategory.TOWN, RESTRICTED_SPEED_LIMIT),
        (LaneType.BUS, RoadCategory.TOWN, PEDESTRIAN_SPEED_LIMIT),
        (LaneType.BIKING, RoadCategory.RURAL, BIKING_SPEED_LIMIT),
        (LaneType.TRAM, RoadCategory.RURAL, DRIVING_SPEED_LIMIT_TOWN),
        (LaneType.NONE, RoadCategory.RURAL, 2.0),
    ],
)
def test_speed_limit_for(lane_type, category, expected):
    assert speed_limit_for(lane_type, category) == expected


def test_set_type_updates_speed_limit():
    _, _, lane = straight_lane()
    lane.set_type("driving", RoadCategory.TOWN)
    assert lane.type is LaneType.DRIVING
    assert lane.speed_limit == DRIVING_SPEED_LIMIT_TOWN


def test_set_material():
    _, _, lane = straight_lane()
    lane.set_material("concrete")
    assert lane.material is LaneMaterial.CONCRETE


def test_lane_length_and_ids():
    left, _, lane = straight_lane()
    assert lane.length == left.points[-1].s
    assert lane.id == 4
    assert lane.road_id == 9


def test_center_is_midpoint_of_borders():
    _, _, lane = straight_lane()
    inner = lane.borders.inner.interpolated_points
    outer = lane.borders.outer.interpolated_points
    center = lane.borders.center.interpolated_points
    assert len(center) == len(inner) == len(outer)
    assert len(center) > 2
    for c, i, o in zip(center, inner, outer):
        assert c.x == pytest.approx((i.x + o.x) / 2)
        assert c.y == pytest.approx((i.y + o.y) / 2)
        assert c.parent_id == lane.id


def test_width_matches_border_separation():
    _, _, lane = straight_lane()
    assert lane.width(5.0) == pytest.approx(3.0)


def test_width_is_zero_without_samples():
    left = make_border([(0.0, 0.0)])
    right = make_border([(0.0, -3.0)])
    lane = Lane(left, right, 1, 1, False)
    assert lane.width(0.0) == 0.0


def test_input_borders_are_not_modified():
    left, right, lane = straight_lane()
    assert left.interpolated_points == []
    assert right.spline is None
    assert left.points[0].parent_id == 0
    assert lane.borders.inner.points[0].parent_id == lane.id


def test_left_of_reference_swaps_inner_and_outer():
    left, right, lane = straight_lane(left_of_reference=True)
    assert lane.left_of_reference is True
    assert lane.borders.inner.points[0].y == right.points[0].y
    assert lane.borders.outer.points[0].y == left.points[0].y


def test_road_category_and_fields():
    road = Road("main", 7, "motorway", True)
    assert road.category is RoadCategory.MOTORWAY
    assert road.id == 7
    assert road.one_way is True
    assert road.lanes == set()
    road.set_category("nowhere")
    assert road.category is RoadCategory.LOW_SPEED