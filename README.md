# lanemap

A lane-level road map library. It builds lanes from pairs of border
polylines, links them into a lane graph, finds routes across that graph and
rasterizes lane centerlines into NumPy images.

## Installation

```
pip install lanemap
```

For the test suite:

```
pip install "lanemap[test]"
pytest
```

## What it contains

- `lanemap.map_point`: `MapPoint`, the basic point type (`x`, `y`,
  `parent_id`, `s`, `max_speed`). Two points are equal when their `x` and `y`
  are equal. The module also has `distance_2d`, `squared_distance_2d` and
  `remove_duplicate_points`, which drops consecutive points with the same `s`.
- `lanemap.border_spline`: `BorderSpline`, a natural cubic spline through a
  polyline. It is parameterised by chord length and skips repeated points. It
  gives points (`get_point_at_s`, `get_points_at_s_values`), first and second
  derivatives of `x` and `y`, and `total_length`.
- `lanemap.quadtree`: `Boundary` and `Quadtree`. `query` returns the points
  inside a rectangle, `query_range` the points within a radius, and
  `nearest_point` a `(point, distance)` pair or `None`. `nearest_point` takes an
  optional `accept` filter.
- `lanemap.border`: `Border` and `Borders`. A border can be fitted with a
  spline, sampled with `interpolated_point` and `interpolate_border`, clipped by
  `s` with `make_clipped`, and reparameterised against a reference line.
  `interpolate_borders`, `process_center` and `set_parent_id` work on the
  inner, outer and center borders of a lane.
- `lanemap.lane`: `Lane`, `Road`, and the enums `LaneType`, `LaneMaterial`
  and `RoadCategory`. It also has `parse_material`, `parse_lane_type`,
  `parse_road_category` and `speed_limit_for`, which gives a speed limit in m/s
  that depends on the lane type and the road category.
- `lanemap.road_graph`: `Connection`, `ConnectionType` and `RoadGraph`.
  `RoadGraph.best_path` returns the lowest-cost list of lane ids between two
  lanes, found with Dijkstra's algorithm, or an empty list.
  `create_subgraph` keeps the connections whose ends are both among the given
  lanes.
- `lanemap.map`: `Map`, which holds lanes, roads, the lane graph and a
  quadtree of lane center points. It has `lane_speed_limit`, `submap` and
  `is_point_on_road`.
- `lanemap.r2s_parser`: reads R2S reference-line files (`.r2sr`) and
  lane-boundary files (`.r2sl`) into `BorderDataR2SR` and `BorderDataR2SL`.
- `lanemap.map_loader`: builds a `Map` from R2S data with `load_from_file`,
  `load_from_r2s_file` or `create_from_r2s`. Lanes are placed between
  neighbouring `driving` boundaries of each reference line and are connected
  when their center-line ends lie close together.
- `lanemap.lat_long`: `lat_lon_to_utm` and `utm_to_lat_lon` compute a WGS84
  transverse Mercator projection in Python. `utm_zone` and `utm_zone_letter`
  give the UTM zone and the latitude band.
  `lat_lon_to_utm_python` and `utm_to_lat_lon_python` instead run
  `python3 -c` in a shell with the third-party `utm` package. That package
  must be installed for the `python3` found on the path.
- `lanemap.route`: `Route` follows the lane graph from the lane nearest the
  start to the lane nearest the destination. It gives `length`,
  `shortened_route`, `map_point_at_s`, `pose_at_s` (a `Pose2d` with `yaw`) and
  `s_of`, which is the route distance of a position.
- `lanemap.rasterizer`: `map_point_to_pixel` and `raster_lane_centerlines`.
  The latter returns a `uint8` image with a white background and black
  centerlines. `raster_lane_center_distances` returns the distance in pixels
  from each pixel to the nearest centerline, or infinity everywhere when no
  centerline is in view.
- `lanemap.tile_map`: `TileMap`, a 3×3 grid of tiles made by a tile function
  you supply, for example `raster_lane_centerlines`. `update` moves the grid
  by whole tiles as a point moves away, and `cropped` returns a square window
  around a point.
- `lanemap.traffic_light`: `TrafficLight` and `TrafficLightState`.

## Example

```python
from lanemap.map_loader import load_from_file
from lanemap.map_point import MapPoint
from lanemap.route import Route
from lanemap.rasterizer import raster_lane_centerlines

road_map = load_from_file("town.r2sr")

start = MapPoint(10.0, 5.0, 0)
goal = MapPoint(250.0, 40.0, 0)
route = Route(start, goal, road_map)

print(route.length())
print(route.pose_at_s(20.0))

image = raster_lane_centerlines(road_map, start, 200, 0.5)
```

The R2S loader expects the lane-boundary file to sit next to the
reference-line file. It has the same name, with the last character changed to
`l`, so `town.r2sr` goes with `town.r2sl`.

## What it does not do

- It does not read OpenDRIVE (`.xodr`) maps. `load_from_file` raises
  `ValueError` for them and for any extension other than `.r2sr`.
- `load_from_r2s_file` always uses only `driving` boundaries. Its
  `ignore_non_driving` argument has no effect.
- It is a library only. It has no command-line tool and no viewer.