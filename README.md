# lidaroff

Obstacle-field steering from a 2D LiDAR scan, and projection of 3D LiDAR
points into a calibrated camera image. Everything works on numpy arrays.

## Install

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Scan layout

A full 2D scan is a one-dimensional array in steps of 0.125 degrees. The
package uses the window from +90 to -90 degrees: 1441 samples starting at
index 360, so a full scan must hold at least 1801 samples. Ranges are in
metres and are capped at 7 m.

## Modules

- `lidaroff.config`: scan geometry, filter and steering constants, the
  `Angle` enum of scan indices and the `Circle` dataclass (`x`, `y`, `r`).
- `lidaroff.lsh`: `LSH`, which buckets 2-D points by the signs of their
  projections on random hyperplanes. `LSH.hash(x, y)` gives one value per
  table; `LSH.nearest_neighbor(idx, eps)` lists the points sharing a bucket
  with point `idx` and lying within `eps` of it. Pass a
  `numpy.random.Generator` as `rng` for repeatable hyperplanes.
- `lidaroff.clustering`: `dbscan` labels ordered scan points by density
  (`-1` for noise, groups from 1) and returns the labels and the group count;
  `cluster_obstacles` turns each group into a `Circle` with a bearing-dependent
  safety margin (`calculate_margin`); `circle_approximation` gives the free
  range along every scan bearing; `steer_command` picks the steering angle
  that best blends free range with the planner's wished angle.
- `lidaroff.circle_approx`: the polar-scan pipeline. `median_filter`,
  `find_segments` (returning `Segment` objects), `obstacle_circles`,
  `project_circles`, and `circle_approx`, which runs them all and returns the
  filtered ranges, the circles and the rebuilt ranges.
- `lidaroff.render`: images of the occupancy grid (351 x 701 cells of 2 cm)
  as `uint8` arrays: `render_ranges`, `render_circles`, `render_points` and
  `render_labels` (three channels, one colour per cluster), plus the cell
  helpers `x2uv` and `y2uv`.
- `lidaroff.pipeline`: `process_scan` runs the polar pipeline on one scan and
  also returns the grid images `median_lidar_data`, `lidar_data` and
  `obstacle_data`. `ClusterSteering.process(x, y, gpp_steer)` clusters a
  Cartesian scan and returns a steering angle, keeping the last one when no
  bearing scores above zero. `SteerLink` is a UDP link (default
  `192.168.0.100:55555`) that sends steering angles as little-endian 32-bit
  floats and receives the planner's angle, either one packet at a time with
  `receive()` or in a background thread with `start()`; the last value is in
  `gpp_steer`. It is a context manager.
- `lidaroff.calibration`: camera intrinsics (`camera_matrix`,
  `distortion_coefficients`), the lidar rotations (`rotation_x`, `rotation_y`,
  `rotation_z`), `rotation_translation`, and `lidar_calibration`, the 3x4
  projection `K @ [R | T]`.
- `lidaroff.projection`: `lidar_to_uv` projects returns with non-zero
  intensity; `find_near_point` finds the first projected point within a pixel
  tolerance; `locate_point` does both and returns the point and its pixel, or
  `None`; `draw_projected_points` draws green dots on a BGR frame in place.

## Examples

```python
import numpy as np
from lidaroff.pipeline import ClusterSteering

steering = ClusterSteering(eps=0.10, min_num_points=15, rng=np.random.default_rng(0))
angle = steering.process(x, y, gpp_steer=0.0)  # x, y: full scans, at least 1801 samples
```

```python
from lidaroff.calibration import lidar_calibration
from lidaroff.projection import locate_point

cam = lidar_calibration()
hit = locate_point(points, cam, (640, 500), 15)  # points: rows of (x, y, z, intensity)
if hit is not None:
    xyz, pixel = hit
```

## What it does not do

The package does not talk to any sensor or camera: scans, point clouds and
frames must be supplied as arrays. It does not open windows; the render
functions only return images. There is no command-line program and no main
loop; a caller drives `process_scan` or `ClusterSteering` once per scan.