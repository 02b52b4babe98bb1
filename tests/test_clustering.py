import math

import numpy as np
import pytest

from lidaroff.clustering import (
    calculate_margin,
    circle_approximation,
    cluster_obstacles,
    dbscan,
    steer_command,
)
from lidaroff.config import (
    GPS2LIDAR,
    GPS2SIDE,
    GRADIENT_PEAK_2_90,
    INTERESTED_INDEX,
    INTERESTED_OFFSET,
    MAX_RANGE,
    ORIGINAL_INDEX,
    Circle,
)


def _two_lines():
    xs = [1.0 + 0.005 * k for k in range(20)] + [3.0 + 0.005 * k for k in range(20)]
    ys = [0.0] * 40
    return xs, ys


def test_dbscan_two_clusters_exact_search():
    xs, ys = _two_lines()
    labels, groups = dbscan(xs, ys, 0.1, 15, 0, 1)
    assert groups == 2
    assert labels == [1] * 20 + [2] * 20


def test_dbscan_noise_points():
    xs, ys = _two_lines()
    xs = [-5.0] + xs + [10.0]
    ys = [5.0] + ys + [5.0]
    labels, groups = dbscan(xs, ys, 0.1, 15, 0, 1)
    assert groups == 2
    assert labels[0] == -1
    assert labels[-1] == -1
    assert labels[1:21] == [1] * 20
    assert labels[21:41] == [2] * 20


def test_dbscan_random_hyperplanes_same_side():
    xs, ys = _two_lines()
    labels, groups = dbscan(xs, ys, 0.1, 15, 4, 1, np.random.default_rng(0))
    assert groups == 2
    assert labels == [1] * 20 + [2] * 20


def test_dbscan_sparse_points_all_noise():
    xs = [float(k) for k in range(10)]
    ys = [0.0] * 10
    labels, groups = dbscan(xs, ys, 0.1, 15, 0, 1)
    assert groups == 0
    assert labels == [-1] * 10


def test_dbscan_mismatched_lengths():
    with pytest.raises(ValueError):
        dbscan([0.0, 1.0], [0.0], 0.1, 15, 0, 1)


def test_margin_ends_and_symmetry():
    assert calculate_margin(90.0) == pytest.approx(GPS2SIDE)
    assert calculate_margin(0.0) == pytest.approx(GPS2SIDE - 90.0 * GRADIENT_PEAK_2_90)
    assert calculate_margin(-30.0) == pytest.approx(calculate_margin(30.0))


def test_margin_outside_field_is_zero():
    assert calculate_margin(90.5) == 0.0
    assert calculate_margin(-120.0) == 0.0


def test_margin_decreases_with_angle():
    values = [calculate_margin(d) for d in range(0, 91, 10)]
    assert all(a > b for a, b in zip(values, values[1:]))


def test_cluster_obstacles_empty():
    assert cluster_obstacles([1.0], [0.0], [-1], 0) == []


def test_cluster_obstacles_center_and_radius():
    xs = [1.0, 1.2, 5.0]
    ys = [0.0, 0.0, 5.0]
    circles = cluster_obstacles(xs, ys, [1, 1, -1], 1)
    assert len(circles) == 1
    circle = circles[0]
    assert circle.x == pytest.approx(1.1 + GPS2LIDAR)
    assert circle.y == pytest.approx(0.0)
    assert circle.r == pytest.approx(0.1 + calculate_margin(0.0))


def test_cluster_obstacles_radius_uses_last_point():
    xs = [1.0, 1.4, 1.2]
    ys = [0.0, 0.0, 0.0]
    (circle,) = cluster_obstacles(xs, ys, [1, 1, 1], 1)
    assert circle.r == pytest.approx(calculate_margin(0.0))


def test_cluster_obstacles_rejects_bad_label():
    with pytest.raises(ValueError):
        cluster_obstacles([1.0, 2.0], [0.0, 0.0], [1, 3], 2)


def test_circle_approximation_empty():
    out = circle_approximation([])
    assert len(out) == ORIGINAL_INDEX
    assert np.all(out == MAX_RANGE)


def test_circle_approximation_ahead():
    out = circle_approximation([Circle(3.0, 0.0, 0.5)])
    # Index 720 is straight ahead.
    assert out[720] == pytest.approx(2.5)
    changed = out < MAX_RANGE
    assert changed.any()
    assert np.all(out[changed] >= 2.5 - 1e-9)
    assert out[0] == MAX_RANGE
    assert out[-1] == MAX_RANGE


def test_circle_approximation_skips_unusable_circles():
    inside_vehicle = Circle(0.5, 0.0, 1.0)
    far_away = Circle(20.0, 0.0, 1.0)
    out = circle_approximation([inside_vehicle, far_away])
    assert len(out) == ORIGINAL_INDEX
    assert list(out) == [MAX_RANGE] * ORIGINAL_INDEX


def test_circle_approximation_takes_nearest():
    near = Circle(2.0, 0.0, 0.3)
    far = Circle(4.0, 0.0, 0.3)
    both = circle_approximation([far, near])
    only_near = circle_approximation([near])
    assert np.allclose(both[700:741], only_near[700:741])


def test_steer_follows_planner_in_open_space():
    off = [MAX_RANGE] * ORIGINAL_INDEX
    assert steer_command(off, 0.0) == 0.0
    assert steer_command(off, 10.0) == 10.0


def test_steer_avoids_blocked_bearing():
    off = circle_approximation([Circle(2.0, 0.0, 0.5)])
    angle = steer_command(off, 0.0)
    index = INTERESTED_OFFSET + int(round((40.0 - angle) / 0.125))
    assert off[index] == MAX_RANGE
    assert angle != 0.0


def test_steer_keeps_previous_without_score():
    off = [0.0] * ORIGINAL_INDEX
    assert steer_command(off, 1000.0, previous=7.5) == 7.5


def test_steer_rejects_short_input():
    with pytest.raises(ValueError):
        steer_command([1.0] * (INTERESTED_OFFSET + INTERESTED_INDEX - 1), 0.0)


def test_pipeline_of_clustering_functions():
    xs, ys = _two_lines()
    labels, groups = dbscan(xs, ys, 0.1, 15, 0, 1)
    circles = cluster_obstacles(xs, ys, labels, groups)
    assert len(circles) == groups
    out = circle_approximation(circles)
    assert np.all(out <= MAX_RANGE)
    assert math.isfinite(steer_command(out, 0.0))
    assert out.min() < MAX_RANGE