"""Density clustering of scan points, obstacle circles and steering selection."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

import numpy as np

from lidaroff.config import (
    DEG2RAD,
    GPS2LIDAR,
    GPS2SIDE,
    GRADIENT_PEAK_2_90,
    INTERESTED_DEGREE,
    INTERESTED_INDEX,
    INTERESTED_OFFSET,
    MAX_RANGE,
    OBSERVE_DEGREE,
    ORIGINAL_INDEX,
    RAD2DEG,
    RESOLUTION,
    RS,
    SIGMA,
    WEIGHT,
    Circle,
)
from lidaroff.lsh import LSH

NOISE = -1

# Bearing of every scan sample, from +90 degrees down to -90 degrees [rad].
_SCAN_RADIANS = DEG2RAD * (OBSERVE_DEGREE - RESOLUTION * np.arange(ORIGINAL_INDEX, dtype=np.float64))


def dbscan(
    x: Sequence[float],
    y: Sequence[float],
    eps: float,
    min_num_points: int,
    num_lsh_hyperplanes: int = 1,
    num_lsh_tables: int = 1,
    rng: np.random.Generator | None = None,
) -> tuple[list[int], int]:
    """Label ordered scan points by density.

    Neighbours are looked up through random-hyperplane hashing. Returns the
    label of every point (``-1`` for noise, groups numbered from 1) and the
    number of groups created.
    """
    xs = np.asarray(x, dtype=np.float32)
    ys = np.asarray(y, dtype=np.float32)
    hash_map = LSH(xs, ys, num_lsh_hyperplanes, num_lsh_tables, rng)
    limit = np.float32(eps)

    labels = [0] * len(xs)
    global_groups = 0
    pre_vec_size = 0
    last_point_idx = 0

    def near_last(idx: int) -> bool:
        dist = np.hypot(xs[idx] - xs[last_point_idx], ys[idx] - ys[last_point_idx])
        return bool(dist <= limit)

    for data_idx in range(len(xs)):
        candidates = hash_map.nearest_neighbor(data_idx, eps)

        if len(candidates) < min_num_points:
            labels[data_idx] = NOISE
            # A sparse point right next to a dense one joins the dense one's group.
            if pre_vec_size > min_num_points and near_last(data_idx):
                labels[data_idx] = labels[last_point_idx]
            continue

        if labels[last_point_idx] and near_last(data_idx):
            group = labels[data_idx - 1]
            labels[data_idx] = group
        elif not labels[data_idx]:
            global_groups += 1
            group = global_groups
            labels[data_idx] = group
        else:
            group = labels[data_idx]

        for candidate in candidates:
            if not labels[candidate]:
                labels[candidate] = group

        pre_vec_size = len(candidates)
        last_point_idx = data_idx

    return labels, global_groups


def calculate_margin(degree: float) -> float:
    """Safety margin [m] added to an obstacle seen at ``degree`` from straight ahead."""
    angle = abs(degree)
    if angle > 90:
        return 0.0
    return GRADIENT_PEAK_2_90 * angle + GPS2SIDE + GRADIENT_PEAK_2_90 * (-90.0)


def cluster_obstacles(
    x: Sequence[float],
    y: Sequence[float],
    labels: Sequence[int],
    num_label: int,
) -> list[Circle]:
    """Approximate each labelled cluster by a circle in vehicle coordinates.

    The centre is the cluster mean shifted forward by the lidar offset; the
    radius is the distance from the mean to the cluster's last point plus the
    bearing-dependent margin. Clusters without points yield no circle.
    """
    if not len(x) == len(y) == len(labels):
        raise ValueError("x, y and labels must be of equal length")
    if num_label == 0:
        return []

    members: list[list[tuple[float, float]]] = [[] for _ in range(num_label)]
    for px, py, label in zip(x, y, labels):
        if label == NOISE:
            continue
        if not 1 <= label <= num_label:
            raise ValueError(f"label {label} outside 1..{num_label}")
        members[label - 1].append((float(px), float(py)))

    circles = []
    for points in members:
        if not points:
            continue
        center_x = sum(px for px, _ in points) / len(points)
        center_y = sum(py for _, py in points) / len(points)
        shifted_x = center_x + GPS2LIDAR
        margin = calculate_margin(RAD2DEG * math.atan2(center_y, shifted_x))
        last_x, last_y = points[-1]
        radius = math.hypot(center_x - last_x, center_y - last_y) + margin
        circles.append(Circle(shifted_x, center_y, radius))
    return circles


def circle_approximation(obstacles: Iterable[Circle]) -> np.ndarray:
    """Free range [m] along every scan bearing, with obstacle circles cut in."""
    out = np.full(ORIGINAL_INDEX, MAX_RANGE, dtype=np.float64)

    for circle in obstacles:
        center_range = math.hypot(circle.x, circle.y)
        min_range = center_range - circle.r
        if center_range <= 0 or min_range >= MAX_RANGE or min_range <= 0:
            continue

        half_width = math.asin(circle.r / center_range)
        center_angle = math.atan2(circle.y, circle.x)
        inside = (_SCAN_RADIANS < center_angle + half_width) & (
            _SCAN_RADIANS >= center_angle - half_width
        )
        if not inside.any():
            continue

        tan = np.tan(_SCAN_RADIANS[inside])
        scale = tan * tan + 1.0
        b = circle.x + circle.y * tan
        disc = b * b - scale * (circle.x**2 + circle.y**2 - circle.r**2)
        with np.errstate(invalid="ignore"):
            root = np.sqrt(disc)
        x1 = (b + root) / scale
        x2 = (b - root) / scale
        r1 = np.hypot(x1, tan * x1)
        r2 = np.hypot(x2, tan * x2)

        current = out[inside]
        # Comparisons with NaN are false, so unreachable bearings stay untouched.
        current = np.where(current > r1, r1, current)
        current = np.where(current > r2, r2, current)
        out[inside] = current

    return out


def steer_command(off: Sequence[float], sff_degree: float, previous: float = 0.0) -> float:
    """Pick the steering angle [degree] that best blends free range and the planner's wish.

    Returns ``previous`` when no bearing scores above zero.
    """
    ranges = np.asarray(off, dtype=np.float64)
    needed = INTERESTED_OFFSET + INTERESTED_INDEX
    if ranges.ndim != 1 or len(ranges) < needed:
        raise ValueError(f"off must hold at least {needed} ranges")

    angles = INTERESTED_DEGREE - RESOLUTION * np.arange(INTERESTED_INDEX, dtype=np.float64)
    sff = RS * np.exp(-((angles - sff_degree) ** 2) / (2.0 * SIGMA * SIGMA))
    iff = WEIGHT * sff + (1.0 - WEIGHT) * ranges[INTERESTED_OFFSET:needed]
    iff = np.where(np.isnan(iff), -np.inf, iff)

    best = int(np.argmax(iff))
    if iff[best] > 0.0:
        return float(angles[best])
    return previous