"""Raster views of scans, clusters and obstacle circles on the occupancy grid."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import numpy as np

from lidaroff.config import (
    DEG2RAD,
    GRID_SIZE,
    OBSERVE_DEGREE,
    OFF_HEIGHT,
    OFF_WIDTH,
    RESOLUTION,
    Circle,
)

NOISE = -1

# Cluster colours in blue, green, red channel order.
COLORS: tuple[tuple[int, int, int], ...] = (
    (255, 0, 0),
    (0, 255, 0),
    (0, 0, 255),
    (255, 255, 0),
    (255, 0, 255),
    (0, 255, 255),
    (128, 0, 128),
    (255, 165, 0),
    (128, 128, 128),
    (255, 255, 255),
)


def x2uv(x: float) -> int:
    """Column of the grid cell at lateral offset ``x`` [m]."""
    return int(OFF_WIDTH / 2.0 + x / GRID_SIZE)


def y2uv(y: float) -> int:
    """Row of the grid cell at forward distance ``y`` [m]."""
    return int(OFF_HEIGHT - y / GRID_SIZE)


def _columns(x: np.ndarray) -> np.ndarray:
    with np.errstate(invalid="ignore", over="ignore"):
        return np.trunc(OFF_WIDTH / 2.0 + x / GRID_SIZE)


def _rows(y: np.ndarray) -> np.ndarray:
    with np.errstate(invalid="ignore", over="ignore"):
        return np.trunc(OFF_HEIGHT - y / GRID_SIZE)


def _visible(u: np.ndarray, v: np.ndarray) -> np.ndarray:
    finite = np.isfinite(u) & np.isfinite(v)
    with np.errstate(invalid="ignore"):
        return finite & (u >= 0) & (u < OFF_WIDTH) & (v >= 0) & (v < OFF_HEIGHT)


def _pair(x, y) -> tuple[np.ndarray, np.ndarray]:
    xs = np.asarray(x, dtype=np.float64)
    ys = np.asarray(y, dtype=np.float64)
    if xs.ndim != 1 or xs.shape != ys.shape:
        raise ValueError("x and y must be one-dimensional and of equal length")
    return xs, ys


def render_ranges(ranges: Sequence[float], start_index: int = 0) -> np.ndarray:
    """Plot ranges [m] as points on a single-channel grid.

    ``ranges[i]`` lies on the bearing of scan sample ``start_index + i``,
    counted from +90 degrees in steps of the sensor resolution.
    """
    values = np.asarray(ranges, dtype=np.float64)
    if values.ndim != 1:
        raise ValueError("ranges must be one-dimensional")
    image = np.zeros((OFF_HEIGHT, OFF_WIDTH), dtype=np.uint8)

    steps = np.arange(len(values), dtype=np.float64) + start_index
    radians = (OBSERVE_DEGREE - RESOLUTION * steps) * DEG2RAD
    with np.errstate(invalid="ignore"):
        u = _columns(values * np.sin(radians))
        v = _rows(values * np.cos(radians))
    shown = _visible(u, v)
    image[v[shown].astype(int), u[shown].astype(int)] = 255
    return image


def _circle_outline(radius: int) -> set[tuple[int, int]]:
    """Offsets ``(du, dv)`` of a one-pixel circle outline."""
    points: set[tuple[int, int]] = set()
    x, y, err = radius, 0, 1 - radius
    while x >= y:
        for du, dv in ((x, y), (y, x)):
            points.update({(du, dv), (-du, dv), (du, -dv), (-du, -dv)})
        y += 1
        if err < 0:
            err += 2 * y + 1
        else:
            x -= 1
            err += 2 * (y - x) + 1
    return points


def render_circles(circles: Iterable[Circle]) -> np.ndarray:
    """Draw the outline of every obstacle circle on a single-channel grid.

    Circles whose centre lies off the grid are skipped; outlines are clipped.
    """
    image = np.zeros((OFF_HEIGHT, OFF_WIDTH), dtype=np.uint8)
    for circle in circles:
        u = x2uv(circle.y)
        v = y2uv(circle.x)
        if u < 0 or u > OFF_WIDTH or v < 0 or v > OFF_HEIGHT:
            continue
        radius = int(circle.r / GRID_SIZE)
        if radius < 0:
            continue
        for du, dv in _circle_outline(radius):
            col, row = u + du, v + dv
            if 0 <= col < OFF_WIDTH and 0 <= row < OFF_HEIGHT:
                image[row, col] = 255
    return image


def render_points(x: Sequence[float], y: Sequence[float]) -> np.ndarray:
    """Plot points given forward ``x`` and lateral ``y`` [m] on a single-channel grid."""
    xs, ys = _pair(x, y)
    image = np.zeros((OFF_HEIGHT, OFF_WIDTH), dtype=np.uint8)
    u = _columns(ys)
    v = _rows(xs)
    shown = _visible(u, v)
    image[v[shown].astype(int), u[shown].astype(int)] = 255
    return image


def render_labels(
    x: Sequence[float], y: Sequence[float], labels: Sequence[int]
) -> np.ndarray:
    """Plot labelled points in their cluster colour on a three-channel grid; noise is left out."""
    xs, ys = _pair(x, y)
    marks = np.asarray(labels, dtype=np.int64)
    if marks.shape != xs.shape:
        raise ValueError("labels must match the points in length")
    image = np.zeros((OFF_HEIGHT, OFF_WIDTH, 3), dtype=np.uint8)
    u = _columns(ys)
    v = _rows(xs)
    shown = _visible(u, v) & (marks != NOISE)
    palette = np.asarray(COLORS, dtype=np.uint8)
    image[v[shown].astype(int), u[shown].astype(int)] = palette[marks[shown] % len(COLORS)]
    return image