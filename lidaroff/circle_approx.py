"""Median filtering of a 2-D scan and obstacle approximation by circles."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from lidaroff.config import (
    DEG2RAD,
    DEGREE_OFFSET,
    LIDAR2GPS_TRANSLATION,
    MAX_RANGE,
    MEDIAN_SIZE,
    MIN_OBJECT_SIZE,
    OBSERVE_DEGREE,
    OBSTACLE_THRESHOLD,
    ORIGINAL_INDEX,
    RESOLUTION,
    Circle,
)

_WINDOW_END = DEGREE_OFFSET + ORIGINAL_INDEX

# Bearing of every sample of the observed window, from +90 down to -90 degrees [rad].
_SCAN_RADIANS = DEG2RAD * (
    OBSERVE_DEGREE - RESOLUTION * np.arange(ORIGINAL_INDEX, dtype=np.float64)
)


@dataclass(frozen=True)
class Segment:
    """A run of scan samples ``start..end`` (inclusive) judged to be one obstacle."""

    start: int
    end: int
    start_angle: float
    end_angle: float

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"invalid segment bounds {self.start}..{self.end}")


def _full_scan(values, name: str) -> np.ndarray:
    array = np.asarray(values)
    if array.ndim != 1 or len(array) < _WINDOW_END:
        raise ValueError(f"{name} must be a full scan of at least {_WINDOW_END} samples")
    return array


def median_filter(distance: Sequence[float]) -> np.ndarray:
    """Median-filter the +90..-90 degree window of a full scan.

    Zero and over-range readings count as the maximum range. The first and
    last few samples, where the window does not fit, are copied unfiltered.
    The input is left untouched.
    """
    scan = np.array(_full_scan(distance, "distance"), dtype=np.float32)
    window = scan[DEGREE_OFFSET:_WINDOW_END]
    window[(window == 0) | (window > MAX_RANGE)] = MAX_RANGE

    half = MEDIAN_SIZE >> 1
    size = len(scan)
    out = np.empty(ORIGINAL_INDEX, dtype=np.float32)
    out[:half] = window[:half]
    out[ORIGINAL_INDEX - half :] = scan[size - DEGREE_OFFSET - half : size - DEGREE_OFFSET]

    medians = np.sort(sliding_window_view(window, MEDIAN_SIZE), axis=1)[:, half]
    out[half : half + len(medians)] = medians
    return out


def find_segments(median: Sequence[float], angles: Sequence[float]) -> list[Segment]:
    """Split the filtered window into obstacles.

    An obstacle is a run of at least ``MIN_OBJECT_SIZE`` samples that ends at
    a jump in range, at a max-range reading, or at the end of the window.
    ``angles`` holds the bearing [rad] of every sample of the full scan.
    """
    ranges = np.asarray(median, dtype=np.float32)
    if ranges.shape != (ORIGINAL_INDEX,):
        raise ValueError(f"median must hold {ORIGINAL_INDEX} ranges")
    bearings = np.asarray(_full_scan(angles, "angles"), dtype=np.float64)

    segments: list[Segment] = []
    tracking = False
    start = 0
    before = ranges[0]
    last = ORIGINAL_INDEX - 1

    for i, value in enumerate(ranges):
        is_object = i - start >= MIN_OBJECT_SIZE
        is_max = bool(value == MAX_RANGE)
        broken = abs(float(value - before)) > OBSTACLE_THRESHOLD

        if tracking and is_object and (broken or is_max or i == last):
            segments.append(
                Segment(
                    start,
                    i - 1,
                    float(bearings[start + DEGREE_OFFSET]),
                    float(bearings[i - 1 + DEGREE_OFFSET]),
                )
            )

        tracking ^= is_max
        if not tracking or broken:
            start = i
            tracking = True
        before = value

    return segments


def _divide(numerator: float, denominator: float) -> float:
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.float64(numerator) / np.float64(denominator))


def obstacle_circles(
    segments: Iterable[Segment], median: Sequence[float], angles: Sequence[float]
) -> list[Circle]:
    """Fit a circle to each segment, in vehicle coordinates.

    The circle passes through both ends and the closest sample when that
    sample lies strictly inside the segment; otherwise it is centred between
    the two ends.
    """
    ranges = np.asarray(median, dtype=np.float64)
    if ranges.shape != (ORIGINAL_INDEX,):
        raise ValueError(f"median must hold {ORIGINAL_INDEX} ranges")
    bearings = np.asarray(_full_scan(angles, "angles"), dtype=np.float64)

    circles = []
    for segment in segments:
        start, end = segment.start, segment.end
        if end >= ORIGINAL_INDEX:
            raise ValueError(f"segment end {end} outside the scan window")

        x1 = math.cos(segment.start_angle) * ranges[start]
        y1 = math.sin(segment.start_angle) * ranges[start]
        x2 = math.cos(segment.end_angle) * ranges[end]
        y2 = math.sin(segment.end_angle) * ranges[end]

        span = ranges[start : end + 1]
        span = np.where(np.isnan(span), np.inf, span)
        offset = int(np.argmin(span))
        if span[offset] < MAX_RANGE:
            min_index, min_data = start + offset, float(span[offset])
        else:
            min_index, min_data = start, MAX_RANGE

        if min_index in (start, end):
            circle_x = (x1 + x2) * 0.5
            circle_y = (y1 + y2) * 0.5
        else:
            bearing = bearings[min_index + DEGREE_OFFSET - 1]
            x3 = math.cos(bearing) * min_data
            y3 = math.sin(bearing) * min_data
            first = x2 * x2 - x1 * x1 + y2 * y2 - y1 * y1
            second = x3 * x3 - x2 * x2 + y3 * y3 - y2 * y2
            den = 2.0 * ((x2 - x1) * (y3 - y2) - (y2 - y1) * (x3 - x2))
            circle_x = _divide((y3 - y2) * first + (y1 - y2) * second, den)
            circle_y = _divide((x2 - x3) * first + (x2 - x1) * second, den)

        radius = math.hypot(circle_x - x1, circle_y - y1)
        circles.append(Circle(circle_x + LIDAR2GPS_TRANSLATION, circle_y, radius))
    return circles


def project_circles(circles: Iterable[Circle]) -> np.ndarray:
    """Range [m] along every bearing of the window to the nearest circle, or the maximum."""
    out = np.full(ORIGINAL_INDEX, MAX_RANGE, dtype=np.float64)
    positions = np.arange(ORIGINAL_INDEX)

    for circle in circles:
        center_range = math.hypot(circle.x, circle.y)
        min_range = center_range - circle.r
        if min_range > MAX_RANGE or min_range < 0:
            continue

        with np.errstate(divide="ignore", invalid="ignore"):
            half_width = float(np.arcsin(np.float64(circle.r) / center_range))
        center_angle = math.atan2(circle.y, circle.x)
        max_angle = center_angle + half_width
        min_angle = center_angle - half_width

        # Bearings fall as the index grows: skip those left of the circle,
        # stop at the first one right of it.
        skipped = _SCAN_RADIANS >= max_angle
        stops = np.flatnonzero(~skipped & (_SCAN_RADIANS < min_angle))
        limit = int(stops[0]) if stops.size else ORIGINAL_INDEX
        inside = ~skipped & (positions < limit)
        if not inside.any():
            continue

        tan = np.tan(_SCAN_RADIANS[inside])
        scale = tan * tan + 1.0
        b = circle.x + circle.y * tan
        with np.errstate(invalid="ignore"):
            root = np.sqrt(b * b - scale * (circle.x**2 + circle.y**2 - circle.r**2))
            x1 = (b + root) / scale
            x2 = (b - root) / scale
            r1 = np.hypot(x1, tan * x1)
            r2 = np.hypot(x2, tan * x2)

        current = out[inside]
        current = np.where(current > r1, r1, current)
        current = np.where(current > r2, r2, current)
        out[inside] = current

    return out


def circle_approx(
    distance: Sequence[float], angles: Sequence[float]
) -> tuple[np.ndarray, list[Circle], np.ndarray]:
    """Run the whole approximation on one full scan.

    Returns the filtered ranges, the obstacle circles and the ranges
    rebuilt from those circles.
    """
    median = median_filter(distance)
    segments = find_segments(median, angles)
    circles = obstacle_circles(segments, median, angles)
    return median, circles, project_circles(circles)