"""Sensor geometry, filter and steering parameters shared across the package."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import IntEnum

import numpy as np


def _f32(value: float) -> float:
    """Return ``value`` rounded to single precision, as the sensor code stores it."""
    return float(np.float32(value))


class Angle(IntEnum):
    """Index into a full scan at which a given bearing lies (0.125 degree steps)."""

    DEGREE_m90 = 1800
    DEGREE_m80 = 1720
    DEGREE_m60 = 1560
    DEGREE_m40 = 1400
    DEGREE_m30 = 1320
    DEGREE_0 = 1080
    DEGREE_30 = 840
    DEGREE_40 = 760
    DEGREE_60 = 600
    DEGREE_80 = 440
    DEGREE_90 = 360


@dataclass(frozen=True)
class Circle:
    """An obstacle approximated by a circle, centre ``(x, y)`` and radius ``r`` in metres."""

    x: float
    y: float
    r: float


# Scan layout
ORIGINAL_INDEX = 1441  # samples from +90 to -90 degrees
INTERESTED_INDEX = int(Angle.DEGREE_m40) - int(Angle.DEGREE_40) + 1
DEGREE_OFFSET = int(Angle.DEGREE_90)
INTERESTED_OFFSET = int(Angle.DEGREE_40) - int(Angle.DEGREE_90)

OBSERVE_DEGREE = 90.0
INTERESTED_DEGREE = 40.0

# Sensor specification
MAX_RANGE = 7.0  # [m]
RESOLUTION = 0.125  # [degree]

DEG2RAD = math.pi / 180.0
RAD2DEG = 180.0 / math.pi

# Occupancy view
OFF_WIDTH = 701
OFF_HEIGHT = 351
GRID_SIZE = 0.02  # [m]

# Steering
RS = 0.7
SIGMA = 1.5
WEIGHT = 0.5

# Circle approximation offsets
LIDAR2CAMERA_TRANSLATION = 0.292  # [m]
CAMERA2GPS_TRANSLATION = 0.261  # [m]
LIDAR2GPS_TRANSLATION = 0.553  # [m]
OBSTACLE_THRESHOLD = 0.15  # [m]

MIN_OBJECT_SIZE = 15
OBSTACLE_INDEX = int(ORIGINAL_INDEX / MIN_OBJECT_SIZE)
MEDIAN_SIZE = 15

# DBSCAN parameters
EPS_CLUSTER = _f32(0.10)
MINIMUM_DATAPOINTS = 15
NUM_LSH_TABLE = 1

# Vehicle offsets
GPS2LIDAR = _f32(0.95)
GPS2SIDE = _f32(0.52)
GPS2DIAGONAL = math.hypot(GPS2LIDAR, GPS2SIDE)
PEAK_DEGREE = _f32(28.9510)
GRADIENT_0_2_PEAK = (GPS2DIAGONAL - GPS2LIDAR) / PEAK_DEGREE
GRADIENT_PEAK_2_90 = (GPS2SIDE - GPS2DIAGONAL) / (90.0 - PEAK_DEGREE)