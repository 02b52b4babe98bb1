"""Camera intrinsics and the lidar-to-camera extrinsic projection matrix."""

from __future__ import annotations

import math

import numpy as np

# Image size [px]
IMG_WIDTH = 1280
IMG_HEIGHT = 720

# Camera intrinsics, stored at single precision
FX = float(np.float32(779.5889829009982))
FY = float(np.float32(774.6647059663499))
CX = float(np.float32(649.4586501858179))
CY = float(np.float32(386.4713599380453))
K1 = float(np.float32(-0.322795936286537))
K2 = float(np.float32(0.075461621612223))
P1 = 0.0
P2 = 0.0

# Lidar pose relative to the camera: X, Y, Z [m]; roll, pitch, yaw [degree]
VELODYNE_X = float(np.float32(0.0))
VELODYNE_Y = float(np.float32(0.108253175473))
VELODYNE_Z = float(np.float32(0.0625))
VELODYNE_ROLL = float(np.float32(-90.0) - np.float32(0.057295779513082))
VELODYNE_PITCH = float(np.float32(0.0) + np.float32(15.253757602364123))
VELODYNE_YAW = float(np.float32(90.0) + np.float32(0.947162778791340))

_DEG2RAD = math.pi / 180.0


def camera_matrix() -> np.ndarray:
    """The 3x3 intrinsic matrix K."""
    return np.array(
        [
            [FX, 0.0, CX],
            [0.0, FY, CY],
            [0.0, 0.0, 1.0],
        ],
        dtype=np.float64,
    )


def distortion_coefficients() -> np.ndarray:
    """The 4x1 distortion vector (k1, k2, p1, p2)."""
    return np.array([[K1], [K2], [P1], [P2]], dtype=np.float64)


def rotation_x() -> np.ndarray:
    """Rotation about the x axis by the lidar roll."""
    radian = _DEG2RAD * VELODYNE_ROLL
    c, s = math.cos(radian), math.sin(radian)
    return np.array(
        [
            [1.0, 0.0, 0.0],
            [0.0, c, -s],
            [0.0, s, c],
        ],
        dtype=np.float64,
    )


def rotation_y() -> np.ndarray:
    """Rotation about the y axis by the lidar pitch."""
    radian = _DEG2RAD * VELODYNE_PITCH
    c, s = math.cos(radian), math.sin(radian)
    return np.array(
        [
            [c, 0.0, -s],
            [0.0, 1.0, 0.0],
            [s, 0.0, c],
        ],
        dtype=np.float64,
    )


def rotation_z() -> np.ndarray:
    """Rotation about the z axis by the lidar yaw."""
    radian = _DEG2RAD * VELODYNE_YAW
    c, s = math.cos(radian), math.sin(radian)
    return np.array(
        [
            [c, -s, 0.0],
            [s, c, 0.0],
            [0.0, 0.0, 1.0],
        ],
        dtype=np.float64,
    )


def rotation_translation(rotation) -> np.ndarray:
    """Build the 3x4 matrix ``[R | T]`` from a 3x3 rotation and the lidar offset."""
    matrix = np.asarray(rotation, dtype=np.float64)
    if matrix.shape != (3, 3):
        raise ValueError(f"rotation must be 3x3, got shape {matrix.shape}")
    translation = np.array([[VELODYNE_X], [VELODYNE_Y], [VELODYNE_Z]], dtype=np.float64)
    return np.hstack([matrix, translation])


def lidar_calibration() -> np.ndarray:
    """The 3x4 projection ``K @ [R | T]`` from lidar coordinates to image coordinates."""
    rotation = rotation_x() @ rotation_y() @ rotation_z()
    return camera_matrix() @ rotation_translation(rotation)