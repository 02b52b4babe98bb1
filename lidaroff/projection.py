"""Projection of lidar point clouds into camera pixels and lookup by pixel."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

_DOT_RADIUS = 3
_DOT_COLOR = (0, 255, 0)


def _as_projection(cam_matrix) -> np.ndarray:
    matrix = np.asarray(cam_matrix, dtype=np.float64)
    if matrix.shape != (3, 4):
        raise ValueError(f"camera matrix must be 3x4, got shape {matrix.shape}")
    return matrix


def _as_uv(uv) -> np.ndarray:
    matrix = np.asarray(uv, dtype=np.float64)
    if matrix.ndim != 2 or matrix.shape[0] != 3:
        raise ValueError(f"uv must have three rows, got shape {matrix.shape}")
    return matrix


def _pixels(uv: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Divide by the homogeneous scale and truncate toward zero."""
    with np.errstate(divide="ignore", invalid="ignore"):
        u = np.trunc(uv[0] / uv[2])
        v = np.trunc(uv[1] / uv[2])
    return u, v


def lidar_to_uv(points, cam_matrix) -> tuple[np.ndarray, np.ndarray]:
    """Project lidar returns through a 3x4 camera matrix.

    ``points`` holds rows of ``(x, y, z, intensity)`` in any leading shape;
    returns with zero intensity are dropped. Returns the homogeneous 4xN
    coordinates of the kept points and their 3xN projections.
    """
    cloud = np.asarray(points, dtype=np.float64)
    if cloud.ndim == 0 or cloud.shape[-1] != 4:
        raise ValueError("points must have rows of (x, y, z, intensity)")
    cloud = cloud.reshape(-1, 4)
    kept = cloud[cloud[:, 3] != 0]
    xyz = np.vstack([kept[:, :3].T, np.ones(len(kept))])
    return xyz, _as_projection(cam_matrix) @ xyz


def find_near_point(uv, interest_point: Sequence[int], tol: float) -> int | None:
    """Index of the first projected point whose pixel lies within ``tol`` of ``interest_point``."""
    matrix = _as_uv(uv)
    u, v = _pixels(matrix)
    target_u, target_v = interest_point
    with np.errstate(invalid="ignore"):
        near = (u - target_u) ** 2 + (v - target_v) ** 2 < tol * tol
    hits = np.flatnonzero(near)
    return int(hits[0]) if hits.size else None


def locate_point(
    points, cam_matrix, interest_point: Sequence[int], tol: float
) -> tuple[np.ndarray, np.ndarray] | None:
    """Find the lidar return seen at a pixel.

    Returns the homogeneous ``(x, y, z, 1)`` of the point and its
    ``(u, v, s)`` column (pixel coordinates and projective scale), or
    ``None`` when no return falls within ``tol`` of ``interest_point``.
    """
    xyz, uv = lidar_to_uv(points, cam_matrix)
    idx = find_near_point(uv, interest_point, tol)
    if idx is None:
        return None
    u, v = _pixels(uv[:, idx : idx + 1])
    pixel = np.array([u[0], v[0], uv[2, idx]])
    return xyz[:, idx].copy(), pixel


def draw_projected_points(frame: np.ndarray, uv) -> np.ndarray:
    """Draw a filled green disc of radius 3 on a BGR ``frame`` at each projected point.

    The frame is drawn on in place and returned; points off the frame are clipped.
    """
    matrix = _as_uv(uv)
    if frame.ndim != 3 or frame.shape[2] != len(_DOT_COLOR):
        raise ValueError("frame must be height x width x 3")
    height, width = frame.shape[:2]
    paint = np.asarray(_DOT_COLOR, dtype=frame.dtype)
    radius = _DOT_RADIUS
    u, v = _pixels(matrix)

    for cu, cv in zip(u, v):
        if not (np.isfinite(cu) and np.isfinite(cv)):
            continue
        cu, cv = int(cu), int(cv)
        top, bottom = max(cv - radius, 0), min(cv + radius + 1, height)
        left, right = max(cu - radius, 0), min(cu + radius + 1, width)
        if top >= bottom or left >= right:
            continue
        rows, cols = np.ogrid[top:bottom, left:right]
        disc = (rows - cv) ** 2 + (cols - cu) ** 2 <= radius * radius
        frame[top:bottom, left:right][disc] = paint
    return frame