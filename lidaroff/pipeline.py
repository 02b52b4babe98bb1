"""Per-scan processing: circle approximation, clustered steering and the steering link."""

from __future__ import annotations

import socket
import struct
import threading
from collections.abc import Sequence

import numpy as np

from lidaroff.circle_approx import circle_approx
from lidaroff.clustering import (
    circle_approximation,
    cluster_obstacles,
    dbscan,
    steer_command,
)
from lidaroff.config import (
    DEGREE_OFFSET,
    EPS_CLUSTER,
    MINIMUM_DATAPOINTS,
    NUM_LSH_TABLE,
    ORIGINAL_INDEX,
    Circle,
)
from lidaroff.render import render_circles, render_ranges

DEFAULT_HOST = "192.168.0.100"
DEFAULT_PORT = 55555

_PACKET = struct.Struct("<f")
_WINDOW_END = DEGREE_OFFSET + ORIGINAL_INDEX


def process_scan(
    distance: Sequence[float], angles: Sequence[float]
) -> tuple[np.ndarray, list[Circle], np.ndarray, dict[str, np.ndarray]]:
    """Filter one polar scan and approximate its obstacles by circles.

    Returns the filtered ranges, the circles, the ranges rebuilt from the
    circles, and grid views named ``median_lidar_data``, ``lidar_data`` and
    ``obstacle_data``.
    """
    median, circles, out = circle_approx(distance, angles)
    frames = {
        "median_lidar_data": render_ranges(median, 0),
        "lidar_data": render_ranges(out, 0),
        "obstacle_data": render_circles(circles),
    }
    return median, circles, out, frames


class ClusterSteering:
    """Clusters rectangular scans and picks a steering angle, remembering the last one."""

    def __init__(
        self,
        eps: float = EPS_CLUSTER,
        min_num_points: int = MINIMUM_DATAPOINTS,
        rng: np.random.Generator | None = None,
    ) -> None:
        self.eps = eps
        self.min_num_points = min_num_points
        self._rng = rng if rng is not None else np.random.default_rng()
        self.steer_angle = 0.0
        self.labels: list[int] = []
        self.num_label = 0
        self.circles: list[Circle] = []
        self.ranges = np.zeros(ORIGINAL_INDEX, dtype=np.float64)

    def process(self, x: Sequence[float], y: Sequence[float], gpp_steer: float) -> float:
        """Steering angle [degree] for one full scan given the planner's wish ``gpp_steer``.

        ``x`` and ``y`` hold the forward and lateral coordinates [m] of every
        sample of the full scan; only the +90..-90 degree window is used.
        """
        xs = np.asarray(x, dtype=np.float32)
        ys = np.asarray(y, dtype=np.float32)
        if xs.ndim != 1 or xs.shape != ys.shape or len(xs) < _WINDOW_END:
            raise ValueError(
                f"x and y must be full scans of at least {_WINDOW_END} samples"
            )
        window_x = xs[DEGREE_OFFSET:_WINDOW_END]
        window_y = ys[DEGREE_OFFSET:_WINDOW_END]

        labels, num_label = dbscan(
            window_x,
            window_y,
            self.eps,
            self.min_num_points,
            1,
            NUM_LSH_TABLE,
            self._rng,
        )
        self.labels = labels
        self.num_label = num_label

        if num_label == 0:
            self.circles = []
            self.ranges = np.zeros(ORIGINAL_INDEX, dtype=np.float64)
        else:
            self.circles = cluster_obstacles(window_x, window_y, labels, num_label)
            self.ranges = circle_approximation(self.circles)

        angle = steer_command(self.ranges, gpp_steer, self.steer_angle)
        self.steer_angle = float(np.float32(angle))
        return self.steer_angle


class SteerLink:
    """UDP link that sends steering angles and receives the planner's steering wish."""

    def __init__(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> None:
        self.address = (host, port)
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self._sock.settimeout(0.5)
        self._lock = threading.Lock()
        self._gpp_steer = 0.0
        self._running = False
        self._thread: threading.Thread | None = None
        self.send(0.0)

    @property
    def gpp_steer(self) -> float:
        """The last steering angle received from the planner."""
        with self._lock:
            return self._gpp_steer

    def send(self, steer_angle: float) -> None:
        """Send one steering angle as a little-endian single-precision float."""
        self._sock.sendto(_PACKET.pack(steer_angle), self.address)

    def receive(self) -> float:
        """Wait for one steering packet, store it and return it.

        Raises ``TimeoutError`` when nothing arrives in time and ``ValueError``
        on a packet of the wrong size.
        """
        data = self._sock.recv(64)
        if len(data) != _PACKET.size:
            raise ValueError(f"expected {_PACKET.size} bytes, got {len(data)}")
        (value,) = _PACKET.unpack(data)
        with self._lock:
            self._gpp_steer = value
        return value

    def _listen(self) -> None:
        while self._running:
            try:
                self.receive()
            except (TimeoutError, ValueError):
                continue
            except OSError:
                break

    def start(self) -> None:
        """Keep receiving in a background thread until closed."""
        if self._thread is not None:
            return
        self._running = True
        self._thread = threading.Thread(target=self._listen, daemon=True)
        self._thread.start()

    def close(self) -> None:
        """Stop receiving and release the socket."""
        self._running = False
        if self._thread is not None:
            self._thread.join(timeout=2.0)
            self._thread = None
        self._sock.close()

    def __enter__(self) -> SteerLink:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()