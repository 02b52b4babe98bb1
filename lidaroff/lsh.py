"""Locality-sensitive hashing of 2-D points with random hyperplanes."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence

import numpy as np

_MASK64 = (1 << 64) - 1


class LSH:
    """Buckets points by the signs of their projections on random hyperplanes.

    Hash values keep accumulating bits from one table to the next, so the
    value for table ``t`` holds the bits of tables ``0..t`` (kept to 64 bits).
    """

    def __init__(
        self,
        x: Sequence[float],
        y: Sequence[float],
        num_hyperplanes: int,
        num_tables: int,
        rng: np.random.Generator | None = None,
    ) -> None:
        self._x = np.asarray(x, dtype=np.float32)
        self._y = np.asarray(y, dtype=np.float32)
        if self._x.shape != self._y.shape or self._x.ndim != 1:
            raise ValueError("x and y must be one-dimensional and of equal length")
        if num_hyperplanes < 0 or num_tables < 0:
            raise ValueError("numbers of hyperplanes and tables must not be negative")

        self.num_hyperplanes = num_hyperplanes
        self.num_tables = num_tables

        generator = rng if rng is not None else np.random.default_rng()
        self._hyperplanes = generator.standard_normal(
            (num_tables, num_hyperplanes, 2)
        ).astype(np.float32)

        self._tables: list[dict[int, list[int]]] = [
            defaultdict(list) for _ in range(num_tables)
        ]
        for idx, (px, py) in enumerate(zip(self._x, self._y)):
            for table, value in zip(self._tables, self.hash(px, py)):
                table[value].append(idx)

    def __len__(self) -> int:
        return len(self._x)

    def hash(self, x: float, y: float) -> list[int]:
        """Return one hash value per table for the point ``(x, y)``."""
        px = np.float32(x)
        py = np.float32(y)
        value = 0
        values = []
        for table in self._hyperplanes:
            for a, b in table:
                dot = px * a + py * b
                value = ((value << 1) | int(dot >= 0)) & _MASK64
            values.append(value)
        return values

    def nearest_neighbor(self, idx: int, eps: float) -> list[int]:
        """Indices of points sharing a bucket with point ``idx`` and within ``eps`` of it.

        A point found in several tables is listed once per table.
        """
        if not -len(self._x) <= idx < len(self._x):
            raise IndexError(f"point index {idx} out of range")
        idx %= len(self._x)
        px = self._x[idx]
        py = self._y[idx]
        limit = np.float32(eps)

        candidates: list[int] = []
        for table, value in zip(self._tables, self.hash(px, py)):
            bucket = table.get(value)
            if not bucket:
                continue
            members = np.asarray(bucket)
            dist = np.hypot(px - self._x[members], py - self._y[members])
            candidates.extend(
                int(point)
                for point, near in zip(bucket, dist <= limit)
                if near and point != idx
            )
        return candidates