from dataclasses import dataclass
from datetime import datetime

import numpy as np

from nav_sim.domain.entities.geography import GeoPoint
from nav_sim.domain.mechanics.mechanics_geodesy import edge_lengths_m


@dataclass(frozen=True, eq=False)
class RoutePath:
    """
    Flattened route geometry, built once per route.
    seg_m[i]: length of edge i -> i+1
    cum_m[i]: distance from the first vertex to vertex i
    """

    points: tuple[GeoPoint, ...]
    lat: np.ndarray
    lng: np.ndarray
    seg_m: np.ndarray
    cum_m: np.ndarray

    @classmethod
    def from_points(cls, points) -> "RoutePath":
        pts = tuple(points)
        lat = np.fromiter((p.lat for p in pts), dtype=float, count=len(pts))
        lng = np.fromiter((p.lng for p in pts), dtype=float, count=len(pts))
        seg = edge_lengths_m(lat, lng)
        cum = np.concatenate(([0.0], np.cumsum(seg))) if len(pts) else np.zeros(0)
        return cls(points=pts, lat=lat, lng=lng, seg_m=seg, cum_m=cum)

    def __len__(self) -> int:
        return len(self.points)

    @property
    def total_length_m(self) -> float:
        return float(self.cum_m[-1]) if len(self.cum_m) else 0.0

    def remaining_from(self, i: int) -> float:
        return self.total_length_m - float(self.cum_m[i])

    def between(self, i: int, j: int) -> float:
        """Along-path distance from vertex i to vertex j (i <= j)."""
        return float(self.cum_m[j] - self.cum_m[i])


@dataclass(frozen=True)
class ProgressSnapshot:
    position: GeoPoint
    closest_index: int
    remaining_distance_m: float
    remaining_time_s: int
    progress_fraction: float
    instruction_index: int | None
    next_turn_distance_m: float
    deviation_m: float
    bearing_deg: float
    smoothed_speed_kmh: float = 0.0
    arrived: bool = False


@dataclass(frozen=True)
class DeviceFix:
    """One reading pushed by a device position source."""

    latitude: float
    longitude: float
    timestamp: datetime
    accuracy: float | None = None
    speed_mps: float | None = None  # None when the device does not report speed
