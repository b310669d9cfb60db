import math
from collections.abc import Sequence
from dataclasses import replace

import numpy as np

from nav_sim.domain.entities.geography import GeoPoint, Instruction
from nav_sim.domain.entities.motion import ProgressSnapshot, RoutePath
from nav_sim.domain.mechanics.mechanics_geodesy import bearing_deg, haversine_m, haversine_to_many
from nav_sim.domain.mechanics.mechanics_speeds import SmoothedSpeed

ARRIVAL_THRESHOLD_M = 50.0


def closest_vertex(position: GeoPoint, path: RoutePath) -> tuple[int, float]:
    """Index of the nearest path vertex (first one on ties) and its distance in meters."""
    if len(path) == 0:
        raise ValueError("route path is empty")
    d = haversine_to_many(position, path.lat, path.lng)
    i = int(np.argmin(d))
    return i, float(d[i])


def instruction_index(progress: float, count: int) -> int | None:
    if count <= 0:
        return None
    return min(max(math.floor(progress * count), 0), count - 1)


def next_turn_distance_m(
    path: RoutePath,
    closest: int,
    deviation_m: float,
    instructions: Sequence[Instruction],
    current: int | None,
) -> float:
    if current is None or current + 1 >= len(instructions):
        return 0.0
    interval = instructions[current + 1].interval
    if not interval:
        return 0.0
    turn = interval[0]
    if turn <= closest or turn >= len(path):
        return 0.0
    return deviation_m + path.between(closest, turn)


def compute_progress(
    position: GeoPoint,
    path: RoutePath,
    instructions: Sequence[Instruction] = (),
    *,
    estimated_time_s: float,
    previous: ProgressSnapshot | None = None,
    arrival_threshold_m: float = ARRIVAL_THRESHOLD_M,
    closest_index: int | None = None,
) -> ProgressSnapshot:
    """Project a position onto the route.

    closest_index pins the vertex when the caller already knows it (simulated
    playback); otherwise the nearest vertex is searched, first one on ties.
    """
    if closest_index is None:
        i, deviation = closest_vertex(position, path)
    else:
        if not 0 <= closest_index < len(path):
            raise IndexError(f"vertex {closest_index} outside route of {len(path)}")
        i, deviation = closest_index, haversine_m(position, path.points[closest_index])
    remaining = deviation + path.remaining_from(i)
    forward = previous is not None and i >= previous.closest_index
    if forward:
        # hold remaining distance while still between the same vertices
        remaining = min(remaining, previous.remaining_distance_m)

    total = path.total_length_m
    progress = 1.0 if total <= 0 else min(max(1.0 - remaining / total, 0.0), 1.0)
    if forward:
        progress = max(progress, previous.progress_fraction)

    step = instruction_index(progress, len(instructions))

    if previous is not None and previous.position != position:
        heading = bearing_deg(previous.position, position)
    elif previous is not None:
        heading = previous.bearing_deg
    elif i + 1 < len(path):
        heading = bearing_deg(path.points[i], path.points[i + 1])
    else:
        heading = 0.0

    return ProgressSnapshot(
        position=position,
        closest_index=i,
        remaining_distance_m=remaining,
        remaining_time_s=int(round(estimated_time_s * (1.0 - progress))),
        progress_fraction=progress,
        instruction_index=step,
        next_turn_distance_m=next_turn_distance_m(path, i, deviation, instructions, step),
        deviation_m=deviation,
        bearing_deg=heading,
        smoothed_speed_kmh=previous.smoothed_speed_kmh if previous else 0.0,
        arrived=remaining < arrival_threshold_m,
    )


class ProgressTracker:
    """Stateful tracker for one route: remembers the last snapshot and the smoothed speed."""

    def __init__(
        self,
        path: RoutePath,
        instructions: Sequence[Instruction] = (),
        *,
        estimated_time_s: float,
        arrival_threshold_m: float = ARRIVAL_THRESHOLD_M,
        speed: SmoothedSpeed | None = None,
    ):
        if len(path) == 0:
            raise ValueError("route path is empty")
        self.path = path
        self.instructions = tuple(instructions)
        self.estimated_time_s = estimated_time_s
        self.arrival_threshold_m = arrival_threshold_m
        self.speed = speed or SmoothedSpeed()
        self.last: ProgressSnapshot | None = None

    def tick(
        self,
        position: GeoPoint,
        *,
        speed_kmh: float | None = None,
        index: int | None = None,
    ) -> ProgressSnapshot:
        snap = compute_progress(
            position,
            self.path,
            self.instructions,
            estimated_time_s=self.estimated_time_s,
            previous=self.last,
            arrival_threshold_m=self.arrival_threshold_m,
            closest_index=index,
        )
        if speed_kmh is not None:
            self.speed.update(speed_kmh)
        snap = replace(snap, smoothed_speed_kmh=self.speed.value)
        self.last = snap
        return snap

    def reset(self) -> None:
        self.last = None
        self.speed.reset()
