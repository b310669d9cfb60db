# nav_sim/domain/state.py
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from nav_sim.domain.entities.geography import GeoPoint, RoutePlan
from nav_sim.domain.entities.motion import ProgressSnapshot, RoutePath


class SessionMode(str, Enum):
    IDLE = "idle"
    NAVIGATING = "navigating"
    SIMULATING = "simulating"
    PAUSED = "paused"
    COMPLETED = "completed"


RUNNING = (SessionMode.NAVIGATING, SessionMode.SIMULATING)


@dataclass(frozen=True)
class TripSummary:
    start_time: datetime
    end_time: datetime
    total_distance_m: float
    traveled_distance_m: float
    total_estimated_time_s: float
    average_speed_kmh: float
    reason: str  # "arrived" | "stopped" | "position_error" | "route_replaced"

    @property
    def duration_s(self) -> float:
        return (self.end_time - self.start_time).total_seconds()


@dataclass
class SessionState:
    mode: SessionMode = SessionMode.IDLE
    paused_from: SessionMode | None = None
    plan: RoutePlan | None = None
    route_path: RoutePath | None = None

    current_position: GeoPoint | None = None
    current_bearing_deg: float = 0.0
    current_speed_kmh: float = 0.0
    progress_fraction: float = 0.0
    remaining_distance_m: float = 0.0
    remaining_time_s: int = 0
    current_instruction_index: int | None = None

    sim_index: int = 0
    speed_multiplier: int = 1
    generation: int = 0  # bumped whenever a subscription or timer is replaced/cancelled

    start_t: float | None = None  # kernel seconds
    last_fix_t: float | None = None
    arrival_fired: bool = False
    trip_summary: TripSummary | None = None

    def apply(self, snap: ProgressSnapshot) -> None:
        self.current_position = snap.position
        self.current_bearing_deg = snap.bearing_deg
        self.current_speed_kmh = snap.smoothed_speed_kmh
        self.progress_fraction = snap.progress_fraction
        self.remaining_distance_m = snap.remaining_distance_m
        self.remaining_time_s = snap.remaining_time_s
        self.current_instruction_index = snap.instruction_index

    def clear_progress(self) -> None:
        self.paused_from = None
        self.current_position = None
        self.current_bearing_deg = 0.0
        self.current_speed_kmh = 0.0
        self.progress_fraction = 0.0
        self.remaining_distance_m = 0.0
        self.remaining_time_s = 0
        self.current_instruction_index = None
        self.sim_index = 0
        self.start_t = None
        self.last_fix_t = None
        self.arrival_fired = False
