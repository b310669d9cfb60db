# app/events.py
from dataclasses import dataclass
from typing import Literal

from nav_sim.sim.event import BaseEvent

CompletionReason = Literal["arrived", "stopped", "position_error", "route_replaced"]


# Position sources; `gen` ties the event to the subscription/timer that produced it
@dataclass(order=True)
class PositionFix(BaseEvent):
    gen: int
    lat: float
    lng: float
    accuracy_m: float | None = None
    speed_mps: float | None = None


@dataclass(order=True)
class PositionLost(BaseEvent):
    gen: int
    reason: str


@dataclass(order=True)
class SimulationTick(BaseEvent):
    gen: int


# Session lifecycle (observability; handled by logging hooks)
@dataclass(order=True)
class SessionStarted(BaseEvent):
    mode: str
    gen: int


@dataclass(order=True)
class SessionPaused(BaseEvent):
    mode: str
    progress: float


@dataclass(order=True)
class SessionResumed(BaseEvent):
    mode: str
    gen: int


@dataclass(order=True)
class SpeedChanged(BaseEvent):
    multiplier: int
    gen: int


@dataclass(order=True)
class ArrivalDetected(BaseEvent):
    gen: int
    remaining_m: float


@dataclass(order=True)
class TripCompleted(BaseEvent):
    reason: str
    distance_m: float
    average_speed_kmh: float
