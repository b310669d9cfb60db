from collections.abc import Callable
from typing import Protocol, runtime_checkable

from nav_sim.domain.entities.geography import RoutePlan
from nav_sim.domain.entities.motion import DeviceFix, ProgressSnapshot
from nav_sim.domain.errors import PositionSourceError
from nav_sim.domain.waypoints import RouteRequest


# ------------- External collaborators --------------------
@runtime_checkable
class RoutingService(Protocol):
    """
    Responsibilities:
      • Turn an ordered waypoint request into legs with decoded geometry.
      • Raise RoutingServiceUnavailable on any transport or payload failure.
    No retries; retry policy belongs to the caller.
    """

    def suggest_route(self, request: RouteRequest) -> RoutePlan: ...


@runtime_checkable
class Subscription(Protocol):
    def cancel(self) -> None: ...


FixCallback = Callable[[DeviceFix], None]
ErrorCallback = Callable[[PositionSourceError], None]


@runtime_checkable
class PositionSource(Protocol):
    """
    Push-based device position stream.
    Fixes arrive through on_fix until the returned Subscription is cancelled;
    a terminal failure (permission denied, hardware lost) goes to on_error.
    """

    def subscribe(self, on_fix: FixCallback, on_error: ErrorCallback) -> Subscription: ...


# ------------- Observers --------------------
@runtime_checkable
class TickListener(Protocol):
    """Called after a tick's state change is committed (camera, markers, panels)."""

    def __call__(self, snapshot: ProgressSnapshot) -> None: ...
