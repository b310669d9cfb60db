# nav_sim/domain/errors.py


class NavError(Exception):
    """Base class for every error raised by the engine."""


class MissingWaypoint(NavError, ValueError):
    def __init__(self, kind: str, count: int):
        self.kind, self.count = kind, count
        super().__init__(f"expected exactly one {kind} waypoint, got {count}")


class DecodeError(NavError, ValueError):
    """Malformed polyline. Carries whatever prefix could still be decoded."""

    def __init__(self, partial_count: int, points: list[tuple[float, float]] | None = None):
        self.partial_count = partial_count
        self.points = points or []
        super().__init__(f"polyline truncated after {partial_count} points")


class RoutingServiceUnavailable(NavError, RuntimeError):
    pass


class PositionSourceError(NavError, RuntimeError):
    pass


class InvalidTransition(NavError, RuntimeError):
    def __init__(self, action: str, mode: str, reason: str | None = None):
        self.action, self.mode = action, mode
        msg = f"cannot {action} while {mode}"
        super().__init__(f"{msg}: {reason}" if reason else msg)
