# nav_sim/services/position.py
from dataclasses import dataclass

from nav_sim.app.protocols import ErrorCallback, FixCallback, PositionSource
from nav_sim.domain.entities.motion import DeviceFix
from nav_sim.domain.errors import PositionSourceError


@dataclass(eq=False)
class _Subscription:
    source: "ManualPositionSource"
    on_fix: FixCallback
    on_error: ErrorCallback
    active: bool = True

    def cancel(self) -> None:
        if self.active:
            self.active = False
            self.source._subs.remove(self)


class ManualPositionSource(PositionSource):
    """
    Position source fed by the caller: replaying recorded tracks, bridging a
    device SDK callback, or scripting fixes in tests.
    """

    def __init__(self):
        self._subs: list[_Subscription] = []

    @property
    def subscribers(self) -> int:
        return len(self._subs)

    def subscribe(self, on_fix: FixCallback, on_error: ErrorCallback) -> _Subscription:
        sub = _Subscription(self, on_fix, on_error)
        self._subs.append(sub)
        return sub

    def push(self, fix: DeviceFix) -> None:
        for sub in list(self._subs):
            if sub.active:
                sub.on_fix(fix)

    def replay(self, fixes) -> None:
        for fix in fixes:
            self.push(fix)

    def fail(self, reason: str | PositionSourceError) -> None:
        err = reason if isinstance(reason, PositionSourceError) else PositionSourceError(reason)
        for sub in list(self._subs):
            if sub.active:
                sub.on_error(err)
