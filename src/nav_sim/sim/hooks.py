# sim/hooks.py
from typing import Protocol

from nav_sim.sim.event import BaseEvent


class KernelHooks(Protocol):
    """Observation points of the kernel loop; implementations must not mutate events."""

    def run_start(self, *, until, max_events, qsize): ...
    def run_end(self, *, processed, last_t, qsize, wall_ms): ...
    def schedule(self, ev: BaseEvent, *, now, qsize): ...
    def dispatch_start(self, ev: BaseEvent, *, seq, qsize, handlers): ...
    def dispatch_end(self, ev: BaseEvent, *, out_events, ms): ...
    def discard(self, ev: BaseEvent, *, reason: str): ...
    def error(self, ev: BaseEvent, *, reason: str, **kw): ...


class NoopHooks:
    def _ignore(self, *_, **__):
        pass

    run_start = run_end = schedule = _ignore
    dispatch_start = dispatch_end = discard = error = _ignore


class MultiHooks:
    """Forwards every hook call to each child in order (e.g. JSON logging plus a test tracer)."""

    _NAMES = (
        "run_start",
        "run_end",
        "schedule",
        "dispatch_start",
        "dispatch_end",
        "discard",
        "error",
    )

    def __init__(self, *children: KernelHooks):
        self.children = children

    def __getattr__(self, name: str):
        if name not in self._NAMES:
            raise AttributeError(name)

        def fan_out(*args, **kw):
            for child in self.children:
                getattr(child, name)(*args, **kw)

        return fan_out
