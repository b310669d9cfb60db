# tests/sim/test_realtime.py
import asyncio
from dataclasses import dataclass

from nav_sim.sim.event import BaseEvent
from nav_sim.sim.kernel import Kernel
from nav_sim.sim.realtime import run_realtime


@dataclass(order=True)
class Tick(BaseEvent):
    pass


class FakeWall:
    def __init__(self):
        self.t = 0.0
        self.sleeps = []

    def monotonic(self) -> float:
        return self.t

    async def sleep(self, s: float) -> None:
        self.sleeps.append(s)
        self.t += s


def _kernel(times):
    k = Kernel()
    seen = []
    k.on(Tick, lambda ev: seen.append(ev.t))
    for t in times:
        k.schedule(Tick(t=t))
    return k, seen


def test_dispatches_at_wall_clock_pace_until_drained():
    wall = FakeWall()
    k, seen = _kernel([1.0, 2.0, 3.5])
    n = asyncio.run(run_realtime(k, monotonic=wall.monotonic, sleep=wall.sleep))
    assert n == 3
    assert seen == [1.0, 2.0, 3.5]
    assert wall.sleeps == [1.0, 1.0, 1.5]
    assert wall.t == 3.5


def test_until_idles_to_the_horizon():
    wall = FakeWall()
    k, seen = _kernel([1.0])
    n = asyncio.run(
        run_realtime(k, until=2.0, idle_s=0.5, monotonic=wall.monotonic, sleep=wall.sleep)
    )
    assert n == 1
    assert k.now == 2.0


def test_stop_event_ends_the_pump():
    wall = FakeWall()
    k, seen = _kernel([1.0, 100.0])

    async def main():
        stop = asyncio.Event()

        async def sleep(s):
            await wall.sleep(s)
            if wall.t >= 2.0:
                stop.set()

        return await run_realtime(
            k, stop=stop, idle_s=0.5, monotonic=wall.monotonic, sleep=sleep
        )

    assert asyncio.run(main()) == 1
    assert seen == [1.0]
    assert k.pending == 1
