# sim/realtime.py
"""Drive a Kernel at wall-clock pace (live simulation playback, device sessions)."""

import asyncio
import time
from collections.abc import Awaitable, Callable

from nav_sim.sim.kernel import Kernel


async def run_realtime(
    kernel: Kernel,
    *,
    stop: asyncio.Event | None = None,
    until: float | None = None,
    idle_s: float = 0.25,
    monotonic: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> int:
    """
    Pump the kernel so that kernel time tracks elapsed wall time from the call.

    Returns the number of events dispatched. Stops when `stop` is set, when
    kernel time reaches `until`, or (with neither given) when the queue drains.
    """
    wall0, t0 = monotonic(), kernel.now
    processed = 0
    while True:
        if stop is not None and stop.is_set():
            break
        now = t0 + (monotonic() - wall0)
        if until is not None:
            now = min(now, until)
        processed += kernel.run(until=now)
        if until is not None and kernel.now >= until:
            break
        nxt = kernel.next_time()
        if nxt is None and stop is None and until is None:
            break
        wait = idle_s if nxt is None else max(0.0, nxt - now)
        if until is not None:
            wait = min(wait, max(0.0, until - now))
        await sleep(min(wait, idle_s) if stop is not None else wait)
    return processed
