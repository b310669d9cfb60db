# sim/clock.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

SEC = 1.0
MIN = 60.0
HOUR = 3600.0


def minutes(x: float) -> float:
    return x * MIN


def hours(x: float) -> float:
    return x * HOUR


@dataclass(frozen=True)
class SimClock:
    epoch: datetime  # wall time of kernel t=0; naive values are taken as UTC

    @classmethod
    def utc_epoch(cls, y: int, m: int, d: int, hh=0, mm=0, ss=0) -> SimClock:
        return cls(datetime(y, m, d, hh, mm, ss, tzinfo=UTC))

    @classmethod
    def starting_now(cls) -> SimClock:
        return cls(datetime.now(UTC))

    # wall -> kernel seconds
    def to_sim(self, dt: datetime) -> float:
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=UTC)
        return (dt - self.epoch).total_seconds()

    # kernel seconds -> wall
    def to_wall(self, t: float) -> datetime:
        return self.epoch + timedelta(seconds=t)
