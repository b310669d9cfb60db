# io/recorder.py
import json
import logging
import sys
from dataclasses import asdict, is_dataclass
from typing import Protocol

log = logging.getLogger("nav_sim.recorder")


class Sink(Protocol):
    def write(self, ev) -> None: ...


def _record(ev) -> dict:
    body = asdict(ev) if is_dataclass(ev) else dict(ev)
    return {"type": type(ev).__name__, **body}


class JsonlSink:
    def __init__(self, fp=sys.stdout):
        self.fp = fp

    def write(self, ev) -> None:
        self.fp.write(json.dumps(_record(ev), default=str) + "\n")


class MemorySink:
    def __init__(self):
        self.events: list = []

    def write(self, ev) -> None:
        self.events.append(ev)

    def of_type(self, cls) -> list:
        return [e for e in self.events if isinstance(e, cls)]


class Recorder:
    """
    Fans lifecycle events, tick snapshots and trip summaries out to sinks.
    Usable directly as a session listener.
    """

    def __init__(self, *sinks: Sink):
        self.sinks = sinks or (JsonlSink(),)

    def emit(self, ev):
        for s in self.sinks:
            try:
                s.write(ev)
            except Exception:
                log.exception("sink_write_failed", extra={"extra": {"sink": type(s).__name__}})

    __call__ = emit
