# io/kernel_logging.py
import json
import logging
import sys
from dataclasses import asdict, is_dataclass

from nav_sim.io.recorder import Recorder
from nav_sim.sim.hooks import NoopHooks


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "msg": record.getMessage(),
            "logger": record.name,
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _default_json_logger(name="nav_sim", level="INFO"):
    logger = logging.getLogger(name)
    if not logger.handlers:
        h = logging.StreamHandler(sys.stdout)
        h.setFormatter(JsonFormatter())
        logger.addHandler(h)
        logger.setLevel(level)
    return logger


class KernelLogging(NoopHooks):
    """
    One place to shape and emit structured logs for engine and session events.
    Session lifecycle events are also forwarded to the recorder, if any.
    """

    BUSINESS = {
        "SessionStarted",
        "SessionPaused",
        "SessionResumed",
        "SpeedChanged",
        "ArrivalDetected",
        "TripCompleted",
        "PositionLost",
    }

    def __init__(
        self,
        run_id: str = "local",
        clock=None,
        level: str = "INFO",
        debug: bool = False,
        sample_every: int = 1,
        logger: logging.Logger | None = None,
        recorder: Recorder | None = None,
    ):
        self.run_id, self.clock, self.debug, self.sample_every = (
            run_id,
            clock,
            debug,
            max(1, sample_every),
        )
        self.recorder = recorder
        self.log = logger or _default_json_logger(level=level)
        self._processed = 0
        self.discarded = 0

    # --------------- Helpers -----------------------------

    def _emit(self, level: str, msg: str, **extra):
        t = extra.get("t")
        wall = self.clock.to_wall(t) if (self.clock and t is not None) else None
        payload = {"run_id": self.run_id}
        if wall:
            payload["wall"] = wall.isoformat()
        self.log.log(getattr(logging, level), msg, extra={"extra": {**payload, **extra}})

    def _shape_event(self, ev):
        name = type(ev).__name__
        base = {"t": getattr(ev, "t", None)}
        for f in ("gen", "mode", "reason"):
            if hasattr(ev, f):
                base[f] = getattr(ev, f)
        if is_dataclass(ev):
            evd = asdict(ev)
            for k in base:
                evd.pop(k, None)
            if evd:
                base["data"] = evd
        return name, base

    # engine lifecycle

    def run_start(self, *, until, max_events, qsize):
        if self.debug:
            self._emit("DEBUG", "run_start", until=until, max_events=max_events, qsize=qsize)

    def run_end(self, *, processed: int, **extra):
        if self.debug and processed:
            self._emit("DEBUG", "run_end", processed=processed, **extra)

    def schedule(self, ev, *, now: float, qsize: int):
        if self.debug and (qsize % self.sample_every) == 0:
            name, extra = self._shape_event(ev)
            self._emit("DEBUG", "schedule", event=name, **extra, now=now, qsize=qsize)

    def dispatch_start(self, ev, *, seq: int, qsize: int, handlers: int):
        self._processed += 1
        name, extra = self._shape_event(ev)
        if name in self.BUSINESS:
            self._emit("INFO", name, **extra, seq=seq)
            self.biz(ev)
        elif self.debug and (self._processed % self.sample_every) == 0:
            self._emit("DEBUG", name, **extra, seq=seq, qsize=qsize, handlers=handlers)

    def dispatch_end(self, ev, *, out_events: int, ms: float):
        if self.debug and (self._processed % self.sample_every) == 0:
            self._emit(
                "DEBUG", "dispatch_done", event=type(ev).__name__, out_events=out_events, ms=ms
            )

    def discard(self, ev, *, reason: str):
        self.discarded += 1
        if self.debug:
            name, extra = self._shape_event(ev)
            self._emit("DEBUG", "event_discarded", event=name, **{**extra, "reason": reason})

    def error(self, ev, *, reason: str, **kw):
        name, extra = self._shape_event(ev)
        self._emit("ERROR", "kernel_error", event=name, **{**extra, "reason": reason, **kw})

    # ------------- Business Event Reporting --------------------------

    def biz(self, ev):
        if self.recorder:
            self.recorder.emit(ev)
