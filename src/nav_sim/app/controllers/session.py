# nav_sim/app/controllers/session.py
import logging
from dataclasses import replace

from nav_sim.app.events import (
    ArrivalDetected,
    PositionFix,
    PositionLost,
    SessionPaused,
    SessionResumed,
    SessionStarted,
    SimulationTick,
    SpeedChanged,
    TripCompleted,
)
from nav_sim.app.protocols import PositionSource, Subscription, TickListener
from nav_sim.config.models import SimulationModel, TrackingModel
from nav_sim.domain.entities.geography import GeoPoint, RoutePlan
from nav_sim.domain.entities.motion import DeviceFix, ProgressSnapshot, RoutePath
from nav_sim.domain.errors import InvalidTransition, PositionSourceError
from nav_sim.domain.mechanics.mechanics_geodesy import haversine_m
from nav_sim.domain.mechanics.mechanics_progress import ProgressTracker
from nav_sim.domain.mechanics.mechanics_speeds import (
    MPS_TO_KMH,
    SmoothedSpeed,
    average_speed_kmh,
    tick_speed_kmh,
)
from nav_sim.domain.state import RUNNING, SessionMode, SessionState, TripSummary
from nav_sim.sim.clock import SimClock
from nav_sim.sim.event import BaseEvent
from nav_sim.sim.kernel import Kernel

log = logging.getLogger("nav_sim.session")


class NavigationSession:
    """
    Idle -> Navigating | Simulating -> Paused <-> (prior mode) -> Completed -> Idle.

    Every position fix and simulation tick is a kernel event stamped with the
    generation of the subscription/timer that produced it. Replacing or
    cancelling the source bumps the generation, so anything still queued from
    the old source is dropped instead of applied.
    """

    def __init__(
        self,
        kernel: Kernel,
        clock: SimClock,
        *,
        position_source: PositionSource | None = None,
        tracking: TrackingModel | None = None,
        simulation: SimulationModel | None = None,
    ):
        self.kernel, self.clock = kernel, clock
        self.position_source = position_source
        self.tracking = tracking or TrackingModel()
        self.simulation = simulation or SimulationModel()
        self._state = SessionState(speed_multiplier=self.simulation.default_multiplier)
        self._tracker: ProgressTracker | None = None
        self._subscription: Subscription | None = None
        self._snapshot: ProgressSnapshot | None = None
        self._listeners: list[TickListener] = []

    # ------------ read-only views --------------

    @property
    def mode(self) -> SessionMode:
        return self._state.mode

    @property
    def state(self) -> SessionState:
        return replace(self._state)

    @property
    def snapshot(self) -> ProgressSnapshot | None:
        return self._snapshot

    @property
    def trip_summary(self) -> TripSummary | None:
        return self._state.trip_summary

    @property
    def has_live_source(self) -> bool:
        return self._subscription is not None

    def add_listener(self, listener: TickListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: TickListener) -> None:
        self._listeners.remove(listener)

    # ------------ route --------------

    def load_route(self, plan: RoutePlan) -> RoutePath:
        """Install a freshly computed route; a session still in flight is ended first."""
        st = self._state
        if st.mode in RUNNING or st.mode is SessionMode.PAUSED:
            self._emit(self._complete(self.kernel.now, "route_replaced"))
        st.plan = plan
        st.route_path = RoutePath.from_points(plan.flattened_path())
        self._tracker = None
        return st.route_path

    def _require_route(self, action: str) -> None:
        st = self._state
        if st.mode is not SessionMode.IDLE:
            raise InvalidTransition(action, st.mode.value)
        if st.plan is None or st.route_path is None or len(st.route_path) == 0:
            raise InvalidTransition(action, st.mode.value, "no route loaded")

    # ------------ commands --------------

    def start_navigation(self) -> None:
        self._require_route("start navigation")
        if self.position_source is None:
            raise InvalidTransition("start navigation", self.mode.value, "no position source")
        self._begin(SessionMode.NAVIGATING)
        self._subscribe()
        st = self._state
        self._emit([SessionStarted(t=self.kernel.now, mode="navigating", gen=st.generation)])

    def start_simulation(self) -> None:
        self._require_route("start simulation")
        self._begin(SessionMode.SIMULATING)
        st = self._state
        now = self.kernel.now
        out: list[BaseEvent] = [SessionStarted(t=now, mode="simulating", gen=st.generation)]
        out += self._commit(now, st.route_path.points[0], speed_kmh=None, index=0)
        if st.mode is SessionMode.SIMULATING:
            self.kernel.schedule(SimulationTick(t=now + self.tick_period_s, gen=st.generation))
        self._emit(out)

    def pause(self) -> None:
        st = self._state
        if st.mode not in RUNNING:
            raise InvalidTransition("pause", st.mode.value)
        self._teardown()
        st.paused_from, st.mode = st.mode, SessionMode.PAUSED
        paused = SessionPaused(
            t=self.kernel.now, mode=st.paused_from.value, progress=st.progress_fraction
        )
        self._emit([paused])

    def resume(self) -> None:
        st = self._state
        if st.mode is not SessionMode.PAUSED:
            raise InvalidTransition("resume", st.mode.value)
        self._teardown()
        st.mode, st.paused_from = st.paused_from, None
        if st.mode is SessionMode.NAVIGATING:
            self._subscribe()
        else:
            self.kernel.schedule(
                SimulationTick(t=self.kernel.now + self.tick_period_s, gen=st.generation)
            )
        self._emit([SessionResumed(t=self.kernel.now, mode=st.mode.value, gen=st.generation)])

    def change_speed(self, multiplier: int) -> None:
        if multiplier not in self.simulation.multipliers:
            raise ValueError(
                f"speed multiplier must be one of {self.simulation.multipliers}, got {multiplier}"
            )
        st = self._state
        st.speed_multiplier = multiplier
        if st.mode is SessionMode.SIMULATING:
            # swap the timer; sim_index and progress carry over
            self._teardown()
            self.kernel.schedule(
                SimulationTick(t=self.kernel.now + self.tick_period_s, gen=st.generation)
            )
        self._emit([SpeedChanged(t=self.kernel.now, multiplier=multiplier, gen=st.generation)])

    def stop(self) -> TripSummary:
        st = self._state
        if st.mode is SessionMode.COMPLETED:
            return st.trip_summary
        if st.mode not in RUNNING and st.mode is not SessionMode.PAUSED:
            raise InvalidTransition("stop", st.mode.value)
        self._emit(self._complete(self.kernel.now, "stopped"))
        return st.trip_summary

    def close(self) -> TripSummary | None:
        """Consume the trip summary and return to Idle. The loaded route is kept."""
        st = self._state
        if st.mode in RUNNING or st.mode is SessionMode.PAUSED:
            self.stop()
        summary = st.trip_summary
        self._teardown()
        st.clear_progress()
        st.trip_summary = None
        st.speed_multiplier = self.simulation.default_multiplier
        st.mode = SessionMode.IDLE
        self._tracker = None
        self._snapshot = None
        return summary

    @property
    def tick_period_s(self) -> float:
        return self.simulation.base_period_s / self._state.speed_multiplier

    # ------------ kernel handlers --------------

    def on_position_fix(self, ev: PositionFix):
        st = self._state
        if ev.gen != st.generation or st.mode is not SessionMode.NAVIGATING:
            self.kernel.discard(ev, "stale")
            return []
        try:
            pos = GeoPoint(ev.lat, ev.lng)
        except ValueError:
            self.kernel.discard(ev, "invalid_fix")
            return []
        speed = ev.speed_mps * MPS_TO_KMH if ev.speed_mps is not None else None
        st.last_fix_t = ev.t
        return self._commit(ev.t, pos, speed_kmh=speed)

    def on_position_lost(self, ev: PositionLost):
        st = self._state
        if ev.gen != st.generation or st.mode is not SessionMode.NAVIGATING:
            self.kernel.discard(ev, "stale")
            return []
        log.warning("position_lost", extra={"extra": {"reason": ev.reason, "t": ev.t}})
        return self._complete(ev.t, "position_error")

    def on_simulation_tick(self, ev: SimulationTick):
        st = self._state
        if ev.gen != st.generation or st.mode is not SessionMode.SIMULATING:
            self.kernel.discard(ev, "stale")
            return []
        path = st.route_path
        prev = path.points[st.sim_index]
        st.sim_index = min(st.sim_index + 1, len(path) - 1)
        here = path.points[st.sim_index]
        speed = tick_speed_kmh(haversine_m(prev, here), self.tick_period_s)
        out = self._commit(ev.t, here, speed_kmh=speed, index=st.sim_index)
        if st.mode is SessionMode.SIMULATING:
            if st.sim_index >= len(path) - 1:
                out += self._complete(ev.t, "arrived")
            else:
                out.append(SimulationTick(t=ev.t + self.tick_period_s, gen=ev.gen))
        return out

    # ------------ internals --------------

    def _begin(self, mode: SessionMode) -> None:
        st = self._state
        self._teardown()
        st.clear_progress()
        st.trip_summary = None
        st.mode = mode
        st.start_t = self.kernel.now
        self._snapshot = None
        self._tracker = ProgressTracker(
            st.route_path,
            st.plan.instructions,
            estimated_time_s=st.plan.estimated_time_s,
            arrival_threshold_m=self.tracking.arrival_threshold_m,
            speed=SmoothedSpeed(self.tracking.smoothing_alpha, self.tracking.max_speed_kmh),
        )

    def _teardown(self) -> None:
        """Invalidate the current timer/subscription; there is never more than one."""
        self._state.generation += 1
        if self._subscription is not None:
            sub, self._subscription = self._subscription, None
            sub.cancel()

    def _subscribe(self) -> None:
        gen = self._state.generation
        self._subscription = self.position_source.subscribe(
            lambda fix: self._on_device_fix(fix, gen),
            lambda err: self._on_device_error(err, gen),
        )

    def _on_device_fix(self, fix: DeviceFix, gen: int) -> None:
        t = max(self.kernel.now, self.clock.to_sim(fix.timestamp))
        self.kernel.schedule(
            PositionFix(
                t=t,
                gen=gen,
                lat=fix.latitude,
                lng=fix.longitude,
                accuracy_m=fix.accuracy,
                speed_mps=fix.speed_mps,
            )
        )
        self.kernel.run(until=t)

    def _on_device_error(self, err: PositionSourceError, gen: int) -> None:
        t = self.kernel.now
        self.kernel.schedule(PositionLost(t=t, gen=gen, reason=str(err)))
        self.kernel.run(until=t)

    def _commit(
        self, t: float, pos: GeoPoint, *, speed_kmh: float | None, index: int | None = None
    ) -> list[BaseEvent]:
        # simulation knows its vertex; only device fixes are matched to the nearest one
        st = self._state
        snap = self._tracker.tick(pos, speed_kmh=speed_kmh, index=index)
        st.apply(snap)
        self._snapshot = snap
        self._notify(snap)
        if snap.arrived and not st.arrival_fired:
            st.arrival_fired = True
            arrived = ArrivalDetected(t=t, gen=st.generation, remaining_m=snap.remaining_distance_m)
            return [arrived, *self._complete(t, "arrived")]
        return []

    def _complete(self, t: float, reason: str) -> list[BaseEvent]:
        st = self._state
        self._teardown()
        start_t = st.start_t if st.start_t is not None else t
        total = st.plan.total_distance_m or st.route_path.total_length_m
        avg = average_speed_kmh(
            total,
            t - start_t,
            min_elapsed_s=self.tracking.min_elapsed_s,
            max_kmh=self.tracking.max_speed_kmh,
        )
        st.trip_summary = TripSummary(
            start_time=self.clock.to_wall(start_t),
            end_time=self.clock.to_wall(t),
            total_distance_m=total,
            traveled_distance_m=total * st.progress_fraction,
            total_estimated_time_s=st.plan.estimated_time_s,
            average_speed_kmh=avg,
            reason=reason,
        )
        st.mode, st.paused_from = SessionMode.COMPLETED, None
        return [TripCompleted(t=t, reason=reason, distance_m=total, average_speed_kmh=avg)]

    def _emit(self, events: list[BaseEvent]) -> None:
        for ev in events:
            self.kernel.schedule(ev)

    def _notify(self, snap: ProgressSnapshot) -> None:
        for listener in list(self._listeners):
            try:
                listener(snap)
            except Exception:
                log.exception("tick_listener_failed")
