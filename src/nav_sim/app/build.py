# nav_sim/app/build.py
from collections.abc import Mapping
from dataclasses import dataclass

from nav_sim.app.controllers.planning import RoutePlanningController
from nav_sim.app.controllers.session import NavigationSession
from nav_sim.app.protocols import PositionSource, RoutingService
from nav_sim.app.wiring import wire
from nav_sim.config.models import AppModel
from nav_sim.domain.waypoints import WaypointSequencer
from nav_sim.io.kernel_logging import KernelLogging  # JSON logs
from nav_sim.io.recorder import JsonlSink, Recorder, Sink
from nav_sim.runtime.registries import make_routing
from nav_sim.services.position import ManualPositionSource
from nav_sim.sim.clock import SimClock
from nav_sim.sim.hooks import KernelHooks, MultiHooks, NoopHooks
from nav_sim.sim.kernel import Kernel


@dataclass
class App:
    kernel: Kernel
    clock: SimClock
    session: NavigationSession
    planner: RoutePlanningController | None
    position_source: PositionSource
    recorder: Recorder


def build(
    cfg: AppModel | Mapping,
    *,
    routing: RoutingService | None = None,
    position_source: PositionSource | None = None,
    sinks: tuple[Sink, ...] = (),
    hooks: tuple[KernelHooks, ...] = (),
    use_logging: bool = True,
) -> App:
    # 0) Validate config
    model = cfg if isinstance(cfg, AppModel) else AppModel.model_validate(cfg)

    # 1) Clock: kernel t=0 is the epoch
    clock = SimClock.utc_epoch(*model.epoch) if model.epoch else SimClock.starting_now()

    # 2) Kernel (with hooks)
    recorder = Recorder(*(sinks or (JsonlSink(),)))
    base = (
        KernelLogging(
            run_id=model.run_id,
            recorder=recorder,
            clock=clock,
            level=model.log.level,
            debug=model.log.debug,
            sample_every=model.log.sample_every,
        )
        if use_logging
        else NoopHooks()
    )
    kernel = Kernel(hooks=MultiHooks(base, *hooks) if hooks else base)

    # 3) Services; an explicit routing service wins over config
    if routing is None and model.routing is not None:
        routing = make_routing(model.routing, fallback_speed_kmh=model.tracking.fallback_speed_kmh)
    position_source = position_source or ManualPositionSource()

    # 4) Controllers
    session = NavigationSession(
        kernel,
        clock,
        position_source=position_source,
        tracking=model.tracking,
        simulation=model.simulation,
    )
    planner = None
    if routing is not None:
        seq = model.sequencer
        planner = RoutePlanningController(
            WaypointSequencer(
                depot_return_offset_deg=seq.depot_return_offset_deg,
                decimals=seq.dedup_decimals,
                nudge_step_deg=seq.nudge_step_deg,
            ),
            routing,
            session=session,
            vehicle_type_id=model.vehicle_type_id,
        )

    # 5) Wiring
    wire(kernel, session=session)

    return App(kernel, clock, session, planner, position_source, recorder)
