# nav_sim/app/wiring.py
from nav_sim.app.controllers.session import NavigationSession
from nav_sim.app.events import PositionFix, PositionLost, SimulationTick
from nav_sim.sim.kernel import Kernel


def wire(kernel: Kernel, *, session: NavigationSession) -> None:
    k = kernel

    # live device stream
    k.on(PositionFix, session.on_position_fix)
    k.on(PositionLost, session.on_position_lost)  # ends the session with position_error

    # synthetic timer
    k.on(SimulationTick, session.on_simulation_tick)

    # lifecycle events (SessionStarted, TripCompleted, ...) have no handlers;
    # the logging hooks report them on dispatch
