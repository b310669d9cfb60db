# nav_sim/app/controllers/planning.py
import logging
from collections.abc import Iterable

from nav_sim.app.controllers.session import NavigationSession
from nav_sim.app.protocols import RoutingService
from nav_sim.domain.entities.geography import GeoPoint, RoutePlan, RoutePoint
from nav_sim.domain.waypoints import RouteRequest, WaypointSequencer

log = logging.getLogger("nav_sim.planning")


class RoutePlanningController:
    """
    Turns base points plus the sequencer's stopovers into a RoutePlan and
    hands it to the session. Any stopover edit recomputes the whole route.
    """

    def __init__(
        self,
        sequencer: WaypointSequencer,
        routing: RoutingService,
        *,
        session: NavigationSession | None = None,
        vehicle_type_id: str | None = None,
    ):
        self.sequencer = sequencer
        self.routing = routing
        self.session = session
        self.vehicle_type_id = vehicle_type_id
        self.base_points: tuple[RoutePoint, ...] = ()
        self.last_request: RouteRequest | None = None
        self.last_plan: RoutePlan | None = None

    def plan(self, base_points: Iterable[RoutePoint] | None = None) -> RoutePlan:
        if base_points is not None:
            self.base_points = tuple(base_points)
        request = self.sequencer.build_request(self.base_points, self.vehicle_type_id)
        self.last_request = request
        plan = self.routing.suggest_route(request)
        if plan.is_empty:
            log.warning("route_without_geometry", extra={"extra": {"points": len(request.points)}})
        self.last_plan = plan
        if self.session is not None:
            self.session.load_route(plan)
        return plan

    # stopover edits; replanned immediately once base points are known

    def _replan(self) -> RoutePlan | None:
        return self.plan() if self.base_points else None

    def add_stopover(
        self, coordinates: GeoPoint, segment_index: int = 0, address: str | None = None
    ) -> RoutePlan | None:
        self.sequencer.add_stopover(coordinates, segment_index, address)
        return self._replan()

    def remove_stopover(self, label: str) -> RoutePlan | None:
        self.sequencer.remove_stopover(label)
        return self._replan()

    def move_stopover(self, label: str, segment_index: int) -> RoutePlan | None:
        self.sequencer.move_stopover(label, segment_index)
        return self._replan()
