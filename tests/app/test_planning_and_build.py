# tests/app/test_planning_and_build.py
import pytest
from pydantic import ValidationError

from nav_sim.app.build import build
from nav_sim.app.controllers.planning import RoutePlanningController
from nav_sim.app.events import SessionStarted, TripCompleted
from nav_sim.config.models import AppModel, RoutingHttpModel
from nav_sim.domain.entities.geography import GeoPoint, PointKind, RoutePoint
from nav_sim.domain.errors import RoutingServiceUnavailable
from nav_sim.domain.state import SessionMode
from nav_sim.domain.waypoints import WaypointSequencer
from nav_sim.io.recorder import MemorySink
from nav_sim.runtime.registries import make_routing
from nav_sim.services.routing import HttpRoutingClient, StaticRoutingService
from nav_sim.sim.hooks import NoopHooks

BASE = (
    RoutePoint(PointKind.DEPOT, GeoPoint(0.0, 0.0), "Depot"),
    RoutePoint(PointKind.PICKUP, GeoPoint(0.0, 0.002), "Pickup"),
    RoutePoint(PointKind.DELIVERY, GeoPoint(0.0, 0.004), "Delivery"),
)

RESPONSE = {
    "segments": [
        {"order": 0, "path": [[0.0, 0.0], [0.001, 0.0], [0.002, 0.0]], "distance_meters": 222.4},
        {"order": 1, "path": [[0.002, 0.0], [0.003, 0.0], [0.004, 0.0]], "distance_meters": 222.4},
        {"order": 2, "path": [[0.004, 0.0], [0.006, 0.0]], "distance_meters": 222.4},
    ],
    "total_distance": 667.2,
}

CFG = {
    "name": "test",
    "run_id": "t-1",
    "epoch": [2024, 1, 1, 8, 0, 0],
    "vehicle_type_id": "truck-1t",
    "routing": {"kind": "static", "response": RESPONSE},
}


class _Unavailable:
    def suggest_route(self, request):
        raise RoutingServiceUnavailable("connection refused")


def test_build_plans_and_simulates_to_completion():
    sink = MemorySink()
    app = build(CFG, sinks=(sink,))
    plan = app.planner.plan(BASE)
    assert app.session.state.plan is plan
    assert len(app.session.state.route_path) == 6

    req = app.planner.routing.requests[0]
    assert req.point_types == ("Depot", "Pickup", "Delivery", "Depot")
    assert req.vehicle_type_id == "truck-1t"

    app.session.change_speed(4)
    app.session.start_simulation()
    app.kernel.run()
    summary = app.session.close()
    assert summary.reason == "arrived"
    assert summary.start_time.hour == 8
    assert summary.duration_s == pytest.approx(5 * 0.25)  # five vertices at 4x
    assert app.session.mode is SessionMode.IDLE

    # lifecycle events reach the recorder through the logging hooks
    assert len(sink.of_type(SessionStarted)) == 1
    assert [e.reason for e in sink.of_type(TripCompleted)] == ["arrived"]


def test_stopover_edits_recompute_the_route():
    app = build(CFG, use_logging=False)
    assert app.planner.add_stopover(GeoPoint(0.0, 0.001)) is None  # nothing to plan yet

    app.planner.plan(BASE)
    app.planner.add_stopover(GeoPoint(0.0, 0.003), segment_index=1)
    routing = app.planner.routing
    assert len(routing.requests) == 2
    assert [p.label for p in routing.requests[-1].points] == [
        "Depot",
        "Stopover 1",
        "Pickup",
        "Stopover 2",
        "Delivery",
        "Depot",
    ]

    app.planner.move_stopover("Stopover 2", 2)
    app.planner.remove_stopover("Stopover 1")
    assert len(routing.requests) == 4
    assert routing.requests[-1].point_types == (
        "Depot",
        "Pickup",
        "Delivery",
        "Stopover",
        "Depot",
    )


def test_routing_failure_propagates_and_keeps_previous_route():
    app = build(CFG, use_logging=False)
    app.planner.plan(BASE)
    first = app.session.state.plan

    planner = RoutePlanningController(WaypointSequencer(), _Unavailable(), session=app.session)
    with pytest.raises(RoutingServiceUnavailable):
        planner.plan(BASE)
    assert app.session.state.plan is first
    assert planner.last_plan is None


def test_missing_waypoint_never_reaches_the_backend():
    svc = StaticRoutingService(RESPONSE)
    planner = RoutePlanningController(WaypointSequencer(), svc)
    with pytest.raises(ValueError):
        planner.plan(BASE[:2])
    assert svc.requests == []


def test_build_without_routing_has_no_planner():
    app = build({"epoch": [2024, 1, 1, 0, 0, 0]}, use_logging=False)
    assert app.planner is None
    assert app.clock.to_wall(0).year == 2024


def test_explicit_routing_overrides_config():
    svc = StaticRoutingService(RESPONSE)
    app = build(AppModel(), routing=svc, use_logging=False)
    assert app.planner.routing is svc


def test_config_validation(monkeypatch):
    with pytest.raises(ValidationError):
        AppModel.model_validate({"unknown": 1})
    with pytest.raises(ValidationError):
        AppModel.model_validate({"simulation": {"default_multiplier": 3}})
    with pytest.raises(ValidationError):
        AppModel.model_validate({"tracking": {"smoothing_alpha": 0.0}})
    with pytest.raises(ValidationError):
        AppModel.model_validate({"sequencer": {"depot_return_offset_deg": 1e-9}})

    monkeypatch.delenv("NAV_ROUTING_URL", raising=False)
    with pytest.raises(ValidationError):
        AppModel.model_validate({"routing": {"kind": "http", "base_url": "$NAV_ROUTING_URL"}})

    monkeypatch.setenv("NAV_ROUTING_URL", "https://routing.example")
    model = AppModel.model_validate({"routing": {"kind": "http", "base_url": "$NAV_ROUTING_URL"}})
    assert isinstance(model.routing, RoutingHttpModel)
    assert model.routing.base_url == "https://routing.example"


def test_make_routing_builds_http_client():
    cfg = RoutingHttpModel(base_url="https://routing.example", suggest_path="/v1/suggest")
    client = make_routing(cfg, fallback_speed_kmh=30.0)
    assert isinstance(client, HttpRoutingClient)
    assert client.url == "https://routing.example/v1/suggest"
    assert client.fallback_speed_kmh == 30.0


def test_extra_hooks_see_session_events():
    class Discards(NoopHooks):
        def __init__(self):
            self.reasons = []

        def discard(self, ev, *, reason):
            self.reasons.append(reason)

    tracer = Discards()
    app = build(CFG, hooks=(tracer,), use_logging=False)
    app.planner.plan(BASE)
    app.session.start_simulation()
    app.kernel.run(until=1.0)
    app.session.pause()
    app.kernel.run(until=5.0)
    assert tracer.reasons == ["stale"]
