# tests/domain/test_waypoints.py
import pytest

from nav_sim.domain.entities.geography import GeoPoint, PointKind, RoutePoint
from nav_sim.domain.errors import MissingWaypoint
from nav_sim.domain.waypoints import WaypointSequencer, build_request, dedupe

DEPOT = RoutePoint(PointKind.DEPOT, GeoPoint(10.0, 106.0), "Depot")
PICKUP = RoutePoint(PointKind.PICKUP, GeoPoint(10.5, 106.5), "Pickup")
DELIVERY = RoutePoint(PointKind.DELIVERY, GeoPoint(11.0, 107.0), "Delivery")
BASE = (DEPOT, PICKUP, DELIVERY)


def _stop(label: str, lat: float, lng: float, seg: int | None) -> RoutePoint:
    return RoutePoint(PointKind.STOPOVER, GeoPoint(lat, lng), label, segment_index=seg)


def _keys(points):
    return [(round(p.coordinates.lat, 6), round(p.coordinates.lng, 6)) for p in points]


def test_base_only_request_returns_to_depot():
    points, types = build_request(BASE)
    assert types == ["Depot", "Pickup", "Delivery", "Depot"]
    assert [p.kind for p in points] == [
        PointKind.DEPOT,
        PointKind.PICKUP,
        PointKind.DELIVERY,
        PointKind.DEPOT_RETURN,
    ]
    ret = points[-1].coordinates
    assert ret.lat == pytest.approx(DEPOT.coordinates.lat + 1e-6)
    assert ret.lng == pytest.approx(DEPOT.coordinates.lng + 1e-6)
    assert len(set(_keys(points))) == 4


def test_input_order_of_base_points_does_not_matter():
    points, _ = build_request((DELIVERY, DEPOT, PICKUP))
    assert [p.label for p in points[:3]] == ["Depot", "Pickup", "Delivery"]


@pytest.mark.parametrize(
    "base, kind, count",
    [
        ((DEPOT, DELIVERY), "Pickup", 0),
        ((DEPOT, DEPOT, PICKUP, DELIVERY), "Depot", 2),
        ((), "Depot", 0),
    ],
)
def test_missing_or_repeated_base_point_is_fatal(base, kind, count):
    with pytest.raises(MissingWaypoint) as exc:
        build_request(base)
    assert exc.value.kind == kind
    assert exc.value.count == count


def test_stopovers_are_bucketed_by_leg_and_sorted_by_number():
    stops = [
        _stop("Stopover 10", 10.1, 106.1, 0),
        _stop("Stopover 2", 10.2, 106.2, 0),
        _stop("Stopover 3", 10.7, 106.7, 1),
        _stop("Stopover 1", 10.8, 106.8, 2),
        _stop("Stopover 4", 10.3, 106.3, 7),  # unknown leg falls back to the first
        _stop("Stopover 5", 10.4, 106.4, None),
    ]
    points, types = build_request(BASE, stops)
    assert [p.label for p in points] == [
        "Depot",
        "Stopover 2",
        "Stopover 4",
        "Stopover 5",
        "Stopover 10",
        "Pickup",
        "Stopover 3",
        "Delivery",
        "Stopover 1",
        "Depot",
    ]
    assert types == ["Depot"] + ["Stopover"] * 4 + ["Pickup", "Stopover", "Delivery"] + [
        "Stopover",
        "Depot",
    ]
    assert all(p.segment_index == 0 for p in points[1:5])


def test_unnumbered_stopovers_sort_after_numbered():
    stops = [_stop("Warehouse gate", 10.1, 106.1, 0), _stop("Stop 9", 10.2, 106.2, 0)]
    points, _ = build_request(BASE, stops)
    assert [p.label for p in points[1:3]] == ["Stop 9", "Warehouse gate"]


def test_coincident_coordinates_are_nudged_not_dropped():
    # a stopover sitting exactly on the pickup
    stops = [_stop("Stopover 1", 10.5, 106.5, 0)]
    points, types = build_request(BASE, stops)
    assert types == ["Depot", "Stopover", "Pickup", "Delivery", "Depot"]
    keys = _keys(points)
    assert len(set(keys)) == len(keys) == 5
    moved = points[2].coordinates
    assert moved != PICKUP.coordinates
    assert abs(moved.lat - 10.5) < 1e-5 and abs(moved.lng - 106.5) < 1e-5


def test_dedupe_keeps_first_of_each_base_type():
    extra_pickup = RoutePoint(PointKind.PICKUP, GeoPoint(12.0, 108.0), "Pickup 2")
    points, types = dedupe([DEPOT, PICKUP, extra_pickup, DELIVERY])
    assert [p.label for p in points] == ["Depot", "Pickup", "Delivery"]
    assert types == ["Depot", "Pickup", "Delivery"]


def test_depot_at_pole_stays_valid():
    depot = RoutePoint(PointKind.DEPOT, GeoPoint(90.0, 180.0), "Depot")
    points, _ = build_request((depot, PICKUP, DELIVERY))
    ret = points[-1].coordinates
    assert ret.lat < 90.0 and ret.lng < 180.0


def test_sequencer_labels_and_edits():
    seq = WaypointSequencer()
    a = seq.add_stopover(GeoPoint(10.1, 106.1))
    b = seq.add_stopover(GeoPoint(10.7, 106.7), segment_index=1, address="Gate B")
    assert (a.label, b.label) == ("Stopover 1", "Stopover 2")
    assert a.address == "Stopover 1" and b.address == "Gate B"

    seq.move_stopover("Stopover 1", 2)
    req = seq.build_request(BASE, vehicle_type_id="truck-5t")
    assert [p.label for p in req.points] == [
        "Depot",
        "Pickup",
        "Stopover 2",
        "Delivery",
        "Stopover 1",
        "Depot",
    ]
    assert req.vehicle_type_id == "truck-5t"

    seq.remove_stopover("Stopover 2")
    assert [p.label for p in seq.stopovers] == ["Stopover 1"]
    with pytest.raises(KeyError):
        seq.remove_stopover("Stopover 2")

    seq.clear()
    assert seq.stopovers == ()
    assert seq.add_stopover(GeoPoint(10.2, 106.2)).label == "Stopover 1"


def test_request_payload_uses_lng_lat_pairs():
    req = WaypointSequencer().build_request(BASE, vehicle_type_id="v1")
    body = req.to_payload()
    assert body["points"][0] == [106.0, 10.0]
    assert body["point_types"] == ["Depot", "Pickup", "Delivery", "Depot"]
    assert body["vehicle_type_id"] == "v1"
