# main.py
import argparse
import asyncio

from nav_sim.app.build import build
from nav_sim.domain.entities.geography import GeoPoint, PointKind, RoutePoint
from nav_sim.io.formatting import format_distance, format_duration
from nav_sim.sim.realtime import run_realtime

# depot -> pickup -> delivery -> depot; the return leg ends on the offset depot clone
DEMO_RESPONSE = {
    "segments": [
        {
            "order": 0,
            "start_label": "Depot",
            "end_label": "Pickup",
            "path": [[106.6297, 10.8231], [106.6310, 10.8240], [106.6330, 10.8252]],
            "distance_meters": 450.0,
        },
        {
            "order": 1,
            "start_label": "Pickup",
            "end_label": "Delivery",
            "path": [[106.6330, 10.8252], [106.6360, 10.8270], [106.6400, 10.8290]],
            "distance_meters": 860.0,
            "tolls": [{"name": "Demo toll", "category": "1", "amount": 15000}],
        },
        {
            "order": 2,
            "start_label": "Delivery",
            "end_label": "Depot",
            "path": [[106.6400, 10.8290], [106.6340, 10.8260], [106.629601, 10.823101]],
            "distance_meters": 1290.0,
        },
    ],
    "total_distance": 2600.0,
}

BASE_POINTS = (
    RoutePoint(PointKind.DEPOT, GeoPoint(10.8231, 106.6297), "Depot"),
    RoutePoint(PointKind.PICKUP, GeoPoint(10.8252, 106.6330), "Pickup"),
    RoutePoint(PointKind.DELIVERY, GeoPoint(10.8290, 106.6400), "Delivery"),
)


def run(multiplier: int, realtime: bool):
    app = build(
        {
            "epoch": (2024, 1, 1, 8, 0, 0),
            "routing": {"kind": "static", "response": DEMO_RESPONSE},
        }
    )
    plan = app.planner.plan(BASE_POINTS)
    print(
        f"route: {format_distance(plan.total_distance_m)}, "
        f"eta {format_duration(plan.estimated_time_s)}, {plan.total_toll_count} toll(s)"
    )

    app.session.change_speed(multiplier)
    app.session.start_simulation()
    if realtime:
        asyncio.run(run_realtime(app.kernel))
    else:
        app.kernel.run()

    summary = app.session.close()
    print(
        f"{summary.reason}: {format_distance(summary.traveled_distance_m)} "
        f"in {format_duration(summary.duration_s)}, avg {summary.average_speed_kmh:.1f} km/h"
    )


if __name__ == "__main__":
    ap = argparse.ArgumentParser(description="Simulate a drive along a demo route.")
    ap.add_argument("--speed", type=int, default=1, choices=(1, 2, 4))
    ap.add_argument("--realtime", action="store_true", help="pace ticks at wall-clock speed")
    args = ap.parse_args()
    run(args.speed, args.realtime)
