# nav_sim/services/routing.py
#
# Adapter for the route-suggestion backend.
# Sole responsibility: send the ordered waypoint request, then normalize the
# response into a RoutePlan (legs, decoded geometry, tolls, totals).
# Wire coordinates are [lng, lat]; they are converted to GeoPoint here and
# nowhere else.

import logging
from collections.abc import Mapping
from typing import Any

import requests

from nav_sim.app.protocols import RoutingService
from nav_sim.domain.entities.geography import (
    GeoPoint,
    Instruction,
    RoutePlan,
    RouteSegment,
    Toll,
)
from nav_sim.domain.errors import RoutingServiceUnavailable
from nav_sim.domain.waypoints import RouteRequest
from nav_sim.io.polyline import decode

log = logging.getLogger("nav_sim.routing")

DEFAULT_FALLBACK_SPEED_KMH = 40.0


def _get(d: Mapping, *keys, default=None):
    """First present key; the backend mixes snake_case and camelCase."""
    for k in keys:
        if k in d and d[k] is not None:
            return d[k]
    return default


def parse_path(seg: Mapping) -> tuple[GeoPoint, ...]:
    encoded = _get(seg, "encoded_polyline", "polyline", "encodedPolyline")
    path = _get(seg, "path", "coordinates", default=())
    if isinstance(path, str):
        encoded, path = path, ()
    if encoded:
        return tuple(GeoPoint(lat, lng) for lat, lng in decode(encoded))
    return tuple(GeoPoint.from_lnglat(pair) for pair in path)


def parse_toll(raw: Mapping) -> Toll:
    return Toll(
        name=str(_get(raw, "name", default="")),
        address=str(_get(raw, "address", default="")),
        category=str(_get(raw, "category", "type", "vehicleType", default="")),
        amount=float(_get(raw, "amount", default=0.0)),
    )


def parse_instruction(raw: Mapping) -> Instruction:
    interval = _get(raw, "interval")
    return Instruction(
        text=str(_get(raw, "text", "instruction", default="")),
        distance_m=float(_get(raw, "distance", "distance_m", default=0.0)),
        duration_s=float(_get(raw, "duration", "duration_s", "time", default=0.0)),
        maneuver=_get(raw, "maneuver", "sign"),
        interval=(int(interval[0]), int(interval[1])) if interval else None,
    )


def parse_segment(raw: Mapping, index: int) -> RouteSegment:
    tolls = tuple(parse_toll(t) for t in _get(raw, "tolls", default=()))
    return RouteSegment(
        order=int(_get(raw, "order", "segment_order", "segmentOrder", default=index)),
        start_label=str(_get(raw, "start_label", "startName", "start_name", default="")),
        end_label=str(_get(raw, "end_label", "endName", "end_name", default="")),
        path=parse_path(raw),
        distance_m=float(_get(raw, "distance_meters", "distance", default=0.0)),
        tolls=tolls,
        raw=_get(raw, "raw", "rawResponse", default=raw),
    )


def parse_route_response(
    body: Mapping[str, Any],
    *,
    vehicle_type_id: str | None = None,
    fallback_speed_kmh: float = DEFAULT_FALLBACK_SPEED_KMH,
) -> RoutePlan:
    if "data" in body and isinstance(body["data"], Mapping) and "segments" not in body:
        body = body["data"]  # enveloped {success, data: {...}}
    try:
        segments = tuple(
            parse_segment(s, i) for i, s in enumerate(_get(body, "segments", default=()))
        )
    except (TypeError, ValueError, IndexError) as exc:
        raise RoutingServiceUnavailable(f"malformed route response: {exc}") from exc

    total_distance = float(
        _get(body, "total_distance", "totalDistance", default=sum(s.distance_m for s in segments))
    )
    all_tolls = [t for s in segments for t in s.tolls]
    duration = _get(body, "total_duration", "totalDuration", "duration")
    if duration is None:
        duration = total_distance / (fallback_speed_kmh / 3.6) if fallback_speed_kmh > 0 else 0.0

    return RoutePlan(
        segments=segments,
        total_distance_m=total_distance,
        total_toll_amount=float(
            _get(
                body,
                "total_toll_amount",
                "totalTollAmount",
                default=sum(t.amount for t in all_tolls),
            )
        ),
        total_toll_count=int(
            _get(body, "total_toll_count", "totalTollCount", default=len(all_tolls))
        ),
        estimated_time_s=float(duration),
        instructions=tuple(parse_instruction(i) for i in _get(body, "instructions", default=())),
        vehicle_type_id=vehicle_type_id,
    )


class HttpRoutingClient(RoutingService):
    def __init__(
        self,
        base_url: str,
        *,
        suggest_path: str = "/routes/suggest",
        timeout_s: float = 10.0,
        headers: Mapping[str, str] | None = None,
        fallback_speed_kmh: float = DEFAULT_FALLBACK_SPEED_KMH,
        session: requests.Session | None = None,
    ):
        if not base_url:
            raise ValueError("routing base_url is not set")
        self.url = base_url.rstrip("/") + "/" + suggest_path.lstrip("/")
        self.timeout_s = timeout_s
        self.headers = {"Content-Type": "application/json", **(headers or {})}
        self.fallback_speed_kmh = fallback_speed_kmh
        self.http = session or requests.Session()

    def suggest_route(self, request: RouteRequest) -> RoutePlan:
        payload = request.to_payload()
        try:
            resp = self.http.post(
                self.url, json=payload, headers=self.headers, timeout=self.timeout_s
            )
            resp.raise_for_status()
            body = resp.json()
        except requests.RequestException as exc:
            log.error(
                "routing_request_failed",
                extra={
                    "extra": {"url": self.url, "error": str(exc), "points": len(request.points)}
                },
            )
            raise RoutingServiceUnavailable(str(exc)) from exc
        except ValueError as exc:  # body is not JSON
            raise RoutingServiceUnavailable(f"invalid JSON from routing service: {exc}") from exc

        if not isinstance(body, Mapping):
            raise RoutingServiceUnavailable("routing service returned a non-object body")
        plan = parse_route_response(
            body,
            vehicle_type_id=request.vehicle_type_id,
            fallback_speed_kmh=self.fallback_speed_kmh,
        )
        log.info(
            "route_suggested",
            extra={
                "extra": {
                    "segments": len(plan.segments),
                    "distance_m": plan.total_distance_m,
                    "tolls": plan.total_toll_count,
                }
            },
        )
        return plan


class StaticRoutingService(RoutingService):
    """Answers every request with one canned backend response (demos, tests)."""

    def __init__(
        self,
        response: Mapping[str, Any],
        *,
        fallback_speed_kmh: float = DEFAULT_FALLBACK_SPEED_KMH,
    ):
        self.response = response
        self.fallback_speed_kmh = fallback_speed_kmh
        self.requests: list[RouteRequest] = []

    def suggest_route(self, request: RouteRequest) -> RoutePlan:
        self.requests.append(request)
        return parse_route_response(
            self.response,
            vehicle_type_id=request.vehicle_type_id,
            fallback_speed_kmh=self.fallback_speed_kmh,
        )
