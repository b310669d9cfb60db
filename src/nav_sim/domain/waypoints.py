# nav_sim/domain/waypoints.py
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace

from nav_sim.domain.entities.geography import BASE_KINDS, GeoPoint, PointKind, RoutePoint
from nav_sim.domain.errors import MissingWaypoint

DEPOT_RETURN_OFFSET_DEG = 1e-6
DEDUP_DECIMALS = 6
NUDGE_STEP_DEG = 1e-7
SEGMENTS = (0, 1, 2)  # depot->pickup, pickup->delivery, delivery->depot

STOPOVER_LABEL = "Stopover"
_TRAILING_NUMBER = re.compile(r"(\d+)\s*$")


@dataclass(frozen=True)
class RouteRequest:
    points: tuple[RoutePoint, ...]
    point_types: tuple[str, ...]
    vehicle_type_id: str | None = None

    def to_payload(self) -> dict:
        return {
            "points": [list(p.coordinates.lnglat()) for p in self.points],
            "point_types": list(self.point_types),
            "vehicle_type_id": self.vehicle_type_id,
        }


def _pick_base(base_points: Iterable[RoutePoint]) -> dict[PointKind, RoutePoint]:
    by_kind: dict[PointKind, list[RoutePoint]] = {k: [] for k in BASE_KINDS}
    for p in base_points:
        if p.kind in by_kind:
            by_kind[p.kind].append(p)
    for kind, found in by_kind.items():
        if len(found) != 1:
            raise MissingWaypoint(kind.value, len(found))
    return {k: v[0] for k, v in by_kind.items()}


def normalize_segment(p: RoutePoint) -> RoutePoint:
    seg = p.segment_index if p.segment_index in SEGMENTS else 0
    return replace(p, kind=PointKind.STOPOVER, segment_index=seg)


def stopover_sort_key(p: RoutePoint) -> tuple[int, int, str]:
    # numbered labels in numeric order first, the rest alphabetically
    m = _TRAILING_NUMBER.search(p.label)
    return (0, int(m.group(1)), p.label) if m else (1, 0, p.label)


def _coord_key(g: GeoPoint, decimals: int) -> tuple[float, float]:
    return (round(g.lat, decimals), round(g.lng, decimals))


def dedupe(
    points: Sequence[RoutePoint],
    *,
    decimals: int = DEDUP_DECIMALS,
    nudge_step_deg: float = NUDGE_STEP_DEG,
) -> tuple[list[RoutePoint], list[str]]:
    """
    Drop repeated Depot/Pickup/Delivery entries and nudge coincident coordinates.

    Coordinates are never dropped: a point whose rounded key was already seen
    is shifted by index * nudge_step_deg until its key is fresh. Stopover and
    DepotReturn are exempt from the one-per-type rule.
    """
    seen_keys: set[tuple[float, float]] = set()
    seen_types: set[PointKind] = set()
    out_points: list[RoutePoint] = []
    out_types: list[str] = []
    for i, p in enumerate(points):
        if p.kind in BASE_KINDS:
            if p.kind in seen_types:
                continue
            seen_types.add(p.kind)
        coords = p.coordinates
        key = _coord_key(coords, decimals)
        step = max(i, 1) * nudge_step_deg
        k = 0
        while key in seen_keys:
            k += 1
            coords = p.coordinates.shifted(k * step)
            key = _coord_key(coords, decimals)
        seen_keys.add(key)
        out_points.append(p if coords is p.coordinates else p.moved_to(coords))
        out_types.append(p.kind.submission_type)
    return out_points, out_types


def build_request(
    base_points: Iterable[RoutePoint],
    stopovers: Iterable[RoutePoint] = (),
    *,
    depot_return_offset_deg: float = DEPOT_RETURN_OFFSET_DEG,
    decimals: int = DEDUP_DECIMALS,
    nudge_step_deg: float = NUDGE_STEP_DEG,
) -> tuple[list[RoutePoint], list[str]]:
    """Order base points and stopovers into the sequence submitted for routing.

    Depot, leg-0 stopovers, Pickup, leg-1 stopovers, Delivery, leg-2
    stopovers, DepotReturn. Raises MissingWaypoint unless exactly one Depot,
    Pickup and Delivery are present; everything else is normalized.
    """
    base = _pick_base(base_points)
    depot = base[PointKind.DEPOT]
    depot_return = replace(
        depot,
        kind=PointKind.DEPOT_RETURN,
        coordinates=depot.coordinates.shifted(depot_return_offset_deg),
        segment_index=None,
    )

    buckets: dict[int, list[RoutePoint]] = {s: [] for s in SEGMENTS}
    for p in stopovers:
        p = normalize_segment(p)
        buckets[p.segment_index].append(p)
    for s in SEGMENTS:
        buckets[s].sort(key=stopover_sort_key)

    ordered = [
        depot,
        *buckets[0],
        base[PointKind.PICKUP],
        *buckets[1],
        base[PointKind.DELIVERY],
        *buckets[2],
        depot_return,
    ]
    return dedupe(ordered, decimals=decimals, nudge_step_deg=nudge_step_deg)


class WaypointSequencer:
    """Owns the stopovers of one planning session and assembles routing requests."""

    def __init__(
        self,
        *,
        depot_return_offset_deg: float = DEPOT_RETURN_OFFSET_DEG,
        decimals: int = DEDUP_DECIMALS,
        nudge_step_deg: float = NUDGE_STEP_DEG,
    ):
        self.depot_return_offset_deg = depot_return_offset_deg
        self.decimals = decimals
        self.nudge_step_deg = nudge_step_deg
        self._stopovers: list[RoutePoint] = []
        self._next_no = 1

    @property
    def stopovers(self) -> tuple[RoutePoint, ...]:
        return tuple(self._stopovers)

    def add_stopover(
        self, coordinates: GeoPoint, segment_index: int | None = 0, address: str | None = None
    ) -> RoutePoint:
        label = f"{STOPOVER_LABEL} {self._next_no}"
        self._next_no += 1
        p = normalize_segment(
            RoutePoint(
                kind=PointKind.STOPOVER,
                coordinates=coordinates,
                label=label,
                address=address or label,
                segment_index=segment_index,
            )
        )
        self._stopovers.append(p)
        return p

    def _index_of(self, label: str) -> int:
        for i, p in enumerate(self._stopovers):
            if p.label == label:
                return i
        raise KeyError(label)

    def remove_stopover(self, label: str) -> RoutePoint:
        return self._stopovers.pop(self._index_of(label))

    def move_stopover(self, label: str, segment_index: int) -> RoutePoint:
        i = self._index_of(label)
        p = normalize_segment(replace(self._stopovers[i], segment_index=segment_index))
        self._stopovers[i] = p
        return p

    def clear(self) -> None:
        self._stopovers.clear()
        self._next_no = 1

    def build_request(
        self, base_points: Iterable[RoutePoint], vehicle_type_id: str | None = None
    ) -> RouteRequest:
        points, types = build_request(
            base_points,
            self._stopovers,
            depot_return_offset_deg=self.depot_return_offset_deg,
            decimals=self.decimals,
            nudge_step_deg=self.nudge_step_deg,
        )
        return RouteRequest(tuple(points), tuple(types), vehicle_type_id)
