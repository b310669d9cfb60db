from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any


# Core geographic types; degrees, WGS84
@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lng: float

    def __post_init__(self):
        if not -90.0 <= self.lat <= 90.0:
            raise ValueError(f"latitude out of range: {self.lat}")
        if not -180.0 <= self.lng <= 180.0:
            raise ValueError(f"longitude out of range: {self.lng}")

    @classmethod
    def from_lnglat(cls, pair) -> "GeoPoint":
        return cls(lat=float(pair[1]), lng=float(pair[0]))

    def lnglat(self) -> tuple[float, float]:
        return (self.lng, self.lat)

    def shifted(self, d_deg: float) -> "GeoPoint":
        # mirror the offset at the poles / antimeridian so the result stays valid
        lat = self.lat + d_deg if self.lat + d_deg <= 90.0 else self.lat - d_deg
        lng = self.lng + d_deg if self.lng + d_deg <= 180.0 else self.lng - d_deg
        return GeoPoint(lat, lng)


class PointKind(str, Enum):
    DEPOT = "Depot"
    PICKUP = "Pickup"
    DELIVERY = "Delivery"
    STOPOVER = "Stopover"
    DEPOT_RETURN = "DepotReturn"

    @property
    def submission_type(self) -> str:
        """Type name sent to the routing backend; a return leg anchors on a depot."""
        return PointKind.DEPOT.value if self is PointKind.DEPOT_RETURN else self.value


BASE_KINDS = (PointKind.DEPOT, PointKind.PICKUP, PointKind.DELIVERY)


@dataclass(frozen=True)
class RoutePoint:
    kind: PointKind
    coordinates: GeoPoint
    label: str = ""
    address: str = ""
    segment_index: int | None = None  # stopovers: 0 depot->pickup, 1 pickup->delivery, 2 return

    def moved_to(self, coordinates: GeoPoint) -> "RoutePoint":
        return replace(self, coordinates=coordinates)


@dataclass(frozen=True)
class Toll:
    name: str
    address: str = ""
    category: str = ""
    amount: float = 0.0


@dataclass(frozen=True)
class Instruction:
    text: str
    distance_m: float = 0.0
    duration_s: float = 0.0
    maneuver: str | None = None
    interval: tuple[int, int] | None = None  # path vertex indices covered by this step


@dataclass(frozen=True)
class RouteSegment:
    order: int
    start_label: str
    end_label: str
    path: tuple[GeoPoint, ...]
    distance_m: float
    tolls: tuple[Toll, ...] = ()
    raw: Any = field(default=None, compare=False)  # opaque backend payload


@dataclass(frozen=True)
class RoutePlan:
    segments: tuple[RouteSegment, ...]
    total_distance_m: float
    total_toll_amount: float = 0.0
    total_toll_count: int = 0
    estimated_time_s: float = 0.0
    instructions: tuple[Instruction, ...] = ()
    vehicle_type_id: str | None = None

    def flattened_path(self) -> list[GeoPoint]:
        """All legs joined in leg order; a shared joint vertex is kept once."""
        out: list[GeoPoint] = []
        for seg in sorted(self.segments, key=lambda s: s.order):
            for p in seg.path:
                if out and out[-1] == p:
                    continue
                out.append(p)
        return out

    @property
    def is_empty(self) -> bool:
        return not any(seg.path for seg in self.segments)
