# io/polyline.py
"""
Encoded polyline decoding (the Google/OSRM "polyline" format).

Each coordinate is stored as a zig-zag encoded delta from the previous one,
split into 5-bit groups (low group first), each group offset by 63 and
flagged with 0x20 while more groups follow. Latitude comes before longitude.
"""

import logging

from nav_sim.domain.errors import DecodeError

log = logging.getLogger("nav_sim.polyline")

_OFFSET = 63
_MORE = 0x20
_MASK = 0x1F


def _next_value(encoded: str, index: int) -> tuple[int, int] | None:
    """Read one signed delta starting at index; None if the input ends mid-value."""
    result = shift = 0
    n = len(encoded)
    while index < n:
        b = ord(encoded[index]) - _OFFSET
        if b < 0:
            return None
        index += 1
        result |= (b & _MASK) << shift
        shift += 5
        if b < _MORE:
            delta = ~(result >> 1) if (result & 1) else (result >> 1)
            return delta, index
    return None


def decode(encoded: str, precision: int = 5, *, strict: bool = False) -> list[tuple[float, float]]:
    """Decode into [(lat, lng), ...].

    Malformed input yields the points decoded before the damage; with
    strict=True a DecodeError carrying that prefix is raised instead.
    """
    scale = 10.0**precision
    points: list[tuple[float, float]] = []
    index = lat = lng = 0
    while index < len(encoded):
        d_lat = _next_value(encoded, index)
        d_lng = _next_value(encoded, d_lat[1]) if d_lat else None
        if d_lng is None:
            err = DecodeError(len(points), points)
            if strict:
                raise err
            log.warning(
                "polyline_decode_error",
                extra={"extra": {"error": str(err), "partial_count": err.partial_count}},
            )
            break
        lat += d_lat[0]
        lng += d_lng[0]
        index = d_lng[1]
        points.append((lat / scale, lng / scale))
    return points
