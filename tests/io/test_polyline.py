# tests/io/test_polyline.py
import logging

import pytest

from nav_sim.domain.errors import DecodeError
from nav_sim.io.polyline import decode

# the canonical example of the encoded polyline format
ENCODED = "_p~iF~ps|U_ulLnnqC_mqNvxq`@"
EXPECTED = [(38.5, -120.2), (40.7, -120.95), (43.252, -126.453)]


def _same(points, expected):
    assert len(points) == len(expected)
    for got, want in zip(points, expected):
        assert got == pytest.approx(want, abs=1e-9)


def test_decodes_reference_polyline():
    _same(decode(ENCODED), EXPECTED)


def test_empty_and_zero():
    assert decode("") == []
    assert decode("??") == [(0.0, 0.0)]


def test_truncated_input_returns_prefix_and_logs(caplog):
    with caplog.at_level(logging.WARNING, logger="nav_sim.polyline"):
        points = decode(ENCODED[:-1])
    _same(points, EXPECTED[:2])
    assert any(r.getMessage() == "polyline_decode_error" for r in caplog.records)


def test_strict_mode_raises_with_partial_result():
    with pytest.raises(DecodeError) as exc:
        decode(ENCODED[:-1], strict=True)
    assert exc.value.partial_count == 2
    _same(exc.value.points, EXPECTED[:2])


def test_character_below_offset_stops_decoding():
    # ' ' is below the 63 offset and can never appear in a valid polyline
    points = decode("_p~iF~ps|U _ulLnnqC")
    _same(points, EXPECTED[:1])


def test_precision_scales_values():
    # same integer deltas read at precision 6 are ten times smaller
    points = decode(ENCODED, precision=6)
    assert points[0] == pytest.approx((3.85, -12.02))
