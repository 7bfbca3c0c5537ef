"""Google encoded polyline codec."""

from __future__ import annotations

from typing import Iterable, Optional

from ...models.domain import Point

PRECISION = 1e5


def _decode_value(encoded: str, index: int) -> tuple[int, int]:
    shift = 0
    result = 0
    while True:
        if index >= len(encoded):
            raise ValueError("Truncated polyline: continuation bit set on the last character.")
        b = ord(encoded[index]) - 63
        index += 1
        result |= (b & 0x1F) << shift
        shift += 5
        if b < 0x20:
            break
    delta = ~(result >> 1) if (result & 1) else (result >> 1)
    return delta, index


def decode_polyline(encoded: Optional[str]) -> list[Point]:
    """Decode Google polyline string to a list of points.

    Each coordinate is a zig-zag encoded delta from the previous point, split
    into 5-bit groups with 0x20 as the continuation bit and scaled by 1e-5.

    Args:
        encoded: Encoded polyline string; empty or None yields an empty list.

    Returns:
        List of decoded points in order.
    """
    if not encoded:
        return []

    points: list[Point] = []
    index = 0
    lat = 0
    lng = 0
    while index < len(encoded):
        d_lat, index = _decode_value(encoded, index)
        lat += d_lat
        d_lng, index = _decode_value(encoded, index)
        lng += d_lng
        points.append(Point(lat / PRECISION, lng / PRECISION))
    return points


def _encode_value(value: int) -> str:
    value = ~(value << 1) if value < 0 else (value << 1)
    chunks = []
    while value >= 0x20:
        chunks.append(chr((0x20 | (value & 0x1F)) + 63))
        value >>= 5
    chunks.append(chr(value + 63))
    return "".join(chunks)


def encode_polyline(points: Iterable[Point]) -> str:
    """Encode points with the same format `decode_polyline` reads."""

    parts: list[str] = []
    prev_lat = 0
    prev_lng = 0
    for point in points:
        lat = round(point.latitude * PRECISION)
        lng = round(point.longitude * PRECISION)
        parts.append(_encode_value(lat - prev_lat))
        parts.append(_encode_value(lng - prev_lng))
        prev_lat, prev_lng = lat, lng
    return "".join(parts)
