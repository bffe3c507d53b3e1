"""Qibla bearing from an observer position."""

from __future__ import annotations

from math import atan2, cos, degrees, radians, sin, tan

from salat_times.contracts import Coordinates

KAABA = Coordinates(21.4225241, 39.8261818)


def qibla_direction(coordinates: Coordinates) -> float:
    """Great-circle initial bearing to the Kaaba, degrees clockwise from true north in [0, 360)."""
    delta_lon = radians(KAABA.longitude - coordinates.longitude)
    lat = radians(coordinates.latitude)
    term1 = sin(delta_lon)
    term2 = cos(lat) * tan(radians(KAABA.latitude))
    term3 = sin(lat) * cos(delta_lon)
    return degrees(atan2(term1, term2 - term3)) % 360.0
