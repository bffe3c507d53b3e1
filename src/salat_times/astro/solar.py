"""Solar position helpers.

Low-precision mean-longitude / mean-anomaly series, adequate for prayer
times (about one arc-minute between 1950 and 2050), not ephemeris grade.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from math import asin, atan2, cos, degrees, floor, radians, sin

J2000 = 2451545.0


def _normalize_degrees(angle_deg: float) -> float:
    """Normalize an angle to [0, 360)."""
    return angle_deg % 360.0


def _normalize_hours(hours: float) -> float:
    """Normalize an hour value to [0, 24)."""
    return hours % 24.0


@dataclass(frozen=True, slots=True)
class SolarPosition:
    """Sun declination (degrees) and equation of time (minutes) for one instant."""

    declination: float
    equation_of_time: float


def julian_day(day: date, hour_fraction: float = 0.0) -> float:
    """Return the Julian day of a Gregorian civil date.

    Args:
        day: Civil date.
        hour_fraction: UT hours past midnight, may be negative or exceed 24.

    Returns:
        Julian day number; `julian_day(date(2000, 1, 1), 12.0) == 2451545.0`.
    """
    year, month = day.year, day.month
    if month <= 2:
        year -= 1
        month += 12
    century = floor(year / 100)
    gregorian = 2 - century + floor(century / 4)
    return (
        floor(365.25 * (year + 4716))
        + floor(30.6001 * (month + 1))
        + day.day
        + gregorian
        - 1524.5
        + hour_fraction / 24.0
    )


def solar_position(jd: float) -> SolarPosition:
    """Compute declination and equation of time at Julian day `jd`.

    Args:
        jd: Julian day, typically the observer's approximate solar noon.

    Returns:
        SolarPosition with declination in degrees and equation of time in
        minutes (apparent minus mean solar time).
    """
    days = jd - J2000
    mean_anomaly = _normalize_degrees(357.529 + 0.98560028 * days)
    mean_longitude = _normalize_degrees(280.459 + 0.98564736 * days)
    ecliptic_longitude = _normalize_degrees(
        mean_longitude
        + 1.915 * sin(radians(mean_anomaly))
        + 0.020 * sin(radians(2.0 * mean_anomaly))
    )
    obliquity = 23.439 - 0.00000036 * days

    right_ascension = _normalize_hours(
        degrees(
            atan2(
                cos(radians(obliquity)) * sin(radians(ecliptic_longitude)),
                cos(radians(ecliptic_longitude)),
            )
        )
        / 15.0
    )
    # Keep the difference in (-12, 12] hours across the 0/360 wrap.
    eqt_hours = (mean_longitude / 15.0 - right_ascension + 12.0) % 24.0 - 12.0
    declination = degrees(asin(sin(radians(obliquity)) * sin(radians(ecliptic_longitude))))

    return SolarPosition(declination=declination, equation_of_time=eqt_hours * 60.0)
