"""Hour-angle solves for twilight, sunrise/sunset and Asr conditions."""

from __future__ import annotations

from math import acos, atan, cos, degrees, radians, sin, tan

MINUTES_PER_DEGREE = 4.0


class UnreachableAltitude(ArithmeticError):
    """The sun never reaches the requested altitude on that day."""

    def __init__(self, altitude_deg: float, latitude_deg: float, declination_deg: float) -> None:
        super().__init__(
            f"altitude {altitude_deg:.3f} deg unreachable at latitude "
            f"{latitude_deg:.3f} with declination {declination_deg:.3f}"
        )
        self.altitude_deg = altitude_deg
        self.latitude_deg = latitude_deg
        self.declination_deg = declination_deg


def hour_angle_for_altitude(altitude_deg: float, latitude_deg: float, declination_deg: float) -> float:
    """Return the hour angle (degrees, >= 0) at which the sun has `altitude_deg`.

    Negative altitudes are below the horizon (Fajr/Isha use `-angle`).

    Raises:
        UnreachableAltitude: if the acos argument falls outside [-1, 1].
    """
    lat = radians(latitude_deg)
    decl = radians(declination_deg)
    denominator = cos(lat) * cos(decl)
    if abs(denominator) < 1e-12:
        raise UnreachableAltitude(altitude_deg, latitude_deg, declination_deg)

    cos_h = (sin(radians(altitude_deg)) - sin(lat) * sin(decl)) / denominator
    if cos_h < -1.0 or cos_h > 1.0:
        raise UnreachableAltitude(altitude_deg, latitude_deg, declination_deg)
    return degrees(acos(cos_h))


def asr_altitude(shadow_factor: int, latitude_deg: float, declination_deg: float) -> float:
    """Solar altitude (degrees) at which shadow = factor * height + noon shadow."""
    zenith_at_noon = radians(abs(latitude_deg - declination_deg))
    return degrees(atan(1.0 / (shadow_factor + tan(zenith_at_noon))))


def asr_hour_angle(shadow_factor: int, latitude_deg: float, declination_deg: float) -> float:
    """Hour angle of Asr for the given shadow factor."""
    if abs(latitude_deg - declination_deg) >= 90.0:
        # Sun below the horizon even at noon.
        raise UnreachableAltitude(0.0, latitude_deg, declination_deg)
    altitude = asr_altitude(shadow_factor, latitude_deg, declination_deg)
    return hour_angle_for_altitude(altitude, latitude_deg, declination_deg)


def hour_angle_to_minutes(hour_angle_deg: float) -> float:
    """Convert an hour angle to minutes of time (15 degrees per hour)."""
    return hour_angle_deg * MINUTES_PER_DEGREE
