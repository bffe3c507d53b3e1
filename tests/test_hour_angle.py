"""Tests for hour-angle solves."""

from __future__ import annotations

from math import isclose

import pytest

from salat_times.astro.hour_angle import (
    UnreachableAltitude,
    asr_altitude,
    asr_hour_angle,
    hour_angle_for_altitude,
    hour_angle_to_minutes,
)


def test_horizon_hour_angle_at_equator_equinox_is_ninety_degrees() -> None:
    """With zero latitude and declination the sun sets six hours after noon."""
    assert isclose(hour_angle_for_altitude(0.0, 0.0, 0.0), 90.0, abs_tol=1e-9)
    assert isclose(hour_angle_to_minutes(90.0), 360.0)


def test_deeper_twilight_needs_larger_hour_angle() -> None:
    """Fajr at 18 degrees happens further from noon than sunrise."""
    sunrise = hour_angle_for_altitude(-0.833, 21.4, 0.1)
    fajr = hour_angle_for_altitude(-18.0, 21.4, 0.1)

    assert fajr > sunrise > 90.0


def test_unreachable_altitude_is_signalled() -> None:
    """Polar-day twilight must raise instead of producing NaN."""
    with pytest.raises(UnreachableAltitude) as excinfo:
        hour_angle_for_altitude(-18.0, 80.0, 23.0)

    assert excinfo.value.latitude_deg == 80.0
    assert isinstance(excinfo.value, ArithmeticError)


def test_asr_altitude_for_overhead_noon_sun() -> None:
    """With the sun overhead at noon, shadow ratio 1 gives 45 degrees and ratio 2 atan(1/2)."""
    assert isclose(asr_altitude(1, 10.0, 10.0), 45.0, abs_tol=1e-9)
    assert isclose(asr_altitude(2, 10.0, 10.0), 26.56505117707799, abs_tol=1e-9)


def test_hanafi_asr_hour_angle_exceeds_standard() -> None:
    """A longer shadow requirement moves Asr further from noon."""
    standard = asr_hour_angle(1, 21.4225, 0.1)
    hanafi = asr_hour_angle(2, 21.4225, 0.1)

    assert hanafi > standard > 0.0


def test_asr_unreachable_when_sun_stays_below_horizon() -> None:
    """Polar night has no Asr shadow."""
    with pytest.raises(UnreachableAltitude):
        asr_hour_angle(1, 80.0, -23.0)
