"""Tests for the prayer-time orchestrator."""

from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from salat_times.calculator import compute_for, compute_prayer_times
from salat_times.contracts import (
    PRAYER_ORDER,
    Coordinates,
    HighLatitudeRule,
    InvalidInputError,
    Prayer,
    PrayerTimesResult,
    Rounding,
)
from salat_times.methods import build_config

MECCA = (21.4225, 39.8262)


def _minutes(moment: datetime) -> int:
    return moment.hour * 60 + moment.minute


def _assert_near(moment: datetime, hhmm: str, tolerance: int = 2) -> None:
    hours, minutes = (int(part) for part in hhmm.split(":"))
    assert abs(_minutes(moment) - (hours * 60 + minutes)) <= tolerance, (moment, hhmm)


def _assert_ordered(result: PrayerTimesResult) -> None:
    moments = [result.time_for(prayer) for prayer in PRAYER_ORDER]
    assert moments == sorted(moments)
    assert len(set(moments)) == len(moments)


@pytest.mark.parametrize(
    ("day", "expected"),
    [
        (
            date(2024, 3, 20),
            {"fajr": "05:08", "sunrise": "06:24", "dhuhr": "12:28", "asr": "15:53", "maghrib": "18:32", "isha": "19:44"},
        ),
        (
            date(2024, 6, 21),
            {"fajr": "04:11", "sunrise": "05:39", "dhuhr": "12:22", "asr": "15:42", "maghrib": "19:06", "isha": "20:28"},
        ),
    ],
)
def test_mecca_reference_times(day: date, expected: dict[str, str]) -> None:
    """Mecca times with 18.5/17.5 degree angles match published tables within two minutes."""
    config = build_config("other", fajr_angle=18.5, isha_angle=17.5)
    result = compute_prayer_times(*MECCA, day, config, tz="Asia/Riyadh")

    assert result.timezone == "Asia/Riyadh"
    for name, hhmm in expected.items():
        moment = result.time_for(name)
        assert moment.date() == day
        _assert_near(moment, hhmm)
    assert result.high_latitude_applied == ()


@pytest.mark.parametrize("latitude", [-47.0, -33.9, -6.2, 0.0, 21.4, 35.7, 47.0])
@pytest.mark.parametrize("day", [date(2024, 1, 15), date(2024, 3, 20), date(2024, 6, 21), date(2024, 9, 23), date(2024, 12, 21)])
def test_temperate_times_are_strictly_ordered(latitude: float, day: date) -> None:
    """Fajr < Sunrise < Dhuhr < Asr < Maghrib < Isha away from the polar regions."""
    for longitude in (-122.4, 0.0, 151.2):
        result = compute_prayer_times(latitude, longitude, day, build_config(), tz="UTC")
        _assert_ordered(result)


def test_hanafi_asr_is_later_than_standard() -> None:
    """Shadow factor 2 strictly widens the Dhuhr to Asr gap."""
    day = date(2024, 5, 1)
    standard = compute_prayer_times(*MECCA, day, build_config(madhab="shafi"), tz="Asia/Riyadh")
    hanafi = compute_prayer_times(*MECCA, day, build_config(madhab="hanafi"), tz="Asia/Riyadh")

    assert hanafi.dhuhr == standard.dhuhr
    assert hanafi.asr - hanafi.dhuhr > standard.asr - standard.dhuhr


def test_computation_is_deterministic() -> None:
    """Identical inputs give identical results."""
    config = build_config("egyptian")
    first = compute_prayer_times(30.0444, 31.2357, date(2024, 8, 1), config, tz="Africa/Cairo")
    second = compute_prayer_times(30.0444, 31.2357, date(2024, 8, 1), config, tz="Africa/Cairo")

    assert first == second


def test_equator_equinox_day_and_night_are_about_twelve_hours() -> None:
    """Daytime and nighttime at the equator on an equinox are each close to 12 hours."""
    config = build_config("other", fajr_angle=18.0, isha_angle=17.0)
    today = compute_prayer_times(0.0, 0.0, date(2024, 3, 20), config, tz="UTC")
    tomorrow = compute_prayer_times(0.0, 0.0, date(2024, 3, 21), config, tz="UTC")

    day_length = today.maghrib - today.sunrise
    night_length = tomorrow.sunrise - today.maghrib
    assert timedelta(hours=11, minutes=55) <= day_length <= timedelta(hours=12, minutes=15)
    assert timedelta(hours=11, minutes=45) <= night_length <= timedelta(hours=12, minutes=5)


def test_dhuhr_moves_smoothly_day_to_day() -> None:
    """Dhuhr changes by at most a minute between consecutive days without DST."""
    start = date(2024, 1, 1)
    previous = None
    for offset in range(120):
        result = compute_prayer_times(*MECCA, start + timedelta(days=offset), build_config(), tz="Asia/Riyadh")
        current = _minutes(result.dhuhr)
        if previous is not None:
            assert abs(current - previous) <= 1
        previous = current


def test_dhuhr_jumps_by_an_hour_across_dst() -> None:
    """Civil Dhuhr shifts by the DST offset on the transition date."""
    config = build_config("north_america")
    before = compute_prayer_times(40.7128, -74.0060, date(2024, 3, 9), config, tz="America/New_York")
    after = compute_prayer_times(40.7128, -74.0060, date(2024, 3, 10), config, tz="America/New_York")

    assert before.dhuhr.utcoffset() == timedelta(hours=-5)
    assert after.dhuhr.utcoffset() == timedelta(hours=-4)
    assert 58 <= _minutes(after.dhuhr) - _minutes(before.dhuhr) <= 61


@pytest.mark.parametrize(
    "rule",
    [HighLatitudeRule.MIDDLE_OF_NIGHT, HighLatitudeRule.SEVENTH_OF_NIGHT, HighLatitudeRule.ANGLE_BASED, HighLatitudeRule.NONE],
)
def test_high_latitude_summer_resolves_fajr_and_isha(rule: HighLatitudeRule) -> None:
    """At 65N in midsummer the 18/17 degree twilight never occurs; a fallback fills it in."""
    config = build_config(high_latitude_rule=rule)
    result = compute_prayer_times(65.0, 25.0, date(2024, 6, 21), config, tz="Europe/Helsinki")

    _assert_ordered(result)
    assert Prayer.FAJR in result.high_latitude_applied
    assert Prayer.ISHA in result.high_latitude_applied


def test_seventh_of_night_places_fajr_a_seventh_before_sunrise() -> None:
    """Seventh-of-night Fajr and Isha sit night/7 from sunrise and sunset."""
    config = build_config("other", fajr_angle=18.0, isha_angle=17.0, high_latitude_rule="seventh_of_night")
    result = compute_prayer_times(65.0, 25.0, date(2024, 6, 21), config, tz="Europe/Helsinki")

    night = timedelta(hours=24) - (result.maghrib - result.sunrise)
    assert abs((result.sunrise - result.fajr) - night / 7) <= timedelta(minutes=2)
    assert abs((result.isha - result.maghrib) - night / 7) <= timedelta(minutes=2)


def test_middle_of_night_rule_leaves_temperate_times_alone() -> None:
    """Reachable twilight at low latitude is not clamped."""
    result = compute_prayer_times(*MECCA, date(2024, 6, 21), build_config(), tz="Asia/Riyadh")

    assert result.high_latitude_applied == ()


@pytest.mark.parametrize("resolution", ["aqrab_balad", "aqrab_yaum"])
@pytest.mark.parametrize("day", [date(2024, 6, 21), date(2024, 12, 21)])
def test_polar_day_and_night_are_resolved(resolution: str, day: date) -> None:
    """Inside the polar circle the engine still returns six ordered times."""
    config = build_config(polar_resolution=resolution)
    result = compute_prayer_times(78.2232, 15.6267, day, config, tz="Arctic/Longyearbyen")

    _assert_ordered(result)
    assert result.high_latitude_applied == PRAYER_ORDER


def test_isha_interval_follows_maghrib() -> None:
    """Umm al-Qura Isha is exactly 90 minutes after Maghrib."""
    result = compute_prayer_times(*MECCA, date(2024, 3, 20), build_config("umm_al_qura"), tz="Asia/Riyadh")

    assert result.isha - result.maghrib == timedelta(minutes=90)


def test_method_adjustments_shift_dhuhr() -> None:
    """The Muslim World League preset adds one minute to Dhuhr."""
    day = date(2024, 3, 20)
    plain = compute_prayer_times(*MECCA, day, build_config("other", fajr_angle=18.0, isha_angle=17.0), tz="Asia/Riyadh")
    mwl = compute_prayer_times(*MECCA, day, build_config("muslim_world_league"), tz="Asia/Riyadh")

    assert mwl.dhuhr - plain.dhuhr == timedelta(minutes=1)
    assert mwl.fajr == plain.fajr


def test_maghrib_angle_delays_maghrib_past_sunset() -> None:
    """Tehran's 4.5 degree Maghrib comes after geometric sunset."""
    day = date(2024, 3, 20)
    tehran = compute_prayer_times(35.6892, 51.3890, day, build_config("tehran"), tz="Asia/Tehran")
    other = compute_prayer_times(
        35.6892, 51.3890, day, build_config("other", fajr_angle=17.7, isha_angle=14.0), tz="Asia/Tehran"
    )

    assert tehran.maghrib - other.maghrib > timedelta(minutes=10)


def test_rounding_policies() -> None:
    """Nearest drops seconds, none keeps them, granularity aligns minutes."""
    day = date(2024, 3, 20)
    exact = compute_prayer_times(*MECCA, day, build_config(rounding=Rounding.NONE), tz="Asia/Riyadh")
    nearest = compute_prayer_times(*MECCA, day, build_config(), tz="Asia/Riyadh")
    up = compute_prayer_times(*MECCA, day, build_config(rounding=Rounding.UP), tz="Asia/Riyadh")
    five = compute_prayer_times(*MECCA, day, build_config(rounding_granularity_minutes=5), tz="Asia/Riyadh")

    for prayer in PRAYER_ORDER:
        assert nearest.time_for(prayer).second == 0
        assert abs(nearest.time_for(prayer) - exact.time_for(prayer)) <= timedelta(seconds=30)
        assert timedelta(0) <= up.time_for(prayer) - exact.time_for(prayer) < timedelta(minutes=1)
        assert five.time_for(prayer).minute % 5 == 0


def test_compute_for_accepts_coordinates() -> None:
    """compute_for and compute_prayer_times agree."""
    day = date(2024, 3, 20)
    config = build_config()

    assert compute_for(Coordinates(*MECCA), day, config, "Asia/Riyadh") == compute_prayer_times(
        *MECCA, day, config, tz="Asia/Riyadh"
    )


@pytest.mark.parametrize(("latitude", "longitude"), [(91.0, 0.0), (-90.5, 0.0), (0.0, 180.5), (float("nan"), 0.0), (0.0, float("inf"))])
def test_invalid_coordinates_rejected(latitude: float, longitude: float) -> None:
    """Out-of-range or non-finite coordinates are rejected before computation."""
    with pytest.raises(InvalidInputError):
        compute_prayer_times(latitude, longitude, date(2024, 3, 20), tz="UTC")


def test_unknown_timezone_rejected() -> None:
    """An unknown zone name is an input error."""
    with pytest.raises(InvalidInputError, match="Unknown time zone"):
        compute_prayer_times(*MECCA, date(2024, 3, 20), tz="Mars/Olympus_Mons")


DATE_LINE_ZONES = [
    (-13.8333, -171.7667, "Pacific/Apia"),
    (1.8721, -157.4278, "Pacific/Kiritimati"),
    (-21.1393, -175.2049, "Pacific/Tongatapu"),
]


@pytest.mark.parametrize(("latitude", "longitude", "tz"), DATE_LINE_ZONES)
@pytest.mark.parametrize("day", [date(2024, 1, 15), date(2024, 7, 1)])
def test_zones_across_the_date_line_stay_on_the_requested_date(
    latitude: float, longitude: float, tz: str, day: date
) -> None:
    """Zones a full day ahead of their longitude still get times on the requested civil date."""
    result = compute_prayer_times(latitude, longitude, day, build_config(), tz=tz)

    assert result.date == day
    for prayer in PRAYER_ORDER:
        assert result.time_for(prayer).date() == day, (prayer, result.time_for(prayer))
    assert result.dhuhr.hour == 12
    _assert_ordered(result)


def test_date_line_zone_matches_same_meridian_one_day_earlier() -> None:
    """UTC+13 at 172W sees the sky of UTC-11 on the previous date, one civil day later."""
    day = date(2024, 7, 1)
    config = build_config()
    apia = compute_prayer_times(-13.8333, -171.7667, day, config, tz="Pacific/Apia")
    pago = compute_prayer_times(-13.8333, -171.7667, day - timedelta(days=1), config, tz="Pacific/Pago_Pago")

    for prayer in PRAYER_ORDER:
        assert apia.time_for(prayer) - pago.time_for(prayer) <= timedelta(minutes=1)
        assert pago.time_for(prayer) - apia.time_for(prayer) <= timedelta(minutes=1)
