"""Prayer-time orchestration: solar geometry to civil clock times."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta, tzinfo

from salat_times.astro.hour_angle import (
    UnreachableAltitude,
    asr_hour_angle,
    hour_angle_for_altitude,
)
from salat_times.astro.solar import julian_day, solar_position
from salat_times.contracts import (
    PRAYER_ORDER,
    CalculationConfig,
    Coordinates,
    HighLatitudeRule,
    PolarCircleResolution,
    Prayer,
    PrayerTimesResult,
)
from salat_times.methods import build_config
from salat_times.time.rounding import round_local
from salat_times.time.zones import (
    resolve_timezone,
    to_civil,
    utc_from_hours,
    utc_offset_hours,
    zone_label,
)

logger = logging.getLogger(__name__)

LATITUDE_STEP_DEG = 0.5
MAX_DAY_SEARCH = 183
MIN_DAY_HOURS = 1.0
MIN_NIGHT_HOURS = 1.0
MIN_ASR_GAP_HOURS = 5.0 / 60.0


@dataclass(frozen=True, slots=True)
class SolarDay:
    """Geometric events of one civil day in UTC hours past 00:00 UTC of that date, possibly negative."""

    declination: float
    noon: float
    sunrise: float
    sunset: float
    asr: float

    @property
    def night_hours(self) -> float:
        """Sunset to next sunrise, assuming the next day repeats this one."""
        return 24.0 - (self.sunset - self.sunrise)


def transit_guess_hours(longitude: float, utc_offset: float = 0.0) -> float:
    """Approximate UTC hours of local mean noon on the civil date, past 00:00 UTC of that date.

    Zones far from `longitude / 15` (e.g. UTC+13 at 172W) put the civil
    date's noon on the previous or next UTC date, so the guess is shifted
    by whole days to stay within twelve hours of local noon.
    """
    mean_noon = 12.0 - longitude / 15.0
    return mean_noon - 24.0 * round((utc_offset + longitude / 15.0) / 24.0)


def solar_day(
    day: date,
    latitude: float,
    longitude: float,
    config: CalculationConfig,
    utc_offset: float = 0.0,
) -> SolarDay:
    """Compute noon, sunrise, sunset and Asr for one civil date.

    The sun's position is evaluated once, at the observer's approximate
    solar noon on `day` in a zone `utc_offset` hours ahead of UTC.

    Raises:
        UnreachableAltitude: if the sun does not rise, does not set, or
            never casts the Asr shadow on that day.
    """
    transit = transit_guess_hours(longitude, utc_offset)
    position = solar_position(julian_day(day, transit))
    declination = position.declination
    noon = transit - position.equation_of_time / 60.0

    rise_set = hour_angle_for_altitude(-config.horizon_depression, latitude, declination)
    asr = asr_hour_angle(config.asr_shadow_factor, latitude, declination)
    return SolarDay(
        declination=declination,
        noon=noon,
        sunrise=noon - rise_set / 15.0,
        sunset=noon + rise_set / 15.0,
        asr=noon + asr / 15.0,
    )


def _usable_day(
    day: date, latitude: float, longitude: float, config: CalculationConfig, utc_offset: float
) -> SolarDay | None:
    """Return the SolarDay when every event is distinct enough to order, else None."""
    try:
        geometry = solar_day(day, latitude, longitude, config, utc_offset)
    except UnreachableAltitude:
        return None
    if geometry.sunset - geometry.sunrise < MIN_DAY_HOURS or geometry.night_hours < MIN_NIGHT_HOURS:
        return None
    if geometry.asr - geometry.noon < MIN_ASR_GAP_HOURS:
        return None
    return geometry


def _resolve_polar(
    day: date, coordinates: Coordinates, config: CalculationConfig, utc_offset: float = 0.0
) -> tuple[SolarDay, float, bool]:
    """Return a usable SolarDay, the latitude it was solved at, and whether it was substituted."""
    geometry = _usable_day(day, coordinates.latitude, coordinates.longitude, config, utc_offset)
    if geometry is not None:
        return geometry, coordinates.latitude, False

    if config.polar_resolution is PolarCircleResolution.AQRAB_YAUM:
        for offset in range(1, MAX_DAY_SEARCH + 1):
            for candidate in (day - timedelta(days=offset), day + timedelta(days=offset)):
                geometry = _usable_day(
                    candidate, coordinates.latitude, coordinates.longitude, config, utc_offset
                )
                if geometry is not None:
                    logger.debug("polar day/night on %s, reusing geometry of %s", day, candidate)
                    return geometry, coordinates.latitude, True

    # Nearest latitude, also the fallback when no day within half a year resolves.
    sign = 1.0 if coordinates.latitude >= 0.0 else -1.0
    latitude = coordinates.latitude
    while abs(latitude) > 0.0:
        latitude = sign * max(0.0, abs(latitude) - LATITUDE_STEP_DEG)
        geometry = _usable_day(day, latitude, coordinates.longitude, config, utc_offset)
        if geometry is not None:
            logger.debug(
                "polar day/night at lat=%.3f on %s, using lat=%.3f",
                coordinates.latitude,
                day,
                latitude,
            )
            return geometry, latitude, True
    raise AssertionError("sun rises and sets every day at the equator")


def night_portion(rule: HighLatitudeRule, angle: float) -> float:
    """Fraction of the night allotted to Fajr or Isha under `rule`."""
    if rule is HighLatitudeRule.SEVENTH_OF_NIGHT:
        return 1.0 / 7.0
    if rule is HighLatitudeRule.ANGLE_BASED:
        return angle / 60.0
    return 0.5


def _twilight_hours(angle: float, latitude: float, declination: float) -> float | None:
    """Hour angle in hours for a depression `angle`, or None when unreachable."""
    try:
        return hour_angle_for_altitude(-angle, latitude, declination) / 15.0
    except UnreachableAltitude:
        return None


def _event_hours(
    geometry: SolarDay, latitude: float, config: CalculationConfig
) -> tuple[dict[Prayer, float], list[Prayer]]:
    """Compute UTC hours for every prayer and apply the high-latitude rule."""
    applied: list[Prayer] = []
    rule = config.high_latitude_rule
    # An unreachable angle always needs a portion, even with rule `none`.
    fallback_rule = HighLatitudeRule.MIDDLE_OF_NIGHT if rule is HighLatitudeRule.NONE else rule
    night = geometry.night_hours

    maghrib = geometry.sunset
    if config.maghrib_angle is not None:
        offset = _twilight_hours(config.maghrib_angle, latitude, geometry.declination)
        if offset is None:
            applied.append(Prayer.MAGHRIB)
        else:
            maghrib = geometry.noon + offset

    offset = _twilight_hours(config.fajr_angle, latitude, geometry.declination)
    fajr = None if offset is None else geometry.noon - offset
    safe_fajr = geometry.sunrise - night_portion(fallback_rule, config.fajr_angle) * night
    if fajr is None or (rule is not HighLatitudeRule.NONE and fajr < safe_fajr):
        fajr = safe_fajr
        applied.append(Prayer.FAJR)

    if config.isha_interval_minutes is not None:
        isha = maghrib + config.isha_interval_minutes / 60.0
    else:
        assert config.isha_angle is not None
        offset = _twilight_hours(config.isha_angle, latitude, geometry.declination)
        isha = None if offset is None else geometry.noon + offset
        safe_isha = geometry.sunset + night_portion(fallback_rule, config.isha_angle) * night
        if isha is None or (rule is not HighLatitudeRule.NONE and isha > safe_isha):
            isha = safe_isha
            applied.append(Prayer.ISHA)

    hours = {
        Prayer.FAJR: fajr,
        Prayer.SUNRISE: geometry.sunrise,
        Prayer.DHUHR: geometry.noon,
        Prayer.ASR: geometry.asr,
        Prayer.MAGHRIB: maghrib,
        Prayer.ISHA: isha,
    }
    return hours, applied


def compute_for(
    coordinates: Coordinates,
    day: date,
    config: CalculationConfig | None = None,
    tz: str | tzinfo | None = None,
) -> PrayerTimesResult:
    """Compute the six civil prayer times for validated `coordinates` on `day`.

    Args:
        coordinates: Observer position.
        day: Civil date at the observer.
        config: Calculation parameters; the default method when omitted.
        tz: IANA zone name or tzinfo; looked up from coordinates when omitted.

    Returns:
        PrayerTimesResult with aware datetimes in the resolved zone.
    """
    config = config or build_config()
    zone = tz if isinstance(tz, tzinfo) else resolve_timezone(coordinates, tz)

    geometry, latitude, substituted = _resolve_polar(
        day, coordinates, config, utc_offset_hours(day, zone)
    )
    hours, applied = _event_hours(geometry, latitude, config)
    if substituted:
        applied = list(PRAYER_ORDER)
    if applied:
        logger.debug(
            "high-latitude fallback (%s) applied to %s at lat=%.3f on %s",
            config.high_latitude_rule.value,
            ", ".join(prayer.value for prayer in applied),
            coordinates.latitude,
            day,
        )

    times = {}
    for prayer in PRAYER_ORDER:
        adjusted = hours[prayer] + config.total_adjustment(prayer) / 60.0
        civil = to_civil(utc_from_hours(day, adjusted), zone)
        times[prayer.value] = round_local(
            civil, zone, config.rounding, config.rounding_granularity_minutes
        )

    return PrayerTimesResult(
        date=day,
        timezone=zone_label(zone),
        method=config.method,
        high_latitude_applied=tuple(prayer for prayer in PRAYER_ORDER if prayer in applied),
        **times,
    )


def compute_prayer_times(
    latitude: float,
    longitude: float,
    day: date,
    config: CalculationConfig | None = None,
    tz: str | tzinfo | None = None,
) -> PrayerTimesResult:
    """Compute prayer times for raw latitude/longitude degrees.

    Raises:
        InvalidInputError: if the coordinates are out of range or not finite,
            or `tz` names an unknown zone.
    """
    return compute_for(Coordinates(latitude, longitude), day, config, tz)
