"""Civil time zone resolution and UTC to local conversion."""

from __future__ import annotations

import logging
from datetime import UTC, date, datetime, timedelta, tzinfo
from functools import lru_cache

import pytz
from timezonefinder import TimezoneFinder

from salat_times.contracts import Coordinates, InvalidInputError

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _finder() -> TimezoneFinder:
    return TimezoneFinder()


def nautical_zone_name(longitude: float) -> str:
    """Return the `Etc/GMT` zone whose offset is nearest to `longitude / 15`."""
    offset = round(longitude / 15.0)
    if offset == 0:
        return "Etc/GMT"
    # POSIX-style names invert the sign: Etc/GMT-3 is UTC+3.
    return f"Etc/GMT{-offset:+d}"


def zone_name_for(coordinates: Coordinates) -> str:
    """Look up the IANA zone name containing `coordinates`."""
    name = _finder().timezone_at(lng=coordinates.longitude, lat=coordinates.latitude)
    if name is None:
        name = nautical_zone_name(coordinates.longitude)
        logger.debug(
            "no zone at lat=%.4f lon=%.4f, using %s",
            coordinates.latitude,
            coordinates.longitude,
            name,
        )
    return name


def resolve_timezone(coordinates: Coordinates, name: str | None = None) -> tzinfo:
    """Resolve an explicit IANA name, or the zone at `coordinates` when absent.

    Raises:
        InvalidInputError: if `name` is not a known zone.
    """
    zone_name = name.strip() if name else zone_name_for(coordinates)
    try:
        return pytz.timezone(zone_name)
    except pytz.UnknownTimeZoneError as exc:
        raise InvalidInputError(f"Unknown time zone {zone_name!r}.") from exc


def zone_label(zone: tzinfo) -> str:
    """Return the IANA name of a zone, or its string form for fixed offsets."""
    return getattr(zone, "zone", None) or str(zone)


def utc_midnight(day: date) -> datetime:
    """Return 00:00 UTC at the start of `day`."""
    return datetime(day.year, day.month, day.day, tzinfo=UTC)


def utc_from_hours(day: date, hours: float) -> datetime:
    """Return the UTC instant `hours` after 00:00 UTC of `day`."""
    return utc_midnight(day) + timedelta(hours=hours)


def to_civil(instant: datetime, zone: tzinfo) -> datetime:
    """Convert an aware instant to civil time in `zone`, DST included."""
    if instant.tzinfo is None:
        raise ValueError("instant must be timezone-aware.")
    return instant.astimezone(zone)


def utc_offset_hours(day: date, zone: tzinfo) -> float:
    """UTC offset of `zone` at local noon on `day`, in hours."""
    offset = timedelta(0)
    # Second pass re-measures at the local noon found by the first.
    for _ in range(2):
        noon = to_civil(utc_midnight(day) + timedelta(hours=12) - offset, zone)
        offset = noon.utcoffset() or timedelta(0)
    return offset.total_seconds() / 3600.0
