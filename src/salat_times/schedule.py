"""Helpers built on daily results: current/next prayer, reminders, night thirds."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo

from salat_times.calculator import compute_for
from salat_times.contracts import CalculationConfig, Coordinates, Prayer, PrayerTimesResult
from salat_times.time.zones import resolve_timezone

REMINDER_WINDOW = timedelta(minutes=30)


def _require_aware(now: datetime) -> None:
    if now.tzinfo is None:
        raise ValueError("now must be timezone-aware.")


def current_prayer(result: PrayerTimesResult, now: datetime) -> Prayer | None:
    """Return the latest moment at or before `now`, or None before Fajr."""
    _require_aware(now)
    current = None
    for prayer, moment in result.times().items():
        if moment <= now:
            current = prayer
    return current


def next_prayer(result: PrayerTimesResult, now: datetime) -> Prayer | None:
    """Return the first moment strictly after `now`, or None after Isha."""
    _require_aware(now)
    for prayer, moment in result.times().items():
        if moment > now:
            return prayer
    return None


@dataclass(frozen=True, slots=True)
class UpcomingPrayer:
    """The next moment from some instant, possibly on the following day."""

    current: Prayer | None
    prayer: Prayer
    time: datetime
    remaining: timedelta

    @property
    def countdown(self) -> str:
        """Remaining time as HH:MM:SS."""
        return format_countdown(self.remaining)


def next_prayer_after(
    coordinates: Coordinates,
    now: datetime,
    config: CalculationConfig | None = None,
    tz: str | tzinfo | None = None,
) -> UpcomingPrayer:
    """Find the next prayer after `now`, rolling over to tomorrow's Fajr after Isha."""
    _require_aware(now)
    zone = tz if isinstance(tz, tzinfo) else resolve_timezone(coordinates, tz)
    local_now = now.astimezone(zone)
    today = compute_for(coordinates, local_now.date(), config, zone)

    current = current_prayer(today, local_now)
    upcoming = next_prayer(today, local_now)
    if upcoming is None:
        tomorrow = compute_for(coordinates, local_now.date() + timedelta(days=1), config, zone)
        upcoming = Prayer.FAJR
        moment = tomorrow.fajr
    else:
        moment = today.time_for(upcoming)
    return UpcomingPrayer(
        current=current,
        prayer=upcoming,
        time=moment,
        remaining=max(timedelta(0), moment - local_now),
    )


def format_countdown(remaining: timedelta) -> str:
    """Format a duration as HH:MM:SS, clamped at zero."""
    total = max(0, int(remaining.total_seconds()))
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def should_ring(
    prayer_time: datetime,
    now: datetime,
    prayed: bool = False,
    window: timedelta = REMINDER_WINDOW,
) -> bool:
    """Return True when an unprayed prayer falls within `window` ahead of `now` on the same day."""
    _require_aware(now)
    local_now = now.astimezone(prayer_time.tzinfo)
    if prayed or local_now.date() != prayer_time.date():
        return False
    return timedelta(0) <= prayer_time - local_now <= window


@dataclass(frozen=True, slots=True)
class SunnahTimes:
    """Night divisions between Maghrib and the next day's Fajr."""

    middle_of_the_night: datetime
    last_third_of_the_night: datetime


def sunnah_times(today: PrayerTimesResult, tomorrow: PrayerTimesResult) -> SunnahTimes:
    """Compute the middle and last third of the night following `today`."""
    if tomorrow.date != today.date + timedelta(days=1):
        raise ValueError("tomorrow must be the day after today.")
    night = tomorrow.fajr - today.maghrib
    return SunnahTimes(
        middle_of_the_night=today.maghrib + night / 2,
        last_third_of_the_night=today.maghrib + night * 2 / 3,
    )


def prayer_days(
    coordinates: Coordinates,
    start: date,
    days: int,
    config: CalculationConfig | None = None,
    tz: str | tzinfo | None = None,
) -> Iterator[PrayerTimesResult]:
    """Yield results for `days` consecutive dates starting at `start`."""
    if days <= 0:
        raise ValueError("days must be positive")
    zone = tz if isinstance(tz, tzinfo) else resolve_timezone(coordinates, tz)
    for offset in range(days):
        yield compute_for(coordinates, start + timedelta(days=offset), config, zone)
