"""Core data contracts for prayer-time computation."""

from __future__ import annotations

import hashlib
import json
from dataclasses import asdict, dataclass, field, fields, replace
from datetime import date, datetime
from enum import StrEnum
from math import isfinite
from typing import Any


class InvalidInputError(ValueError):
    """Raised when coordinates, zones or configuration values are unusable."""


class Prayer(StrEnum):
    """The six daily moments, in chronological order."""

    FAJR = "fajr"
    SUNRISE = "sunrise"
    DHUHR = "dhuhr"
    ASR = "asr"
    MAGHRIB = "maghrib"
    ISHA = "isha"


PRAYER_ORDER: tuple[Prayer, ...] = tuple(Prayer)


class Madhab(StrEnum):
    """Juristic school used for the Asr shadow length."""

    SHAFI = "shafi"
    HANAFI = "hanafi"

    @property
    def shadow_factor(self) -> int:
        """Shadow length as a multiple of object height."""
        return 2 if self is Madhab.HANAFI else 1


class HighLatitudeRule(StrEnum):
    """Fallback used when twilight angles are unreachable or extreme."""

    NONE = "none"
    ANGLE_BASED = "angle_based"
    SEVENTH_OF_NIGHT = "seventh_of_night"
    MIDDLE_OF_NIGHT = "middle_of_night"


class PolarCircleResolution(StrEnum):
    """Resolution used when the sun does not rise or does not set."""

    AQRAB_BALAD = "aqrab_balad"
    AQRAB_YAUM = "aqrab_yaum"


class Rounding(StrEnum):
    """Rounding applied to each computed time."""

    NEAREST = "nearest"
    UP = "up"
    NONE = "none"


def _require_finite(value: float, label: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"{label} must be a number.") from exc
    if not isfinite(number):
        raise InvalidInputError(f"{label} must be finite.")
    return number


@dataclass(frozen=True, slots=True)
class Coordinates:
    """Observer position in WGS84 degrees (east and north positive)."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        """Reject non-finite or out-of-range coordinates."""
        latitude = _require_finite(self.latitude, "latitude")
        longitude = _require_finite(self.longitude, "longitude")
        if not -90.0 <= latitude <= 90.0:
            raise InvalidInputError("latitude must be within [-90, 90].")
        if not -180.0 <= longitude <= 180.0:
            raise InvalidInputError("longitude must be within [-180, 180].")
        object.__setattr__(self, "latitude", latitude)
        object.__setattr__(self, "longitude", longitude)

    def rounded(self, precision: int = 3) -> Coordinates:
        """Return a copy rounded to `precision` decimals, used for cache keys."""
        return Coordinates(round(self.latitude, precision), round(self.longitude, precision))


@dataclass(frozen=True, slots=True)
class PrayerAdjustments:
    """Per-prayer offsets in minutes, added before rounding."""

    fajr: int = 0
    sunrise: int = 0
    dhuhr: int = 0
    asr: int = 0
    maghrib: int = 0
    isha: int = 0

    def minutes_for(self, prayer: Prayer) -> int:
        """Return the offset configured for one prayer."""
        return int(getattr(self, prayer.value))

    def __add__(self, other: PrayerAdjustments) -> PrayerAdjustments:
        return PrayerAdjustments(
            **{f.name: getattr(self, f.name) + getattr(other, f.name) for f in fields(self)}
        )


@dataclass(frozen=True, slots=True)
class CalculationConfig:
    """Immutable parameters selecting one prayer-time convention.

    Exactly one of `isha_angle` and `isha_interval_minutes` must be set.
    `horizon_depression` is the apparent sunrise/sunset altitude below the
    horizon (refraction plus solar radius).
    """

    fajr_angle: float = 18.0
    isha_angle: float | None = 17.0
    isha_interval_minutes: int | None = None
    maghrib_angle: float | None = None
    asr_shadow_factor: int = 1
    high_latitude_rule: HighLatitudeRule = HighLatitudeRule.MIDDLE_OF_NIGHT
    polar_resolution: PolarCircleResolution = PolarCircleResolution.AQRAB_BALAD
    rounding: Rounding = Rounding.NEAREST
    rounding_granularity_minutes: int = 1
    horizon_depression: float = 0.833
    method_adjustments: PrayerAdjustments = field(default_factory=PrayerAdjustments)
    adjustments: PrayerAdjustments = field(default_factory=PrayerAdjustments)
    method: str = "other"

    def __post_init__(self) -> None:
        """Validate angle ranges and mutually exclusive Isha definitions."""
        fajr_angle = _require_finite(self.fajr_angle, "fajr_angle")
        if not 0.0 <= fajr_angle < 90.0:
            raise InvalidInputError("fajr_angle must be within [0, 90).")

        if (self.isha_angle is None) == (self.isha_interval_minutes is None):
            raise InvalidInputError(
                "Exactly one of isha_angle or isha_interval_minutes must be set."
            )
        if self.isha_angle is not None:
            isha_angle = _require_finite(self.isha_angle, "isha_angle")
            if not 0.0 <= isha_angle < 90.0:
                raise InvalidInputError("isha_angle must be within [0, 90).")
        if self.isha_interval_minutes is not None and self.isha_interval_minutes < 0:
            raise InvalidInputError("isha_interval_minutes must not be negative.")
        if self.maghrib_angle is not None:
            maghrib_angle = _require_finite(self.maghrib_angle, "maghrib_angle")
            if not 0.0 <= maghrib_angle < 90.0:
                raise InvalidInputError("maghrib_angle must be within [0, 90).")

        if self.asr_shadow_factor not in (1, 2):
            raise InvalidInputError("asr_shadow_factor must be 1 (standard) or 2 (Hanafi).")
        granularity = _require_finite(self.rounding_granularity_minutes, "rounding_granularity_minutes")
        if int(granularity) != granularity:
            raise InvalidInputError("rounding_granularity_minutes must be an integer.")
        if granularity < 1:
            raise InvalidInputError("rounding_granularity_minutes must be >= 1.")
        depression = _require_finite(self.horizon_depression, "horizon_depression")
        if not 0.0 <= depression < 10.0:
            raise InvalidInputError("horizon_depression must be within [0, 10).")

        object.__setattr__(self, "high_latitude_rule", HighLatitudeRule(self.high_latitude_rule))
        object.__setattr__(self, "polar_resolution", PolarCircleResolution(self.polar_resolution))
        object.__setattr__(self, "rounding", Rounding(self.rounding))

    @property
    def madhab(self) -> Madhab:
        """Madhab implied by the configured shadow factor."""
        return Madhab.HANAFI if self.asr_shadow_factor == 2 else Madhab.SHAFI

    def total_adjustment(self, prayer: Prayer) -> int:
        """Method and caller offsets combined, in minutes."""
        return (self.method_adjustments + self.adjustments).minutes_for(prayer)

    def replace(self, **changes: Any) -> CalculationConfig:
        """Return a validated copy with `changes` applied."""
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the configuration to a JSON-compatible dictionary."""
        return asdict(self)

    def config_hash(self) -> str:
        """Compute a deterministic hash of every field."""
        encoded = json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


@dataclass(frozen=True, slots=True)
class PrayerTimesResult:
    """Civil clock times of the six daily moments for one date and place."""

    date: date
    timezone: str
    fajr: datetime
    sunrise: datetime
    dhuhr: datetime
    asr: datetime
    maghrib: datetime
    isha: datetime
    method: str = "other"
    high_latitude_applied: tuple[Prayer, ...] = ()

    def time_for(self, prayer: Prayer | str) -> datetime:
        """Return the timestamp of one prayer."""
        return getattr(self, Prayer(prayer).value)

    def times(self) -> dict[Prayer, datetime]:
        """Return all six timestamps in chronological order."""
        return {prayer: self.time_for(prayer) for prayer in PRAYER_ORDER}

    def formatted(self, fmt: str = "%H:%M") -> dict[str, str]:
        """Format each timestamp with `strftime`."""
        return {prayer.value: moment.strftime(fmt) for prayer, moment in self.times().items()}

    def to_dict(self) -> dict[str, Any]:
        """Serialize the result to a JSON-compatible dictionary."""
        payload: dict[str, Any] = {
            "date": self.date.isoformat(),
            "timezone": self.timezone,
            "method": self.method,
            "high_latitude_applied": [prayer.value for prayer in self.high_latitude_applied],
        }
        for prayer, moment in self.times().items():
            payload[prayer.value] = moment.isoformat()
        return payload
