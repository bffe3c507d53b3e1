"""Named calculation methods and config construction."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from salat_times.contracts import (
    CalculationConfig,
    Coordinates,
    HighLatitudeRule,
    InvalidInputError,
    Madhab,
    PolarCircleResolution,
    PrayerAdjustments,
    Rounding,
)

DEFAULT_METHOD = "muslim_world_league"
DEFAULT_MADHAB = Madhab.SHAFI
DEFAULT_HIGH_LATITUDE_RULE = HighLatitudeRule.MIDDLE_OF_NIGHT
# Rule name resolved per location by `recommended_high_latitude_rule`.
AUTO_HIGH_LATITUDE_RULE = "auto"


@dataclass(frozen=True, slots=True)
class MethodPreset:
    """Published parameters of one calculation authority."""

    name: str
    title: str
    fajr_angle: float
    isha_angle: float | None = None
    isha_interval_minutes: int | None = None
    maghrib_angle: float | None = None
    adjustments: PrayerAdjustments = field(default_factory=PrayerAdjustments)
    rounding: Rounding = Rounding.NEAREST

    def to_dict(self) -> dict[str, Any]:
        """Serialize the preset for catalogue listings."""
        return {
            "name": self.name,
            "title": self.title,
            "fajr_angle": self.fajr_angle,
            "isha_angle": self.isha_angle,
            "isha_interval_minutes": self.isha_interval_minutes,
            "maghrib_angle": self.maghrib_angle,
            "adjustments": {
                "fajr": self.adjustments.fajr,
                "sunrise": self.adjustments.sunrise,
                "dhuhr": self.adjustments.dhuhr,
                "asr": self.adjustments.asr,
                "maghrib": self.adjustments.maghrib,
                "isha": self.adjustments.isha,
            },
            "rounding": self.rounding.value,
        }


METHODS: dict[str, MethodPreset] = {
    preset.name: preset
    for preset in (
        MethodPreset(
            "muslim_world_league",
            "Muslim World League",
            fajr_angle=18.0,
            isha_angle=17.0,
            adjustments=PrayerAdjustments(dhuhr=1),
        ),
        MethodPreset(
            "egyptian",
            "Egyptian General Authority of Survey",
            fajr_angle=19.5,
            isha_angle=17.5,
            adjustments=PrayerAdjustments(dhuhr=1),
        ),
        MethodPreset(
            "karachi",
            "University of Islamic Sciences, Karachi",
            fajr_angle=18.0,
            isha_angle=18.0,
            adjustments=PrayerAdjustments(dhuhr=1),
        ),
        MethodPreset(
            "umm_al_qura",
            "Umm al-Qura University, Makkah",
            fajr_angle=18.5,
            isha_interval_minutes=90,
        ),
        MethodPreset(
            "dubai",
            "Dubai",
            fajr_angle=18.2,
            isha_angle=18.2,
            adjustments=PrayerAdjustments(sunrise=-3, dhuhr=3, asr=3, maghrib=3),
        ),
        MethodPreset(
            "moonsighting_committee",
            "Moonsighting Committee Worldwide",
            fajr_angle=18.0,
            isha_angle=18.0,
            adjustments=PrayerAdjustments(dhuhr=5, maghrib=3),
        ),
        MethodPreset(
            "north_america",
            "Islamic Society of North America",
            fajr_angle=15.0,
            isha_angle=15.0,
            adjustments=PrayerAdjustments(dhuhr=1),
        ),
        MethodPreset("kuwait", "Kuwait", fajr_angle=18.0, isha_angle=17.5),
        MethodPreset("qatar", "Qatar", fajr_angle=18.0, isha_interval_minutes=90),
        MethodPreset(
            "singapore",
            "Majlis Ugama Islam Singapura",
            fajr_angle=20.0,
            isha_angle=18.0,
            adjustments=PrayerAdjustments(dhuhr=1),
            rounding=Rounding.UP,
        ),
        MethodPreset(
            "tehran",
            "Institute of Geophysics, University of Tehran",
            fajr_angle=17.7,
            isha_angle=14.0,
            maghrib_angle=4.5,
        ),
        MethodPreset(
            "turkey",
            "Diyanet Isleri Baskanligi, Turkey",
            fajr_angle=18.0,
            isha_angle=17.0,
            adjustments=PrayerAdjustments(sunrise=-7, dhuhr=5, asr=4, maghrib=7),
        ),
        MethodPreset("other", "Custom angles", fajr_angle=0.0, isha_angle=0.0),
    )
}


def get_method(name: str) -> MethodPreset:
    """Look up a preset by name, accepting dashes and any case."""
    key = name.strip().lower().replace("-", "_")
    try:
        return METHODS[key]
    except KeyError as exc:
        raise InvalidInputError(
            f"Unknown calculation method {name!r}; expected one of: {', '.join(sorted(METHODS))}"
        ) from exc


def recommended_high_latitude_rule(coordinates: Coordinates) -> HighLatitudeRule:
    """Seventh-of-night above 48 degrees, middle-of-night elsewhere."""
    if abs(coordinates.latitude) > 48.0:
        return HighLatitudeRule.SEVENTH_OF_NIGHT
    return HighLatitudeRule.MIDDLE_OF_NIGHT


def build_config(
    method: str = DEFAULT_METHOD,
    madhab: Madhab | str = DEFAULT_MADHAB,
    high_latitude_rule: HighLatitudeRule | str = DEFAULT_HIGH_LATITUDE_RULE,
    polar_resolution: PolarCircleResolution | str = PolarCircleResolution.AQRAB_BALAD,
    adjustments: PrayerAdjustments | None = None,
    coordinates: Coordinates | None = None,
    **overrides: Any,
) -> CalculationConfig:
    """Build a `CalculationConfig` from a named method plus caller choices.

    Args:
        method: Preset name from `METHODS`.
        madhab: `shafi` (shadow factor 1) or `hanafi` (shadow factor 2).
        high_latitude_rule: Fallback rule for extreme twilight, or `auto`
            to pick `recommended_high_latitude_rule(coordinates)`.
        polar_resolution: Resolution when the sun does not rise or set.
        adjustments: Caller minute offsets added on top of the method's own.
        coordinates: Observer position, required when the rule is `auto`.
        **overrides: Any other `CalculationConfig` field, e.g. `fajr_angle`
            for the `other` method or `horizon_depression`.

    Returns:
        Validated immutable configuration.
    """
    preset = get_method(method)
    try:
        resolved_madhab = Madhab(madhab)
        if high_latitude_rule == AUTO_HIGH_LATITUDE_RULE:
            if coordinates is None:
                raise InvalidInputError("high_latitude_rule 'auto' needs coordinates.")
            rule = recommended_high_latitude_rule(coordinates)
        else:
            rule = HighLatitudeRule(high_latitude_rule)
        resolution = PolarCircleResolution(polar_resolution)
    except ValueError as exc:
        raise InvalidInputError(str(exc)) from exc

    values: dict[str, Any] = {
        "fajr_angle": preset.fajr_angle,
        "isha_angle": preset.isha_angle,
        "isha_interval_minutes": preset.isha_interval_minutes,
        "maghrib_angle": preset.maghrib_angle,
        "asr_shadow_factor": resolved_madhab.shadow_factor,
        "high_latitude_rule": rule,
        "polar_resolution": resolution,
        "rounding": preset.rounding,
        "method_adjustments": preset.adjustments,
        "adjustments": adjustments or PrayerAdjustments(),
        "method": preset.name,
    }
    if "isha_angle" in overrides and "isha_interval_minutes" not in overrides:
        values["isha_interval_minutes"] = None
    if "isha_interval_minutes" in overrides and "isha_angle" not in overrides:
        values["isha_angle"] = None
    values.update(overrides)
    try:
        return CalculationConfig(**values)
    except TypeError as exc:
        raise InvalidInputError(str(exc)) from exc
