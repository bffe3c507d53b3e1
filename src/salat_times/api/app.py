"""FastAPI app exposing prayer-time, next-prayer and qibla endpoints."""

from __future__ import annotations

import logging
import os
from datetime import date, datetime, timedelta, timezone
from typing import Any, Literal

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, Field, model_validator

from salat_times.cache import PrayerTimesCache, PrayerTimesCacheKey
from salat_times.calculator import compute_for
from salat_times.contracts import (
    CalculationConfig,
    Coordinates,
    HighLatitudeRule,
    InvalidInputError,
    Madhab,
    PrayerAdjustments,
    PrayerTimesResult,
)
from salat_times.methods import AUTO_HIGH_LATITUDE_RULE, METHODS, build_config, get_method
from salat_times.qibla import qibla_direction
from salat_times.schedule import next_prayer_after
from salat_times.time.zones import resolve_timezone, zone_label

logger = logging.getLogger(__name__)

MadhabName = Literal["shafi", "hanafi"]
HighLatitudeRuleName = Literal["none", "angle_based", "seventh_of_night", "middle_of_night", "auto"]
PolarResolutionName = Literal["aqrab_balad", "aqrab_yaum"]


class AdjustmentsRequest(BaseModel):
    """Per-prayer minute offsets."""

    fajr: int = Field(default=0, ge=-120, le=120)
    sunrise: int = Field(default=0, ge=-120, le=120)
    dhuhr: int = Field(default=0, ge=-120, le=120)
    asr: int = Field(default=0, ge=-120, le=120)
    maghrib: int = Field(default=0, ge=-120, le=120)
    isha: int = Field(default=0, ge=-120, le=120)

    def to_contract(self) -> PrayerAdjustments:
        """Convert API model into PrayerAdjustments contract."""
        return PrayerAdjustments(**self.model_dump())


class CalculationRequest(BaseModel):
    """Location and calculation options shared by every endpoint."""

    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)
    timezone: str | None = None
    method: str | None = None
    madhab: MadhabName | None = None
    asr_shadow_factor: Literal[1, 2] | None = None
    high_latitude_rule: HighLatitudeRuleName | None = None
    polar_resolution: PolarResolutionName = "aqrab_balad"
    fajr_angle: float | None = Field(default=None, ge=0.0, lt=90.0)
    isha_angle: float | None = Field(default=None, ge=0.0, lt=90.0)
    isha_interval_minutes: int | None = Field(default=None, ge=0, le=240)
    rounding_granularity_minutes: int | None = Field(default=None, ge=1, le=60)
    horizon_depression: float | None = Field(default=None, ge=0.0, lt=10.0)
    adjustments: AdjustmentsRequest | None = None

    @model_validator(mode="after")
    def validate_isha_definition(self) -> "CalculationRequest":
        """Reject requests defining Isha both by angle and by interval."""
        if self.isha_angle is not None and self.isha_interval_minutes is not None:
            raise ValueError("Provide isha_angle or isha_interval_minutes, not both.")
        return self

    def coordinates(self) -> Coordinates:
        """Return validated observer coordinates."""
        return Coordinates(self.lat, self.lon)

    def to_config(self, defaults: "ServiceDefaults") -> CalculationConfig:
        """Build the calculation config, falling back to service defaults."""
        overrides: dict[str, Any] = {
            name: value
            for name, value in (
                ("fajr_angle", self.fajr_angle),
                ("isha_angle", self.isha_angle),
                ("isha_interval_minutes", self.isha_interval_minutes),
                ("asr_shadow_factor", self.asr_shadow_factor),
                ("rounding_granularity_minutes", self.rounding_granularity_minutes),
                ("horizon_depression", self.horizon_depression),
            )
            if value is not None
        }
        return build_config(
            method=self.method or defaults.method,
            madhab=self.madhab or defaults.madhab,
            high_latitude_rule=self.high_latitude_rule or defaults.high_latitude_rule,
            polar_resolution=self.polar_resolution,
            adjustments=self.adjustments.to_contract() if self.adjustments else None,
            coordinates=self.coordinates(),
            **overrides,
        )


class PrayerTimesRequest(CalculationRequest):
    """Request schema for one day of prayer times."""

    day: date | None = Field(default=None, alias="date")


class PrayerRangeRequest(CalculationRequest):
    """Request schema for consecutive days of prayer times."""

    start: date | None = Field(default=None, alias="start_date")
    days: int = Field(default=7, ge=1, le=31)


class NextPrayerRequest(CalculationRequest):
    """Request schema for the upcoming prayer."""

    now: datetime | None = None


class PrayerTimesResponse(BaseModel):
    """Response schema aligned with PrayerTimesResult contract."""

    date: str
    timezone: str
    method: str
    fajr: datetime
    sunrise: datetime
    dhuhr: datetime
    asr: datetime
    maghrib: datetime
    isha: datetime
    high_latitude_applied: list[str]
    cache_hit: bool = False


class PrayerRangeResponse(BaseModel):
    """Response schema for a multi-day request."""

    days: list[PrayerTimesResponse]


class NextPrayerResponse(BaseModel):
    """Upcoming prayer payload."""

    current: str | None
    next: str
    time: datetime
    countdown: str
    seconds_remaining: int


class QiblaResponse(BaseModel):
    """Qibla bearing payload."""

    lat: float
    lon: float
    bearing_deg: float


class ServiceDefaults(BaseModel):
    """Runtime defaults resolved from the environment."""

    method: str
    madhab: MadhabName
    high_latitude_rule: HighLatitudeRuleName
    cache_entries: int = Field(ge=1)
    cache_ttl_seconds: int | None = Field(default=None, ge=1)
    coord_precision: int = Field(ge=0, le=6)


def _load_defaults() -> ServiceDefaults:
    """Resolve service defaults from SALAT_* environment variables."""
    method = get_method(os.getenv("SALAT_DEFAULT_METHOD", "muslim_world_league")).name
    madhab = Madhab(os.getenv("SALAT_DEFAULT_MADHAB", "shafi").strip().lower())
    rule = os.getenv("SALAT_HIGH_LATITUDE_RULE", "middle_of_night").strip().lower()
    if rule != AUTO_HIGH_LATITUDE_RULE:
        rule = HighLatitudeRule(rule).value
    ttl_raw = os.getenv("SALAT_CACHE_TTL_SECONDS", "86400").strip()
    return ServiceDefaults(
        method=method,
        madhab=madhab.value,
        high_latitude_rule=rule,
        cache_entries=int(os.getenv("SALAT_CACHE_ENTRIES", "256")),
        cache_ttl_seconds=int(ttl_raw) if ttl_raw not in {"", "0"} else None,
        coord_precision=int(os.getenv("SALAT_COORD_PRECISION", "3")),
    )


def _to_response(result: PrayerTimesResult, cache_hit: bool) -> PrayerTimesResponse:
    """Convert a computed day into the response schema."""
    return PrayerTimesResponse(**result.to_dict(), cache_hit=cache_hit)


def create_app() -> FastAPI:
    """Create and configure the FastAPI app."""
    app = FastAPI(title="Salat Times API", version="0.1.0")

    defaults = _load_defaults()
    cache = PrayerTimesCache(
        max_entries=defaults.cache_entries,
        ttl_seconds=defaults.cache_ttl_seconds,
    )
    app.state.defaults = defaults
    app.state.cache = cache
    logger.info(
        "salat times api ready method=%s madhab=%s rule=%s",
        defaults.method,
        defaults.madhab,
        defaults.high_latitude_rule,
    )

    def _compute_day(
        coordinates: Coordinates, day: date | None, config: CalculationConfig, tz_name: str | None
    ) -> tuple[PrayerTimesResult, bool]:
        zone = resolve_timezone(coordinates, tz_name)
        if day is None:
            day = datetime.now(timezone.utc).astimezone(zone).date()
        key = PrayerTimesCacheKey.build(
            day, coordinates, config, zone_label(zone), precision=defaults.coord_precision
        )
        return cache.get_or_compute(key, lambda: compute_for(coordinates, day, config, zone))

    @app.post("/prayer-times", response_model=PrayerTimesResponse)
    def post_prayer_times(payload: PrayerTimesRequest) -> PrayerTimesResponse:
        """Compute the six prayer times for one date and location."""
        try:
            config = payload.to_config(defaults)
            result, hit = _compute_day(payload.coordinates(), payload.day, config, payload.timezone)
        except InvalidInputError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return _to_response(result, hit)

    @app.post("/prayer-times/range", response_model=PrayerRangeResponse)
    def post_prayer_range(payload: PrayerRangeRequest) -> PrayerRangeResponse:
        """Compute prayer times for consecutive days."""
        try:
            config = payload.to_config(defaults)
            coordinates = payload.coordinates()
            zone = resolve_timezone(coordinates, payload.timezone)
            start = payload.start or datetime.now(timezone.utc).astimezone(zone).date()
            days = []
            for offset in range(payload.days):
                day = start + timedelta(days=offset)
                result, hit = _compute_day(coordinates, day, config, payload.timezone)
                days.append(_to_response(result, hit))
        except InvalidInputError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return PrayerRangeResponse(days=days)

    @app.post("/next-prayer", response_model=NextPrayerResponse)
    def post_next_prayer(payload: NextPrayerRequest) -> NextPrayerResponse:
        """Return the current and upcoming prayer with a countdown."""
        now = payload.now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        try:
            upcoming = next_prayer_after(
                payload.coordinates(), now, payload.to_config(defaults), payload.timezone
            )
        except InvalidInputError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return NextPrayerResponse(
            current=upcoming.current.value if upcoming.current else None,
            next=upcoming.prayer.value,
            time=upcoming.time,
            countdown=upcoming.countdown,
            seconds_remaining=int(upcoming.remaining.total_seconds()),
        )

    @app.get("/qibla", response_model=QiblaResponse)
    def get_qibla(
        lat: float = Query(ge=-90.0, le=90.0),
        lon: float = Query(ge=-180.0, le=180.0),
    ) -> QiblaResponse:
        """Return the bearing to the Kaaba from a location."""
        return QiblaResponse(lat=lat, lon=lon, bearing_deg=qibla_direction(Coordinates(lat, lon)))

    @app.get("/methods")
    def get_methods() -> dict[str, Any]:
        """List calculation-method presets and the service defaults."""
        return {
            "default_method": defaults.method,
            "methods": [preset.to_dict() for preset in METHODS.values()],
        }

    return app
