"""Deterministic rounding of civil timestamps."""

from __future__ import annotations

from datetime import UTC, datetime, time, timedelta, tzinfo

from salat_times.contracts import Rounding


def round_local(moment: datetime, zone: tzinfo, rounding: Rounding, granularity_minutes: int = 1) -> datetime:
    """Round an aware datetime on its local wall clock.

    Args:
        moment: Timezone-aware datetime already expressed in `zone`.
        zone: Zone used to re-localize the rounded wall time.
        rounding: `nearest`, `up` (ceiling) or `none`.
        granularity_minutes: Step size, positive.

    Returns:
        Aware datetime in `zone`, with seconds dropped unless `rounding` is `none`.
    """
    if granularity_minutes <= 0:
        raise ValueError("granularity_minutes must be positive")
    if moment.tzinfo is None:
        raise ValueError("moment must be timezone-aware.")
    if rounding is Rounding.NONE:
        return moment

    step = timedelta(minutes=granularity_minutes)
    wall = moment.replace(tzinfo=None)
    base = datetime.combine(wall.date(), time())
    elapsed = wall - base
    if rounding is Rounding.UP:
        steps = -((-elapsed) // step)
    else:
        steps = (elapsed + step / 2) // step
    shift = base + steps * step - wall
    return (moment.astimezone(UTC) + shift).astimezone(zone)
