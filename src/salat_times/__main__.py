"""Command-line entrypoint for salat_times."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from datetime import date, datetime, timedelta, timezone

from salat_times.calculator import compute_for
from salat_times.contracts import (
    CalculationConfig,
    Coordinates,
    HighLatitudeRule,
    InvalidInputError,
    Madhab,
    PolarCircleResolution,
)
from salat_times.methods import AUTO_HIGH_LATITUDE_RULE, DEFAULT_METHOD, METHODS, build_config
from salat_times.qibla import qibla_direction
from salat_times.schedule import next_prayer_after, prayer_days, sunnah_times

logger = logging.getLogger(__name__)


def _parse_date(value: str) -> date:
    """Parse an ISO calendar date."""
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid date: {value}") from exc


def _positive_int(value: str) -> int:
    """Parse a strictly positive integer."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid count: {value}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError(f"count must be positive: {value}")
    return parsed


def _parse_iso_datetime(value: str) -> datetime:
    """Parse ISO datetime string, assuming UTC for naive values."""
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid datetime: {value}") from exc
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def _add_location_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--lat", type=float, required=True)
    parser.add_argument("--lon", type=float, required=True)
    parser.add_argument("--timezone", default=None, help="IANA zone; looked up from coordinates when omitted.")


def _add_calculation_arguments(parser: argparse.ArgumentParser) -> None:
    _add_location_arguments(parser)
    parser.add_argument("--method", choices=sorted(METHODS), default=DEFAULT_METHOD)
    parser.add_argument("--madhab", choices=[m.value for m in Madhab], default=Madhab.SHAFI.value)
    parser.add_argument(
        "--high-latitude-rule",
        choices=[r.value for r in HighLatitudeRule] + [AUTO_HIGH_LATITUDE_RULE],
        default=HighLatitudeRule.MIDDLE_OF_NIGHT.value,
    )
    parser.add_argument(
        "--polar-resolution",
        choices=[r.value for r in PolarCircleResolution],
        default=PolarCircleResolution.AQRAB_BALAD.value,
    )


def build_parser() -> argparse.ArgumentParser:
    """Create and return the top-level CLI parser."""
    parser = argparse.ArgumentParser(
        prog="salat_times",
        description="Prayer-time calculator command-line interface.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 0.1.0",
    )
    parser.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])

    subparsers = parser.add_subparsers(dest="command")
    times = subparsers.add_parser("times", help="Print prayer times for one or more days.")
    _add_calculation_arguments(times)
    times.add_argument("--date", type=_parse_date, default=None)
    times.add_argument("--days", type=_positive_int, default=1)
    times.add_argument("--sunnah", action="store_true", help="Also print night divisions.")

    upcoming = subparsers.add_parser("next", help="Print the next prayer and countdown.")
    _add_calculation_arguments(upcoming)
    upcoming.add_argument("--now", type=_parse_iso_datetime, default=None)

    qibla = subparsers.add_parser("qibla", help="Print the qibla bearing.")
    qibla.add_argument("--lat", type=float, required=True)
    qibla.add_argument("--lon", type=float, required=True)

    subparsers.add_parser("methods", help="List calculation methods.")
    return parser


def _config_from_args(args: argparse.Namespace) -> CalculationConfig:
    return build_config(
        method=args.method,
        madhab=args.madhab,
        high_latitude_rule=args.high_latitude_rule,
        polar_resolution=args.polar_resolution,
        coordinates=Coordinates(args.lat, args.lon),
    )


def _run(args: argparse.Namespace) -> int:
    if args.command == "times":
        coordinates = Coordinates(args.lat, args.lon)
        config = _config_from_args(args)
        start = args.date or date.today()
        for result in prayer_days(coordinates, start, args.days, config, args.timezone):
            times = result.formatted()
            print(
                f"{result.date.isoformat()} {result.timezone} "
                + " ".join(f"{name}={value}" for name, value in times.items())
            )
            if args.sunnah:
                tomorrow = compute_for(coordinates, result.date + timedelta(days=1), config, args.timezone)
                night = sunnah_times(result, tomorrow)
                print(
                    f"  middle_of_the_night={night.middle_of_the_night:%H:%M} "
                    f"last_third_of_the_night={night.last_third_of_the_night:%H:%M}"
                )
        return 0

    if args.command == "next":
        upcoming = next_prayer_after(
            Coordinates(args.lat, args.lon),
            args.now or datetime.now(timezone.utc),
            _config_from_args(args),
            args.timezone,
        )
        current = upcoming.current.value if upcoming.current else "none"
        print(
            f"current={current} next={upcoming.prayer.value} "
            f"at={upcoming.time.isoformat()} in={upcoming.countdown}"
        )
        return 0

    if args.command == "qibla":
        print(f"{qibla_direction(Coordinates(args.lat, args.lon)):.2f}")
        return 0

    if args.command == "methods":
        for preset in METHODS.values():
            isha = (
                f"{preset.isha_angle}deg"
                if preset.isha_angle is not None
                else f"{preset.isha_interval_minutes}min"
            )
            print(f"{preset.name}: fajr={preset.fajr_angle}deg isha={isha} ({preset.title})")
        return 0

    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Run the CLI application."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")

    try:
        return _run(args)
    except InvalidInputError as exc:
        logger.debug("rejected input", exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
