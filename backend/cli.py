"""
Command line entrypoint.

    python -m backend.cli parse workout.txt --date 2025-11-01 --weight-unit kg
    python -m backend.cli resolve "DB Bench Press"

Exit codes: 0 success, 1 upstream/internal failure, 2 bad input.
"""
import argparse
import asyncio
import json
import logging
import sys
from datetime import date

import sentry_sdk

from application.exceptions import WorkoutParseError
from application.use_cases import ParseOptions
from backend.deps import build_parse_workout_use_case
from backend.settings import Settings, get_settings

logger = logging.getLogger(__name__)

EXIT_UPSTREAM = 1
EXIT_BAD_INPUT = 2


def _init_sentry(settings: Settings) -> None:
    """Initialize Sentry SDK if DSN is configured."""
    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.environment,
            traces_sample_rate=0.1,
        )
        logger.info("Sentry initialized for workout parser CLI")


def _read_input(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def _write_output(payload: dict, path: str | None) -> None:
    text = json.dumps(payload, indent=2, default=str)
    if path:
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
    else:
        print(text)


async def _parse(args: argparse.Namespace) -> dict:
    use_case = build_parse_workout_use_case()
    options = ParseOptions(
        date=args.date,
        weight_unit=args.weight_unit,
        owner_id=args.owner_id,
    )
    result = await use_case.execute(_read_input(args.input), options)
    return result.workout.model_dump(mode="json")


async def _resolve(args: argparse.Namespace) -> dict:
    use_case = build_parse_workout_use_case()
    resolution = await use_case.resolver.resolve(args.name)
    return {
        "method": resolution.method.value,
        "score": resolution.score,
        "exercise": resolution.exercise.model_dump(mode="json", exclude={"embedding"}),
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Parse free-text workouts into structured records")
    subparsers = parser.add_subparsers(dest="command", required=True)

    parse_cmd = subparsers.add_parser("parse", help="Parse a workout text file and persist it")
    parse_cmd.add_argument("input", help="Workout text file path ('-' for stdin)")
    parse_cmd.add_argument("--date", type=date.fromisoformat, help="Workout date, YYYY-MM-DD (default: today)")
    parse_cmd.add_argument("--weight-unit", choices=["lbs", "kg"], help="Weight unit for sets")
    parse_cmd.add_argument("--owner-id", help="Owner of the workout")
    parse_cmd.add_argument("-o", "--output", help="Output JSON file path (default: stdout)")
    parse_cmd.set_defaults(handler=_parse)

    resolve_cmd = subparsers.add_parser("resolve", help="Resolve one exercise name to its identity")
    resolve_cmd.add_argument("name", help="Exercise name")
    resolve_cmd.add_argument("-o", "--output", help="Output JSON file path (default: stdout)")
    resolve_cmd.set_defaults(handler=_resolve)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    _init_sentry(settings)

    try:
        payload = asyncio.run(args.handler(args))
    except FileNotFoundError:
        print(f"Error: File not found: {args.input}", file=sys.stderr)
        return EXIT_BAD_INPUT
    except WorkoutParseError as e:
        print(f"Error ({e.kind.value}): {e.message}", file=sys.stderr)
        for detail in e.details:
            print(f"  - {detail}", file=sys.stderr)
        return EXIT_BAD_INPUT if e.is_bad_input else EXIT_UPSTREAM

    _write_output(payload, args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
