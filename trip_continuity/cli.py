"""Command-line interface for the continuity engine.

    trip-continuity repair itinerary.json [--matcher fuzzy] [--output out.json]
    trip-continuity check itinerary.json

Exit status: 0 on success, 1 when the itinerary cannot be loaded or
repaired, 2 on usage or configuration errors.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Optional, Sequence

from .adapters.serialization import load_itinerary, result_to_dict
from .config import get_config
from .domain.errors import ConfigurationError, ContinuityError
from .logging_config import configure_logging
from .pipeline import MATCHER_STRATEGIES, check, create_matcher, repair_safe

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="trip-continuity",
        description="Detect and fill location gaps in travel itineraries.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    repair_parser = subparsers.add_parser(
        "repair", help="Insert transfers where the itinerary is discontinuous"
    )
    repair_parser.add_argument("file", type=Path, help="Itinerary JSON document")
    repair_parser.add_argument(
        "--matcher",
        choices=sorted(MATCHER_STRATEGIES),
        help="Location matching strategy (defaults to TRIP_MATCH_STRATEGY)",
    )
    repair_parser.add_argument(
        "-o", "--output", type=Path, help="Write the repaired itinerary to this file"
    )

    check_parser = subparsers.add_parser(
        "check", help="Report gaps without changing the itinerary"
    )
    check_parser.add_argument("file", type=Path, help="Itinerary JSON document")
    check_parser.add_argument(
        "--matcher",
        choices=sorted(MATCHER_STRATEGIES),
        help="Location matching strategy (defaults to TRIP_MATCH_STRATEGY)",
    )

    return parser.parse_args(argv)


def _run_repair(args: argparse.Namespace) -> int:
    itinerary = load_itinerary(args.file)
    matcher = create_matcher(args.matcher) if args.matcher else None

    result, error = repair_safe(itinerary, matcher=matcher)
    if result is None:
        print(error, file=sys.stderr)
        return EXIT_FAILURE

    document = json.dumps(result_to_dict(result), indent=2, ensure_ascii=False)
    if args.output:
        args.output.write_text(document + "\n", encoding="utf-8")
        print(
            f"Repaired itinerary written to {args.output} "
            f"({result.synthesized_count} transfer(s) added)"
        )
    else:
        print(document)
    return EXIT_OK


def _run_check(args: argparse.Namespace) -> int:
    itinerary = load_itinerary(args.file)
    matcher = create_matcher(args.matcher) if args.matcher else None

    report = check(itinerary, matcher=matcher)
    print(report.summary)
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)

    commands = {"repair": _run_repair, "check": _run_check}
    try:
        configure_logging(get_config().observability)
        return commands[args.command](args)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_USAGE
    except ContinuityError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
