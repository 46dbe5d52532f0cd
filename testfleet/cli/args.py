from __future__ import annotations

import argparse

from testfleet.coordinator import RunSettings
from testfleet.languages import LANGUAGES

FILTER_SEPARATOR = "/"


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value}")
    return number


def _positive_float(value: str) -> float:
    number = float(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive number, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    defaults = RunSettings()
    parser = argparse.ArgumentParser(
        prog="testfleet",
        description="Run the per-language test scripts against every target, in parallel",
    )

    parser.add_argument(
        "positionals",
        nargs="*",
        metavar="TARGET|FILTER",
        help=f"Target ids (default: all from the targets file); "
        f"an argument containing '{FILTER_SEPARATOR}' is the filter",
    )

    for lang in LANGUAGES:
        parser.add_argument(
            f"--{lang.key}",
            dest="languages",
            action="append_const",
            const=lang.key,
            help=f"Run {lang.name} tests",
        )

    parser.add_argument(
        "--targets-file",
        default="exchanges.json",
        help="Path to the persisted target list",
    )
    parser.add_argument(
        "--max-concurrency",
        type=_positive_int,
        default=defaults.max_concurrency,
        help="Maximum number of targets tested at once",
    )
    parser.add_argument(
        "--timeout",
        type=_positive_float,
        default=defaults.unit_timeout,
        help="Seconds after which a target is reported as failed",
    )
    parser.add_argument(
        "--kill-after",
        type=_positive_float,
        default=defaults.kill_after,
        help="Kill any single test process running longer than this many seconds",
    )
    parser.add_argument(
        "--grace-period",
        type=float,
        default=defaults.grace_period,
        help="Seconds to wait before exiting after a failure, so logs can flush",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log scheduling details",
    )

    return parser


def split_positionals(values: list[str]) -> tuple[list[str], str]:
    targets: list[str] = []
    filter = "all"
    for value in values:
        if FILTER_SEPARATOR in value:
            filter = value
        else:
            targets.append(value)
    return targets, filter
