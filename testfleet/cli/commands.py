from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from testfleet.config import ConfigError, load_targets
from testfleet.coordinator import RunSettings, run_and_report

from .args import build_parser, split_positionals

logger = logging.getLogger(__name__)


def run_cli(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_intermixed_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        return cmd_run(args)

    except ConfigError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    except KeyboardInterrupt:
        return 130

    except Exception:
        logger.exception("Aborting run on unexpected error")
        return 1


def cmd_run(args: argparse.Namespace) -> int:
    targets, filter = split_positionals(args.positionals)
    if not targets:
        targets = load_targets(args.targets_file).ids()

    selected = args.languages or []
    settings = RunSettings(
        max_concurrency=args.max_concurrency,
        unit_timeout=args.timeout,
        kill_after=args.kill_after,
        grace_period=args.grace_period,
    )

    print(f"Testing targets={targets} filter={filter} languages={selected or 'all'}")
    return asyncio.run(run_and_report(targets, filter, selected, settings=settings))


def main() -> None:
    sys.exit(run_cli())
