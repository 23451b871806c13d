"""Command-line entry point: ``driversync --config FILE``."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence

from driversync import __version__
from driversync.config import SyncConfig
from driversync.exceptions import DriverSyncError
from driversync.models.report import RunReport
from driversync.runner import DriverSync

_logger = logging.getLogger("driversync")

LOG_FORMAT = "%(asctime)s %(filename)s:%(lineno)d: %(levelname)s %(message)s"
LOG_DATE_FORMAT = "%Y/%m/%d %H:%M:%S"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="driversync",
        description="Sync driver home addresses from ADP Workforce Now to Mike Albert.",
    )
    parser.add_argument("--config", default="", help="Configuration file")
    parser.add_argument("--verbose", action="store_true", help="Enable DEBUG logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


async def _run(config: SyncConfig) -> RunReport:
    async with DriverSync(config) as sync:
        return await sync.run()


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not args.config:
        parser.print_usage(sys.stderr)
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )

    try:
        config = SyncConfig.from_file(args.config)
        report = asyncio.run(_run(config))
    except DriverSyncError as exc:
        _logger.error("%s", exc)
        return 1

    for line in report.summary_lines():
        _logger.info(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
