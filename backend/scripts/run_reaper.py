"""Run the expiry reaper outside the API process.

    python scripts/run_reaper.py          # loop every REAPER_INTERVAL_SECONDS
    python scripts/run_reaper.py --once   # single pass, then exit
"""
from __future__ import annotations

import argparse
import asyncio
import logging

from reservation_engine.core.logging import configure_logging
from reservation_engine.db.session import dispose_engine, get_sessionmaker
from reservation_engine.services.expiry_reaper import ExpiryReaper

logger = logging.getLogger("reservation_engine.reaper")


async def run(once: bool) -> None:
    reaper = ExpiryReaper(get_sessionmaker())
    try:
        if once:
            result = await reaper.run_once()
            print(
                f"Examined {result.examined}, expired {result.expired}, "
                f"skipped {result.skipped}."
            )
            return
        reaper.start()
        await asyncio.Event().wait()
    finally:
        await reaper.stop()
        await dispose_engine()


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--once", action="store_true", help="run a single pass")
    args = parser.parse_args()
    configure_logging()
    try:
        asyncio.run(run(args.once))
    except KeyboardInterrupt:
        logger.info("Reaper interrupted")


if __name__ == "__main__":
    main()
