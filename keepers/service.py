from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional

from .config import KeeperSettings, load_config
from .raffle_client import RaffleClient
from .randomness import HttpBeaconSource, LocalRandomnessSource, RandomnessSource
from .randomness.http_api import HttpBeaconSourceConfig
from .scheduler import ROLES, CycleResult, KeeperScheduler


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )


def build_source(settings: KeeperSettings) -> RandomnessSource:
    source_settings = settings.randomness
    if not source_settings.url:
        return LocalRandomnessSource()
    return HttpBeaconSource(
        HttpBeaconSourceConfig(
            url=source_settings.url,
            round_key=source_settings.round_key,
            value_key=source_settings.value_key,
            timeout_seconds=source_settings.timeout_seconds,
        )
    )


async def run(args: argparse.Namespace) -> Optional[CycleResult]:
    settings = load_config(args.env_file)
    configure_logging(args.verbose)
    logger = logging.getLogger("keepers")

    source = build_source(settings)
    if isinstance(source, LocalRandomnessSource) and args.role in ("oracle", "all"):
        logger.warning("RANDOMNESS__URL not set; using local randomness (not verifiable).")
    client = RaffleClient(settings)
    scheduler = KeeperScheduler(settings, source, client, role=args.role, logger=logger)

    try:
        if args.once or settings.run_once:
            result = await scheduler.run_once()
            if not result.did_work:
                logger.info("Nothing to do this cycle.")
            if result.upkeep:
                logger.info("Issued request %s", result.upkeep.request_id)
            for fulfilment in result.fulfilments:
                logger.info("Request %s won by %s", fulfilment.request_id, fulfilment.winner)
            return result

        await scheduler.run_forever()
        return None
    finally:
        await client.close()


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Raffle keeper and randomness fulfiller")
    parser.add_argument("--env-file", type=str, default=None, help="Path to .env file")
    parser.add_argument("--once", action="store_true", help="Run a single cycle and exit.")
    parser.add_argument(
        "--role", choices=ROLES, default="all", help="Which collaborator to run (default all)."
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Enable debug logging (default INFO)."
    )
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)
    try:
        asyncio.run(run(args))
    except KeyboardInterrupt:
        print("Keeper stopped by user.")


if __name__ == "__main__":
    main()
