"""Standalone entry point for one antenna run (cron, CI schedule, local testing)."""
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).parent / ".env")

from antenna.config import configure_logging  # noqa: E402
from antenna.errors import AntennaError  # noqa: E402

logger = logging.getLogger(__name__)


async def main() -> int:
    from antenna.main import run_antenna
    try:
        result = await run_antenna()
    except AntennaError as e:
        logger.error(f"Antenna run failed: {e}", exc_info=True)
        return 1

    stats = result.get("stats", {})
    logger.info(
        f"Done. "
        f"Extracted={stats.get('extracted', 0)}, "
        f"New={stats.get('novel', 0)}, "
        f"Sent={stats.get('sent', 0)}, "
        f"Persisted={stats.get('persisted', 0)}"
    )
    if result.get("halted"):
        logger.error("Delivery halted; remaining updates will be retried next run")
    return 0


if __name__ == "__main__":
    configure_logging()
    sys.exit(asyncio.run(main()))
