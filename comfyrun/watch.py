"""Command-line watcher that polls a run until its image is ready."""

import argparse
import asyncio
import logging
from typing import List, Optional

import httpx

from comfyrun.config import settings
from comfyrun.services.status_poller import StatusPoller

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


async def watch_run(run_id: str, base_url: str, interval: float) -> Optional[str]:
    """
    Poll a run and return its image URL once available.

    Args:
        run_id: Run to observe
        base_url: Base URL of the comfyrun service
        interval: Seconds between status queries

    Returns:
        Image URL
    """
    async with httpx.AsyncClient(base_url=base_url, timeout=settings.STATUS_REQUEST_TIMEOUT_SECONDS) as client:
        poller = StatusPoller(client, interval_seconds=interval)
        async for snapshot in poller.observe(run_id):
            if snapshot.image_url:
                return snapshot.image_url
            logger.info(f"Run {run_id} still {snapshot.status}")
    return None


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the run watcher."""
    parser = argparse.ArgumentParser(description="Wait for a comfyrun image to finish rendering")
    parser.add_argument("run_id", help="Run id returned by /api/generate")
    parser.add_argument("--base-url", default=settings.STATUS_BASE_URL)
    parser.add_argument("--interval", type=float, default=settings.STATUS_POLL_INTERVAL)
    args = parser.parse_args(argv)

    try:
        image_url = asyncio.run(watch_run(args.run_id, args.base_url, args.interval))
    except KeyboardInterrupt:
        logger.info("Watcher stopped")
        return 130

    print(image_url)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
