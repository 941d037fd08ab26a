"""Protean Engine runner for the LabDesk domain.

With ``PROTEAN_ENV=production`` events are processed asynchronously; the
Engine reads the event streams and invokes the notification handlers.

Usage:
    python src/server.py
    python src/server.py --test-mode    # Drain pending messages and exit
"""

import argparse
import asyncio

from protean.server.engine import Engine

from labdesk.domain import labdesk
from labdesk.utils.logging import get_logger

logger = get_logger(__name__)


async def run(test_mode: bool = False):
    labdesk.init()
    engine = Engine(labdesk, test_mode=test_mode)
    logger.info("Starting engine", domain=labdesk.name, test_mode=test_mode)
    await engine.run()


def main():
    parser = argparse.ArgumentParser(description="LabDesk Engine runner")
    parser.add_argument(
        "--test-mode",
        action="store_true",
        help="Process pending messages once and exit",
    )
    args = parser.parse_args()

    asyncio.run(run(test_mode=args.test_mode))


if __name__ == "__main__":
    main()
