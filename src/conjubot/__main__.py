"""Main entry point for the bot."""
import asyncio
import logging
import signal

from conjubot.app import ConjuBot
from conjubot.logging_config import setup_logging

logger = logging.getLogger("conjubot")


async def shutdown(sig: signal.Signals, stop_event: asyncio.Event) -> None:
    """Ask the main loop to finish."""
    logger.info(f"Received exit signal {sig.name}...")
    stop_event.set()


async def main() -> None:
    """Run the bot until a termination signal arrives."""
    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(
            sig,
            lambda s=sig: asyncio.create_task(shutdown(s, stop_event))
        )

    logger.info("Starting bot...")
    bot = ConjuBot()
    await bot.start()
    try:
        await stop_event.wait()
    finally:
        logger.info("Cleaning up...")
        await bot.stop()


if __name__ == "__main__":
    setup_logging("Starting ConjuBot ...")

    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, shutting down...")
