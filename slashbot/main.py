"""Main entry point for slashbot.

Initializes logging in two phases (defaults then config-driven),
validates configuration, starts the webhook server and runs until
SIGTERM/SIGINT, then shuts down gracefully so in-flight replies are
delivered.

Key functions:
    main: Async entry point.
    run: Synchronous wrapper that calls asyncio.run(main()).
"""

import asyncio
import signal
import sys

import structlog

from . import __version__
from .exceptions import ConfigurationError
from .logging_config import setup_logging


async def main():
    """Main async entry point."""
    # Phase 1: defaults, cache_logger_on_first_use=False
    setup_logging()
    logger = structlog.get_logger("slashbot")

    logger.info("slashbot_starting", version=__version__)

    # Import here to ensure logging is configured first
    from .bot import SlashBot
    from .config import get_config

    config = get_config()
    try:
        config.validate()
    except ConfigurationError as e:
        logger.error("config_invalid", error=e.message, setting=e.setting_name)
        raise SystemExit(2) from e

    # Phase 2: reconfigure with real config, cache_logger_on_first_use=True
    setup_logging(config)

    bot = SlashBot(config)

    loop = asyncio.get_running_loop()
    shutdown_event = asyncio.Event()

    def handle_shutdown(sig):
        logger.info("shutdown_signal_received", signal=sig.name)
        shutdown_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, handle_shutdown, sig)
        except NotImplementedError:
            # Windows: add_signal_handler not supported.
            if sig == signal.SIGINT:
                signal.signal(
                    signal.SIGINT,
                    lambda s, f: handle_shutdown(signal.SIGINT),
                )

    try:
        await bot.start()
        await shutdown_event.wait()
    except Exception as e:
        logger.error("server_error", error=str(e))
        raise
    finally:
        await bot.stop()
        logger.info("slashbot_stopped")


def run():
    """Synchronous entry point for the ``slashbot`` console script."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
    except SystemExit as e:
        sys.exit(e.code)


if __name__ == "__main__":
    run()
