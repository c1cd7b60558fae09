#!/usr/bin/env python3
"""
RestockBot - Automated stock monitoring and checkout bot.

Main entry point for the application.
"""

import argparse
import asyncio
import logging
import os
import signal
import sys
import threading
from typing import List, Optional

from restockbot.core.config.config_loader import load_config
from restockbot.core.config.config_models import AppConfig
from restockbot.core.exceptions import RestockBotError
from restockbot.core.logger import setup_structured_logging
from restockbot.services.bot import RestockBot

# Global shutdown event for coordinating graceful shutdown - thread-safe singleton
_shutdown_event: Optional[asyncio.Event] = None
_shutdown_lock = threading.Lock()


def get_shutdown_event() -> Optional[asyncio.Event]:
    """Get shutdown event - thread-safe singleton pattern."""
    with _shutdown_lock:
        return _shutdown_event


def set_shutdown_event(event: Optional[asyncio.Event]) -> None:
    """Set shutdown event - thread-safe singleton pattern."""
    global _shutdown_event
    with _shutdown_lock:
        _shutdown_event = event


def setup_signal_handlers(loop: asyncio.AbstractEventLoop) -> None:
    """
    Setup graceful shutdown handlers.

    The first signal sets the shutdown event so the current product finishes
    its step and the loop exits; a second signal forces exit.
    """
    logger = logging.getLogger(__name__)

    def handle_signal(signum: int) -> None:
        shutdown_event = get_shutdown_event()
        if shutdown_event and not shutdown_event.is_set():
            logger.info(f"Received signal {signum}, initiating graceful shutdown...")
            shutdown_event.set()
        else:
            logger.warning("Second signal received, forcing exit")
            sys.exit(1)

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, handle_signal, sig)
        except NotImplementedError:
            # Windows event loops have no add_signal_handler
            signal.signal(sig, lambda signum, frame: handle_signal(signum))


def apply_overrides(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    """Apply command-line overrides on top of the loaded configuration."""
    if args.dry_run:
        config = config.model_copy(update={"dry_run": True})
    if args.headless is not None:
        driver = config.driver.model_copy(update={"headless": args.headless})
        config = config.model_copy(update={"driver": driver})
    if args.strategy:
        retailer = config.retailer.model_copy(update={"strategy": args.strategy})
        config = config.model_copy(update={"retailer": retailer})
    return config


async def run_bot(config: AppConfig) -> None:
    """
    Run the bot until every product is resolved or shutdown is requested.

    Args:
        config: Validated application configuration
    """
    logger = logging.getLogger(__name__)
    logger.info(
        f"Starting RestockBot for {len(config.products)} product(s) "
        f"(strategy={config.retailer.strategy}, dry_run={config.dry_run})"
    )

    shutdown_event = asyncio.Event()
    set_shutdown_event(shutdown_event)
    setup_signal_handlers(asyncio.get_running_loop())

    bot = RestockBot(config, shutdown_event=shutdown_event)
    try:
        await bot.start()
    finally:
        set_shutdown_event(None)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="RestockBot - Automated stock monitoring and checkout"
    )
    parser.add_argument("--config", default="config/config.yaml", help="Path to configuration file")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Run the whole flow but never place the order",
    )
    headless = parser.add_mutually_exclusive_group()
    headless.add_argument(
        "--headless", dest="headless", action="store_true", default=None, help="Hide the browser"
    )
    headless.add_argument(
        "--headed", dest="headless", action="store_false", help="Show the browser window"
    )
    parser.add_argument(
        "--strategy",
        choices=["browser", "api"],
        default=None,
        help="How stock is checked and the cart is updated",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        default=os.getenv("JSON_LOGGING", "false").lower() == "true",
        help="Write the file log as JSON lines",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Process exit code: 0 on normal completion or shutdown, 1 on fatal error
    """
    args = build_parser().parse_args(argv)

    setup_structured_logging(args.log_level, json_format=args.json_logs)
    logger = logging.getLogger(__name__)

    try:
        logger.info("Loading configuration...")
        config = apply_overrides(load_config(args.config), args)
        logger.info("Configuration loaded successfully")

        asyncio.run(run_bot(config))
    except RestockBotError as e:
        logger.error(f"Fatal error ({type(e).__name__}): {e.message}")
        if "not found" in e.message:
            logger.info("Please copy config/config.example.yaml to config/config.yaml and configure it")
        return 1
    except KeyboardInterrupt:
        logger.info("Bot stopped by user")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1

    logger.info("RestockBot exited cleanly")
    return 0


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
