#!/usr/bin/env python3
"""
fhw-web Server

Main entry point: loads the configuration, discovers controllers, opens the
session store and serves the route table until SIGINT/SIGTERM.
"""

import argparse
import asyncio
import logging
import signal
from pathlib import Path

from fhweb.config import Config, use_config
from fhweb.controllers import ControllerRegistry
from fhweb.journal import journal
from fhweb.sessions import SessionStore
from fhweb.validator import Validator
from fhweb.web.server import WebServer

logger = logging.getLogger("fhweb")


def configure_logging(level: int = logging.INFO) -> None:
    """Root logging format shared by all fhw-web modules."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


async def serve(user_config: dict | None = None, config: Config | None = None) -> None:
    """Run the server until a shutdown signal arrives.

    ``config`` wins over ``user_config``; the latter is merged over the
    defaults.
    """
    if config is None:
        config = Config.from_dict(user_config)
    use_config(config)

    journal.configure(log_file=config.resolve("logs/journal.log"), console=True)

    registry = ControllerRegistry()
    registry.discover(config.resolve(config.paths.controllers))

    session_store = SessionStore()
    await session_store.open(config.resolve(config.session.db), config.session.max_age_days)

    validator = Validator(config.validator)
    web_server = WebServer(config, registry, session_store, validator)

    shutdown_event = asyncio.Event()

    def handle_shutdown(sig: signal.Signals) -> None:
        logger.info(f"Received {sig.name}, initiating shutdown...")
        shutdown_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, handle_shutdown, sig)

    try:
        if config.validator.html or config.validator.css:
            await validator.start()
        await web_server.start()

        logger.info("Press Ctrl+C to stop")
        await shutdown_event.wait()

    except Exception as e:
        logger.exception(f"Error running server: {e}")
    finally:
        await web_server.stop()
        await validator.stop()
        await session_store.close()
        journal.stop("server")


def main(argv: list[str] | None = None) -> None:
    """Command line entry point."""
    parser = argparse.ArgumentParser(prog="fhweb", description="Serve a route-table driven site.")
    parser.add_argument("--config", type=Path, default=None, help="path to fhw.yaml (default: ./fhw.yaml)")
    parser.add_argument("--port", type=int, default=None, help="override the configured port")
    parser.add_argument("--verbose", "-v", action="store_true", help="debug logging")
    args = parser.parse_args(argv)

    configure_logging(logging.DEBUG if args.verbose else logging.INFO)

    config = Config.load(args.config)
    if args.port is not None:
        config.port = args.port

    asyncio.run(serve(config=config))


if __name__ == "__main__":
    main()
