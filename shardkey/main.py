"""Entry point for the shardkey API server."""

from __future__ import annotations

import asyncio
import os

import structlog
import uvicorn

from shardkey.logging import configure_logging

configure_logging()

from shardkey import __version__
from shardkey.api.server import create_app
from shardkey.config import Config

log = structlog.get_logger()


def build_server(config: Config) -> uvicorn.Server:
    """Wrap the app in a uvicorn server bound to the configured address."""
    return uvicorn.Server(
        uvicorn.Config(
            create_app(config=config),
            host=config.api_host,
            port=config.api_port,
            log_level="info",
            timeout_graceful_shutdown=10,
        )
    )


async def async_main() -> None:
    config = Config()
    for warning in config.validate():
        log.warning("config_warning", msg=warning)

    server = build_server(config)
    log.info(
        "shardkey_starting",
        version=__version__,
        host=config.api_host,
        port=config.api_port,
        environment=config.environment,
        log_format=os.getenv("LOG_FORMAT", "console"),
    )
    # uvicorn traps SIGINT/SIGTERM and drains in-flight requests before returning
    await server.serve()
    log.info("shutdown_complete")


def main() -> None:
    """Start the shardkey API server."""
    asyncio.run(async_main())


if __name__ == "__main__":
    main()
