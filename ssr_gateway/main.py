"""Main entry point for the SSR content gateway."""

import asyncio
import sys

from hypercorn.asyncio import serve
from hypercorn.config import Config as HypercornConfig
from pydantic import ValidationError

from .app import create_app
from .shared.config import Settings, get_config
from .shared.logger import log_critical, log_info
from .shared.python_logger_config import setup_python_logging, silence_noisy_loggers


def build_hypercorn_config(settings: Settings) -> HypercornConfig:
    config = HypercornConfig()
    config.bind = [f"{settings.server_host}:{settings.server_port}"]
    config.loglevel = settings.log_level if settings.log_level != "TRACE" else "DEBUG"
    return config


async def run_server(settings: Settings) -> None:
    app = create_app(settings)
    config = build_hypercorn_config(settings)
    log_info(f"Application is accessible on : http://localhost:{settings.server_port}", component="main")
    await serve(app, config)


def main() -> None:
    """Main entry point for CLI execution."""
    try:
        settings = get_config()
    except ValidationError as e:
        setup_python_logging()
        log_critical(f"Invalid configuration: {e}", component="main")
        print(f"ERROR: Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    setup_python_logging(settings.log_level)
    silence_noisy_loggers()

    try:
        asyncio.run(run_server(settings))
    except KeyboardInterrupt:
        log_info("Shutting down (interrupted)", component="main")
        sys.exit(0)


if __name__ == "__main__":
    main()
