#!/usr/bin/env python3
"""
Simple runner script for the Flask application.
"""

from pathlib import Path

from config_manager import get_app_config
from content_service.logging_config import get_logger, setup_logging, stop_logging


def main() -> None:
    app_config = get_app_config()
    setup_logging(debug=app_config.debug)
    logger = get_logger("run_app")

    # Import after logging is configured so startup messages go through the queue
    from app.main import app

    logger.info("Starting content recommendation service on %s:%s", app_config.host, app_config.port)
    logger.info("Working directory: %s", Path(__file__).parent)
    try:
        app.run(
            host=app_config.host,
            port=app_config.port,
            debug=app_config.debug
        )
    finally:
        stop_logging()


if __name__ == "__main__":
    main()
