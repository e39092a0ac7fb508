"""
Logging configuration for the content service.

Recommendation requests fan out to worker threads (candidate pool and
profile loads), so records go through a QueueHandler and a single
QueueListener writes them out in order. Werkzeug's per-request access log
is quietened outside debug mode.
"""

import logging
import logging.handlers
import sys
from queue import Queue
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(threadName)s] - %(message)s"

NOISY_LOGGERS = ("werkzeug", "urllib3")


class ThreadSafeLoggingConfig:
    """Queue-based logging shared by the web app and the debug CLI."""

    def __init__(self):
        self._log_listener: Optional[logging.handlers.QueueListener] = None
        self._log_queue: Optional[Queue] = None

    @property
    def active(self) -> bool:
        return self._log_listener is not None

    def setup_logging(self, debug: bool = False) -> None:
        """
        Route all records through a queue and set the root level.

        Calling it again replaces the previous listener.

        Args:
            debug: Log at DEBUG and keep third-party loggers verbose
        """
        self.stop()
        self._log_queue = Queue()

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))

        self._log_listener = logging.handlers.QueueListener(
            self._log_queue, console_handler, respect_handler_level=True
        )
        self._log_listener.start()

        root_logger = logging.getLogger()
        root_logger.handlers.clear()
        root_logger.addHandler(logging.handlers.QueueHandler(self._log_queue))
        root_logger.setLevel(logging.DEBUG if debug else logging.INFO)

        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.DEBUG if debug else logging.WARNING)

    def stop(self) -> None:
        """Stop the listener, flushing queued records."""
        if self._log_listener:
            self._log_listener.stop()
            self._log_listener = None
        self._log_queue = None


# Global logging configuration instance
logging_config = ThreadSafeLoggingConfig()


def setup_logging(debug: bool = False) -> None:
    logging_config.setup_logging(debug)


def stop_logging() -> None:
    logging_config.stop()


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the specified name.

    Args:
        name: Logger name, usually ``__name__``

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
