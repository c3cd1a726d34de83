"""Logging configuration for GHDEPUP.

Logging is off by default and controlled by environment variables, so a
scheduled CI job can turn on a persistent trace without changing the
command line.

Environment Variables:
    GHDEPUP_LOG: Set to "true" to enable logging (default: "false")
    GHDEPUP_LOG_FILE: Path to log file (default: ~/.ghdepup.log)
"""

import logging
import os
from pathlib import Path

# Environment variable configuration
LOG_ENABLED = os.environ.get("GHDEPUP_LOG", "false").lower() == "true"
LOG_FILE = Path(os.environ.get("GHDEPUP_LOG_FILE", str(Path.home() / ".ghdepup.log")))

# Module-level logger instance
_logger: logging.Logger | None = None


def setup_logging() -> logging.Logger:
    """Configure logging based on environment variables.

    Creates the "ghdepup" logger that writes to the configured log file when
    GHDEPUP_LOG is set to "true". Otherwise, uses a NullHandler to suppress
    all log output. Module loggers (logging.getLogger(__name__)) propagate
    into it.

    Returns:
        Configured logger instance
    """
    global _logger

    if _logger is not None:
        return _logger

    logger = logging.getLogger("ghdepup")

    # Clear any existing handlers
    logger.handlers.clear()

    if LOG_ENABLED:
        # Ensure log directory exists
        LOG_FILE.parent.mkdir(parents=True, exist_ok=True)

        handler = logging.FileHandler(LOG_FILE)
        handler.setFormatter(
            logging.Formatter(
                "[%(asctime)s] %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    else:
        logger.addHandler(logging.NullHandler())

    _logger = logger
    return logger


def get_logger() -> logging.Logger:
    """Get the configured logger instance, creating it if necessary."""
    global _logger
    if _logger is None:
        return setup_logging()
    return _logger


def log_message(message: str) -> None:
    """Log a message if logging is enabled.

    Messages are only written to the log file if GHDEPUP_LOG=true.

    Args:
        message: Message to log
    """
    logger = get_logger()
    logger.info(message)


def log_request(method: str, url: str, status_code: int | None = None) -> None:
    """Log an outgoing API request with its status code.

    Used to trace tag listing calls for debugging. Only the URL is logged,
    never request headers (they carry the access token).

    Args:
        method: HTTP method
        url: Request URL
        status_code: Response status, or None if no response arrived
    """
    logger = get_logger()
    status = "-" if status_code is None else str(status_code)
    logger.info(f"REQUEST: {method} {url} | STATUS: {status}")


__all__ = [
    "LOG_ENABLED",
    "LOG_FILE",
    "setup_logging",
    "get_logger",
    "log_message",
    "log_request",
]
