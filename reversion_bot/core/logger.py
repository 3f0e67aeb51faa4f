"""
Logging for the bot: one "reversion_bot" logger tree, console plus an optional
log file. Timestamps are UTC so they line up with bar open times.
"""

from __future__ import annotations
import logging
import sys
import time
from pathlib import Path
from typing import Optional

LOGGER_NAME = "reversion_bot"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Chatty at INFO during reconnects and REST paging
NOISY_LIBRARIES = ("binance", "websockets", "urllib3")


def _formatter() -> logging.Formatter:
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    formatter.converter = time.gmtime
    return formatter


def setup_logging(
    level: str = "INFO",
    log_dir: Optional[Path] = None,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the bot logger once per process. Calling it again replaces the
    handlers instead of stacking them. Never log API keys or secrets.
    """
    bot_logger = logging.getLogger(LOGGER_NAME)
    bot_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in list(bot_logger.handlers):
        bot_logger.removeHandler(handler)
        handler.close()

    formatter = _formatter()
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_dir and log_file:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(Path(log_dir) / log_file, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
        bot_logger.addHandler(handler)

    for name in NOISY_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)
    return bot_logger
