"""
Logging for nftauction.

Every module logs through a subsystem logger under the "nftauction"
namespace (market, registry, token, payment, accounts, cli). Output goes to
a colored console handler and, when MarketConfig.log_to_file is set, to a
plain-text file in MarketConfig.log_dir.

Modules call get_logger() at import time, which installs console logging at
INFO until the CLI (or an embedding application) calls setup_logging() with
its MarketConfig.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import colorlog

from nftauction.core.config import MarketConfig

ROOT_LOGGER = "nftauction"
LOG_FILE_NAME = "nftauction.log"

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)-8s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red,bg_white",
}


class MarketLogger:
    """Owns the handlers of the "nftauction" logger tree."""

    _configured = False

    @classmethod
    def configure(cls, level: int = logging.INFO, log_file: Optional[Path] = None) -> logging.Logger:
        """
        Replace the handlers of the root "nftauction" logger.

        Args:
            level: Threshold for the logger and all handlers
            log_file: Also append to this file (parent created if needed)

        Returns:
            The root "nftauction" logger
        """
        root = logging.getLogger(ROOT_LOGGER)
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()
        root.setLevel(level)

        console = colorlog.StreamHandler(sys.stdout)
        console.setFormatter(colorlog.ColoredFormatter(
            "%(log_color)s" + LOG_FORMAT.replace(" %(message)s", "%(reset)s %(message)s"),
            datefmt=DATE_FORMAT,
            log_colors=LOG_COLORS,
        ))
        root.addHandler(console)

        if log_file is not None:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
            root.addHandler(file_handler)

        for handler in root.handlers:
            handler.setLevel(level)

        cls._configured = True
        return root

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        if not cls._configured:
            cls.configure()
        return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def level_from_name(name: str) -> int:
    """Map "debug" / "INFO" / ... to a logging level; ValueError if unknown."""
    level = logging.getLevelName(name.strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {name!r}")
    return level


def get_logger(name: str) -> logging.Logger:
    """Get the logger for a subsystem, e.g. get_logger("market")."""
    return MarketLogger.get_logger(name)


def setup_logging(config: Optional[MarketConfig] = None, debug: bool = False) -> logging.Logger:
    """
    Configure logging from a MarketConfig.

    Uses config.log_level (DEBUG when `debug`), and writes
    config.log_dir/nftauction.log when config.log_to_file is set.
    """
    config = config or MarketConfig()
    level = logging.DEBUG if debug else level_from_name(config.log_level)
    log_file = config.log_dir / LOG_FILE_NAME if config.log_to_file else None
    return MarketLogger.configure(level=level, log_file=log_file)
