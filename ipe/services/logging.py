"""Logging configuration for the API server and CLI tools.

Both entry points log to stdout and to a file. The level comes from the
caller or the LOG_LEVEL env var (default INFO).
"""

import logging
import os
import sys
from pathlib import Path

LOG_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

SERVER_FORMAT = "[%(asctime)s] %(name)s - %(levelname)s - %(message)s"
CLI_FORMAT = "[%(asctime)s] %(levelname)s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_log_level(level: str | None = None) -> int:
    """Resolve a level name, falling back to LOG_LEVEL and then INFO."""
    level_str = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    return LOG_LEVEL_MAP.get(level_str, logging.INFO)


def _attach_handlers(logger: logging.Logger, log_file: str, fmt: str, level: int) -> None:
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(fmt=fmt, datefmt=DATE_FORMAT)

    logger.setLevel(level)
    logger.handlers.clear()
    for handler in (logging.StreamHandler(sys.stdout), logging.FileHandler(log_path)):
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)


def setup_server_logging(log_file: str = "logs/server.log", level: str | None = None) -> None:
    """
    Configure the root logger for the API server.

    Args:
        log_file: Path to log file (default: logs/server.log)
        level: Level name; falls back to LOG_LEVEL

    Existing root handlers are replaced, so calling it twice does not
    duplicate output.
    """
    _attach_handlers(logging.getLogger(), log_file, SERVER_FORMAT, get_log_level(level))


def setup_logging(log_file: str = "logs/seed.log") -> logging.Logger:
    """Set up the "ipe.cli" logger used by command line tools (INFO level)."""
    logger = logging.getLogger("ipe.cli")
    _attach_handlers(logger, log_file, CLI_FORMAT, logging.INFO)
    return logger
