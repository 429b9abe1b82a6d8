"""
Logging system for Vault Keeper.

Colored terminal output plus a rotating file log shared by every
``vault_keeper`` module.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path


class Colors:
    """ANSI color codes for terminal output."""
    RESET = "\033[0m"
    GRAY = "\033[90m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    RED = "\033[91m"
    BOLD = "\033[1m"


LEVEL_COLORS = {
    logging.DEBUG: Colors.GRAY,
    logging.INFO: Colors.GREEN,
    logging.WARNING: Colors.YELLOW,
    logging.ERROR: Colors.RED,
    logging.CRITICAL: Colors.RED + Colors.BOLD,
}

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ColoredFormatter(logging.Formatter):
    """Formatter that adds colors to terminal output."""

    def format(self, record: logging.LogRecord) -> str:
        color = LEVEL_COLORS.get(record.levelno, Colors.RESET)
        message = super().format(record)
        return f"{color}{message}{Colors.RESET}"


def _resolve_level(level: int | str | None) -> int:
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    if isinstance(level, str):
        return getattr(logging, level.upper().strip(), logging.INFO)
    return level


def _default_log_file() -> Path:
    env_file = os.getenv("VAULT_KEEPER_LOG_FILE")
    if env_file:
        return Path(env_file)
    return Path.cwd() / "logs" / "vault_keeper.log"


def setup_logger(
    name: str,
    level: int | str | None = None,
    log_file: str | Path | None = None,
) -> logging.Logger:
    """
    Set up and return a configured logger.

    Args:
        name: Logger name, typically ``__name__`` of the calling module
        level: Log level. Defaults to LOG_LEVEL env var or INFO
        log_file: Log file path. Defaults to VAULT_KEEPER_LOG_FILE or
            logs/vault_keeper.log under the working directory

    Returns:
        Configured logger instance

    Example:
        >>> logger = setup_logger("vault_keeper.watcher")
        >>> logger.info("Listening for deposits")
    """
    logger = logging.getLogger(name)

    # Avoid adding duplicate handlers
    if logger.handlers:
        return logger

    level = _resolve_level(level)
    logger.setLevel(level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(ColoredFormatter(LOG_FORMAT, DATE_FORMAT))
    logger.addHandler(console_handler)

    log_path = Path(log_file) if log_file is not None else _default_log_file()
    log_path.parent.mkdir(parents=True, exist_ok=True)

    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=10 * 1024 * 1024,  # 10 MB
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    logger.addHandler(file_handler)

    logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger by name, creating it with default settings if needed.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Plan built")
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        return setup_logger(name)

    return logger


def set_log_level(level: int | str) -> None:
    """Apply a level to every logger created under the vault_keeper namespace."""
    resolved = _resolve_level(level)
    for name, logger in logging.Logger.manager.loggerDict.items():
        if not isinstance(logger, logging.Logger) or not name.startswith("vault_keeper"):
            continue
        logger.setLevel(resolved)
        for handler in logger.handlers:
            handler.setLevel(resolved)
