"""
Logging configuration for Craft Reporter.

The CLI logs to the console and, optionally, a log file. Inside pytest only
the log file handler is installed; console output belongs to pytest's
terminal reporter and log capture.
"""

import logging
import sys
from typing import Optional
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class ColoredFormatter(logging.Formatter):
    """Colored formatter for console output."""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[94m',      # Blue
        'WARNING': '\033[93m',   # Yellow
        'ERROR': '\033[91m',     # Red
        'CRITICAL': '\033[95m',  # Magenta
    }
    RESET = '\033[0m'
    BOLD = '\033[1m'

    def format(self, record):
        """Format a copy of the record so other handlers see it uncolored."""
        colored = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelname)
        if color:
            colored.levelname = f"{color}{record.levelname}{self.RESET}"
        if record.levelno >= logging.ERROR:
            colored.msg = f"{self.BOLD}{record.msg}{self.RESET}"
        return super().format(colored)


def verbosity_to_level(verbosity: int) -> int:
    """Map a 0-3 verbosity to a logging level."""
    if verbosity <= 0:
        return logging.WARNING  # Only errors/warnings
    if verbosity <= 2:
        return logging.INFO  # Progress messages
    return logging.DEBUG


def _file_handler(log_file: Path) -> logging.Handler:
    log_file = Path(log_file)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def setup_logger(
    name: str = "craft_reporter",
    level: Optional[int] = None,
    log_file: Optional[Path] = None,
    verbosity: int = 0,
    console: bool = True,
) -> logging.Logger:
    """
    Set up logger for Craft Reporter.

    Args:
        name: Logger name
        level: Console logging level (overrides verbosity if provided)
        log_file: Optional log file path; it always records DEBUG and up
        verbosity: Verbosity level (0=minimal, 1=progress, 2=details, 3=debug)
        console: Attach the colored stdout handler

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()

    if level is None:
        level = verbosity_to_level(verbosity)

    # The logger passes everything a handler may want; handlers filter.
    logger.setLevel(logging.DEBUG if log_file else level)

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(ColoredFormatter(LOG_FORMAT))
        logger.addHandler(console_handler)

    if log_file:
        logger.addHandler(_file_handler(log_file))

    return logger


def get_logger(name: str = "craft_reporter") -> logging.Logger:
    """Get logger instance."""
    return logging.getLogger(name)
