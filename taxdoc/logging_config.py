"""Logging configuration for the tax document classifier.

Sets up structured logging with:
- Console handler (stdout)
- RotatingFileHandler for persistent logs (optional)
- Logger hierarchy: taxdoc.{component}
  → app, classifier, llm, supabase, chat

All loggers write to the same file with a component field so that
output can be filtered per component with grep.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path


ROOT_LOGGER_NAME = "taxdoc"

COMPONENTS = ("app", "classifier", "llm", "supabase", "chat")

# Timestamp | level | component | message
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# 5 MB per file, 3 backups
MAX_BYTES = 5 * 1024 * 1024
BACKUP_COUNT = 3


def setup_logging(log_level: str = "INFO", log_dir: Path | None = None) -> None:
    """Configure the logging system.

    Args:
        log_level: Level name (DEBUG, INFO, WARNING, ERROR).
        log_dir: Directory for log files. None = stdout only.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level)

    # Drop existing handlers when called again (e.g. in tests)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_dir is not None:
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                log_dir / "taxdoc.log",
                maxBytes=MAX_BYTES,
                backupCount=BACKUP_COUNT,
                encoding="utf-8",
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            root_logger.warning("Log directory not writable: %s – stdout only", e)

    # Quieter third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(component: str) -> logging.Logger:
    """Return the logger for a component.

    Args:
        component: Component name (app, classifier, llm, supabase, chat)

    Returns:
        Logger named 'taxdoc.{component}'
    """
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{component}")
