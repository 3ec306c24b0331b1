# installer_ops/utils/logging.py
"""
Logging configuration for the installer operations.
"""
import sys
from pathlib import Path
from typing import Optional

from loguru import logger
from installer_ops.constants import LOG_DIR, LOG_FORMAT, LOG_ROTATION, LOG_RETENTION
from installer_ops.utils.enhanced_logging import EnhancedLogger

# Dictionary to store enhanced logger instances
_enhanced_loggers = {}

# Records emitted before any logger was bound still need the name field
logger.configure(extra={"name": "installer_ops"})


def setup_logging(debug: bool = False, log_dir: Optional[Path] = None) -> None:
    """
    Configure the application logging.

    Args:
        debug: Whether to enable debug logging.
        log_dir: Directory for the log files, defaults to LOG_DIR.
    """
    log_dir = Path(log_dir) if log_dir else LOG_DIR
    log_dir.mkdir(parents=True, exist_ok=True)

    # Remove default handlers
    logger.remove()

    # Add console handler with appropriate level
    log_level = "DEBUG" if debug else "INFO"
    logger.add(
        sys.stderr,
        format=LOG_FORMAT,
        level=log_level,
        diagnose=debug,  # Include variable values in traceback if debug is True
    )

    # Add file handler
    log_file = log_dir / "installer_ops.log"
    logger.add(
        log_file,
        format=LOG_FORMAT,
        level="DEBUG" if debug else "INFO",
        rotation=LOG_ROTATION,
        retention=LOG_RETENTION,
        compression="zip",
    )

    # Add structured JSON log file
    json_log_file = log_dir / "installer_ops_structured.log"
    logger.add(
        json_log_file,
        serialize=True,  # Output as JSON
        level="INFO",
        rotation=LOG_ROTATION,
        retention=LOG_RETENTION,
        compression="zip",
    )

    get_logger(__name__).debug(f"Logging initialized. Log files: {log_file}, {json_log_file}")


def get_logger(name: str = "installer_ops") -> EnhancedLogger:
    """
    Get a logger instance with the given name.

    Args:
        name: The name for the logger.

    Returns:
        An enhanced logger instance.
    """
    # Check if we already have an enhanced logger for this name
    if name in _enhanced_loggers:
        return _enhanced_loggers[name]

    # Create a new enhanced logger
    enhanced_logger = EnhancedLogger(name)
    _enhanced_loggers[name] = enhanced_logger

    return enhanced_logger
