# installer_ops/utils/enhanced_logging.py
from typing import Dict, Any

from loguru import logger as _root_logger


class EnhancedLogger:
    """Logger with context tracking on top of a loguru bound logger."""

    def __init__(self, name: str):
        self._name = name
        self._context: Dict[str, Any] = {}

    def add_context(self, key: str, value: Any) -> None:
        """Add context information for subsequent log messages."""
        self._context[key] = value

    def remove_context(self, key: str) -> None:
        """Remove context information."""
        if key in self._context:
            del self._context[key]

    def clear_context(self) -> None:
        """Clear all context information."""
        self._context.clear()

    def with_context(self, **context) -> 'EnhancedLogger':
        """Create a new logger with added context."""
        new_logger = EnhancedLogger(self._name)
        new_logger._context = {**self._context, **context}
        return new_logger

    def _log(self, level: str, msg: str, extra: Dict[str, Any], exception: bool = False) -> None:
        """Bind name and context to the root logger and emit one message."""
        bound = _root_logger.bind(name=self._name, **{**self._context, **extra})
        # depth=2 so records point at the caller, not at this wrapper
        bound = bound.opt(depth=2, exception=exception)
        # No positional args: loguru would otherwise str.format() the message,
        # and paths may legitimately contain braces.
        bound.log(level, msg)

    def debug(self, msg: str, **extra) -> None:
        """Log a debug message with context."""
        self._log("DEBUG", msg, extra)

    def info(self, msg: str, **extra) -> None:
        """Log an info message with context."""
        self._log("INFO", msg, extra)

    def warning(self, msg: str, **extra) -> None:
        """Log a warning message with context."""
        self._log("WARNING", msg, extra)

    def error(self, msg: str, **extra) -> None:
        """Log an error message with context."""
        self._log("ERROR", msg, extra)

    def critical(self, msg: str, **extra) -> None:
        """Log a critical message with context."""
        self._log("CRITICAL", msg, extra)

    def exception(self, msg: str, **extra) -> None:
        """Log an error message together with the active exception."""
        self._log("ERROR", msg, extra, exception=True)

    @property
    def name(self) -> str:
        """Get the logger name."""
        return self._name

    @property
    def context(self) -> Dict[str, Any]:
        """Get a copy of the current context."""
        return dict(self._context)
