"""
ArtPalette Structured Logging
Loguru configured once for the API layer, with request-scoped context and
stage timings.
"""
import sys
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from loguru import logger

from artpalette.config import config


class StructuredLogger:
    """Logger that attaches an ``extra`` dict (request id, stage timings) to each record."""

    def __init__(self, level: str = config.LOG_LEVEL, serialize: bool = config.LOG_JSON):
        logger.remove()
        logger.add(
            sys.stdout,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {message} | {extra}",
            level=level,
            serialize=serialize,
        )

    def log(self, level: str, message: str, extra: Optional[Dict[str, Any]] = None):
        logger.bind(**(extra or {})).log(level, message)

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self.log("INFO", message, extra)

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self.log("WARNING", message, extra)

    def error(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self.log("ERROR", message, extra)

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self.log("DEBUG", message, extra)

    @contextmanager
    def stage(self, name: str, request_id: str) -> Iterator[Dict[str, Any]]:
        """
        Time a request stage and log it as ``ms_<name>`` on exit.

        The yielded dict is merged into the log record, so callers can add
        counts discovered during the stage.
        """
        fields: Dict[str, Any] = {}
        start_time = time.time()
        try:
            yield fields
        finally:
            fields.update({"request_id": request_id, f"ms_{name}": (time.time() - start_time) * 1000})
            self.debug(f"Stage {name} finished", extra=fields)


# Global logger instance
_logger: Optional[StructuredLogger] = None


def get_logger() -> StructuredLogger:
    """Get or create global logger instance."""
    global _logger
    if _logger is None:
        _logger = StructuredLogger()
    return _logger
