"""
Logger setup for the command line entry point.

Library code never configures handlers itself; it only calls
``logging.getLogger(__name__)`` or uses a logger handed to it by the caller.
"""

from __future__ import annotations

import json
import logging
import sys

_PREFIX = "[difftargets]"


class _PlainFormatter(logging.Formatter):
    """``[difftargets] message`` with a marker for warnings and errors."""

    _MARKERS = {
        logging.WARNING: "⚠ ",
        logging.ERROR: "✗ ",
        logging.CRITICAL: "✗ ",
    }

    def format(self, record: logging.LogRecord) -> str:
        marker = self._MARKERS.get(record.levelno, "")
        prefix = f"{_PREFIX}:debug" if record.levelno == logging.DEBUG else _PREFIX
        text = f"{prefix} {marker}{record.getMessage()}"
        if record.exc_info:
            text += "\n" + self.formatException(record.exc_info)
        return text


class _JsonFormatter(logging.Formatter):
    """One JSON object per line, for CI log scrapers."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def setup_logger(debug: bool = False, json_output: bool = False) -> logging.Logger:
    """Configure and return the ``difftargets`` package logger.

    Calling it twice replaces the handler instead of stacking a second one.
    """
    logger = logging.getLogger("difftargets")
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_JsonFormatter() if json_output else _PlainFormatter())
    logger.addHandler(handler)
    logger.propagate = False
    return logger
