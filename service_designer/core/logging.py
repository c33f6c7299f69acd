"""
Logging setup for Service Designer.

Components log through ``logging.getLogger(__name__)`` and never install
handlers themselves. A host process calls ``configure_logging()`` once;
without arguments it follows ``LOG_LEVEL`` and ``LOG_FORMAT`` from settings.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO, Any, Dict, Optional

from service_designer.core.config import get_settings

# Name of the handler installed by configure_logging; used to replace it
HANDLER_NAME = "service_designer"

# Attributes present on every LogRecord; anything else was passed via extra=
_RESERVED_ATTRS = frozenset((
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "message", "taskName",
))


class JSONFormatter(logging.Formatter):
    """One JSON object per record.

    Analysis counts passed with ``extra=`` (form_id, gap_count, ...) become
    top-level keys next to the standard ones.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (key, value) for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable formatter for development."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


def configure_logging(
    level: Optional[str] = None,
    format_type: Optional[str] = None,
    stream: Optional[IO[str]] = None,
) -> logging.Handler:
    """
    Install the Service Designer handler on the root logger.

    Calling it again replaces the previously installed handler; handlers
    added by the host application are left alone.

    Args:
        level: Log level name; defaults to settings LOG_LEVEL
        format_type: "json" or "text"; defaults to settings LOG_FORMAT
        stream: Output stream; defaults to stdout

    Returns:
        The installed handler
    """
    settings = get_settings()
    level = level or settings.LOG_LEVEL
    format_type = format_type or settings.LOG_FORMAT

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for existing in [h for h in root_logger.handlers if h.get_name() == HANDLER_NAME]:
        root_logger.removeHandler(existing)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(JSONFormatter() if format_type.lower() == "json" else TextFormatter())
    root_logger.addHandler(handler)

    # jsonschema is chatty at DEBUG
    logging.getLogger("jsonschema").setLevel(logging.WARNING)

    return handler
