"""Centralized logging setup for the task planner."""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Optional

TEXT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class JsonFormatter(logging.Formatter):
    """Logging formatter that outputs one JSON object per line."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        # Standard LogRecord attributes are not copied into the JSON body
        dummy_record = logging.LogRecord("name", logging.INFO, "path", 1, "msg", None, None)
        self._reserved_attrs = set(dummy_record.__dict__.keys())
        self._reserved_attrs.update({"message", "asctime", "stack_info"})

    def format(self, record: logging.LogRecord) -> str:
        """Formats a log record as a JSON string."""
        log_entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "component": record.name,
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        # 'extra_fields' is flattened; any other custom attribute is kept as is.
        for key, value in record.__dict__.items():
            if key not in self._reserved_attrs:
                if key == "extra_fields" and isinstance(value, dict):
                    log_entry.update(value)
                else:
                    log_entry[key] = value

        return json.dumps(log_entry, default=str, ensure_ascii=False)


def setup_logging(level: Optional[str] = None, fmt: Optional[str] = None):
    """Initializes the logging system.

    Args:
        level: Optional log level override. Defaults to the PLANNER_LOG_LEVEL
            env var or INFO.
        fmt: 'json' or 'text'. Defaults to the PLANNER_LOG_FORMAT env var or
            'json'.
    """
    log_level = (level or os.environ.get("PLANNER_LOG_LEVEL", "INFO")).upper()
    log_format = (fmt or os.environ.get("PLANNER_LOG_FORMAT", "json")).lower()

    logger = logging.getLogger()
    logger.setLevel(log_level)

    handler = logging.StreamHandler(sys.stderr)
    if log_format == "text":
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    else:
        handler.setFormatter(JsonFormatter())

    # Replace existing handlers to avoid duplicate output
    for h in logger.handlers[:]:
        logger.removeHandler(h)

    logger.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Retrieves a logger with the given name.

    Args:
        name: The name of the logger (typically __name__).

    Returns:
        A logging.Logger instance.
    """
    return logging.getLogger(name)
