"""Console logging setup for the service and CLI entry points."""

import json
import logging
from typing import Optional, Union

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Attributes present on every LogRecord; anything else came in via `extra=`
_RESERVED_ATTRS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class JSONLineFormatter(logging.Formatter):
    """One JSON object per log line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key not in _RESERVED_ATTRS and key not in payload:
                payload[key] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(
    level: Union[int, str, None] = None,
    log_format: Optional[str] = None
) -> logging.Logger:
    """
    Configure the root logger with a single console handler.

    Args:
        level: Log level name or number (defaults to settings.log_level)
        log_format: "text" or "json" (defaults to settings.log_format)

    Returns:
        The root logger
    """
    if level is None or log_format is None:
        from config import get_settings
        settings = get_settings()
        level = level if level is not None else settings.log_level
        log_format = log_format if log_format is not None else settings.log_format

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    # if already configured, replace existing handlers
    for handler in list(root.handlers):
        root.removeHandler(handler)

    root.setLevel(level)

    handler = logging.StreamHandler()
    handler.setLevel(level)
    if log_format == "json":
        handler.setFormatter(JSONLineFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    root.addHandler(handler)

    return root
