"""Logging configuration helpers.

The library only creates module loggers; applications call
``configure_logging`` once at start-up.
"""

import json
import logging
from datetime import datetime, timezone

from kitchen_common.config import KitchenSettings

PLAIN_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Extra attributes passed via `extra=` that are copied into JSON output
CONTEXT_FIELDS = ("ingredient", "recipe")


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with ingredient context when present."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value:
                payload[field] = value

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=True)


def configure_logging(level_name: str = "INFO", fmt: str = "plain") -> None:
    """Configure root logging with plain or JSON output."""

    numeric_level = getattr(logging, level_name.upper(), logging.INFO)

    handler = logging.StreamHandler()
    if (fmt or "plain").lower() == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(PLAIN_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z")
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(numeric_level)

    logging.captureWarnings(True)


def configure_from_settings(settings: KitchenSettings) -> None:
    configure_logging(settings.log_level, settings.log_format)
