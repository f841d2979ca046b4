"""AdPulse — Structured JSON Logging.

Every module logs through a child of the ``adpulse`` logger. Only that root
carries a handler, so each line is written once and the level from settings
applies everywhere.
"""

import logging
import json
import sys
from datetime import datetime, timezone
from app.config import settings

ROOT_LOGGER = "adpulse"

# Keys accepted through ``extra=`` and copied into the JSON line
EXTRA_FIELDS = ("upload_id", "user_id", "schema_key", "batch", "duration_ms", "status_code")


class JSONFormatter(logging.Formatter):
    """One JSON object per line, carrying the upload context of the call."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update({key: getattr(record, key) for key in EXTRA_FIELDS if hasattr(record, key)})
        if record.exc_info and record.exc_info[0] is not None:
            entry["error_type"] = record.exc_info[0].__name__
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _configure_root() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        root.addHandler(handler)
        root.propagate = False
    root.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    return root


def get_logger(name: str) -> logging.Logger:
    """Return ``adpulse.<name>``; its lines go through the root's JSON handler."""
    _configure_root()
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
