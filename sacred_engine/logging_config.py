"""Logging setup: human-readable by default, JSON lines in production."""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Extra record attributes copied into JSON output when present
EXTRA_FIELDS = ("frame_count", "fps", "quality_level", "duration_ms")


class JSONFormatter(logging.Formatter):
    """Format log records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key in EXTRA_FIELDS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        return json.dumps(log_data)


def is_production() -> bool:
    env = os.environ.get("SACRED_ENV", "development").lower()
    return env in ("production", "prod", "staging")


def configure_logging(level: int = logging.INFO, json_output: Optional[bool] = None) -> None:
    """Configure the root logger.

    Args:
        level: Root and handler level
        json_output: Force JSON (True) or text (False); None decides from SACRED_ENV
    """
    if json_output is None:
        json_output = is_production()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)

    if json_output:
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)
