"""Structured logging - JSON formatter and setup for host programs.

The vault modules only ever call logging.getLogger(__name__); the host
decides where records go by calling setup_logging() once on startup.
Extra fields (asset_id, operation, error_code) are surfaced when present.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Optional

from .config import get_settings

EXTRA_FIELDS = (
    "asset_id", "operation", "error_code", "amount", "shares",
    "total_assets", "total_supply",
)


class JSONFormatter(logging.Formatter):
    """Format log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in EXTRA_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


def setup_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> logging.Handler:
    """Attach a stream handler to the vault_domain logger.

    Args:
        level: Log level name (defaults to settings.log_level)
        fmt: "json" or "text" (defaults to settings.log_format)

    Returns:
        The installed handler
    """
    settings = get_settings()
    level = level or settings.log_level
    fmt = fmt or settings.log_format

    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s - %(message)s",
        ))

    package_logger = logging.getLogger("vault_domain")
    package_logger.addHandler(handler)
    package_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    return handler
