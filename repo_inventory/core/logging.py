"""
Log output for scanner runs and Celery workers.

``LOG_FORMAT=text`` (the default) prints one plain line per record, which
suits the CLI. ``LOG_FORMAT=json`` prints one JSON object per record
carrying the org/repo under scan and the failing detector, so a log shipper
can group every line of one repository scan.
"""

import json
import logging
import sys
from typing import Any, Dict, Optional

from repo_inventory.config import settings
from repo_inventory.core.tracing import TracingContext

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Libraries that log every HTTP request at INFO
QUIET_LOGGERS = ("httpx", "httpcore")


class JSONFormatter(logging.Formatter):
    """Serialises a record plus the current scan's tracing fields."""

    def format(self, record: logging.LogRecord) -> str:
        ctx = TracingContext.get()

        log_record: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "module": record.module,
            "line": record.lineno,
            "correlation_id": ctx.get("correlation_id", ""),
            "org": ctx.get("org", ""),
            "repo": ctx.get("repo", ""),
            "task_name": ctx.get("task_name", ""),
        }

        for extra in ("task_id", "detector"):
            if hasattr(record, extra):
                log_record[extra] = getattr(record, extra)

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_record)


def setup_logging(level: int = logging.INFO, log_format: Optional[str] = None) -> None:
    """
    Attach a stdout handler to the root logger.

    Called by the CLI and on Celery worker start. A second call only adjusts
    the level, so ``--verbose`` still takes effect in a process that already
    configured logging.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    if root_logger.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    if (log_format or settings.LOG_FORMAT).lower() == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
