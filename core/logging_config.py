# core/logging_config.py

import logging
import json
from datetime import datetime, UTC
from core.request_context import get_request_id

_RESERVED_ATTRS = frozenset((
    "args", "msg", "levelname", "levelno",
    "pathname", "filename", "module",
    "exc_info", "exc_text", "stack_info",
    "lineno", "funcName", "created",
    "msecs", "relativeCreated", "thread",
    "threadName", "processName", "process",
    "taskName", "name",
))


class JsonFormatter(logging.Formatter):
    def format(self, record):
        log_record = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": get_request_id(),
        }

        # Fields passed through `extra=`
        for key, value in record.__dict__.items():
            if key not in log_record and key not in _RESERVED_ATTRS:
                log_record[key] = value
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_record, default=str)


def setup_logging(level: str = "INFO"):
    # Keep transport libraries quiet; they can echo request URLs carrying keys
    for noisy in ("httpx", "httpcore", "google_genai"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()
    root.addHandler(handler)
