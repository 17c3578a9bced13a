import logging
import sys
import json
from typing import Any

# Attributes accepted through the ``extra`` kwarg and copied into the JSON line
CONTEXT_FIELDS = (
    "request_id",
    "path",
    "method",
    "status_code",
    "duration_ms",
    "user_agent",
    "session_id",
    "interaction_type",
    "product_id",
    "policy",
    "last_hours",
    "action",
    "error",
    "detail",
    "errors",
)


class JSONFormatter(logging.Formatter):
    """
    Formatter that renders each LogRecord as a single JSON object.
    """
    def format(self, record: logging.LogRecord) -> str:
        log_obj: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "funcName": record.funcName,
            "line": record.lineno,
        }

        for field in CONTEXT_FIELDS:
            if hasattr(record, field):
                log_obj[field] = getattr(record, field)

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_obj, default=str)


def setup_logging(level: str = "INFO"):
    """
    Configure the root logger to emit JSON lines on stdout.
    """
    logger = logging.getLogger()
    logger.setLevel(level.upper())

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())

    # Uvicorn installs its own handlers before the app is imported
    logger.handlers = []
    logger.addHandler(handler)

    logging.getLogger("uvicorn.access").handlers = []
    logging.getLogger("uvicorn.access").propagate = True
