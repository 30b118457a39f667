import json
import logging
import sys

from .settings import settings


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record):
        log_record = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_record)


def setup_logging():
    """Configure the root logger once for the API process."""
    root = logging.getLogger()
    if getattr(root, "_issuetracker_configured", False):
        return

    handler = logging.StreamHandler(sys.stdout)
    if settings.LOG_FORMAT == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
        ))

    root.addHandler(handler)
    root.setLevel(settings.LOG_LEVEL.upper())

    # SQL echo is too chatty below WARNING
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    root._issuetracker_configured = True
