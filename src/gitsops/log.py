# src/gitsops/log.py: Structured JSON logger.
# Filters run with stdout wired into git's object store, so every log record
# goes to stderr as one JSON object per line. The tracked path being filtered
# is injected from a context variable.

import json
import logging
import contextvars
import sys

path_context = contextvars.ContextVar('path_context', default=None)

class JsonFormatter(logging.Formatter):
    def format(self, record):
        log_record = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "path": path_context.get(),
        }
        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_record)

def setup_logging(level: str = "WARNING") -> None:
    """Configure the package logger to emit JSON on stderr."""
    logger = logging.getLogger("gitsops")
    logger.setLevel(level)
    logger.propagate = False
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)

def get_logger(name):
    return logging.getLogger(name)
