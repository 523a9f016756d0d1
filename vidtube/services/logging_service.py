"""
Structured logging.

Every record is written as one JSON object per line. Keyword arguments given
to a log call become top-level keys of that object:

    app_logger.info("Video published", video_id=str(video.id))
    {"timestamp": "...", "level": "INFO", "logger": "vidtube", "message": "Video published", "video_id": "..."}
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from vidtube.config import settings


class JsonFormatter(logging.Formatter):
    """Render a log record and its ``context`` extra as a JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(getattr(record, "context", None) or {})
        if record.exc_info and record.exc_info[0] is not None:
            entry["traceback"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class StructuredLogger:
    """Thin wrapper over ``logging.Logger`` that takes context as keyword arguments."""

    def __init__(self, name: str, level: str = "INFO", log_file: Optional[str] = None):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper(), logging.INFO))
        self.logger.propagate = False

        # Re-importing must not attach a second set of handlers
        if not self.logger.handlers:
            handlers = [logging.StreamHandler()]
            if log_file:
                handlers.append(logging.FileHandler(log_file))
            for handler in handlers:
                handler.setFormatter(JsonFormatter())
                self.logger.addHandler(handler)

    def _log(self, level: int, message: str, context: Dict[str, Any], exc_info: Any = False) -> None:
        self.logger.log(level, message, exc_info=exc_info, extra={"context": context})

    def debug(self, message: str, **context):
        self._log(logging.DEBUG, message, context)

    def info(self, message: str, **context):
        self._log(logging.INFO, message, context)

    def warning(self, message: str, **context):
        self._log(logging.WARNING, message, context)

    def error(self, message: str, **context):
        self._log(logging.ERROR, message, context)

    def exception(self, message: str, exc_info: Any = True, **context):
        """
        Log at ERROR with a traceback.

        ``exc_info`` may be an exception instance; by default the exception
        currently being handled is used.
        """
        self._log(logging.ERROR, message, context, exc_info=exc_info)


app_logger = StructuredLogger("vidtube", level=settings.LOG_LEVEL, log_file=settings.LOG_FILE)
