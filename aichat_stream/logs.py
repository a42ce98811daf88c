"""
aichat-stream - Structured Logging

Structured logging with per-stream correlation fields.

A logger bound to a stream (``logger.bind(stream_key=..., session_id=...)``)
adds those fields to every record, so interleaved concurrent streams can be
told apart in the output.

Usage:
    from aichat_stream.logs import setup_logging, get_logger

    setup_logging(level="DEBUG")
    logger = get_logger(__name__).bind(stream_key="session:42:lq3k1x:9f2a")
    logger.info("Stream opened", status_code=200)

Output:
    {"timestamp": "2024-01-15T10:30:00+00:00", "level": "INFO",
     "logger": "aichat_stream.client", "message": "Stream opened",
     "stream_key": "session:42:lq3k1x:9f2a", "status_code": 200}
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

LOGGER_NAMESPACE = "aichat_stream"

_RESERVED_ATTRS = {
    "name", "msg", "args", "created", "filename",
    "funcName", "levelname", "levelno", "lineno",
    "module", "msecs", "pathname", "process",
    "processName", "relativeCreated", "stack_info",
    "exc_info", "exc_text", "thread", "threadName",
    "message", "taskName",
}


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter.

    Output format:
    {
        "timestamp": "2024-01-15T10:30:00.123456+00:00",
        "level": "INFO",
        "logger": "aichat_stream.client",
        "message": "Log message",
        ... extra fields
    }

    Extra fields whose names look like credentials are redacted.
    """

    SENSITIVE_FIELDS = {
        "password", "secret", "token", "api_key", "apikey",
        "authorization", "cookie", "credential",
    }

    def __init__(self, redact_sensitive: bool = True):
        super().__init__()
        self.redact_sensitive = redact_sensitive

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS:
                continue
            if self.redact_sensitive and self._is_sensitive(key):
                value = "[REDACTED]"
            log_data[key] = value

        return json.dumps(log_data, default=str, ensure_ascii=False)

    def _is_sensitive(self, field_name: str) -> bool:
        field_lower = field_name.lower()
        return any(sensitive in field_lower for sensitive in self.SENSITIVE_FIELDS)


class StructuredLogger:
    """
    Logger wrapper that accepts structured fields as keyword arguments.

    ``logger.info("msg", status_code=500)`` is sent as
    ``extra={"status_code": 500, **bound_fields}``.
    """

    def __init__(self, logger: logging.Logger, fields: Optional[Dict[str, Any]] = None):
        self._logger = logger
        self._fields = dict(fields or {})

    @property
    def name(self) -> str:
        return self._logger.name

    @property
    def fields(self) -> Dict[str, Any]:
        return dict(self._fields)

    def bind(self, **fields) -> "StructuredLogger":
        """Return a logger that adds ``fields`` to every record."""
        merged = dict(self._fields)
        merged.update({k: v for k, v in fields.items() if v is not None})
        return StructuredLogger(self._logger, merged)

    def _log(self, level: int, msg: str, *args, **kwargs):
        if not self._logger.isEnabledFor(level):
            return

        extra = dict(self._fields)
        extra.update(kwargs.pop("extra", {}))

        for key in list(kwargs):
            if key not in {"exc_info", "stack_info", "stacklevel"}:
                extra[key] = kwargs.pop(key)

        kwargs["extra"] = extra
        self._logger.log(level, msg, *args, **kwargs)

    def debug(self, msg: str, *args, **kwargs):
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs):
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs):
        self._log(logging.ERROR, msg, *args, **kwargs)

    def exception(self, msg: str, *args, **kwargs):
        kwargs["exc_info"] = True
        self._log(logging.ERROR, msg, *args, **kwargs)


def setup_logging(
    level: Union[str, int] = "INFO",
    json_output: bool = True,
    redact_sensitive: bool = True,
) -> None:
    """
    Attach a handler to the ``aichat_stream`` logger.

    Only the library's own namespace is touched; the root logger belongs to
    the host application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Use JSON formatter (True) or standard formatter (False)
        redact_sensitive: Redact credential-like extra fields
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(LOGGER_NAMESPACE)
    logger.setLevel(level)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    if json_output:
        formatter: logging.Formatter = JSONFormatter(redact_sensitive=redact_sensitive)
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.propagate = False

    # Suppress noisy loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str) -> StructuredLogger:
    """
    Get a structured logger.

    Args:
        name: Logger name (typically __name__)
    """
    return StructuredLogger(logging.getLogger(name))


logging.getLogger(LOGGER_NAMESPACE).addHandler(logging.NullHandler())
