import logging
import json
import os
import datetime
import traceback
from typing import Any, Optional
from threading import local

# Thread-local storage for the current request id
_context = local()

_RESERVED_ARGS = {'exc_info', 'stack_info', 'stacklevel', 'extra'}


class JSONFormatter(logging.Formatter):
    """
    Renders every record as one JSON object per line.
    """
    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "request_id": getattr(_context, "request_id", "GLOBAL"),
        }

        if hasattr(record, "extra_fields") and isinstance(record.extra_fields, dict):
            log_data.update(record.extra_fields)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
            log_data["stack_trace"] = traceback.format_exc()

        # Decimals, dates and the like fall back to str()
        return json.dumps(log_data, ensure_ascii=False, default=str)


def setup_logging(log_level: int | str = logging.INFO, log_file: Optional[str] = "logs/app.log"):
    """
    Configure the root logger with JSON output on the console and,
    when ``log_file`` is set, in a file as well.
    """
    if isinstance(log_level, str):
        log_level = logging.getLevelName(log_level.upper())
        if not isinstance(log_level, int):
            log_level = logging.INFO

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    if root_logger.handlers:
        root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(JSONFormatter())
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)

    logging.info("Logging infrastructure initialized.", extra={"extra_fields": {"status": "ready"}})


def set_request_id(request_id: str):
    """Set the current request ID in context."""
    _context.request_id = request_id


class StructuredLoggerAdapter(logging.LoggerAdapter):
    """
    Lets call sites pass context as keyword arguments:

        logger.info("Rows parsed.", bank_id="in-pnb", count=3)
    """
    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        extra = dict(kwargs.get("extra") or {})
        fields = dict(extra.get("extra_fields") or {})

        new_kwargs = {}
        for key, value in kwargs.items():
            if key in _RESERVED_ARGS:
                new_kwargs[key] = value
            else:
                fields[key] = value

        extra["extra_fields"] = fields
        new_kwargs["extra"] = extra
        return msg, new_kwargs


def get_logger(name: str) -> StructuredLoggerAdapter:
    """
    Return a structured logger for the given name.
    """
    return StructuredLoggerAdapter(logging.getLogger(name), {})
