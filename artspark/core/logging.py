"""
Structured logging for the "artspark" logger.

Production writes one JSON object per line; every other environment writes a
single readable line. Both carry the context-bound request_id plus whichever
domain fields (user, prompt, submission, event type, error code) a record has.
"""

import json
import logging
import os
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple

LOGGER_NAME = "artspark"

request_id_ctx_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Order matters for the pretty formatter
EVENT_FIELDS: Tuple[str, ...] = ("user_id", "prompt_id", "submission_id", "event_type", "error_code")

_LATENCY_BUCKETS: Tuple[Tuple[float, str], ...] = (
    (10, "<10ms"),
    (100, "10-100ms"),
    (500, "100-500ms"),
    (1000, "500-1000ms"),
)

_TRUNCATE_LIMIT = 500


def get_request_id(default: Optional[str] = None) -> Optional[str]:
    rid = request_id_ctx_var.get()
    return rid if rid is not None else default


def latency_bucket_ms(latency_ms: Optional[float]) -> str:
    if latency_ms is None:
        return "unknown"
    for upper, label in _LATENCY_BUCKETS:
        if latency_ms < upper:
            return label
    return ">=1000ms"


def _timestamp(record: logging.LogRecord) -> str:
    return datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace("+00:00", "Z")


def _event_fields(record: logging.LogRecord) -> Dict[str, object]:
    fields = {}
    for name in EVENT_FIELDS:
        value = getattr(record, name, None)
        if value is not None:
            fields[name] = value
    return fields


class RequestIdFilter(logging.Filter):
    """Fill request_id from context when the caller did not pass one."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = get_request_id()
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": _timestamp(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
        }
        payload.update(_event_fields(record))
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class PrettyFormatter(logging.Formatter):
    """``<ts> LEVEL [rid=..] message user=.. prompt_id=..``"""

    def format(self, record: logging.LogRecord) -> str:
        rid = getattr(record, "request_id", None)
        head = f"{_timestamp(record)} {record.levelname}"
        if rid:
            head += f" [rid={rid}]"
        tail = " ".join(f"{k}={v}" for k, v in _event_fields(record).items())
        line = f"{head} {record.getMessage()}"
        if tail:
            line += f" {tail}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(env: str = "development", level: Optional[str] = None) -> logging.Logger:
    """Install a single stdout handler on the artspark logger. Safe to call repeatedly."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel((level or "INFO").upper())

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter() if env.lower() == "production" else PrettyFormatter())
    handler.addFilter(RequestIdFilter())

    logger.handlers = [handler]
    logger.propagate = True

    # Reduce noise from uvicorn loggers but keep error output
    logging.getLogger("uvicorn").propagate = False
    logging.getLogger("uvicorn.error").propagate = False
    return logger


def _truncate(value) -> str:
    try:
        text = str(value)
    except Exception:
        return "<unserializable>"
    if len(text) <= _TRUNCATE_LIMIT:
        return text
    return text[:_TRUNCATE_LIMIT] + "...<truncated>"


def log_event(
    level: str,
    msg: str,
    *,
    request_id: Optional[str] = None,
    user_id: Optional[str] = None,
    prompt_id: Optional[str] = None,
    submission_id: Optional[str] = None,
    event_type: Optional[str] = None,
    error_code: Optional[str] = None,
    extra: Optional[Dict[str, object]] = None,
    exc_info: bool = False,
):
    """Log msg with the domain fields set; extra values are stringified and truncated."""
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        configure_logging(os.getenv("ENV", "development"), os.getenv("LOG_LEVEL"))

    fields = {
        "user_id": user_id,
        "prompt_id": prompt_id,
        "submission_id": submission_id,
        "event_type": event_type,
        "error_code": error_code,
    }
    payload: Dict[str, object] = {"request_id": request_id or get_request_id()}
    payload.update({k: v for k, v in fields.items() if v})
    if extra:
        payload.update({k: _truncate(v) for k, v in extra.items()})

    log_fn = getattr(logger, level, logger.info)
    log_fn(msg, extra=payload, exc_info=exc_info)
