# helpdesk/core/logging.py
import json
import logging
import logging.config
import uuid
from typing import Any, Dict, Mapping
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# attributes every LogRecord carries; anything else came in through extra=
_RESERVED = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


def record_extras(record: logging.LogRecord) -> Dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _RESERVED and not k.startswith("_")}


class ContextFormatter(logging.Formatter):
    """
    Plain text line followed by the extra= fields as key=value pairs:
    2026-03-10 12:00:00 INFO helpdesk.services.tickets status_changed ticket_id=42 from=open to=closed
    """

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = record_extras(record)
        if not extras:
            return line
        pairs = " ".join(f"{k}={json.dumps(v, default=str, ensure_ascii=False)}" for k, v in sorted(extras.items()))
        head, sep, tail = line.partition("\n")
        return f"{head} {pairs}{sep}{tail}"


class JsonFormatter(logging.Formatter):
    """One JSON object per line, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
        }
        entry.update(record_extras(record))
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str, ensure_ascii=False)


def setup_logging(level: str = "INFO", *, json_format: bool = False) -> None:
    """Single log configuration for the app and Uvicorn."""
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "plain": {"()": ContextFormatter, "fmt": LOG_FORMAT},
            "json": {"()": JsonFormatter},
        },
        "handlers": {
            "default": {"class": "logging.StreamHandler", "formatter": "json" if json_format else "plain"},
        },
        "loggers": {
            "": {"handlers": ["default"], "level": level},
            "uvicorn": {"handlers": ["default"], "level": level, "propagate": False},
            "uvicorn.error": {"handlers": ["default"], "level": level, "propagate": False},
            "uvicorn.access": {"handlers": ["default"], "level": level, "propagate": False},
        },
    })


class RequestIdMiddleware(BaseHTTPMiddleware):
    """
    Tags every request with an id (the caller's X-Request-ID, or a fresh
    uuid4), stores it on request.state and echoes it in the response.
    """

    header_name = "X-Request-ID"

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(self.header_name) or uuid.uuid4().hex
        request.state.request_id = request_id

        response: Response = await call_next(request)
        response.headers[self.header_name] = request_id
        return response


def log_extra(request: Request) -> Mapping[str, Any]:
    """request_id for extra=, when the middleware has set one."""
    rid = getattr(request.state, "request_id", None)
    return {"request_id": rid} if rid else {}
