"""Logging setup for credstore: record formatting, trace ids and dictConfig."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from logging.config import dictConfig
from typing import Any, Literal

from opentelemetry import trace

LogFormat = Literal["text", "json"]

# Loggers the package emits on; sqlite chatter stays quiet unless debugging.
CREDSTORE_LOGGERS: tuple[str, ...] = (
    "credstore.credential_store",
    "credstore.settings",
    "credstore.cli",
)
SQLITE_LOGGER = "credstore.kv.sqlite"


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (bytes, bytearray)):
        # Raw bytes may be key material; only their size is logged.
        return f"<bytes len={len(value)}>"
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_jsonable(item) for item in value]
    return str(value)


class CredstoreFormatter(logging.Formatter):
    """Render records as text lines or JSON objects, carrying ``extra={"data": ...}``."""

    def __init__(self, fmt: str | None = None, datefmt: str | None = None, *, log_format: LogFormat = "text") -> None:
        super().__init__(fmt, datefmt)
        self._log_format = log_format

    def format(self, record: logging.LogRecord) -> str:
        data = record.__dict__.get("data")
        if self._log_format == "json":
            return json.dumps(self._payload(record, data), sort_keys=True, separators=(",", ":"))

        line = super().format(record)
        if data:
            line = f"{line} | data={json.dumps(_jsonable(data), sort_keys=True, separators=(',', ':'))}"
        trace_id = record.__dict__.get("trace_id")
        if trace_id:
            line = f"{line} | trace_id={trace_id}"
        return line

    def _payload(self, record: logging.LogRecord, data: Any) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if data:
            payload["data"] = _jsonable(data)
        for field in ("trace_id", "span_id"):
            value = record.__dict__.get(field)
            if value:
                payload[field] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return payload


class TraceContextFilter(logging.Filter):
    """Stamp records with the active OpenTelemetry trace and span ids."""

    def filter(self, record: logging.LogRecord) -> bool:
        span_context = trace.get_current_span().get_span_context()
        if span_context.is_valid:
            record.trace_id = f"{span_context.trace_id:032x}"
            record.span_id = f"{span_context.span_id:016x}"
        return True


def build_log_config(*, level: str, log_format: LogFormat = "text") -> dict[str, Any]:
    """Return a dictConfig mapping routing credstore loggers to one console handler."""

    level = level.upper()
    loggers: dict[str, dict[str, Any]] = {
        name: {"level": level, "handlers": ["console"], "propagate": False} for name in CREDSTORE_LOGGERS
    }
    loggers[SQLITE_LOGGER] = {
        "level": "DEBUG" if level == "DEBUG" else "WARNING",
        "handlers": ["console"],
        "propagate": False,
    }
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "credstore": {
                "()": CredstoreFormatter,
                "fmt": "%(asctime)s %(levelname)s %(name)s: %(message)s",
                "datefmt": "%Y-%m-%dT%H:%M:%S",
                "log_format": log_format,
            }
        },
        "filters": {"trace_context": {"()": TraceContextFilter}},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "credstore",
                "stream": "ext://sys.stderr",
                "filters": ["trace_context"],
            }
        },
        "root": {"level": "WARNING", "handlers": ["console"]},
        "loggers": loggers,
    }


def configure_logging(*, level: str, log_format: LogFormat = "text") -> None:
    dictConfig(build_log_config(level=level, log_format=log_format))


__all__ = [
    "CREDSTORE_LOGGERS",
    "CredstoreFormatter",
    "LogFormat",
    "SQLITE_LOGGER",
    "TraceContextFilter",
    "build_log_config",
    "configure_logging",
]
