from __future__ import annotations

import json
import logging
import sys
from logging import LogRecord
from typing import Any, Callable, Dict

from loguru import logger
from opentelemetry import trace


# Attributes every stdlib LogRecord carries; anything else was passed via `extra=`.
_STANDARD_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}

# Keys that must never reach the log stream verbatim.
_REDACTED_KEYS = frozenset({"access_token", "authorization", "client_secret", "password", "secret_token"})

Sink = Callable[[str], Any]


class InterceptHandler(logging.Handler):
    """Forward stdlib records (uvicorn, httpx, sqlalchemy) into Loguru."""

    def emit(self, record: LogRecord) -> None:  # pragma: no cover - bridging glue
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        extra = {key: value for key, value in record.__dict__.items() if key not in _STANDARD_RECORD_ATTRS}
        message = record.getMessage().replace("{", "{{").replace("}", "}}")

        target = logger.bind(**extra) if extra else logger
        target.opt(depth=6, exception=record.exc_info, record=True).log(level, message)


def _redact(extra: Dict[str, Any]) -> Dict[str, Any]:
    return {key: ("***" if key.lower() in _REDACTED_KEYS else value) for key, value in extra.items()}


def _render(message: "logger.Message", metadata: Dict[str, str]) -> str:
    record = message.record
    payload: Dict[str, Any] = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name.lower(),
        "message": record["message"],
        "logger": record["name"],
        **metadata,
    }

    span_context = trace.get_current_span().get_span_context()
    if span_context.is_valid:
        payload["trace_id"] = f"{span_context.trace_id:032x}"
        payload["span_id"] = f"{span_context.span_id:016x}"

    if record["extra"]:
        payload.update(_redact(record["extra"]))
    if record["exception"] is not None:
        exc_type = record["exception"].type
        payload["exception"] = exc_type.__name__ if exc_type else None

    return json.dumps(payload, default=str)


def configure_logging(
    *,
    service_name: str,
    environment: str,
    version: str,
    sink: Sink | None = None,
) -> None:
    """Route Loguru and stdlib logging to a single JSON line sink."""

    write = sink or (lambda line: print(line, file=sys.stdout))
    metadata = {"service": service_name, "environment": environment, "version": version}

    logger.remove()
    logger.add(lambda message: write(_render(message, metadata)), backtrace=False, diagnose=False)

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for noisy in ("uvicorn.access", "httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


__all__ = ["InterceptHandler", "configure_logging"]
