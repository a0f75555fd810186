"""Structured logging configuration for QuoteLedger.

JSON lines in production, human-readable text in development. The
request id set by the request context middleware is attached to every
record emitted while that request is being handled, and the quote id
set by ``quote_log_context`` to every record emitted while a quote is
being saved, restored or deleted.
"""

import contextvars
import json
import logging
import re
import sys
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, Optional


# Shared contextvar: set by request_context middleware, read by formatter.
request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="")

# Quote being mutated by the current save/restore, set by quote_log_context.
quote_id_var: contextvars.ContextVar[Optional[int]] = contextvars.ContextVar("quote_id", default=None)


@contextmanager
def quote_log_context(quote_id: int) -> Iterator[None]:
    """Tag every record logged inside the block with ``quote_id``."""
    token = quote_id_var.set(quote_id)
    try:
        yield
    finally:
        quote_id_var.reset(token)


class _JsonFormatter(logging.Formatter):
    """Emit each log record as a single JSON line.

    ``extra`` fields passed by the caller are merged into the top-level
    object, e.g. ``logger.info("Snapshot written", extra={"version_num": 3})``.
    """

    _RESERVED = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys())

    def format(self, record: logging.LogRecord) -> str:
        payload: dict = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        rid = request_id_var.get("")
        if rid:
            payload["request_id"] = rid

        qid = quote_id_var.get()
        if qid is not None:
            payload["quote_id"] = qid

        for key, value in record.__dict__.items():
            if key not in self._RESERVED and key not in payload:
                payload[key] = value

        if record.exc_info and "exc" not in payload:
            payload["exc"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


# Bearer tokens and key=value secrets must never reach the log output.
_SECRET_PATTERNS = [
    re.compile(r'(?i)(bearer\s+)[a-zA-Z0-9._\-]{20,}'),
    re.compile(r'(?i)((?:secret|password|token|authorization)[=:]\s*)[^\s,\'"]{8,}'),
]

_REDACTED = "***REDACTED***"


class _SecretFilter(logging.Filter):
    """Redact credentials from log messages and exception text."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = self._redact(str(record.msg))
        if record.exc_text:
            record.exc_text = self._redact(record.exc_text)
        return True

    @staticmethod
    def _redact(text: str) -> str:
        for pattern in _SECRET_PATTERNS:
            text = pattern.sub(lambda m: m.group(1) + _REDACTED, text)
        return text


class _TextContextFilter(logging.Filter):
    """Expose request, quote and version ids to the text format as ``%(context)s``."""

    def filter(self, record: logging.LogRecord) -> bool:
        parts = []
        rid = request_id_var.get("")
        if rid:
            parts.append(f"req={rid}")
        qid = getattr(record, "quote_id", None)
        if qid is None:
            qid = quote_id_var.get()
        if qid is not None:
            parts.append(f"quote={qid}")
        version_num = getattr(record, "version_num", None)
        if version_num is not None:
            parts.append(f"v{version_num}")
        record.context = f"[{' '.join(parts)}] " if parts else ""
        return True


def setup_logging(log_level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """Configure application-wide logging.

    Args:
        log_level: One of DEBUG, INFO, WARNING, ERROR, CRITICAL. Defaults to INFO.
        log_format: ``"json"`` for structured output, ``"text"`` for human-readable.
    """
    level = (log_level or "INFO").upper()
    fmt = (log_format or "json").lower()

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(_SecretFilter())

    if fmt == "json":
        handler.setFormatter(_JsonFormatter())
    else:
        handler.addFilter(_TextContextFilter())
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s - %(name)s - %(levelname)s - %(context)s%(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    logging.getLogger(__name__).info("Logging configured", extra={"level": level, "format": fmt})
