"""
Structured JSON logging for the payroll kernel.

Every line is one JSON object. Import batches bind ``batch_id`` and
``source`` so costing and mapper logs can be traced back to the batch
that produced them.
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from typing import Any

from payroll_kernel.exceptions import PayrollKernelError

# ---------------------------------------------------------------------------
# Batch context
# ---------------------------------------------------------------------------

_BATCH_FIELDS: dict[str, ContextVar[str | None]] = {
    "batch_id": ContextVar("payroll_batch_id", default=None),
    "source": ContextVar("payroll_batch_source", default=None),
}


class LogContext:
    """Async-safe holder for the import batch currently being processed."""

    @classmethod
    def set(cls, *, batch_id: str | None = None, source: str | None = None) -> None:
        """Set batch fields. ``None`` leaves a field untouched."""
        for name, value in (("batch_id", batch_id), ("source", source)):
            if value is not None:
                _BATCH_FIELDS[name].set(value)

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return {
            name: value
            for name, var in _BATCH_FIELDS.items()
            if (value := var.get()) is not None
        }

    @classmethod
    def clear(cls) -> None:
        for var in _BATCH_FIELDS.values():
            var.set(None)

    @classmethod
    @contextmanager
    def bind(
        cls, *, batch_id: str | None = None, source: str | None = None,
    ) -> Iterator[type["LogContext"]]:
        """Scope batch fields to a ``with`` block, restoring prior values on exit."""
        tokens = []
        for name, value in (("batch_id", batch_id), ("source", source)):
            if value is not None:
                var = _BATCH_FIELDS[name]
                tokens.append((var, var.set(value)))
        try:
            yield cls
        finally:
            for var, token in reversed(tokens):
                var.reset(token)


# ---------------------------------------------------------------------------
# JSON lines
# ---------------------------------------------------------------------------

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _json_default(obj: Any) -> str:
    # Rates and amounts stay exact: Decimal is written as its string form.
    if isinstance(obj, (date, datetime)):
        return obj.isoformat()
    return str(obj)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    if isinstance(exc, PayrollKernelError):
        fields["exc_code"] = exc.code
        for name, value in vars(exc).items():
            if not name.startswith("_"):
                fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: envelope, batch context, then extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        for key, value in vars(record).items():
            if key not in _RECORD_ATTRS:
                payload.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------

_ROOT = "payroll_kernel"
_setup_lock = threading.Lock()
_handler: logging.Handler | None = None


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``payroll_kernel`` namespace, e.g. ``engines.costing``."""
    return logging.getLogger(f"{_ROOT}.{name}")


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach a JSON handler to the ``payroll_kernel`` logger.

    Only the first call takes effect until ``reset_logging`` is called.
    """
    global _handler
    with _setup_lock:
        if _handler is not None:
            return
        _handler = handler or logging.StreamHandler(stream or sys.stderr)
        _handler.setFormatter(StructuredFormatter())

        root = logging.getLogger(_ROOT)
        root.setLevel(level)
        root.propagate = False
        root.addHandler(_handler)


def reset_logging() -> None:
    """Detach the handler and restore default propagation (used by tests)."""
    global _handler
    with _setup_lock:
        _handler = None
        root = logging.getLogger(_ROOT)
        root.handlers.clear()
        root.setLevel(logging.WARNING)
        root.propagate = True
