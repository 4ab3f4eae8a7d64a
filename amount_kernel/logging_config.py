"""
Structured JSON logging for the amount kernel.

Every record is one JSON object per line. Amounts (``Decimal``) are written
as strings so that no digit is lost to float conversion. The document being
calculated is identified through ``LogContext``: document engines bind
``document_type``, the precision lookup binds ``company_id`` and callers
may bind ``document_id``; each field appears on every record logged while
it is bound.
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
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any, Iterator

# ---------------------------------------------------------------------------
# Document context
# ---------------------------------------------------------------------------

_CONTEXT_VARS: dict[str, ContextVar[str | None]] = {
    name: ContextVar(f"amount_log_{name}", default=None)
    for name in ("company_id", "document_type", "document_id")
}


class LogContext:
    """Identifies the company and document a calculation belongs to."""

    FIELDS: tuple[str, ...] = tuple(_CONTEXT_VARS)

    @staticmethod
    def _var(name: str) -> ContextVar[str | None]:
        try:
            return _CONTEXT_VARS[name]
        except KeyError:
            raise TypeError(f"unknown log context field: {name!r}") from None

    @classmethod
    def set(cls, **fields: str | None) -> None:
        """Set fields for the rest of the current context. None leaves a field as is."""
        for name, value in fields.items():
            var = cls._var(name)
            if value is not None:
                var.set(value)

    @classmethod
    def get_all(cls) -> dict[str, str]:
        """Bound fields only, in declaration order."""
        return {
            name: value
            for name, var in _CONTEXT_VARS.items()
            if (value := var.get()) is not None
        }

    @classmethod
    def clear(cls) -> None:
        for var in _CONTEXT_VARS.values():
            var.set(None)

    @classmethod
    @contextmanager
    def bind(cls, **fields: str | None) -> Iterator[type["LogContext"]]:
        """Bind fields for the duration of a ``with`` block, then restore them."""
        tokens = [
            (var, var.set(value))
            for var, value in ((cls._var(name), value) for name, value in fields.items())
            if value is not None
        ]
        try:
            yield cls
        finally:
            for var, token in reversed(tokens):
                var.reset(token)


# ---------------------------------------------------------------------------
# JSON Formatter
# ---------------------------------------------------------------------------

_RESERVED_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


class StructuredFormatter(logging.Formatter):
    """One JSON line per record: envelope, document context, then extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }

        # extras never override the envelope or the bound context
        for key, val in vars(record).items():
            if key not in _RESERVED_KEYS:
                payload.setdefault(key, val)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(self._exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)

    @staticmethod
    def _exception_fields(exc: BaseException) -> dict[str, Any]:
        fields: dict[str, Any] = {
            "exc_type": type(exc).__name__,
            "exc_message": str(exc),
        }
        code = getattr(exc, "code", None)
        if code is not None:
            fields["exc_code"] = code
        # AmountKernelError subclasses keep their inputs as attributes
        for key, val in vars(exc).items():
            if not key.startswith("_") and key != "code":
                fields[f"exc_{key}"] = val
        return fields


# ---------------------------------------------------------------------------
# Logger factory
# ---------------------------------------------------------------------------

_LOGGER_PREFIX = "amount_kernel"


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the amount_kernel namespace."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


# ---------------------------------------------------------------------------
# Initialization
# ---------------------------------------------------------------------------

_configured = False
_lock = threading.Lock()


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """Attach a JSON handler to the amount_kernel logger. Later calls are no-ops."""
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    h = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
    h.setFormatter(StructuredFormatter())

    root_logger = logging.getLogger(_LOGGER_PREFIX)
    root_logger.setLevel(level)
    root_logger.propagate = False
    root_logger.addHandler(h)


def reset_logging() -> None:
    """Undo ``configure_logging``. FOR TESTING ONLY."""
    global _configured
    with _lock:
        _configured = False
    root_logger = logging.getLogger(_LOGGER_PREFIX)
    root_logger.handlers.clear()
    root_logger.setLevel(logging.WARNING)
    root_logger.propagate = True
