"""
Structured logging for order and external job commands.

Every record under the ``mfg_kernel`` logger tree is rendered as one JSON
object per line.  The object carries a fixed envelope (``ts``, ``level``,
``logger``, ``message``), whichever of the command identifiers are bound
in :class:`LogContext`, any ``extra=`` fields, and the public attributes
of a logged exception.

Commands bind the order and actor they act on::

    with LogContext.bind(order_id=order.order_id, actor_id=actor.actor_id):
        logger.info("order_status_changed", extra={"to_status": new_status})
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
from contextvars import ContextVar, Token
from datetime import UTC, date, datetime
from enum import Enum
from typing import Any, Iterator
from uuid import UUID

ROOT_LOGGER_NAME = "mfg_kernel"

# Identifiers a command can attach to every record it emits.
_CONTEXT_VARS: dict[str, ContextVar[str | None]] = {
    name: ContextVar(f"mfg_log_{name}", default=None)
    for name in ("actor_id", "order_id", "external_job_id")
}


class LogContext:
    """Per-command identifiers copied into each structured record.

    Backed by context variables, so concurrent commands on different
    threads or tasks never see each other's order or job.
    """

    @staticmethod
    def set(**fields: str | None) -> None:
        """Bind identifiers for the rest of the current context.

        ``None`` values are skipped.  Unknown names raise ``KeyError``.
        """
        for name, value in fields.items():
            if value is not None:
                _CONTEXT_VARS[name].set(value)

    @staticmethod
    def get_all() -> dict[str, str]:
        bound = {name: var.get() for name, var in _CONTEXT_VARS.items()}
        return {name: value for name, value in bound.items() if value is not None}

    @staticmethod
    def clear() -> None:
        for var in _CONTEXT_VARS.values():
            var.set(None)

    @staticmethod
    @contextmanager
    def bind(**fields: str | None) -> Iterator[None]:
        """Bind identifiers for the ``with`` block, then restore the previous values."""
        tokens: list[tuple[ContextVar[str | None], Token]] = [
            (_CONTEXT_VARS[name], _CONTEXT_VARS[name].set(value))
            for name, value in fields.items()
            if value is not None
        ]
        try:
            yield
        finally:
            for var, token in reversed(tokens):
                var.reset(token)


def _to_json(value: Any) -> Any:
    """Fallback for values ``json`` cannot encode natively."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return sorted(str(_to_json(item)) for item in value)
    if isinstance(value, UUID):
        return str(value)
    return str(value)


# Attributes every LogRecord has; anything else came in through ``extra=``.
_RECORD_ATTRIBUTES = frozenset(vars(logging.makeLogRecord({}))) | {"message", "taskName"}


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    # OrderKernelError subclasses keep their identifiers as attributes.
    for attr, value in vars(exc).items():
        if attr != "code" and not attr.startswith("_"):
            fields[f"exc_{attr}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """Render a record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        for key, value in vars(record).items():
            if key not in _RECORD_ATTRIBUTES:
                payload.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_to_json)


def get_logger(name: str) -> logging.Logger:
    """Return ``mfg_kernel.<name>``."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


_configured = False
_configure_lock = threading.Lock()


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """Attach one JSON handler to the ``mfg_kernel`` tree.

    Only the first call has an effect until :func:`reset_logging` runs.
    """
    global _configured
    with _configure_lock:
        if _configured:
            return
        _configured = True

    if handler is None:
        handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter())

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level)
    root.propagate = False
    root.addHandler(handler)


def reset_logging() -> None:
    """Undo :func:`configure_logging`. Used by the test suite."""
    global _configured
    with _configure_lock:
        _configured = False
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.handlers.clear()
    root.setLevel(logging.WARNING)
    root.propagate = True
