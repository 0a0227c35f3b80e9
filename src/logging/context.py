# src/logging/context.py — v2
"""Contextual logging support: attach operation, run_id and category to log records."""

from __future__ import annotations

import contextlib
import contextvars
import uuid
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

# Set per maintenance pass (clean / migrate / submit).
_operation: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "operation", default=None
)
_run_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "run_id", default=None
)
_category: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "category", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    operation: str | None = None
    run_id: str | None = None
    category: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        operation=_operation.get(),
        run_id=_run_id.get(),
        category=_category.get(),
    )


def new_run_id() -> str:
    return uuid.uuid4().hex[:8]


def set_operation_context(operation: str, run_id: str | None = None) -> str:
    """Set pass-level context; returns the run_id in effect."""
    rid = run_id or new_run_id()
    _operation.set(operation)
    _run_id.set(rid)
    _category.set(None)
    return rid


def set_category_context(category: str | None) -> None:
    """Set the cache category currently being processed."""
    _category.set(category)


def clear_context() -> None:
    """Reset all context variables."""
    _operation.set(None)
    _run_id.set(None)
    _category.set(None)


@contextlib.contextmanager
def operation_context(operation: str, run_id: str | None = None) -> Iterator[str]:
    """Scope pass-level context to a block, restoring the previous values on exit."""
    tokens = (_operation.set(None), _run_id.set(None), _category.set(None))
    try:
        yield set_operation_context(operation, run_id)
    finally:
        for var, token in zip((_operation, _run_id, _category), tokens):
            var.reset(token)
