"""Context propagation so log records know which file or query they belong to."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar


log_context: ContextVar[dict | None] = ContextVar("log_context", default=None)


def get_log_context() -> dict:
    """Return the active scope fields (empty when nothing is bound)."""
    return dict(log_context.get() or {})


def bind_log_context(**fields: object) -> None:
    """Merge fields into the current scope."""
    ctx = log_context.get() or {}
    log_context.set({**ctx, **fields})


@contextmanager
def log_scope(**fields: object) -> Iterator[None]:
    """Bind fields for the duration of a block, restoring the previous scope after."""
    ctx = log_context.get() or {}
    token = log_context.set({**ctx, **fields})
    try:
        yield
    finally:
        log_context.reset(token)
