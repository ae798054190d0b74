"""Observability helpers: structured logging and scope propagation."""

from docsite_search.observability.context import bind_log_context, get_log_context, log_context, log_scope
from docsite_search.observability.logging import JsonFormatter, configure_logging


__all__ = [
    "JsonFormatter",
    "bind_log_context",
    "configure_logging",
    "get_log_context",
    "log_context",
    "log_scope",
]
