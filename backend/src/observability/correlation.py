"""Correlation ID management for log correlation.

A correlation ID ties together every log record of one cleanup run (or one
HTTP request). It lives in a context variable so it follows the current
execution context without being threaded through call signatures.
"""

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)


def generate_correlation_id() -> str:
    """Generate a new unique correlation ID (UUID v4)."""
    return str(uuid.uuid4())


def get_correlation_id() -> str:
    """Current correlation ID, or "no-correlation-id" if not set."""
    return correlation_id_var.get() or "no-correlation-id"


@contextmanager
def bind_correlation_id(correlation_id: Optional[str] = None) -> Iterator[str]:
    """Bind a correlation ID for the duration of a block.

    Usage:
        with bind_correlation_id() as run_id:
            logger.info("starting")  # record carries run_id
    """
    correlation_id = correlation_id or generate_correlation_id()
    token = correlation_id_var.set(correlation_id)
    try:
        yield correlation_id
    finally:
        correlation_id_var.reset(token)
