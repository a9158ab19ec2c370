"""Correlation ID management for request tracing."""

import uuid
from contextvars import ContextVar, Token

# Accessible across async calls and threadpool-run sync endpoints
correlation_id_var: ContextVar[str] = ContextVar("carrental_correlation_id", default="")

CORRELATION_ID_HEADER = "X-Correlation-ID"

# Longest client-supplied ID kept as-is; longer ones are replaced
MAX_CORRELATION_ID_LENGTH = 128


def generate_correlation_id() -> str:
    """Generate a new correlation ID."""
    return str(uuid.uuid4())


def resolve_correlation_id(header_value: str | None) -> str:
    """Return the client correlation ID if usable, else a fresh one."""
    if header_value and len(header_value) <= MAX_CORRELATION_ID_LENGTH:
        return header_value
    return generate_correlation_id()


def get_correlation_id() -> str:
    """Get current correlation ID from context."""
    return correlation_id_var.get()


def set_correlation_id(cid: str) -> Token[str]:
    """Set correlation ID in context."""
    return correlation_id_var.set(cid)


def reset_correlation_id(token: Token[str]) -> None:
    """Reset correlation ID to previous value."""
    correlation_id_var.reset(token)
