"""Request-scoped context for correlation ids.

Each ``enhance`` and ``health_check`` call runs inside ``request_context`` so
log records and audit events emitted anywhere below it share one id.
"""

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    """Return the active correlation id, or an empty string outside a request."""
    return _correlation_id.get()


def generate_correlation_id(prefix: str = "req") -> str:
    """Create a new correlation id such as ``req-3f2a9c1b7d4e``."""
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


@contextmanager
def request_context(
    correlation_id: Optional[str] = None,
    *,
    prefix: str = "req",
) -> Iterator[str]:
    """Bind a correlation id for the duration of the block.

    An explicit id wins; otherwise an id already set by the caller is reused,
    and a fresh one is generated only at the outermost level.

    Args:
        correlation_id: Id to bind, if the caller has one.
        prefix: Prefix for generated ids.

    Yields:
        The bound correlation id.
    """
    value = correlation_id or _correlation_id.get() or generate_correlation_id(prefix)
    token = _correlation_id.set(value)
    try:
        yield value
    finally:
        _correlation_id.reset(token)
