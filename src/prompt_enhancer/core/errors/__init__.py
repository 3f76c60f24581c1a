"""Error taxonomy for the enhancement client.

Modules:
    service  - ErrorKind enum and the tagged ServiceError exception
    classify - classify_error(): any failure -> ServiceError
"""

from prompt_enhancer.core.errors.classify import classify_error, parse_retry_after
from prompt_enhancer.core.errors.service import (
    TRANSIENT_KINDS,
    ErrorKind,
    ServiceError,
    is_retryable_kind,
)

__all__ = [
    "ErrorKind",
    "ServiceError",
    "TRANSIENT_KINDS",
    "classify_error",
    "is_retryable_kind",
    "parse_retry_after",
]
