"""prompt-enhancer: resilient prompt enhancement over the Messages API."""

import logging

from prompt_enhancer.config import ServiceConfig, load_config
from prompt_enhancer.core.client import EnhancementClient
from prompt_enhancer.core.errors import ErrorKind, ServiceError, classify_error
from prompt_enhancer.core.models import (
    EnhancementOptions,
    EnhancementRequest,
    EnhancementResult,
    HealthCheckResult,
)
from prompt_enhancer.core.stats import ServiceStats

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Client
    "EnhancementClient",
    # Config
    "ServiceConfig",
    "load_config",
    # Errors
    "ErrorKind",
    "ServiceError",
    "classify_error",
    # Models & stats
    "EnhancementOptions",
    "EnhancementRequest",
    "EnhancementResult",
    "HealthCheckResult",
    "ServiceStats",
]
