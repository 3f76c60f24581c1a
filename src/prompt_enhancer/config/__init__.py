"""Configuration for the prompt enhancement client.

Modules:
    settings - ServiceConfig frozen dataclass
    loader   - load_config(): TOML + environment + overrides
    parsing  - value parsing helpers
"""

from prompt_enhancer.config.loader import CONFIG_FILE_ENV_VAR, load_config
from prompt_enhancer.config.settings import (
    API_KEY_ENV_VAR,
    DEFAULT_MODEL,
    NOT_SET_PLACEHOLDER,
    REDACTED_PLACEHOLDER,
    ServiceConfig,
)

__all__ = [
    "API_KEY_ENV_VAR",
    "CONFIG_FILE_ENV_VAR",
    "DEFAULT_MODEL",
    "NOT_SET_PLACEHOLDER",
    "REDACTED_PLACEHOLDER",
    "ServiceConfig",
    "load_config",
]
