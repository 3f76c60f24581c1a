"""Layered configuration loading for ServiceConfig.

Priority (highest to lowest):
1. In-process overrides passed to ``load_config``
2. Environment variables
3. Project TOML config (./prompt-enhancer.toml), or an explicit file
4. User TOML config (~/.prompt-enhancer.toml)
5. XDG config (~/.config/prompt-enhancer/config.toml)
6. Default values
"""

from __future__ import annotations

import logging
import os
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # Python < 3.11 fallback

from prompt_enhancer.config.parsing import (
    _normalize_log_level,
    _parse_number,
    _try_parse_bool,
)
from prompt_enhancer.config.settings import API_KEY_ENV_VAR, ServiceConfig
from prompt_enhancer.core.errors import ServiceError
from prompt_enhancer.core.observability import audit_log

logger = logging.getLogger(__name__)

CONFIG_FILE_ENV_VAR = "PROMPT_ENHANCER_CONFIG_FILE"
ENV_PREFIX = "PROMPT_ENHANCER_"

# Integer settings readable from [enhancer] and PROMPT_ENHANCER_<NAME>
_INT_SETTINGS = (
    "max_tokens",
    "timeout_ms",
    "max_retries",
    "retry_delay_ms",
    "max_retry_delay_ms",
    "circuit_breaker_threshold",
    "circuit_breaker_reset_timeout_ms",
)
_STR_SETTINGS = ("api_key", "model", "base_url", "api_version")

_FIELD_NAMES = {f.name for f in fields(ServiceConfig)} - {"startup_warnings"}


def _apply_enhancer_table(values: Dict[str, Any], table: Dict[str, Any], warnings: List[str]) -> None:
    for name in _INT_SETTINGS:
        if name in table:
            parsed = _parse_number(f"[enhancer].{name}", table[name], warnings)
            if parsed is not None:
                values[name] = parsed
    for name in _STR_SETTINGS:
        if name in table:
            values[name] = str(table[name])


def _apply_logging_table(values: Dict[str, Any], table: Dict[str, Any], warnings: List[str]) -> None:
    if "level" in table:
        level = _normalize_log_level(table["level"], warnings)
        if level:
            values["log_level"] = level
    if "structured" in table:
        structured = _try_parse_bool(table["structured"])
        if structured is None:
            message = f"Ignoring invalid value for [logging].structured: {table['structured']!r}"
            logger.warning(message)
            warnings.append(message)
        else:
            values["structured_logging"] = structured


def _load_toml(path: Path, values: Dict[str, Any], warnings: List[str]) -> None:
    """Merge settings from a TOML file into ``values``."""
    if not path.exists():
        logger.warning(f"Config file not found: {path}")
        warnings.append(f"Config file not found: {path}")
        return

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.error(f"Error loading config file {path}: {e}")
        warnings.append(f"Error loading config file {path}: {e}")
        return

    if isinstance(data.get("enhancer"), dict):
        _apply_enhancer_table(values, data["enhancer"], warnings)
    if isinstance(data.get("logging"), dict):
        _apply_logging_table(values, data["logging"], warnings)
    logger.debug(f"Loaded config from {path}")


def _load_env(values: Dict[str, Any], warnings: List[str]) -> None:
    """Merge settings from environment variables into ``values``."""
    if api_key := os.environ.get(API_KEY_ENV_VAR):
        values["api_key"] = api_key

    for name in _INT_SETTINGS:
        env_name = f"{ENV_PREFIX}{name.upper()}"
        if raw := os.environ.get(env_name):
            parsed = _parse_number(env_name, raw, warnings)
            if parsed is not None:
                values[name] = parsed

    if model := os.environ.get(f"{ENV_PREFIX}MODEL"):
        values["model"] = model
    if base_url := os.environ.get(f"{ENV_PREFIX}BASE_URL"):
        values["base_url"] = base_url
    if api_version := os.environ.get(f"{ENV_PREFIX}API_VERSION"):
        values["api_version"] = api_version
    if level := os.environ.get(f"{ENV_PREFIX}LOG_LEVEL"):
        normalized = _normalize_log_level(level, warnings)
        if normalized:
            values["log_level"] = normalized
    if structured := os.environ.get(f"{ENV_PREFIX}STRUCTURED_LOGGING"):
        parsed_bool = _try_parse_bool(structured)
        if parsed_bool is None:
            message = f"Ignoring invalid value for {ENV_PREFIX}STRUCTURED_LOGGING: {structured!r}"
            logger.warning(message)
            warnings.append(message)
        else:
            values["structured_logging"] = parsed_bool


def load_config(
    config_file: Optional[Union[str, Path]] = None,
    **overrides: Any,
) -> ServiceConfig:
    """Build a ServiceConfig from defaults, TOML files, environment and overrides.

    Invalid values are skipped with a warning and recorded in
    ``ServiceConfig.startup_warnings``; loading itself never fails on them.
    The result is not validated here; ``EnhancementClient`` validates it.

    Args:
        config_file: Explicit TOML file; replaces the project/user/XDG lookup.
            Falls back to ``$PROMPT_ENHANCER_CONFIG_FILE``.
        **overrides: ServiceConfig field values applied last. ``None`` values
            are ignored.

    Returns:
        The loaded configuration.

    Raises:
        ServiceError: CONFIGURATION when an override names an unknown field.

    Example:
        >>> config = load_config(max_retries=5)
        >>> config.max_retries
        5
    """
    unknown = sorted(set(overrides) - _FIELD_NAMES)
    if unknown:
        raise ServiceError.configuration(
            f"Unknown configuration option(s): {', '.join(unknown)}"
        )

    values: Dict[str, Any] = {}
    warnings: List[str] = []

    toml_path = config_file or os.environ.get(CONFIG_FILE_ENV_VAR)
    if toml_path:
        _load_toml(Path(toml_path), values, warnings)
    else:
        # Layered config loading (lowest to highest priority):
        # 1. XDG config directory
        xdg_config_home = os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
        xdg_config = Path(xdg_config_home) / "prompt-enhancer" / "config.toml"
        if xdg_config.exists():
            _load_toml(xdg_config, values, warnings)

        # 2. Home directory config
        home_config = Path.home() / ".prompt-enhancer.toml"
        if home_config.exists():
            _load_toml(home_config, values, warnings)

        # 3. Project directory config
        project_config = Path("prompt-enhancer.toml")
        if project_config.exists():
            _load_toml(project_config, values, warnings)

    _load_env(values, warnings)

    values.update({key: value for key, value in overrides.items() if value is not None})

    config = ServiceConfig(startup_warnings=tuple(warnings), **values)
    audit_log(
        "config_loaded",
        model=config.model,
        base_url=config.base_url,
        api_key_set=bool(config.api_key),
        warning_count=len(warnings),
    )
    return config
