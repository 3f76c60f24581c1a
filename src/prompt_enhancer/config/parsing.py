"""Parsing and normalization helpers for configuration values."""

import logging
from typing import Any, List, Optional

logger = logging.getLogger(__name__)

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _try_parse_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    normalized = str(value).strip().lower()
    if normalized in {"true", "1", "yes", "on"}:
        return True
    if normalized in {"false", "0", "no", "off"}:
        return False
    return None


def _parse_number(
    name: str,
    value: Any,
    warnings: List[str],
) -> Optional[int]:
    """Parse an integer setting, recording a warning instead of raising.

    Args:
        name: Setting name used in the warning text.
        value: Raw value from TOML or the environment.
        warnings: Startup warning list to append to on failure.

    Returns:
        The parsed integer, or None when the value is unusable.
    """
    if isinstance(value, bool):
        parsed = None
    else:
        try:
            parsed = int(str(value).strip())
        except (TypeError, ValueError):
            parsed = None
    if parsed is None:
        message = f"Ignoring invalid value for {name}: {value!r}"
        logger.warning(message)
        warnings.append(message)
    return parsed


def _normalize_log_level(value: Any, warnings: List[str]) -> Optional[str]:
    normalized = str(value).strip().upper()
    if normalized not in _VALID_LOG_LEVELS:
        message = (
            f"Invalid log level '{value}'. Valid options: "
            f"{', '.join(sorted(_VALID_LOG_LEVELS))}"
        )
        logger.warning(message)
        warnings.append(message)
        return None
    return normalized
