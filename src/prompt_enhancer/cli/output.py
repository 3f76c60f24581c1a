"""JSON envelope output for CLI commands.

Every command prints exactly one envelope to stdout:

    {"success": true, "data": {...}, "error": null}

Errors exit with status 1.
"""

import json
import sys
from typing import Any, Dict, NoReturn, Optional

import click

from prompt_enhancer.core.errors import ServiceError


def _emit(payload: Dict[str, Any]) -> None:
    click.echo(json.dumps(payload, indent=2, default=str))


def emit_success(data: Dict[str, Any]) -> None:
    """Print a success envelope."""
    _emit({"success": True, "data": data, "error": None})


def emit_error(
    message: str,
    *,
    code: str,
    error_type: str,
    remediation: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> NoReturn:
    """Print an error envelope and exit with status 1."""
    data: Dict[str, Any] = {"error_code": code, "error_type": error_type}
    if remediation:
        data["remediation"] = remediation
    if details:
        data["details"] = details
    _emit({"success": False, "data": data, "error": message})
    sys.exit(1)


def emit_service_error(error: ServiceError, *, remediation: Optional[str] = None) -> NoReturn:
    """Print a ServiceError as an error envelope and exit with status 1."""
    details = error.to_details()
    details.pop("message", None)
    emit_error(
        error.message,
        code=error.kind.value,
        error_type="retryable" if error.retryable else "permanent",
        remediation=remediation,
        details=details,
    )
