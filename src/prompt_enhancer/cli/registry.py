"""Shared CLI context and client construction."""

import logging
from dataclasses import dataclass
from typing import Optional

import click

from prompt_enhancer.cli.output import emit_service_error
from prompt_enhancer.config import API_KEY_ENV_VAR, ServiceConfig, load_config
from prompt_enhancer.core.client import EnhancementClient
from prompt_enhancer.core.errors import ErrorKind, ServiceError

logger = logging.getLogger(__name__)


@dataclass
class CLIContext:
    """Options collected by the top-level ``prompt-enhancer`` group."""

    config_file: Optional[str] = None
    log_level: Optional[str] = None

    def load(self) -> ServiceConfig:
        """Load configuration, emitting an error envelope on failure."""
        try:
            config = load_config(self.config_file, log_level=self.log_level)
        except ServiceError as e:
            emit_service_error(e)
        if self.log_level:
            config.setup_logging()
        return config

    def build_client(self) -> EnhancementClient:
        """Create a client, emitting an error envelope when config is invalid."""
        config = self.load()
        try:
            return EnhancementClient(config)
        except ServiceError as e:
            remediation = None
            if e.kind == ErrorKind.CONFIGURATION and not config.api_key:
                remediation = f"Set the {API_KEY_ENV_VAR} environment variable"
            emit_service_error(e, remediation=remediation)


def get_context(ctx: click.Context) -> CLIContext:
    """Return the CLIContext stored on the click context."""
    return ctx.ensure_object(CLIContext)
