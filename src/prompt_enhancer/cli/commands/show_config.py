"""``prompt-enhancer config``: print the effective, redacted configuration."""

import click

from prompt_enhancer.cli.output import emit_success
from prompt_enhancer.cli.registry import get_context


@click.command("config")
@click.pass_context
def config_cmd(ctx: click.Context) -> None:
    """Show the effective configuration (API key redacted)."""
    config = get_context(ctx).load()
    emit_success(
        {
            "config": config.redacted(),
            "validation_errors": config.validation_errors(),
            "startup_warnings": list(config.startup_warnings),
        }
    )
