"""``prompt-enhancer`` command line entry point."""

from typing import Optional

import click

from prompt_enhancer.cli.commands import config_cmd, enhance_cmd, health_cmd
from prompt_enhancer.cli.registry import CLIContext


@click.group()
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False),
    envvar="PROMPT_ENHANCER_CONFIG_FILE",
    help="TOML config file (replaces the default lookup).",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Enable logging to stderr at this level.",
)
@click.pass_context
def cli(ctx: click.Context, config_file: Optional[str], log_level: Optional[str]) -> None:
    """Enhance prompts through a resilient Messages API client."""
    ctx.obj = CLIContext(
        config_file=config_file,
        log_level=log_level.upper() if log_level else None,
    )


cli.add_command(enhance_cmd)
cli.add_command(health_cmd)
cli.add_command(config_cmd)


if __name__ == "__main__":
    cli()
