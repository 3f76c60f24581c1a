"""CLI commands."""

from prompt_enhancer.cli.commands.enhance import enhance_cmd
from prompt_enhancer.cli.commands.health import health_cmd
from prompt_enhancer.cli.commands.show_config import config_cmd

__all__ = [
    "config_cmd",
    "enhance_cmd",
    "health_cmd",
]
