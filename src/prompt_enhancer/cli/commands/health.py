"""``prompt-enhancer health``: probe the Messages API."""

import asyncio

import click

from prompt_enhancer.cli.output import emit_error, emit_success
from prompt_enhancer.cli.registry import get_context
from prompt_enhancer.core.client import EnhancementClient
from prompt_enhancer.core.models import HealthCheckResult


async def _run(client: EnhancementClient) -> HealthCheckResult:
    async with client:
        return await client.health_check()


@click.command("health")
@click.pass_context
def health_cmd(ctx: click.Context) -> None:
    """Run a single health probe against the API."""
    client = get_context(ctx).build_client()
    result = asyncio.run(_run(client))
    data = result.model_dump(mode="json")

    if not result.healthy:
        last_error = result.last_error or {}
        emit_error(
            last_error.get("message", "Service is unhealthy"),
            code=last_error.get("kind", "UNHEALTHY"),
            error_type="retryable" if last_error.get("retryable") else "permanent",
            details=data,
        )
    emit_success(data)
