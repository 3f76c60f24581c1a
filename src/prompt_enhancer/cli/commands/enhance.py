"""``prompt-enhancer enhance``: enhance a prompt and print the result."""

import asyncio
from typing import IO, Dict, Optional, Tuple

import click

from prompt_enhancer.cli.output import emit_error, emit_service_error, emit_success
from prompt_enhancer.cli.registry import get_context
from prompt_enhancer.core.client import EnhancementClient
from prompt_enhancer.core.errors import ServiceError
from prompt_enhancer.core.models import (
    EnhancementOptions,
    EnhancementRequest,
    EnhancementResult,
    EnhancementStyle,
    FocusArea,
)


def _parse_context(pairs: Tuple[str, ...]) -> Dict[str, str]:
    context: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            emit_error(
                f"Invalid --context value: {pair!r}",
                code="VALIDATION",
                error_type="permanent",
                remediation="Use KEY=VALUE, e.g. --context audience=developers",
            )
        context[key.strip()] = value
    return context


async def _run(client: EnhancementClient, request: EnhancementRequest) -> EnhancementResult:
    async with client:
        return await client.enhance(request)


@click.command("enhance")
@click.argument("text", required=False)
@click.option(
    "--file",
    "input_file",
    type=click.File("r"),
    help="Read the prompt from a file ('-' for stdin).",
)
@click.option(
    "--style",
    type=click.Choice([s.value for s in EnhancementStyle]),
    default=EnhancementStyle.PROFESSIONAL.value,
    show_default=True,
    help="Enhancement style.",
)
@click.option(
    "--focus",
    "focus_areas",
    type=click.Choice([f.value for f in FocusArea]),
    multiple=True,
    help="Focus area (repeatable). Defaults to clarity and detail.",
)
@click.option("--max-length", type=click.IntRange(min=1), help="Character limit for the result.")
@click.option("--include-examples", is_flag=True, help="Ask for concrete examples.")
@click.option("--instructions", "custom_instructions", help="Custom enhancement instructions.")
@click.option(
    "--context",
    "context_pairs",
    multiple=True,
    metavar="KEY=VALUE",
    help="Extra context entry (repeatable).",
)
@click.pass_context
def enhance_cmd(
    ctx: click.Context,
    text: Optional[str],
    input_file: Optional[IO[str]],
    style: str,
    focus_areas: Tuple[str, ...],
    max_length: Optional[int],
    include_examples: bool,
    custom_instructions: Optional[str],
    context_pairs: Tuple[str, ...],
) -> None:
    """Enhance TEXT (use '-' to read from stdin)."""
    cli_ctx = get_context(ctx)

    if input_file is not None:
        text = input_file.read()
    elif text == "-":
        with click.open_file("-") as stdin:
            text = stdin.read()

    if not text or not text.strip():
        emit_error(
            "No prompt text provided",
            code="VALIDATION",
            error_type="permanent",
            remediation="Pass TEXT, '-' for stdin, or --file PATH",
        )

    options = EnhancementOptions(
        style=style,
        max_length=max_length,
        include_examples=include_examples,
        custom_instructions=custom_instructions,
    )
    if focus_areas:
        options = options.model_copy(update={"focus_areas": [FocusArea(f) for f in focus_areas]})

    request = EnhancementRequest(
        original_text=text,
        context=_parse_context(context_pairs) or None,
        options=options,
    )

    client = cli_ctx.build_client()
    try:
        result = asyncio.run(_run(client, request))
    except ServiceError as e:
        emit_service_error(e)

    emit_success(
        {
            "enhanced_text": result.enhanced_text,
            "confidence": result.confidence,
            "metadata": result.metadata.model_dump(),
            "suggestions": result.suggestions,
        }
    )
