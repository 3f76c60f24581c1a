"""System instruction and user message builders.

Kept free of I/O so the outbound request can be asserted on directly.
"""

from typing import Any, Dict, Mapping, Optional

from prompt_enhancer.core.models import EnhancementOptions, EnhancementRequest

ENHANCEMENT_TEMPERATURE = 0.3

_GUIDELINES = (
    "Guidelines:\n"
    "- Maintain the original intent and core requirements\n"
    "- Improve clarity and specificity\n"
    "- Add relevant context and examples where helpful\n"
    "- Structure the prompt logically\n"
    "- Ensure actionability and measurability where appropriate"
)


def build_system_prompt(options: Optional[EnhancementOptions] = None) -> str:
    """Build the system instruction from enhancement options.

    Args:
        options: Enhancement options; defaults apply when omitted.

    Returns:
        System prompt text.
    """
    opts = options or EnhancementOptions()
    focus = ", ".join(area.value for area in opts.focus_areas)

    prompt = (
        "You are an expert prompt engineer. Your task is to enhance user prompts "
        "to be more effective, clear, and comprehensive.\n\n"
        f"Enhancement style: {opts.style.value}\n"
        f"Focus areas: {focus}\n\n"
        f"{_GUIDELINES}"
    )

    if opts.include_examples:
        prompt += "\n- Include concrete examples that illustrate the expected output"
    if opts.custom_instructions:
        prompt += f"\n\nCustom instructions: {opts.custom_instructions}"
    if opts.max_length:
        prompt += f"\n\nKeep the enhanced prompt under {opts.max_length} characters."
    return prompt


def build_user_message(original_text: str, context: Optional[Mapping[str, Any]] = None) -> str:
    """Embed the draft prompt and any string-valued context entries."""
    message = f"Please enhance the following prompt:\n\n{original_text}"

    if context:
        lines = [
            f"- {key}: {value}"
            for key, value in context.items()
            if isinstance(value, str) and value
        ]
        if lines:
            message += "\n\nAdditional context:\n" + "\n".join(lines)
    return message


def build_message_request(
    request: EnhancementRequest,
    *,
    model: str,
    max_tokens: int,
) -> Dict[str, Any]:
    """Assemble the JSON body for ``POST /v1/messages``."""
    return {
        "model": model,
        "max_tokens": max_tokens,
        "system": build_system_prompt(request.options),
        "messages": [
            {"role": "user", "content": build_user_message(request.original_text, request.context)}
        ],
        "temperature": ENHANCEMENT_TEMPERATURE,
    }
