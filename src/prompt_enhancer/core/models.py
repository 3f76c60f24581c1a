"""Request, result and health models for prompt enhancement."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class EnhancementStyle(str, Enum):
    """Tone the enhanced prompt should take."""

    PROFESSIONAL = "professional"
    CREATIVE = "creative"
    TECHNICAL = "technical"
    CASUAL = "casual"


class FocusArea(str, Enum):
    """Aspects of the prompt the enhancement concentrates on."""

    CLARITY = "clarity"
    DETAIL = "detail"
    STRUCTURE = "structure"
    CREATIVITY = "creativity"


class _Model(BaseModel):
    # Accept both snake_case and camelCase keys from mapping input
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        protected_namespaces=(),
    )


class EnhancementOptions(_Model):
    """Options controlling the system instruction."""

    style: EnhancementStyle = Field(
        default=EnhancementStyle.PROFESSIONAL, description="Enhancement style"
    )
    focus_areas: List[FocusArea] = Field(
        default_factory=lambda: [FocusArea.CLARITY, FocusArea.DETAIL],
        description="Focus areas for enhancement",
    )
    max_length: Optional[int] = Field(
        default=None, gt=0, description="Maximum length of the enhanced prompt in characters"
    )
    include_examples: bool = Field(default=False, description="Ask for concrete examples")
    custom_instructions: Optional[str] = Field(
        default=None, description="Free-form instructions appended to the system prompt"
    )


class EnhancementRequest(_Model):
    """A draft prompt to enhance.

    ``original_text`` is checked by the client (non-empty, bounded length) so
    that failures surface as VALIDATION ServiceErrors.
    """

    original_text: str = Field(description="Prompt text to enhance")
    context: Optional[Dict[str, Any]] = Field(
        default=None, description="Extra context; only string values are sent"
    )
    options: Optional[EnhancementOptions] = Field(default=None, description="Enhancement options")


class TokenUsage(_Model):
    """Token accounting reported by the remote API."""

    input: int = Field(default=0, ge=0)
    output: int = Field(default=0, ge=0)
    total: int = Field(default=0, ge=0)


class EnhancementMetadata(_Model):
    """Bookkeeping attached to every result."""

    original_length: int = Field(ge=0)
    enhanced_length: int = Field(ge=0)
    processing_time_ms: float = Field(ge=0)
    model_used: str
    token_usage: TokenUsage = Field(default_factory=TokenUsage)


class EnhancementResult(_Model):
    """Enhanced prompt plus metadata."""

    enhanced_text: str
    confidence: float = Field(ge=0.0, le=1.0)
    metadata: EnhancementMetadata
    suggestions: List[str] = Field(default_factory=list)


class HealthCheckResult(_Model):
    """Outcome of ``EnhancementClient.health_check``."""

    healthy: bool
    response_time_ms: float = Field(ge=0)
    circuit_breaker: Dict[str, Any] = Field(description="Circuit breaker stats snapshot")
    last_error: Optional[Dict[str, Any]] = Field(
        default=None, description="ServiceError details when unhealthy"
    )
    timestamp: datetime
