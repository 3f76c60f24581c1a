"""Core of the prompt enhancement client.

Sub-packages and modules:
- errors: ServiceError taxonomy and classification
- resilience: circuit breaker and retry executor
- observability: audit logging and redaction
- context: request-scoped correlation ids
- models: pydantic request/result models
- prompts: system prompt and user message builders
- transport: HTTP transport for the Messages API
- stats: per-client statistics
- client: EnhancementClient orchestrator
"""
