"""Configuration classes for extraction."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ExtractionConfig(BaseModel):
    """Configuration for the extraction process.

    Each call reaches the backend exactly once. Retries are left to the caller.
    """

    model_config = ConfigDict(frozen=True)

    # LLM settings
    temperature: float = Field(
        default=0.0,
        ge=0.0,
        le=2.0,
        description="LLM temperature for extraction (lower = more deterministic)",
    )
    max_tokens: int | None = Field(
        default=None,
        gt=0,
        description="Maximum tokens for LLM response",
    )
    timeout: float | None = Field(
        default=None,
        gt=0.0,
        description="Per-request timeout in seconds forwarded to the backend",
    )

    # Prompt settings
    system_prompt: str | None = Field(
        default=None,
        description="Custom system prompt override",
    )
    include_field_descriptions: bool = Field(
        default=True,
        description="Include field descriptions in the prompt",
    )
    include_example: bool = Field(
        default=True,
        description="Include a worked example invoice in the prompt",
    )
    field_hints: dict[str, str] = Field(
        default_factory=dict,
        description="Extra hints keyed by field path, e.g. {'seller.gst': '15 characters'}",
    )

    # Schema enforcement
    strict_schema: bool = Field(
        default=True,
        description="Request strict structured output from the backend",
    )
    forbid_extra_fields: bool = Field(
        default=True,
        description=(
            "Reject responses carrying undeclared top-level fields instead of "
            "dropping them during normalization"
        ),
    )
