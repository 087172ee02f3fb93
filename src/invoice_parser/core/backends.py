"""Backends for the external extraction capability.

A backend receives one :class:`ExtractionRequest` (image token plus the
schema and instruction bundle) and returns the raw model output. It does
not validate the output; that is the extractor's job.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

from openai import OpenAI, OpenAIError
from pydantic import BaseModel, Field

from invoice_parser.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class ExtractionRequest(BaseModel):
    """Everything a backend needs for one extraction call."""

    image_token: str = Field(repr=False, description="data:<media-type>;base64,<payload>")
    system_prompt: str
    user_prompt: str
    schema_name: str = Field(description="Name of the output schema")
    json_schema: dict[str, Any] = Field(description="JSON Schema of the expected output")
    strict: bool = True
    temperature: float = 0.0
    max_tokens: int | None = None
    timeout: float | None = None


class BackendResponse(BaseModel):
    """Raw output of an extraction backend."""

    content: str | None = Field(description="Model output text, expected to be JSON")
    model: str | None = None
    total_tokens: int | None = None
    refusal: str | None = None


class ExtractionBackend(ABC):
    """Capability interface: image + schema in, raw structured output out.

    Implementations raise whatever their transport raises; the extractor
    maps every failure to :class:`~invoice_parser.core.exceptions.ExtractionUnavailable`.
    """

    model: str

    @abstractmethod
    def invoke(self, request: ExtractionRequest) -> BackendResponse:
        """Run one extraction call."""


class OpenAIBackend(ExtractionBackend):
    """Backend using the OpenAI chat completions API with structured outputs."""

    def __init__(
        self,
        client: OpenAI | None = None,
        api_key: str | None = None,
        model: str = "gpt-4.1",
    ) -> None:
        """Initialize the backend.

        Args:
            client: Pre-configured OpenAI client. If provided, api_key is ignored.
            api_key: OpenAI API key. If not provided, the SDK reads OPENAI_API_KEY.
            model: Vision-capable model to use.

        Raises:
            ConfigurationError: If no client is given and the SDK cannot be configured
        """
        self.model = model
        if client is not None:
            self._client = client
        else:
            try:
                self._client = OpenAI(api_key=api_key)
            except OpenAIError as e:
                raise ConfigurationError(f"Could not configure OpenAI client: {e}") from e

    def invoke(self, request: ExtractionRequest) -> BackendResponse:
        if request.strict:
            response_format: dict[str, Any] = {
                "type": "json_schema",
                "json_schema": {
                    "name": request.schema_name,
                    "schema": request.json_schema,
                    "strict": True,
                },
            }
        else:
            response_format = {"type": "json_object"}

        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": request.system_prompt},
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": request.user_prompt},
                        {
                            "type": "image_url",
                            "image_url": {"url": request.image_token, "detail": "high"},
                        },
                    ],
                },
            ],
            "temperature": request.temperature,
            "response_format": response_format,
        }
        if request.max_tokens:
            kwargs["max_completion_tokens"] = request.max_tokens
        if request.timeout:
            kwargs["timeout"] = request.timeout

        logger.debug("Calling %s (strict=%s)", self.model, request.strict)
        completion = self._client.chat.completions.create(**kwargs)

        message = completion.choices[0].message
        usage = completion.usage
        return BackendResponse(
            content=message.content,
            model=completion.model,
            total_tokens=usage.total_tokens if usage else None,
            refusal=getattr(message, "refusal", None),
        )
