"""Result types for extraction outputs."""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, Field

from invoice_parser.schemas.invoice import InvoiceData


class ExtractionResult(BaseModel):
    """Result of a successful invoice extraction.

    ``data`` is the normalized record: every schema field present, in schema
    order, and nothing else.
    """

    data: dict[str, Any] = Field(description="The normalized invoice record")

    # Metadata
    model_used: str | None = Field(
        default=None,
        description="LLM model used for extraction",
    )
    tokens_used: int | None = Field(
        default=None,
        description="Total tokens used for extraction",
    )
    raw_response: str | None = Field(
        default=None,
        description="Raw LLM response for debugging",
    )

    def to_json(self, indent: int = 2) -> str:
        """Serialize the record for display and editing."""
        return json.dumps(self.data, indent=indent, ensure_ascii=False)

    def to_invoice(self) -> InvoiceData:
        """Load the record into the typed invoice model."""
        return InvoiceData.model_validate(self.data)
