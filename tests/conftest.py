"""Shared fixtures for invoice-parser tests."""

import json
from collections.abc import Callable
from typing import Any
from unittest.mock import MagicMock

import pymupdf
import pytest

from invoice_parser import BackendResponse, Document, ExtractionBackend


def build_pdf(pages: int = 1, width: float = 400, height: float = 600) -> bytes:
    """Build an in-memory PDF with a line of invoice text on each page."""
    doc = pymupdf.open()
    for number in range(1, pages + 1):
        page = doc.new_page(width=width, height=height)
        page.insert_text((40, 60), f"TAX INVOICE INV-00{number}", fontsize=14)
        page.insert_text((40, 90), "Seller: Acme Ltd", fontsize=11)
        page.insert_text((40, 110), "Widget  100.00 x 2  GST 18%  236.00", fontsize=11)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def invoice_pdf() -> Document:
    """A one-page invoice PDF."""
    return Document(content=build_pdf(), media_type="application/pdf", filename="invoice.pdf")


@pytest.fixture
def acme_candidate() -> dict[str, Any]:
    """What the model returns for the Acme invoice: only the fields it found."""
    return {
        "invoice_number": "INV-001",
        "invoice_date": "2025-02-11",
        "seller": {"name": "Acme Ltd"},
        "buyer": {"name": "Globex Corp"},
        "invoice_items": [
            {
                "description": "Widget",
                "unit_price": 100,
                "qty": 2,
                "net_amount": 200,
                "tax": [{"tax_type": "GST", "tax_rate": 18, "tax_amount": 36}],
                "total_amount": 236,
            }
        ],
        "invoice_value": 236,
    }


@pytest.fixture
def make_response() -> Callable[..., BackendResponse]:
    """Factory for backend responses carrying a JSON payload."""

    def _make(payload: Any, model: str = "mock-model", tokens: int = 100) -> BackendResponse:
        content = payload if isinstance(payload, str) else json.dumps(payload)
        return BackendResponse(content=content, model=model, total_tokens=tokens)

    return _make


@pytest.fixture
def mock_backend() -> MagicMock:
    """Create a mock extraction backend."""
    backend = MagicMock(spec=ExtractionBackend)
    backend.model = "mock-model"
    return backend


@pytest.fixture
def make_pdf() -> Callable[..., bytes]:
    """Factory for in-memory PDFs."""
    return build_pdf
