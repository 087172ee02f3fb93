"""Core extraction functionality."""

from invoice_parser.core.exceptions import (
    ConfigurationError,
    CorruptDocument,
    ExtractionCancelled,
    ExtractionError,
    ExtractionUnavailable,
    ExtractionValidationError,
    InvoiceParserError,
    RasterizationError,
    SchemaViolation,
    TypeMismatch,
    UnsupportedFormat,
)
from invoice_parser.core.config import ExtractionConfig
from invoice_parser.core.backends import (
    BackendResponse,
    ExtractionBackend,
    ExtractionRequest,
    OpenAIBackend,
)
from invoice_parser.core.cancellation import CancellationToken
from invoice_parser.core.extractor import InvoiceExtractor
from invoice_parser.core.pipeline import InvoicePipeline

__all__ = [
    "InvoiceExtractor",
    "InvoicePipeline",
    "ExtractionConfig",
    "ExtractionBackend",
    "ExtractionRequest",
    "BackendResponse",
    "OpenAIBackend",
    "CancellationToken",
    "InvoiceParserError",
    "RasterizationError",
    "UnsupportedFormat",
    "CorruptDocument",
    "ExtractionError",
    "ExtractionUnavailable",
    "ExtractionCancelled",
    "ExtractionValidationError",
    "SchemaViolation",
    "TypeMismatch",
    "ConfigurationError",
]
