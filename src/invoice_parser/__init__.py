"""
invoice-parser: schema-guided invoice extraction with human review.
"""

from invoice_parser.core import (
    BackendResponse,
    CancellationToken,
    ConfigurationError,
    CorruptDocument,
    ExtractionBackend,
    ExtractionCancelled,
    ExtractionConfig,
    ExtractionError,
    ExtractionRequest,
    ExtractionUnavailable,
    ExtractionValidationError,
    InvoiceExtractor,
    InvoiceParserError,
    InvoicePipeline,
    OpenAIBackend,
    RasterizationError,
    SchemaViolation,
    TypeMismatch,
    UnsupportedFormat,
)
from invoice_parser.documents import RENDER_SCALE, Document, RasterImage, rasterize
from invoice_parser.prompts import PromptBuilder
from invoice_parser.results import ExtractionResult, normalize
from invoice_parser.schemas import (
    INITIAL_TEMPLATE,
    INVOICE_SCHEMA,
    ArrayNode,
    BankDetails,
    Buyer,
    ContactDetails,
    FieldSpec,
    InvoiceData,
    InvoiceItem,
    ObjectNode,
    ScalarNode,
    Seller,
    TaxComponent,
    build_template,
    compile_schema,
    to_json_schema,
)
from invoice_parser.session import EditSession

__version__ = "0.1.0"

__all__ = [
    # Core
    "InvoiceExtractor",
    "InvoicePipeline",
    "ExtractionConfig",
    "CancellationToken",
    # Backends
    "ExtractionBackend",
    "ExtractionRequest",
    "BackendResponse",
    "OpenAIBackend",
    # Errors
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
    # Documents
    "Document",
    "RasterImage",
    "rasterize",
    "RENDER_SCALE",
    # Schemas
    "InvoiceData",
    "Seller",
    "Buyer",
    "BankDetails",
    "ContactDetails",
    "InvoiceItem",
    "TaxComponent",
    "INVOICE_SCHEMA",
    "INITIAL_TEMPLATE",
    "ScalarNode",
    "ArrayNode",
    "ObjectNode",
    "FieldSpec",
    "compile_schema",
    "to_json_schema",
    "build_template",
    # Prompts
    "PromptBuilder",
    # Results
    "ExtractionResult",
    "normalize",
    # Session
    "EditSession",
]
