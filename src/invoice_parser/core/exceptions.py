"""Custom exceptions for invoice-parser."""


class InvoiceParserError(Exception):
    """Base exception for all invoice-parser errors."""

    pass


class RasterizationError(InvoiceParserError):
    """Raised when a document cannot be turned into a raster image."""

    pass


class UnsupportedFormat(RasterizationError):
    """Raised when the input is not a recognized document or image format."""

    def __init__(self, message: str, media_type: str | None = None) -> None:
        super().__init__(message)
        self.media_type = media_type


class CorruptDocument(RasterizationError):
    """Raised when the first page of a document cannot be decoded or rendered."""

    pass


class ExtractionError(InvoiceParserError):
    """Raised when extraction fails."""

    def __init__(
        self,
        message: str,
        raw_response: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.raw_response = raw_response
        self.cause = cause


class ExtractionUnavailable(ExtractionError):
    """Raised when the extraction capability fails, times out or returns garbage."""

    pass


class ExtractionCancelled(ExtractionUnavailable):
    """Raised when an in-flight extraction was superseded by a newer submission."""

    pass


class ExtractionValidationError(ExtractionError):
    """Raised when an extracted object does not conform to the schema.

    ``path`` names the offending field, e.g. ``invoice_items[0].tax[1].tax_rate``.
    """

    def __init__(
        self,
        path: str,
        message: str,
        raw_response: str | None = None,
    ) -> None:
        super().__init__(f"{path}: {message}", raw_response=raw_response)
        self.path = path


class SchemaViolation(ExtractionValidationError):
    """Raised on a structural mismatch: missing required field or unexpected field."""

    pass


class TypeMismatch(ExtractionValidationError):
    """Raised when a field is present but holds the wrong primitive type."""

    pass


class ConfigurationError(InvoiceParserError):
    """Raised when the extractor or pipeline is used with invalid settings."""

    pass
