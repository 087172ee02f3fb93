"""Result types and normalization for extraction outputs."""

from invoice_parser.results.normalizer import normalize
from invoice_parser.results.types import ExtractionResult

__all__ = [
    "ExtractionResult",
    "normalize",
]
