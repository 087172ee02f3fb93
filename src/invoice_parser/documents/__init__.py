"""Document intake and rasterization."""

from invoice_parser.documents.rasterizer import (
    DOCUMENT_TYPES,
    IMAGE_TYPES,
    RENDER_SCALE,
    Document,
    RasterImage,
    document_filetype,
    rasterize,
)

__all__ = [
    "Document",
    "RasterImage",
    "rasterize",
    "document_filetype",
    "RENDER_SCALE",
    "DOCUMENT_TYPES",
    "IMAGE_TYPES",
]
