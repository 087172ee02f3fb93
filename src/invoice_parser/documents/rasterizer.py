"""Rendering of submitted documents into embeddable raster images."""

import base64
import binascii
import io
import logging
import mimetypes
import re
from pathlib import Path

import pymupdf
from PIL import Image
from pydantic import BaseModel, ConfigDict, Field

from invoice_parser.core.exceptions import CorruptDocument, UnsupportedFormat

logger = logging.getLogger(__name__)

# Uniform zoom applied to page 1 before rasterizing
RENDER_SCALE = 1.5

# Page-description formats PyMuPDF opens natively, mapped to its filetype names
DOCUMENT_TYPES: dict[str, str] = {
    "application/pdf": "pdf",
    "application/vnd.ms-xpsdocument": "xps",
    "application/oxps": "oxps",
    "application/epub+zip": "epub",
}

IMAGE_TYPES = frozenset({"image/png", "image/jpeg", "image/webp", "image/gif"})

_DATA_URI = re.compile(
    r"^data:(?P<media_type>[\w.+-]+/[\w.+-]+);base64,(?P<payload>.*)$",
    re.DOTALL,
)


class Document(BaseModel):
    """A submitted document. Only its first page is ever used."""

    model_config = ConfigDict(frozen=True)

    content: bytes = Field(repr=False, description="Raw document bytes")
    media_type: str = Field(description="Declared media type, e.g. application/pdf")
    filename: str | None = Field(default=None, description="Original file name, if known")

    @classmethod
    def from_path(cls, path: str | Path, media_type: str | None = None) -> "Document":
        """Read a document from disk, guessing the media type from its suffix."""
        path = Path(path)
        if media_type is None:
            media_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return cls(content=path.read_bytes(), media_type=media_type, filename=path.name)


class RasterImage(BaseModel):
    """An encoded bitmap plus its media type."""

    model_config = ConfigDict(frozen=True)

    media_type: str = "image/png"
    data: bytes = Field(repr=False)

    @property
    def data_uri(self) -> str:
        """The image as a ``data:<media-type>;base64,<payload>`` token."""
        payload = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.media_type};base64,{payload}"

    @property
    def size(self) -> tuple[int, int]:
        """Pixel dimensions as ``(width, height)``."""
        with Image.open(io.BytesIO(self.data)) as img:
            return img.size

    @classmethod
    def from_data_uri(cls, token: str) -> "RasterImage":
        """Parse a base64 data URI token.

        Raises:
            UnsupportedFormat: If the token is not a base64 data URI for a
                recognized raster media type, or carries no payload
        """
        match = _DATA_URI.match(token.strip())
        if match is None:
            raise UnsupportedFormat("Image token is not a base64 data URI")

        media_type = match.group("media_type").lower()
        if media_type not in IMAGE_TYPES:
            raise UnsupportedFormat(f"Unsupported image type: {media_type}", media_type=media_type)

        try:
            data = base64.b64decode(match.group("payload"), validate=True)
        except binascii.Error as e:
            raise UnsupportedFormat(f"Image payload is not valid base64: {e}") from e

        if not data:
            raise UnsupportedFormat("Image token carries an empty payload", media_type=media_type)
        return cls(media_type=media_type, data=data)

    @classmethod
    def from_pil(cls, image: Image.Image) -> "RasterImage":
        """Encode a PIL image losslessly as PNG."""
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        return cls(media_type="image/png", data=buffer.getvalue())


def document_filetype(document: Document) -> str:
    """Return PyMuPDF's filetype name for a document's media type.

    Raises:
        UnsupportedFormat: If the media type is not a page-description format
    """
    filetype = DOCUMENT_TYPES.get(document.media_type.lower())
    if filetype is None:
        logger.warning(
            "Rejected %s: unsupported media type %s",
            document.filename or "<stream>",
            document.media_type,
        )
        raise UnsupportedFormat(
            f"Unsupported document type: {document.media_type}",
            media_type=document.media_type,
        )
    return filetype


def rasterize(document: Document, scale: float = RENDER_SCALE) -> RasterImage:
    """Render the first page of a document to a PNG.

    Later pages are ignored. The page is rendered at ``scale`` times its
    viewport size without an alpha channel, so the same document and scale
    always produce the same bytes.

    Args:
        document: The document to render
        scale: Uniform zoom factor applied to the page viewport

    Returns:
        The rendered page as a PNG raster image

    Raises:
        UnsupportedFormat: If the media type is not a page-description format
        CorruptDocument: If the document cannot be opened or page 1 cannot be rendered
    """
    if scale <= 0:
        raise ValueError(f"scale must be positive, got {scale}")

    name = document.filename or "<stream>"
    filetype = document_filetype(document)

    if not document.content:
        raise CorruptDocument(f"{name} is empty")

    try:
        with pymupdf.open(stream=document.content, filetype=filetype) as doc:
            if doc.needs_pass:
                raise CorruptDocument(f"{name} is password protected")
            if doc.page_count < 1:
                raise CorruptDocument(f"{name} has no pages")

            page = doc.load_page(0)
            pixmap = page.get_pixmap(matrix=pymupdf.Matrix(scale, scale), alpha=False)
            data = pixmap.tobytes("png")
            logger.debug(
                "Rasterized page 1 of %d from %s at %.2fx (%dx%d px)",
                doc.page_count,
                name,
                scale,
                pixmap.width,
                pixmap.height,
            )
    except pymupdf.FileDataError as e:
        logger.error("Could not open %s: %s", name, e)
        raise CorruptDocument(f"{name} could not be opened: {e}") from e
    except RuntimeError as e:
        logger.error("Could not render page 1 of %s: %s", name, e)
        raise CorruptDocument(f"Page 1 of {name} could not be rendered: {e}") from e

    return RasterImage(media_type="image/png", data=data)
