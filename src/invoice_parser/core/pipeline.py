"""Upload-then-parse orchestration for one review session."""

import logging
import threading

from invoice_parser.core.cancellation import CancellationToken
from invoice_parser.core.config import ExtractionConfig
from invoice_parser.core.exceptions import ConfigurationError, ExtractionCancelled
from invoice_parser.core.extractor import InvoiceExtractor
from invoice_parser.documents.rasterizer import (
    Document,
    RasterImage,
    document_filetype,
    rasterize,
)
from invoice_parser.session.store import EditSession

logger = logging.getLogger(__name__)


class InvoicePipeline:
    """Runs rasterize, extract, normalize and store for one session.

    Loading a new document supersedes any parse still in flight: its
    response is discarded when it arrives and the session keeps the newer
    state. The session is only written after a fully successful extraction.

    Example:
        ```python
        pipeline = InvoicePipeline(InvoiceExtractor(), EditSession())
        pipeline.load(Document.from_path("invoice.pdf"))
        json_text = pipeline.parse()
        ```
    """

    def __init__(
        self,
        extractor: InvoiceExtractor,
        session: EditSession | None = None,
    ) -> None:
        self.extractor = extractor
        self.session = session or EditSession()
        self._lock = threading.Lock()
        self._image: RasterImage | None = None
        self._token: CancellationToken | None = None

    @property
    def image(self) -> RasterImage | None:
        """The rendered page of the currently loaded document, if any."""
        return self._image

    def load(self, document: Document) -> RasterImage:
        """Rasterize a newly submitted document and reset the session.

        An unsupported document is rejected before anything changes. An
        accepted one cancels any in-flight parse and resets the session to
        the template before rendering, so a corrupt upload leaves no image
        and a blank template behind.

        Raises:
            UnsupportedFormat: If the document is not a page-description format.
            CorruptDocument: If page 1 cannot be decoded or rendered.
        """
        document_filetype(document)

        with self._lock:
            self._supersede()
            self._image = None
            self.session.initialize()

        image = rasterize(document)

        with self._lock:
            self._image = image
        logger.info("Loaded %s", document.filename or "document")
        return image

    def parse(self, config: ExtractionConfig | None = None) -> str:
        """Extract from the loaded document and store the result.

        Returns:
            The session's new editable JSON.

        Raises:
            ConfigurationError: If no document has been loaded.
            ExtractionUnavailable: If the backend fails; the session is unchanged.
            ExtractionCancelled: If a newer document was loaded meanwhile.
            SchemaViolation: If the result misses a required field.
            TypeMismatch: If a result field has the wrong type.
        """
        with self._lock:
            image = self._image
            if image is None:
                raise ConfigurationError("No document loaded; call load() first")
            self._supersede()
            token = CancellationToken()
            self._token = token

        try:
            result = self.extractor.extract(image, config=config, cancel_token=token)
            with self._lock:
                if token.cancelled:
                    raise ExtractionCancelled("Extraction was superseded by a newer submission")
                return self.session.replace(result)
        finally:
            with self._lock:
                if self._token is token:
                    self._token = None

    def submit(self, document: Document, config: ExtractionConfig | None = None) -> str:
        """Load a document and parse it in one step."""
        self.load(document)
        return self.parse(config)

    def _supersede(self) -> None:
        if self._token is not None:
            logger.debug("Cancelling in-flight extraction")
            self._token.cancel()
            self._token = None
