"""Main invoice extractor class."""

import json
import logging

from PIL import Image

from invoice_parser.core.backends import (
    BackendResponse,
    ExtractionBackend,
    ExtractionRequest,
    OpenAIBackend,
)
from invoice_parser.core.cancellation import CancellationToken
from invoice_parser.core.config import ExtractionConfig
from invoice_parser.core.exceptions import (
    ExtractionCancelled,
    ExtractionUnavailable,
    ExtractionValidationError,
    SchemaViolation,
    UnsupportedFormat,
)
from invoice_parser.documents.rasterizer import IMAGE_TYPES, Document, RasterImage, rasterize
from invoice_parser.prompts.builder import PromptBuilder
from invoice_parser.results.normalizer import normalize
from invoice_parser.results.types import ExtractionResult
from invoice_parser.schemas.registry import INVOICE_SCHEMA, ObjectNode, to_json_schema

# Type alias for image inputs
ImageInput = RasterImage | str | Image.Image

logger = logging.getLogger(__name__)


class InvoiceExtractor:
    """Schema-guided invoice extractor.

    Sends a rendered invoice page and the invoice schema to an extraction
    backend, then validates and normalizes what comes back. Every call hits
    the backend exactly once.

    Example:
        ```python
        from invoice_parser import Document, InvoiceExtractor, rasterize

        extractor = InvoiceExtractor(model="gpt-4.1")
        image = rasterize(Document.from_path("invoice.pdf"))
        result = extractor.extract(image)
        print(result.data["invoice_number"])
        print(result.to_json())
        ```
    """

    _backend: ExtractionBackend

    def __init__(
        self,
        backend: ExtractionBackend | None = None,
        api_key: str | None = None,
        model: str = "gpt-4.1",
        default_config: ExtractionConfig | None = None,
        schema: ObjectNode = INVOICE_SCHEMA,
    ) -> None:
        """Initialize the invoice extractor.

        Args:
            backend: Pre-configured extraction backend. If provided, api_key
                and model are ignored.
            api_key: OpenAI API key. Only used if backend is not provided.
            model: LLM model to use. Only used if backend is not provided.
            default_config: Default extraction configuration.
            schema: Schema tree to extract; the invoice schema by default.
        """
        self.default_config = default_config or ExtractionConfig()
        self.schema = schema

        if backend is not None:
            self._backend = backend
            self.model = backend.model
        else:
            self.model = model
            self._backend = OpenAIBackend(api_key=api_key, model=model)

    def extract(
        self,
        image: ImageInput,
        config: ExtractionConfig | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> ExtractionResult:
        """Extract invoice data from a rendered page.

        Args:
            image: The page as a RasterImage, a base64 data URI or a PIL image.
            config: Extraction configuration (overrides default).
            cancel_token: Token a newer submission can use to supersede this call.

        Returns:
            ExtractionResult holding the normalized record.

        Raises:
            UnsupportedFormat: If the image is empty or not a recognized raster type.
            ExtractionUnavailable: If the backend fails or returns no usable JSON.
            ExtractionCancelled: If the token was cancelled before the result arrived.
            SchemaViolation: If the result misses a required field.
            TypeMismatch: If a result field has the wrong type.
        """
        resolved_config = config or self.default_config
        raster = self._coerce_image(image)
        request = self._build_request(raster, resolved_config)

        if cancel_token is not None and cancel_token.cancelled:
            raise ExtractionCancelled("Extraction was cancelled before it started")

        response = self._invoke(request)

        if cancel_token is not None and cancel_token.cancelled:
            logger.info("Discarding response from %s: extraction was superseded", self.model)
            raise ExtractionCancelled(
                "Extraction was superseded by a newer submission",
                raw_response=response.content,
            )

        candidate = self._decode(response)

        try:
            if resolved_config.forbid_extra_fields:
                self._check_unexpected_fields(candidate)
            data = normalize(candidate, self.schema)
        except ExtractionValidationError as e:
            e.raw_response = response.content
            logger.warning("Extraction result rejected at %s: %s", e.path, e)
            raise

        return ExtractionResult(
            data=data,
            model_used=response.model or self.model,
            tokens_used=response.total_tokens,
            raw_response=response.content,
        )

    def extract_document(
        self,
        document: Document,
        config: ExtractionConfig | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> ExtractionResult:
        """Rasterize the first page of a document and extract from it.

        Raises:
            UnsupportedFormat: If the document is not a page-description format.
            CorruptDocument: If page 1 cannot be decoded or rendered.
        """
        return self.extract(rasterize(document), config=config, cancel_token=cancel_token)

    def _coerce_image(self, image: ImageInput) -> RasterImage:
        """Normalize image input to a RasterImage and check its preconditions."""
        if isinstance(image, RasterImage):
            raster = image
        elif isinstance(image, str):
            raster = RasterImage.from_data_uri(image)
        elif isinstance(image, Image.Image):
            raster = RasterImage.from_pil(image)
        else:
            raise UnsupportedFormat(f"Unsupported image input: {type(image).__name__}")

        if raster.media_type not in IMAGE_TYPES:
            raise UnsupportedFormat(
                f"Unsupported image type: {raster.media_type}",
                media_type=raster.media_type,
            )
        if not raster.data:
            raise UnsupportedFormat("Image is empty", media_type=raster.media_type)
        return raster

    def _build_request(self, raster: RasterImage, config: ExtractionConfig) -> ExtractionRequest:
        prompt_builder = PromptBuilder(
            include_field_descriptions=config.include_field_descriptions,
            include_example=config.include_example,
        )
        return ExtractionRequest(
            image_token=raster.data_uri,
            system_prompt=prompt_builder.build_system_prompt(config.system_prompt),
            user_prompt=prompt_builder.build_extraction_prompt(
                self.schema, field_hints=config.field_hints
            ),
            schema_name=self.schema.title,
            json_schema=to_json_schema(self.schema, strict=config.strict_schema),
            strict=config.strict_schema,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            timeout=config.timeout,
        )

    def _invoke(self, request: ExtractionRequest) -> BackendResponse:
        """Call the backend once, mapping any failure to ExtractionUnavailable."""
        try:
            logger.debug("Extraction call (model=%s)", self.model)
            return self._backend.invoke(request)
        except Exception as e:
            logger.error("Extraction call failed (model=%s): %s", self.model, e)
            raise ExtractionUnavailable(f"Extraction call failed: {e}", cause=e) from e

    def _decode(self, response: BackendResponse) -> object:
        """Decode the backend output into a candidate object."""
        if response.refusal:
            raise ExtractionUnavailable(f"Model refused the request: {response.refusal}")
        if not response.content:
            raise ExtractionUnavailable("Backend returned an empty response")

        try:
            candidate = json.loads(response.content, parse_constant=_reject_constant)
        except ValueError as e:
            logger.error("Malformed response from %s: %s", self.model, e)
            raise ExtractionUnavailable(
                f"Backend returned malformed JSON: {e}",
                raw_response=response.content,
                cause=e,
            ) from e

        if candidate is None:
            raise ExtractionUnavailable(
                "No data was extracted from the invoice",
                raw_response=response.content,
            )
        return candidate

    def _check_unexpected_fields(self, candidate: object) -> None:
        if not isinstance(candidate, dict):
            return
        for key in candidate:
            if self.schema.get(key) is None:
                raise SchemaViolation(key, "unexpected field")


def _reject_constant(name: str) -> float:
    # NaN and Infinity are not JSON
    raise ValueError(f"non-standard constant {name}")
