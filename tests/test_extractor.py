"""Tests for the InvoiceExtractor class."""

import json
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from PIL import Image

from invoice_parser import (
    INVOICE_SCHEMA,
    CancellationToken,
    Document,
    ExtractionBackend,
    ExtractionCancelled,
    ExtractionConfig,
    ExtractionUnavailable,
    InvoiceExtractor,
    RasterImage,
    SchemaViolation,
    UnsupportedFormat,
    rasterize,
)

PNG = RasterImage(media_type="image/png", data=b"\x89PNG\r\n\x1a\nfake")


class TestInvoiceExtractorInit:
    """Tests for InvoiceExtractor initialization."""

    def test_init_with_defaults(self) -> None:
        """Test initialization with default values."""
        with patch("invoice_parser.core.extractor.OpenAIBackend") as mock_backend_cls:
            extractor = InvoiceExtractor(api_key="test-key")

            assert extractor.model == "gpt-4.1"
            assert extractor.default_config.temperature == 0.0
            assert extractor.schema is INVOICE_SCHEMA
            mock_backend_cls.assert_called_once_with(api_key="test-key", model="gpt-4.1")

    def test_init_with_custom_model(self) -> None:
        """Test initialization with custom model."""
        with patch("invoice_parser.core.extractor.OpenAIBackend"):
            extractor = InvoiceExtractor(api_key="test-key", model="gpt-4.1-mini")

            assert extractor.model == "gpt-4.1-mini"

    def test_init_with_custom_config(self) -> None:
        """Test initialization with custom config."""
        config = ExtractionConfig(temperature=0.5, max_tokens=2000)

        with patch("invoice_parser.core.extractor.OpenAIBackend"):
            extractor = InvoiceExtractor(api_key="test-key", default_config=config)

            assert extractor.default_config.temperature == 0.5
            assert extractor.default_config.max_tokens == 2000

    def test_init_with_backend_injection(self) -> None:
        """Test that an injected backend takes precedence."""
        backend = MagicMock(spec=ExtractionBackend)
        backend.model = "custom-model"

        with patch("invoice_parser.core.extractor.OpenAIBackend") as mock_backend_cls:
            extractor = InvoiceExtractor(backend=backend, model="should-be-ignored")

            mock_backend_cls.assert_not_called()
            assert extractor._backend is backend
            assert extractor.model == "custom-model"


class TestInvoiceExtractorExtract:
    """Tests for InvoiceExtractor.extract."""

    @pytest.fixture
    def extractor(self, mock_backend: MagicMock) -> InvoiceExtractor:
        """Create an extractor with an injected mock backend."""
        return InvoiceExtractor(backend=mock_backend)

    def test_end_to_end_acme_invoice(
        self,
        extractor: InvoiceExtractor,
        mock_backend: MagicMock,
        invoice_pdf: Document,
        acme_candidate: dict[str, Any],
        make_response,
    ) -> None:
        """Test the rendered-invoice to JSON flow."""
        mock_backend.invoke.return_value = make_response(acme_candidate)

        result = extractor.extract(rasterize(invoice_pdf))
        payload = json.loads(result.to_json())

        assert payload["seller"]["name"] == "Acme Ltd"
        assert payload["invoice_number"] == "INV-001"
        assert payload["invoice_items"][0]["total_amount"] == 236
        assert payload["invoice_items"][0]["tax"][0] == {
            "tax_type": "GST",
            "tax_rate": 18,
            "tax_amount": 36,
        }
        assert payload["invoice_value"] == 236
        assert payload["order_number"] is None
        assert payload["seller"]["bank_details"] is None
        assert list(payload) == list(INVOICE_SCHEMA.names)

    def test_calls_backend_once(
        self,
        extractor: InvoiceExtractor,
        mock_backend: MagicMock,
        acme_candidate: dict[str, Any],
        make_response,
    ) -> None:
        """Test that the backend is invoked exactly once."""
        mock_backend.invoke.return_value = make_response(acme_candidate)

        extractor.extract(PNG)

        mock_backend.invoke.assert_called_once()

    def test_request_carries_image_and_schema(
        self,
        extractor: InvoiceExtractor,
        mock_backend: MagicMock,
        acme_candidate: dict[str, Any],
        make_response,
    ) -> None:
        """Test the request bundle sent to the backend."""
        mock_backend.invoke.return_value = make_response(acme_candidate)

        extractor.extract(PNG)

        request = mock_backend.invoke.call_args.args[0]
        assert request.image_token == PNG.data_uri
        assert request.schema_name == "InvoiceData"
        assert request.json_schema["required"] == list(INVOICE_SCHEMA.names)
        assert request.strict is True
        assert "invoice_items" in request.user_prompt
        assert "empty list" in request.user_prompt.lower()
        assert "null" in request.system_prompt.lower()

    def test_request_uses_config(
        self,
        extractor: InvoiceExtractor,
        mock_backend: MagicMock,
        acme_candidate: dict[str, Any],
        make_response,
    ) -> None:
        """Test that per-call configuration reaches the request."""
        mock_backend.invoke.return_value = make_response(acme_candidate)
        config = ExtractionConfig(
            temperature=0.3,
            max_tokens=4000,
            timeout=30.0,
            system_prompt="Custom prompt",
            strict_schema=False,
            include_example=False,
        )

        extractor.extract(PNG, config=config)

        request = mock_backend.invoke.call_args.args[0]
        assert request.temperature == 0.3
        assert request.max_tokens == 4000
        assert request.timeout == 30.0
        assert request.system_prompt == "Custom prompt"
        assert request.strict is False
        assert "## Example Output" not in request.user_prompt

    def test_accepts_data_uri_token(
        self,
        extractor: InvoiceExtractor,
        mock_backend: MagicMock,
        acme_candidate: dict[str, Any],
        make_response,
    ) -> None:
        """Test extraction from a data URI string."""
        mock_backend.invoke.return_value = make_response(acme_candidate)

        result = extractor.extract(PNG.data_uri)

        assert result.data["invoice_number"] == "INV-001"
        assert mock_backend.invoke.call_args.args[0].image_token == PNG.data_uri

    def test_accepts_pil_image(
        self,
        extractor: InvoiceExtractor,
        mock_backend: MagicMock,
        acme_candidate: dict[str, Any],
        make_response,
    ) -> None:
        """Test extraction from a PIL image."""
        mock_backend.invoke.return_value = make_response(acme_candidate)

        extractor.extract(Image.new("RGB", (10, 10)))

        token = mock_backend.invoke.call_args.args[0].image_token
        assert token.startswith("data:image/png;base64,")

    def test_extract_document(
        self,
        extractor: InvoiceExtractor,
        mock_backend: MagicMock,
        invoice_pdf: Document,
        acme_candidate: dict[str, Any],
        make_response,
    ) -> None:
        """Test the rasterize-and-extract convenience method."""
        mock_backend.invoke.return_value = make_response(acme_candidate)

        result = extractor.extract_document(invoice_pdf)

        assert result.data["seller"]["name"] == "Acme Ltd"
        token = mock_backend.invoke.call_args.args[0].image_token
        assert token == rasterize(invoice_pdf).data_uri

    def test_result_metadata(
        self,
        extractor: InvoiceExtractor,
        mock_backend: MagicMock,
        acme_candidate: dict[str, Any],
        make_response,
    ) -> None:
        """Test that call metadata is kept on the result."""
        response = make_response(acme_candidate, model="gpt-4.1-2025-04-14", tokens=1234)
        mock_backend.invoke.return_value = response

        result = extractor.extract(PNG)

        assert result.model_used == "gpt-4.1-2025-04-14"
        assert result.tokens_used == 1234
        assert result.raw_response == response.content

    def test_extra_fields_rejected_by_default(
        self,
        extractor: InvoiceExtractor,
        mock_backend: MagicMock,
        acme_candidate: dict[str, Any],
        make_response,
    ) -> None:
        """Test that an undeclared top-level field fails the call."""
        acme_candidate["notes"] = "thanks for your business"
        mock_backend.invoke.return_value = make_response(acme_candidate)

        with pytest.raises(SchemaViolation) as excinfo:
            extractor.extract(PNG)

        assert excinfo.value.path == "notes"
        assert excinfo.value.raw_response is not None

    def test_extra_fields_dropped_when_allowed(
        self,
        extractor: InvoiceExtractor,
        mock_backend: MagicMock,
        acme_candidate: dict[str, Any],
        make_response,
    ) -> None:
        """Test opting out of rejection drops over-generated fields."""
        acme_candidate["confidence"] = 0.9
        mock_backend.invoke.return_value = make_response(acme_candidate)

        result = extractor.extract(PNG, config=ExtractionConfig(forbid_extra_fields=False))

        assert "confidence" not in result.data
        assert result.data["invoice_number"] == "INV-001"

    def test_non_finite_number_rejected(
        self,
        extractor: InvoiceExtractor,
        mock_backend: MagicMock,
        acme_candidate: dict[str, Any],
        make_response,
    ) -> None:
        """Test that NaN and Infinity are not accepted as JSON numbers."""
        for constant in ("NaN", "Infinity", "-Infinity"):
            content = json.dumps(acme_candidate).replace(
                '"invoice_value": 236', f'"invoice_value": {constant}'
            )
            mock_backend.invoke.return_value = make_response(content)

            with pytest.raises(ExtractionUnavailable, match="malformed JSON"):
                extractor.extract(PNG)

    def test_field_hints_in_prompt(
        self,
        extractor: InvoiceExtractor,
        mock_backend: MagicMock,
        acme_candidate: dict[str, Any],
        make_response,
    ) -> None:
        """Test that field hints are added to the schema description."""
        mock_backend.invoke.return_value = make_response(acme_candidate)
        config = ExtractionConfig(field_hints={"seller.gst": "15 alphanumeric characters"})

        extractor.extract(PNG, config=config)

        assert "15 alphanumeric characters" in mock_backend.invoke.call_args.args[0].user_prompt


class TestInvoiceExtractorPreconditions:
    """Image preconditions are checked before the backend is called."""

    @pytest.fixture
    def extractor(self, mock_backend: MagicMock) -> InvoiceExtractor:
        return InvoiceExtractor(backend=mock_backend)

    def test_rejects_empty_image(self, extractor: InvoiceExtractor, mock_backend: MagicMock) -> None:
        with pytest.raises(UnsupportedFormat, match="empty"):
            extractor.extract(RasterImage(media_type="image/png", data=b""))

        mock_backend.invoke.assert_not_called()

    def test_rejects_unknown_media_type(
        self, extractor: InvoiceExtractor, mock_backend: MagicMock
    ) -> None:
        with pytest.raises(UnsupportedFormat):
            extractor.extract(RasterImage(media_type="image/tiff", data=b"II*\x00"))

        mock_backend.invoke.assert_not_called()

    def test_rejects_malformed_token(
        self, extractor: InvoiceExtractor, mock_backend: MagicMock
    ) -> None:
        with pytest.raises(UnsupportedFormat):
            extractor.extract("not-a-data-uri")

        mock_backend.invoke.assert_not_called()

    def test_rejects_other_inputs(self, extractor: InvoiceExtractor) -> None:
        with pytest.raises(UnsupportedFormat, match="bytes"):
            extractor.extract(b"\x89PNG")  # type: ignore[arg-type]


class TestInvoiceExtractorCancellation:
    """Tests for cancellation tokens."""

    @pytest.fixture
    def extractor(self, mock_backend: MagicMock) -> InvoiceExtractor:
        return InvoiceExtractor(backend=mock_backend)

    def test_cancelled_before_call(
        self, extractor: InvoiceExtractor, mock_backend: MagicMock
    ) -> None:
        """Test that a cancelled token skips the backend call."""
        token = CancellationToken()
        token.cancel()

        with pytest.raises(ExtractionCancelled):
            extractor.extract(PNG, cancel_token=token)

        mock_backend.invoke.assert_not_called()

    def test_cancelled_while_in_flight(
        self,
        extractor: InvoiceExtractor,
        mock_backend: MagicMock,
        acme_candidate: dict[str, Any],
        make_response,
    ) -> None:
        """Test that a response arriving after cancellation is discarded."""
        token = CancellationToken()

        def _invoke(request):
            token.cancel()
            return make_response(acme_candidate)

        mock_backend.invoke.side_effect = _invoke

        with pytest.raises(ExtractionCancelled) as excinfo:
            extractor.extract(PNG, cancel_token=token)

        assert "superseded" in str(excinfo.value)
        assert excinfo.value.raw_response is not None

    def test_token_repr(self) -> None:
        token = CancellationToken()
        assert repr(token) == "CancellationToken(cancelled=False)"
        token.cancel()
        assert token.cancelled is True
