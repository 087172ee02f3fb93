"""Per-session edit state for extracted invoice JSON."""

import logging
import threading

from pydantic import ValidationError

from invoice_parser.core.exceptions import SchemaViolation, TypeMismatch
from invoice_parser.results.types import ExtractionResult
from invoice_parser.schemas.invoice import InvoiceData
from invoice_parser.schemas.registry import INITIAL_TEMPLATE

logger = logging.getLogger(__name__)

# pydantic error types that mean "wrong structure" rather than "wrong type"
_STRUCTURAL_ERRORS = frozenset({"missing", "extra_forbidden", "json_invalid"})


class EditSession:
    """Holds the current editable JSON for one review session.

    The value starts as the blank template, is replaced wholesale by each
    successful extraction and can then be overwritten with arbitrary text.
    Concurrent writers are not merged: the last write wins.

    Example:
        ```python
        session = EditSession()
        session.replace(extractor.extract(image))
        session.edit(reviewer_text)
        invoice = session.parse()  # re-validate before pushing downstream
        ```
    """

    def __init__(self, template: str = INITIAL_TEMPLATE) -> None:
        self._template = template
        self._lock = threading.Lock()
        self._current = template

    @property
    def current(self) -> str:
        """The current editable JSON text."""
        return self._current

    def initialize(self, template: str | None = None) -> str:
        """Reset to the blank template and return it."""
        value = self._template if template is None else template
        with self._lock:
            self._current = value
        return value

    def replace(self, result: ExtractionResult) -> str:
        """Store a validated extraction result as pretty-printed JSON."""
        text = result.to_json(indent=2)
        with self._lock:
            self._current = text
        logger.debug("Session updated from %s", result.model_used or "extraction")
        return text

    def edit(self, text: str) -> None:
        """Overwrite the current value verbatim. No validation is done."""
        with self._lock:
            self._current = text

    def parse(self) -> InvoiceData:
        """Re-validate the current text for downstream use.

        Raises:
            SchemaViolation: If the text is not JSON, or misses or adds fields
            TypeMismatch: If a field holds a value of the wrong type
        """
        try:
            return InvoiceData.model_validate_json(self._current, strict=True)
        except ValidationError as e:
            error = e.errors()[0]
            path = _format_loc(error["loc"])
            message = error["msg"]
            if error["type"] in _STRUCTURAL_ERRORS:
                raise SchemaViolation(path, message) from e
            raise TypeMismatch(path, message) from e


def _format_loc(loc: tuple[int | str, ...]) -> str:
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path = f"{path}.{part}" if path else str(part)
    return path or "$"
