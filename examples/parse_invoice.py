"""Example: Parse an invoice document and review the result.

Renders page 1 of the document, extracts the invoice JSON with a vision
model, writes it to disk for editing and re-validates the edited file.

Prerequisites:
- OPENAI_API_KEY environment variable set (or in a .env file)

Usage:
    python examples/parse_invoice.py invoice.pdf
    python examples/parse_invoice.py invoice.pdf --out invoice.json --model gpt-4.1-mini
    python examples/parse_invoice.py --validate invoice.json
"""

import argparse
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from invoice_parser import (
    Document,
    EditSession,
    ExtractionConfig,
    InvoiceExtractor,
    InvoiceParserError,
    InvoicePipeline,
)

# Load environment variables
load_dotenv()


def parse(path: Path, out: Path | None, model: str, hints: list[str]) -> int:
    """Run the upload-then-parse flow for one document."""
    extractor = InvoiceExtractor(api_key=os.getenv("OPENAI_API_KEY"), model=model)
    pipeline = InvoicePipeline(extractor)

    field_hints = dict(hint.split("=", 1) for hint in hints)
    config = ExtractionConfig(field_hints=field_hints)

    try:
        image = pipeline.load(Document.from_path(path))
        print(f"Rendered page 1 at {image.size[0]}x{image.size[1]}")
        text = pipeline.parse(config)
    except InvoiceParserError as e:
        print(f"Failed: {e}", file=sys.stderr)
        return 1

    if out is None:
        print(text)
    else:
        out.write_text(text, encoding="utf-8")
        print(f"Wrote {out}; edit it and re-check with --validate {out}")
    return 0


def validate(path: Path) -> int:
    """Re-validate an edited JSON file."""
    session = EditSession()
    session.edit(path.read_text(encoding="utf-8"))
    try:
        invoice = session.parse()
    except InvoiceParserError as e:
        print(f"Invalid: {e}", file=sys.stderr)
        return 1

    print(f"OK: invoice {invoice.invoice_number} from {invoice.seller.name}")
    print(f"    {len(invoice.invoice_items)} item(s), total {invoice.invoice_value:,.2f}")
    return 0


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Extract invoice data with invoice-parser")
    parser.add_argument("document", nargs="?", type=Path, help="PDF, XPS or EPUB invoice")
    parser.add_argument("--out", type=Path, help="Write the JSON here instead of stdout")
    parser.add_argument("--model", default="gpt-4.1", help="Vision model to use")
    parser.add_argument(
        "--hint",
        action="append",
        default=[],
        metavar="FIELD=TEXT",
        help="Extra guidance for a field, e.g. seller.gst='15 characters'",
    )
    parser.add_argument("--validate", type=Path, metavar="JSON", help="Re-validate an edited file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    if args.validate is not None:
        sys.exit(validate(args.validate))
    if args.document is None:
        parser.error("a document path is required")
    sys.exit(parse(args.document, args.out, args.model, args.hint))


if __name__ == "__main__":
    main()
