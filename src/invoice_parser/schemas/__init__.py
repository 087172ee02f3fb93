"""Invoice extraction schema and the schema registry built from it.

The pydantic models in :mod:`invoice_parser.schemas.invoice` describe the
invoice shape; :mod:`invoice_parser.schemas.registry` compiles them into the
immutable tree used for prompting, validation and templating.
"""

from invoice_parser.schemas.invoice import (
    BankDetails,
    Buyer,
    ContactDetails,
    InvoiceData,
    InvoiceItem,
    Seller,
    TaxComponent,
)
from invoice_parser.schemas.registry import (
    INITIAL_TEMPLATE,
    INVOICE_SCHEMA,
    ArrayNode,
    FieldSpec,
    ObjectNode,
    ScalarNode,
    SchemaNode,
    build_template,
    compile_schema,
    to_json_schema,
)

__all__ = [
    # Models
    "InvoiceData",
    "Seller",
    "Buyer",
    "BankDetails",
    "ContactDetails",
    "InvoiceItem",
    "TaxComponent",
    # Registry
    "INVOICE_SCHEMA",
    "INITIAL_TEMPLATE",
    "SchemaNode",
    "ScalarNode",
    "ArrayNode",
    "ObjectNode",
    "FieldSpec",
    "compile_schema",
    "to_json_schema",
    "build_template",
]
