"""Prompt builder for invoice extraction."""

import json
from typing import Any

from invoice_parser.schemas.registry import ArrayNode, FieldSpec, ObjectNode, ScalarNode

# Worked example shown to the model; shape follows INVOICE_SCHEMA exactly
EXAMPLE_INVOICE: dict[str, Any] = {
    "order_number": None,
    "invoice_number": "24-25/Jan/8461",
    "order_date": None,
    "invoice_id": "24-25/Jan/8461",
    "invoice_date": "2025-02-11",
    "seller": {
        "name": "NORTHWIND SERVICES PVT LTD",
        "gst": "29AAECN0163D1Z4",
        "pan": "AAECN0163D",
        "address": "2ND FLOOR, LAKEVIEW CHAMBERS, 14 OUTER RING ROAD, BANGALORE, 560068",
        "state": "KARNATAKA",
        "pincode": "560068",
        "country": None,
        "bank_details": {
            "account_name": "NORTHWIND SERVICES PVT LTD",
            "account_number": "50200008759632",
            "bank_name": "HDFC BANK LTD",
            "branch": "Jayanagar branch, BANGALORE - 560 041",
            "ifsc": "HDFC0001226",
        },
        "contact_details": {"phone": None, "email": None},
    },
    "buyer": {
        "name": "CONTOSO TECHNOLOGIES PRIVATE LIMITED",
        "gst": "29AADCC9631P1ZN",
        "pan": None,
        "address": "South Tower, Vaishnavi Tech Park, Varthur Hobli, BANGALORE, 560103",
        "state": "KARNATAKA",
        "pincode": "560103",
        "country": None,
        "contact_details": {"phone": None, "email": None},
        "billing_address": "South Tower, Vaishnavi Tech Park, Varthur Hobli, BANGALORE, 560103",
        "shipping_address": "South Tower, Vaishnavi Tech Park, Varthur Hobli, BANGALORE, 560103",
    },
    "place_of_supply": "BANGALORE, KARNATAKA - KA - 29",
    "place_of_delivery": None,
    "invoice_items": [
        {
            "sl.no": None,
            "hsn": "998216",
            "description": "Compliance charges for the period Sep-24 to Dec-24 for 8 establishments",
            "unit_price": 5000,
            "qty": 8,
            "net_amount": 40000,
            "tax": [
                {"tax_type": "SGST", "tax_rate": 9, "tax_amount": 3600},
                {"tax_type": "CGST", "tax_rate": 9, "tax_amount": 3600},
            ],
            "total_amount": 47200,
        }
    ],
    "transaction_id": None,
    "date_time": "2025-02-11T16:39:10+05:30",
    "invoice_value": 47200,
    "mode_of_payment": None,
}


class PromptBuilder:
    """Builds extraction prompts from a schema tree."""

    DEFAULT_SYSTEM_PROMPT = (
        "You are an expert invoice data extraction assistant. "
        "Your task is to extract structured information from invoice images accurately.\n\n"
        "Rules:\n"
        "1. Extract only information that is explicitly present in the document\n"
        "2. Use null for fields where information is not found or not applicable\n"
        "3. Use an empty list, never null, for repeated fields with no entries\n"
        "4. Follow the exact structure and field names of the schema; do not add fields\n"
        "5. Be precise with numbers, dates, and proper nouns\n"
        "6. Do not infer or make up information that is not in the document"
    )

    EXTRACTION_RULES = (
        "- Extract all numerical values as numbers (integers or floats), never as strings.\n"
        "- Dates must use the YYYY-MM-DD format. If a time is present, `date_time` "
        "must follow ISO 8601.\n"
        "- Capture each address in full as a single string, including multi-line addresses.\n"
        "- Capture multi-line descriptions completely.\n"
        "- For tax, extract each tax component (type, rate, amount) as a separate object "
        "in the item's `tax` list. If an item has no tax, `tax` must be an empty list.\n"
        "- For `seller.bank_details`, extract all provided bank information."
    )

    def __init__(
        self,
        include_field_descriptions: bool = True,
        include_example: bool = True,
    ) -> None:
        """Initialize the prompt builder.

        Args:
            include_field_descriptions: Whether to include field descriptions in prompts
            include_example: Whether to include the worked example invoice
        """
        self.include_field_descriptions = include_field_descriptions
        self.include_example = include_example

    def build_system_prompt(self, custom_prompt: str | None = None) -> str:
        """Build the system prompt.

        Args:
            custom_prompt: Optional custom system prompt to use instead of default

        Returns:
            The system prompt string
        """
        return custom_prompt or self.DEFAULT_SYSTEM_PROMPT

    def build_extraction_prompt(
        self,
        schema: ObjectNode,
        field_hints: dict[str, str] | None = None,
        example: dict[str, Any] | None = None,
    ) -> str:
        """Build the text part of the user message.

        The invoice image itself travels as a separate content part.

        Args:
            schema: The schema tree to extract
            field_hints: Optional hints keyed by field path
            example: Optional example output; defaults to EXAMPLE_INVOICE

        Returns:
            The formatted extraction prompt
        """
        parts: list[str] = []

        schema_desc = self._describe_schema(schema, field_hints)
        parts.append(f"## Extraction Schema\n\n{schema_desc}")

        parts.append(f"## Extraction Rules\n\n{self.EXTRACTION_RULES}")

        if self.include_example:
            example_text = self._format_example(example or EXAMPLE_INVOICE)
            parts.append(f"## Example Output\n\n{example_text}")

        parts.append(
            "## Task\n\n"
            "Extract the invoice data from the attached image according to the schema. "
            "Return a single JSON object with exactly the fields above."
        )

        return "\n\n".join(parts)

    def _describe_schema(
        self,
        schema: ObjectNode,
        field_hints: dict[str, str] | None = None,
        path: str = "",
        described: set[str] | None = None,
    ) -> str:
        """Generate a human-readable description of the schema.

        Nested object types are described once each, after the root.
        """
        field_hints = field_hints or {}
        top_level = described is None
        described = described if described is not None else {schema.title}
        lines: list[str] = [f"**{schema.title}**"]

        if schema.description and top_level:
            lines.append(f"\n{schema.description}")

        lines.append("\nFields:")

        nested: list[tuple[str, ObjectNode]] = []
        for spec in schema.properties:
            field_path = f"{path}.{spec.name}" if path else spec.name
            lines.append(self._describe_field(spec, field_hints.get(field_path)))

            child = _object_of(spec.node)
            if child is not None and child.title not in described:
                described.add(child.title)
                nested.append((field_path, child))

        sections: list[str] = []
        for child_path, child in nested:
            sections.append(self._describe_schema(child, field_hints, child_path, described))

        if sections and top_level:
            lines.append("\n### Nested Types")
        for section in sections:
            lines.append("")
            lines.append(section)

        return "\n".join(lines)

    def _describe_field(self, spec: FieldSpec, hint: str | None = None) -> str:
        """Describe a single field as a markdown bullet."""
        if isinstance(spec.node, ArrayNode):
            presence = "empty list if none"
        elif spec.nullable:
            presence = "null if absent"
        else:
            presence = "required"

        parts = [f"  - **{spec.name}** ({self._format_type(spec.node, spec.nullable)}, {presence})"]

        if self.include_field_descriptions and spec.description:
            parts.append(f": {spec.description}")

        if hint:
            parts.append(f" [Hint: {hint}]")

        return "".join(parts)

    def _format_type(self, node: ScalarNode | ArrayNode | ObjectNode, nullable: bool = False) -> str:
        """Format a schema node as a readable type string."""
        if isinstance(node, ArrayNode):
            type_str = f"list[{self._format_type(node.items)}]"
        elif isinstance(node, ObjectNode):
            type_str = node.title
        else:
            type_str = node.kind

        if nullable:
            return f"{type_str} | null"
        return type_str

    def _format_example(self, example: dict[str, Any]) -> str:
        """Format the example output as a JSON block."""
        return f"```json\n{json.dumps(example, indent=2, ensure_ascii=False)}\n```"


def _object_of(node: ScalarNode | ArrayNode | ObjectNode) -> ObjectNode | None:
    """Return the object node a field holds directly or as list items."""
    if isinstance(node, ArrayNode):
        return _object_of(node.items)
    if isinstance(node, ObjectNode):
        return node
    return None
