"""Invoice extraction schema.

Defines the shape extracted from tax invoices: parties, line items with
per-component taxes, and totals. Field order here is the order used for the
prompt, for validation and for the JSON handed to reviewers.
"""

from pydantic import BaseModel, ConfigDict, Field

_STRICT = ConfigDict(extra="forbid", populate_by_name=True)


class TaxComponent(BaseModel):
    """One tax applied to a line item."""

    model_config = _STRICT

    tax_type: str = Field(description="The type of tax, e.g., SGST, CGST")
    tax_rate: float = Field(description="The tax rate percentage")
    tax_amount: float = Field(description="The calculated tax amount")


class InvoiceItem(BaseModel):
    """A line item in an invoice."""

    model_config = _STRICT

    serial_number: float | None = Field(
        default=None, alias="sl.no", description="The serial number of the item"
    )
    hsn: str | None = Field(
        default=None,
        description="The Harmonized System of Nomenclature (HSN/SAC) code for the item",
    )
    description: str | None = Field(default=None, description="Description of the item")
    unit_price: float | None = Field(default=None, description="Price per unit")
    qty: float | None = Field(default=None, description="Quantity of the item")
    net_amount: float | None = Field(
        default=None, description="Net amount for the item (quantity * unit price)"
    )
    tax: list[TaxComponent] = Field(
        default_factory=list, description="Taxes applied to the item, one entry per component"
    )
    total_amount: float | None = Field(
        default=None, description="Total amount for the item including taxes"
    )


class BankDetails(BaseModel):
    """Bank account details printed for payment."""

    model_config = _STRICT

    account_name: str | None = Field(default=None, description="The name on the bank account")
    account_number: str | None = Field(default=None, description="The bank account number")
    bank_name: str | None = Field(default=None, description="The name of the bank")
    branch: str | None = Field(default=None, description="The bank branch details")
    ifsc: str | None = Field(
        default=None, description="The IFSC/routing code of the bank branch"
    )


class ContactDetails(BaseModel):
    """Contact details of a party."""

    model_config = _STRICT

    phone: str | None = Field(default=None, description="The contact phone number")
    email: str | None = Field(default=None, description="The contact email address")


class Seller(BaseModel):
    """The party issuing the invoice."""

    model_config = _STRICT

    name: str = Field(description="The name of the seller")
    gst: str | None = Field(default=None, description="The GST identification number")
    pan: str | None = Field(default=None, description="The Permanent Account Number (PAN)")
    address: str | None = Field(default=None, description="The full address as a single string")
    state: str | None = Field(default=None, description="The state of the seller")
    pincode: str | None = Field(default=None, description="The postal code of the address")
    country: str | None = Field(default=None, description="The country of the seller")
    bank_details: BankDetails | None = Field(
        default=None, description="The seller's bank account details"
    )
    contact_details: ContactDetails | None = Field(
        default=None, description="The seller's contact details"
    )


class Buyer(BaseModel):
    """The party being invoiced."""

    model_config = _STRICT

    name: str = Field(description="The name of the buyer")
    gst: str | None = Field(default=None, description="The GST identification number")
    pan: str | None = Field(default=None, description="The Permanent Account Number (PAN)")
    address: str | None = Field(default=None, description="The full address as a single string")
    state: str | None = Field(default=None, description="The state of the buyer")
    pincode: str | None = Field(default=None, description="The postal code of the address")
    country: str | None = Field(default=None, description="The country of the buyer")
    contact_details: ContactDetails | None = Field(
        default=None, description="The buyer's contact details"
    )
    billing_address: str | None = Field(default=None, description="The billing address")
    shipping_address: str | None = Field(default=None, description="The shipping address")


class InvoiceData(BaseModel):
    """Structured data extracted from a tax invoice.

    Example:
        ```python
        from invoice_parser import InvoiceData

        invoice = InvoiceData.model_validate_json(session.current)
        print(invoice.seller.name, invoice.invoice_value)
        ```
    """

    model_config = _STRICT

    order_number: str | None = Field(
        default=None, description="The order number associated with the invoice"
    )
    invoice_number: str = Field(description="The unique invoice number")
    order_date: str | None = Field(
        default=None, description="The date the order was placed (YYYY-MM-DD)"
    )
    invoice_id: str | None = Field(
        default=None, description="The invoice ID, often the same as the invoice number"
    )
    invoice_date: str = Field(description="The date the invoice was issued (YYYY-MM-DD)")
    seller: Seller = Field(description="Details of the seller")
    buyer: Buyer = Field(description="Details of the buyer")
    place_of_supply: str | None = Field(
        default=None, description="Where the supply of goods or services occurred"
    )
    place_of_delivery: str | None = Field(
        default=None, description="Where the goods or services were delivered"
    )
    invoice_items: list[InvoiceItem] = Field(
        default_factory=list, description="All line items on the invoice"
    )
    transaction_id: str | None = Field(
        default=None, description="Any transaction ID associated with the payment"
    )
    date_time: str | None = Field(
        default=None, description="Date and time of the invoice in ISO 8601 format"
    )
    invoice_value: float = Field(description="The total value of the invoice")
    mode_of_payment: str | None = Field(
        default=None, description="The method of payment used or to be used"
    )
