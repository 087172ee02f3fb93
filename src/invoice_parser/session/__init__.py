"""Editable review state."""

from invoice_parser.session.store import EditSession

__all__ = ["EditSession"]
