"""Prompt construction for invoice extraction."""

from invoice_parser.prompts.builder import EXAMPLE_INVOICE, PromptBuilder

__all__ = ["PromptBuilder", "EXAMPLE_INVOICE"]
