"""Receipt validation package."""

from scansave.validation.validator import ReceiptValidator, parse_receipt_date

__all__ = ["ReceiptValidator", "parse_receipt_date"]
