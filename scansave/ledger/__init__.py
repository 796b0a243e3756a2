"""Receipt ledger package."""

from scansave.ledger.export import export_csv, export_filename
from scansave.ledger.ledger import ALL_CATEGORIES, ReceiptLedger

__all__ = [
    "ALL_CATEGORIES",
    "ReceiptLedger",
    "export_csv",
    "export_filename",
]
