"""
CSV export of the receipt ledger.

One row per line item; receipt-level columns repeat on each row. Text
columns are quoted, numeric columns are written bare.
"""

import csv
import io
from datetime import date
from typing import Iterable, Optional

from scansave.i18n import Translator
from scansave.models.receipt import ReceiptRecord


HEADERS_KEY = "history.exportCSVHeaders"


def export_csv(
    records: Iterable[ReceiptRecord],
    translator: Translator,
    language: Optional[str] = None,
) -> str:
    """Render records as CSV text. An empty input yields the header row only."""
    header = translator.t(HEADERS_KEY, language)
    buffer = io.StringIO()

    writer = csv.writer(buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    for record in records:
        category = translator.category_label(record.category, language)
        for item in record.items:
            writer.writerow([
                record.id,
                record.store_name,
                record.date,
                category,
                float(record.subtotal),
                float(record.tax),
                float(record.total),
                record.currency,
                item.description,
                float(item.price),
            ])

    rows = buffer.getvalue()
    if not rows:
        return header
    return header + "\n" + rows[:-1]


def export_filename(today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"scansave_receipts_{today.isoformat()}.csv"
