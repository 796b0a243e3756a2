"""Receipt extraction service."""

from scansave.services.extraction.receipt_extractor import (
    EXTRACTION_PROMPT,
    RECEIPT_SCHEMA,
    ExtractionError,
    ReceiptExtractor,
)

__all__ = [
    "EXTRACTION_PROMPT",
    "RECEIPT_SCHEMA",
    "ExtractionError",
    "ReceiptExtractor",
]
