"""
Receipt Extraction Service

Turns one receipt image into structured data with a single generative call.

DESIGN DECISION: The service is asked for JSON constrained to a fixed
response schema, but the schema is a request, not a guarantee. Every
response is re-validated against ExtractedReceipt before anything else
sees it. A wrong shape becomes an ExtractionError here and never reaches
the ledger.

CRITICAL: This service does NOT:
- Assign receipt ids (the pipeline does)
- Retry (the pipeline owns the retry policy)
- Persist anything
"""

import json
from typing import Optional

from pydantic import ValidationError

from scansave.models.receipt import (
    ExtractedReceipt,
    ExtractionOutcome,
    SpendingCategory,
)
from scansave.services.gemini import GeminiClient, GenerativeServiceError
from scansave.services.image import ImagePayload
from scansave.validation import ReceiptValidator


class ExtractionError(Exception):
    """
    Raised when a receipt could not be turned into structured data.

    retryable is True only for service/transport failures. A response with
    the wrong shape will not improve by asking again with the same image.
    """

    def __init__(self, message: str, retryable: bool = False):
        super().__init__(message)
        self.retryable = retryable


EXTRACTION_PROMPT = (
    "Analyze this receipt image. Extract all relevant information and "
    "provide it in the requested JSON format. If a value like tax or "
    "subtotal is not explicitly present, calculate it or set it to 0. "
    "Select the most fitting category key."
)

RECEIPT_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "storeName": {
            "type": "STRING",
            "description": "Name of the store or merchant.",
        },
        "date": {
            "type": "STRING",
            "description": "Date of the transaction in YYYY-MM-DD format.",
        },
        "items": {
            "type": "ARRAY",
            "description": "List of purchased items.",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "description": {
                        "type": "STRING",
                        "description": "Name or description of the item.",
                    },
                    "price": {
                        "type": "NUMBER",
                        "description": "Price of the item.",
                    },
                },
                "required": ["description", "price"],
            },
        },
        "subtotal": {
            "type": "NUMBER",
            "description": "Subtotal amount before tax.",
        },
        "tax": {
            "type": "NUMBER",
            "description": "Total tax amount.",
        },
        "total": {
            "type": "NUMBER",
            "description": "Final total amount paid.",
        },
        "category": {
            "type": "STRING",
            "format": "enum",
            "enum": [c.value for c in SpendingCategory],
            "description": "The most fitting spending category key.",
        },
        "currency": {
            "type": "STRING",
            "description": "Currency symbol or code (e.g., $, €, USD). Default to 'USD' if not found.",
        },
    },
    "required": ["storeName", "date", "items", "total", "category", "currency"],
}

# Category is deliberately absent: a missing category is coerced, not rejected.
REQUIRED_FIELDS = ("storeName", "date", "items", "total", "currency")


def _describe_validation_error(error: ValidationError) -> str:
    parts = []
    for err in error.errors()[:3]:
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg')}")
    return "; ".join(parts)


class ReceiptExtractor:
    """
    Extracts structured receipt data from an image.

    Usage:
        extractor = ReceiptExtractor(client)
        outcome = await extractor.extract(payload)
        outcome.receipt     # ExtractedReceipt
        outcome.warnings    # advisory semantic warnings
    """

    def __init__(
        self,
        client: Optional[GeminiClient] = None,
        validator: Optional[ReceiptValidator] = None,
    ):
        self._client = client or GeminiClient()
        self._validator = validator or ReceiptValidator()

    async def extract(self, payload: ImagePayload) -> ExtractionOutcome:
        """
        Run one extraction call and validate the result.

        Raises:
            ExtractionError: On service failure (retryable) or a response
                that does not match the receipt shape (not retryable)
        """
        try:
            raw = await self._client.generate_structured(
                [payload.to_part(), EXTRACTION_PROMPT],
                RECEIPT_SCHEMA,
            )
        except GenerativeServiceError as e:
            raise ExtractionError(str(e), retryable=True) from e

        receipt = self.parse_response(raw)
        return ExtractionOutcome(
            receipt=receipt,
            validation=self._validator.validate(receipt),
        )

    @staticmethod
    def parse_response(raw: str) -> ExtractedReceipt:
        """Parse and validate the JSON body returned by the service."""
        try:
            data = json.loads(raw)
        except (TypeError, json.JSONDecodeError) as e:
            raise ExtractionError(f"Response is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise ExtractionError(
                f"Response must be a JSON object, got {type(data).__name__}"
            )

        missing = [key for key in REQUIRED_FIELDS if data.get(key) is None]
        if missing:
            raise ExtractionError(f"Response is missing fields: {', '.join(missing)}")

        try:
            return ExtractedReceipt.model_validate(data)
        except ValidationError as e:
            raise ExtractionError(
                f"Response has invalid fields: {_describe_validation_error(e)}"
            ) from e
