"""
Core Data Models for ScanSave receipts

These models define the strict schemas for all receipt data flowing through
the system. They are designed to:
1. Enforce type safety at runtime
2. Turn wrong-shaped service payloads into clear validation errors
3. Be serializable for storage, prompts and logging
4. Keep the wire format (camelCase) separate from Python attribute names

DESIGN DECISION: Receipt records are frozen. The ledger only ever inserts
and deletes them; nothing edits a record in place.
"""

from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)
from pydantic.alias_generators import to_camel


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class SpendingCategory(str, Enum):
    """
    Supported spending categories.

    DESIGN DECISION: The set is closed. Anything the extraction service
    returns outside of it is coerced to OTHER rather than stored as-is.
    """
    FOOD_DINING = "food_dining"
    GROCERIES = "groceries"
    SHOPPING = "shopping"
    TRANSPORTATION = "transportation"
    HEALTH = "health"
    ENTERTAINMENT = "entertainment"
    UTILITIES = "utilities"
    HOME = "home"
    OTHER = "other"

    @classmethod
    def coerce(cls, value) -> "SpendingCategory":
        """Map any value onto the enumeration, falling back to OTHER."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return cls.OTHER
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.OTHER


# =============================================================================
# CORE RECEIPT MODEL
# =============================================================================

_WIRE_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    str_strip_whitespace=True,
    frozen=True,
)


class LineItem(BaseModel):
    """A single purchased item on a receipt."""
    model_config = _WIRE_CONFIG

    description: str = Field(
        ...,
        description="Name or description of the item"
    )
    price: float = Field(
        ...,
        ge=0,
        description="Price of the item"
    )


class ExtractedReceipt(BaseModel):
    """
    Data extracted from a receipt image by the generative service.

    This is a receipt without identity: the id is assigned when the
    pipeline creates the ReceiptRecord, never by the service.
    """
    model_config = _WIRE_CONFIG

    store_name: str = Field(
        ...,
        min_length=1,
        description="Name of the store or vendor"
    )
    date: str = Field(
        ...,
        min_length=1,
        description="Transaction date, YYYY-MM-DD when the service follows the schema"
    )
    items: list[LineItem] = Field(
        ...,
        description="Items in extraction order"
    )
    subtotal: float = Field(
        default=0.0,
        ge=0,
        description="Amount before tax"
    )
    tax: float = Field(
        default=0.0,
        ge=0,
        description="Total tax amount"
    )
    total: float = Field(
        ...,
        ge=0,
        description="Final total paid, trusted as reported"
    )
    category: SpendingCategory = Field(
        default=SpendingCategory.OTHER,
        description="Spending category"
    )
    currency: str = Field(
        ...,
        min_length=1,
        description="Currency symbol or ISO 4217 code"
    )

    @field_validator("category", mode="before")
    @classmethod
    def coerce_category(cls, v) -> SpendingCategory:
        """Unknown or missing categories become OTHER."""
        return SpendingCategory.coerce(v)

    @field_validator("subtotal", "tax", mode="before")
    @classmethod
    def default_missing_amount(cls, v):
        return 0.0 if v is None else v

    def to_prompt_dict(self) -> dict:
        """Wire-format dict used when interpolating receipts into prompts."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def new_receipt_id() -> str:
    """Create a new opaque receipt id."""
    return f"receipt-{uuid4().hex}"


class ReceiptRecord(ExtractedReceipt):
    """
    A receipt stored in the ledger.

    CRITICAL: Created only by the pipeline after a successful extraction.
    The insight is optional enrichment and may be absent.
    """

    id: str = Field(
        default_factory=new_receipt_id,
        min_length=1,
        description="Unique receipt id, assigned at creation"
    )
    insight: Optional[str] = Field(
        default=None,
        description="Short AI commentary on the receipt"
    )

    @classmethod
    def from_extraction(
        cls,
        extracted: ExtractedReceipt,
        insight: Optional[str] = None,
    ) -> "ReceiptRecord":
        return cls(
            **extracted.model_dump(),
            insight=insight or None,
        )

    @property
    def formatted_total(self) -> str:
        return format_currency(self.total, self.currency)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'empty', 'unparseable_date', 'suspicious_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="warning",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """
    Result of the semantic validation stage.

    Structural validation already happened when the payload was parsed,
    so everything reported here is advisory.
    """

    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)


# =============================================================================
# PIPELINE RESULTS
# =============================================================================

class ExtractionOutcome(BaseModel):
    """Extracted receipt together with its advisory validation result."""

    receipt: ExtractedReceipt
    validation: ValidationResult = Field(default_factory=ValidationResult)

    @property
    def warnings(self) -> list[str]:
        return self.validation.warnings


class UploadResult(BaseModel):
    """
    Result of one pipeline run for an uploaded image.

    On failure the ledger is untouched and error_message holds the
    localized, user-facing message.
    """

    success: bool
    record: Optional[ReceiptRecord] = None
    error_message: Optional[str] = None
    warnings: list[str] = Field(default_factory=list)


# =============================================================================
# HELPERS
# =============================================================================

PREFIX_SYMBOLS = ("$", "€", "£")


def format_currency(amount: float, currency: Optional[str]) -> str:
    """
    Format an amount with its currency.

    Common symbols precede the number; ISO codes and other symbols follow
    it with a space. Missing currencies default to USD.
    """
    symbol = currency or "USD"
    if symbol in PREFIX_SYMBOLS:
        return f"{symbol}{amount:.2f}"
    return f"{amount:.2f} {symbol}"
