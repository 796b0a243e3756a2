"""
Receipt Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION (in the extractor):
- JSON parsing and required field presence
- Types and non-negative amounts
- Category coercion to the closed enumeration
- Any failure here is an ExtractionError

STAGE 2 - SEMANTIC VALIDATION (this module):
- Unparseable or implausible dates
- Receipts with no items or a zero total
- Store names that look like OCR noise

IMPORTANT: Stage 2 NEVER blocks and NEVER rewrites data. The extraction
service is trusted for totals; we do not re-derive them from the items.
Issues are reported as warnings for the audit trail.
"""

from datetime import date, datetime, timedelta
from typing import Optional

from scansave.models.receipt import (
    ExtractedReceipt,
    ValidationIssue,
    ValidationResult,
)


_DATE_FORMATS = ("%Y-%m-%d", "%d.%m.%Y", "%d/%m/%Y", "%Y/%m/%d", "%d-%m-%Y")

FUTURE_DATE_TOLERANCE_DAYS = 1
MAX_RECEIPT_AGE_DAYS = 365 * 2


def parse_receipt_date(value: Optional[str]) -> Optional[date]:
    """
    Parse a receipt date string.

    ISO dates (optionally with a time part) come first, then the common
    European and slash formats. Returns None when nothing matches.
    """
    if not value:
        return None
    value = value.strip()
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None


class ReceiptValidator:
    """Advisory semantic checks on an extracted receipt."""

    def validate(
        self,
        receipt: ExtractedReceipt,
        today: Optional[date] = None,
    ) -> ValidationResult:
        today = today or date.today()
        issues: list[ValidationIssue] = []

        issues.extend(self._check_date(receipt, today))

        if not receipt.items:
            issues.append(ValidationIssue(
                field="items",
                issue_type="empty",
                message="No line items were extracted",
            ))

        if receipt.total == 0:
            issues.append(ValidationIssue(
                field="total",
                issue_type="suspicious_value",
                message="Total is zero",
            ))

        # Store name sanity (not just numbers/symbols)
        name = receipt.store_name
        alpha_count = sum(1 for c in name if c.isalpha())
        if name and alpha_count / len(name) < 0.3:
            issues.append(ValidationIssue(
                field="storeName",
                issue_type="suspicious_value",
                message="Store name looks unusual (too many numbers/symbols)",
            ))

        return ValidationResult(issues=issues)

    def _check_date(self, receipt: ExtractedReceipt, today: date) -> list[ValidationIssue]:
        parsed = parse_receipt_date(receipt.date)
        if parsed is None:
            return [ValidationIssue(
                field="date",
                issue_type="unparseable_date",
                message=f"Date '{receipt.date}' is not a recognizable calendar date",
            )]

        if parsed > today + timedelta(days=FUTURE_DATE_TOLERANCE_DAYS):
            return [ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Receipt date ({parsed}) is in the future",
            )]

        if parsed < today - timedelta(days=MAX_RECEIPT_AGE_DAYS):
            return [ValidationIssue(
                field="date",
                issue_type="suspicious_date",
                message=f"Receipt date ({parsed}) seems unusually old",
            )]

        return []
