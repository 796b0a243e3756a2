"""
Tests for ScanSave

Test strategy:
1. Unit tests for individual components (models, validators, ledger)
2. Integration tests for flows (with a fake generative client)
3. No real API calls in tests
"""

import pytest
from uuid import uuid4

from scansave.models.receipt import (
    ExtractedReceipt,
    LineItem,
    ReceiptRecord,
    SpendingCategory,
    ValidationIssue,
    ValidationResult,
    format_currency,
)
from scansave.models.chat import (
    NEW_CHAT_TITLE,
    ChatMessage,
    ChatRole,
    ChatSession,
    GroundingSource,
)
from scansave.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


def _wire_receipt(**overrides) -> dict:
    data = {
        "storeName": "Fresh Market",
        "date": "2024-05-10",
        "items": [{"description": "Apples", "price": 2.5}],
        "total": 2.5,
        "category": "groceries",
        "currency": "€",
    }
    data.update(overrides)
    return data


class TestReceiptModels:
    """Tests for receipt-related Pydantic models."""

    def test_line_item_creation(self):
        """Test LineItem model creation."""
        item = LineItem(description="Bread", price=2.99)
        assert item.description == "Bread"
        assert item.price == 2.99

    def test_line_item_rejects_negative_price(self):
        """Test that negative prices are rejected."""
        with pytest.raises(ValueError):
            LineItem(description="Refund", price=-1)

    def test_extracted_receipt_from_wire_format(self):
        """Test camelCase wire keys map onto Python attributes."""
        receipt = ExtractedReceipt.model_validate(_wire_receipt())
        assert receipt.store_name == "Fresh Market"
        assert receipt.category == SpendingCategory.GROCERIES
        assert receipt.items[0].description == "Apples"

    def test_store_name_strips_whitespace(self):
        """Test that whitespace is stripped from the store name."""
        receipt = ExtractedReceipt.model_validate(_wire_receipt(storeName="  Fresh Market  "))
        assert receipt.store_name == "Fresh Market"

    def test_missing_subtotal_and_tax_default_to_zero(self):
        """Test absent or null subtotal/tax become 0."""
        receipt = ExtractedReceipt.model_validate(_wire_receipt(tax=None))
        assert receipt.subtotal == 0.0
        assert receipt.tax == 0.0

    def test_unknown_category_coerced_to_other(self):
        """Test categories outside the enumeration become OTHER."""
        receipt = ExtractedReceipt.model_validate(_wire_receipt(category="pets"))
        assert receipt.category == SpendingCategory.OTHER

    def test_missing_category_defaults_to_other(self):
        """Test a missing category is not a failure."""
        data = _wire_receipt()
        del data["category"]
        receipt = ExtractedReceipt.model_validate(data)
        assert receipt.category == SpendingCategory.OTHER

    def test_negative_total_rejected(self):
        """Test that a negative total is rejected."""
        with pytest.raises(ValueError):
            ExtractedReceipt.model_validate(_wire_receipt(total=-3))

    def test_prompt_dict_uses_wire_keys(self):
        """Test prompt serialization uses camelCase keys and category values."""
        receipt = ExtractedReceipt.model_validate(_wire_receipt())
        data = receipt.to_prompt_dict()
        assert data["storeName"] == "Fresh Market"
        assert data["category"] == "groceries"
        assert "store_name" not in data

    def test_record_from_extraction_assigns_id(self):
        """Test ReceiptRecord gets a fresh id and keeps the extracted data."""
        receipt = ExtractedReceipt.model_validate(_wire_receipt())
        first = ReceiptRecord.from_extraction(receipt, insight="Nice and healthy!")
        second = ReceiptRecord.from_extraction(receipt)
        assert first.id.startswith("receipt-")
        assert first.id != second.id
        assert first.insight == "Nice and healthy!"
        assert second.insight is None
        assert first.store_name == receipt.store_name

    def test_record_is_frozen(self):
        """Test records cannot be edited in place."""
        record = ReceiptRecord.from_extraction(ExtractedReceipt.model_validate(_wire_receipt()))
        with pytest.raises(ValueError):
            record.total = 99


class TestFormatCurrency:
    """Tests for currency formatting."""

    @pytest.mark.parametrize("symbol", ["$", "€", "£"])
    def test_common_symbols_prefix(self, symbol):
        assert format_currency(12.5, symbol) == f"{symbol}12.50"

    def test_codes_suffix_with_space(self):
        assert format_currency(1234.5, "RSD") == "1234.50 RSD"

    def test_missing_currency_defaults_to_usd(self):
        assert format_currency(3, None) == "3.00 USD"


class TestChatModels:
    """Tests for chat-related models."""

    def test_new_session_defaults(self):
        """Test a new session starts untitled and empty."""
        session = ChatSession()
        assert session.title == NEW_CHAT_TITLE
        assert session.has_default_title is True
        assert session.messages == []
        assert session.title_requested is False
        assert session.id.startswith("session-")

    def test_session_serializes_camel_case(self):
        """Test stored sessions use the wire keys."""
        session = ChatSession(messages=[ChatMessage.user("Hi")])
        data = session.model_dump(mode="json", by_alias=True)
        assert "startTime" in data
        assert "titleRequested" in data
        assert data["messages"][0] == {"role": "user", "text": "Hi"}

    def test_message_constructors(self):
        assert ChatMessage.user("a").role == ChatRole.USER
        assert ChatMessage.model("b").role == ChatRole.MODEL

    def test_grounding_source_markdown(self):
        source = GroundingSource(title="Corner Bistro", uri="https://maps.example/1")
        assert source.to_markdown() == "[Corner Bistro](https://maps.example/1)"


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.RECEIPT_UPLOADED,
            description="Test image uploaded",
        )
        assert event.event_type == AuditEventType.RECEIPT_UPLOADED
        assert event.severity == AuditSeverity.INFO
        assert event.timestamp.tzinfo is not None

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.RECEIPT_SAVED,
            description="Receipt saved",
            details={"store_name": "Fresh Market"},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "receipt_saved"
        assert log_dict["details"]["store_name"] == "Fresh Market"

    def test_builder_receipt_uploaded(self):
        """Test AuditEventBuilder.receipt_uploaded."""
        correlation_id = uuid4()
        event = AuditEventBuilder.receipt_uploaded(
            filename="receipt.png",
            file_size=1024,
            mime_type="image/png",
            correlation_id=correlation_id,
        )
        assert event.event_type == AuditEventType.RECEIPT_UPLOADED
        assert event.correlation_id == correlation_id
        assert event.is_user_action is True

    def test_builder_extraction_failed_is_error(self):
        """Test extraction failures are logged at error severity."""
        event = AuditEventBuilder.extraction_failed(
            error_message="bad json",
            retryable=False,
            correlation_id=uuid4(),
        )
        assert event.severity == AuditSeverity.ERROR
        assert event.details["retryable"] is False


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = ValidationResult(issues=[
            ValidationIssue(
                field="date",
                issue_type="future_date",
                message="Date in future",
            ),
        ])
        assert result.has_errors is False
        assert result.warnings == ["Date in future"]


class TestSpendingCategories:
    """Tests for the spending category enum."""

    def test_all_categories_exist(self):
        expected = [
            "food_dining", "groceries", "shopping", "transportation",
            "health", "entertainment", "utilities", "home", "other",
        ]
        assert [c.value for c in SpendingCategory] == expected

    def test_coerce(self):
        assert SpendingCategory.coerce(" Groceries ") == SpendingCategory.GROCERIES
        assert SpendingCategory.coerce("unknown") == SpendingCategory.OTHER
        assert SpendingCategory.coerce(None) == SpendingCategory.OTHER


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
