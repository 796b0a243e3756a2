"""
Data Models Package

This package contains all Pydantic models used in ScanSave.
All data flowing through the system must conform to these schemas.
"""

from scansave.models.receipt import (
    ExtractedReceipt,
    ExtractionOutcome,
    LineItem,
    ReceiptRecord,
    SpendingCategory,
    UploadResult,
    ValidationIssue,
    ValidationResult,
    format_currency,
    new_receipt_id,
)
from scansave.models.chat import (
    NEW_CHAT_TITLE,
    ChatContext,
    ChatMessage,
    ChatReply,
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

__all__ = [
    # Receipt models
    "ExtractedReceipt",
    "ExtractionOutcome",
    "LineItem",
    "ReceiptRecord",
    "SpendingCategory",
    "UploadResult",
    "ValidationIssue",
    "ValidationResult",
    "format_currency",
    "new_receipt_id",
    # Chat models
    "NEW_CHAT_TITLE",
    "ChatContext",
    "ChatMessage",
    "ChatReply",
    "ChatRole",
    "ChatSession",
    "GroundingSource",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
