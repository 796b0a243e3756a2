"""
Audit Models for ScanSave

Every significant action in the system is logged for audit purposes.
This provides:
1. Traceability of every pipeline run and chat turn
2. Debugging information when the generative service misbehaves
3. A record of degraded paths (missing insight, corrupt snapshot)

DESIGN DECISION: Audit events are append-only. We never modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every step in the receipt pipeline and the chat flow has its own type.
    """
    # Receipt pipeline
    RECEIPT_UPLOADED = "receipt_uploaded"
    EXTRACTION_COMPLETED = "extraction_completed"
    EXTRACTION_FAILED = "extraction_failed"
    VALIDATION_WARNINGS = "validation_warnings"
    INSIGHT_FAILED = "insight_failed"

    # Ledger
    RECEIPT_SAVED = "receipt_saved"
    RECEIPT_DELETED = "receipt_deleted"

    # Weekly trend
    WEEKLY_TREND_UPDATED = "weekly_trend_updated"
    WEEKLY_TREND_FAILED = "weekly_trend_failed"

    # Chat
    CHAT_SESSION_CREATED = "chat_session_created"
    CHAT_SESSION_DELETED = "chat_session_deleted"
    CHAT_MESSAGE_FAILED = "chat_message_failed"
    CHAT_REPLY_DROPPED = "chat_reply_dropped"
    CHAT_TITLE_INFERRED = "chat_title_inferred"

    # Persistence
    SNAPSHOT_CORRUPT = "snapshot_corrupt"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'receipt', 'session', 'snapshot')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., all events in one upload)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    # Error information (if applicable)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.receipt_uploaded(filename, size, correlation_id)
        event = AuditEventBuilder.receipt_saved(receipt_id, store, total, correlation_id)
    """

    @staticmethod
    def receipt_uploaded(
        filename: Optional[str],
        file_size: int,
        mime_type: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECEIPT_UPLOADED,
            entity_type="image",
            correlation_id=correlation_id,
            description=f"Receipt image uploaded: {filename or 'camera capture'}",
            details={
                "filename": filename,
                "file_size_bytes": file_size,
                "mime_type": mime_type,
            },
            is_user_action=True,
        )

    @staticmethod
    def extraction_completed(
        store_name: str,
        category: str,
        item_count: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTRACTION_COMPLETED,
            entity_type="extraction",
            correlation_id=correlation_id,
            description=f"Extracted receipt from {store_name}",
            details={
                "category": category,
                "item_count": item_count,
            },
        )

    @staticmethod
    def extraction_failed(
        error_message: str,
        retryable: bool,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTRACTION_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="extraction",
            correlation_id=correlation_id,
            description="Receipt extraction failed",
            error_message=error_message,
            details={"retryable": retryable},
        )

    @staticmethod
    def validation_warnings(
        warnings: list[str],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_WARNINGS,
            severity=AuditSeverity.WARNING,
            entity_type="extraction",
            correlation_id=correlation_id,
            description=f"Extraction passed with {len(warnings)} warnings",
            details={"warnings": warnings},
        )

    @staticmethod
    def insight_failed(
        error_message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INSIGHT_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="receipt",
            correlation_id=correlation_id,
            description="Insight generation failed; saving receipt without insight",
            error_message=error_message,
        )

    @staticmethod
    def receipt_saved(
        receipt_id: str,
        store_name: str,
        total: str,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECEIPT_SAVED,
            entity_type="receipt",
            entity_id=receipt_id,
            correlation_id=correlation_id,
            description=f"Receipt saved: {store_name} - {total}",
            details={
                "store_name": store_name,
                "total": total,
            },
        )

    @staticmethod
    def receipt_deleted(receipt_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECEIPT_DELETED,
            entity_type="receipt",
            entity_id=receipt_id,
            description="Receipt deleted",
            is_user_action=True,
        )

    @staticmethod
    def weekly_trend_updated(receipt_count: int, sufficient: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.WEEKLY_TREND_UPDATED,
            entity_type="weekly_trend",
            description="Weekly trend recomputed",
            details={
                "receipt_count": receipt_count,
                "sufficient_data": sufficient,
            },
        )

    @staticmethod
    def weekly_trend_failed(error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.WEEKLY_TREND_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="weekly_trend",
            description="Weekly trend generation failed",
            error_message=error_message,
        )

    @staticmethod
    def chat_session_created(session_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CHAT_SESSION_CREATED,
            entity_type="session",
            entity_id=session_id,
            description="Chat session created",
        )

    @staticmethod
    def chat_session_deleted(session_id: str, promoted_id: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CHAT_SESSION_DELETED,
            entity_type="session",
            entity_id=session_id,
            description="Chat session deleted",
            details={"active_session_id": promoted_id},
            is_user_action=True,
        )

    @staticmethod
    def chat_message_failed(session_id: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CHAT_MESSAGE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="session",
            entity_id=session_id,
            description="Chat send failed; error message appended to the conversation",
            error_message=error_message,
        )

    @staticmethod
    def chat_reply_dropped(session_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CHAT_REPLY_DROPPED,
            severity=AuditSeverity.WARNING,
            entity_type="session",
            entity_id=session_id,
            description="Reply arrived for a session that no longer exists",
        )

    @staticmethod
    def chat_title_inferred(session_id: str, title: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CHAT_TITLE_INFERRED,
            entity_type="session",
            entity_id=session_id,
            description=f"Chat titled: {title}",
        )

    @staticmethod
    def snapshot_corrupt(key: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_CORRUPT,
            severity=AuditSeverity.ERROR,
            entity_type="snapshot",
            entity_id=key,
            description=f"Snapshot '{key}' could not be read; starting empty",
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
