"""
Audit Logger

DESIGN DECISION: Every significant action in the system is logged.
This provides:
1. Traceability of pipeline runs and chat turns
2. Debugging capability for generative service failures
3. A visible trail for every degraded path that is silent to the user

The audit logger:
- Gracefully handles failures (never crashes the app if logging fails)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from scansave.models.audit import AuditEvent, AuditEventBuilder


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Keeps the emitted events in memory (most recent last) so callers and
    tests can inspect what happened during a run.
    """

    def __init__(self, keep_last: int = 500):
        self._logger = structlog.get_logger("scansave.audit")
        self._keep_last = keep_last
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    def log(self, event: AuditEvent) -> None:
        """Log an audit event locally. Never raises."""
        self._events.append(event)
        if len(self._events) > self._keep_last:
            del self._events[: len(self._events) - self._keep_last]

        log_dict = event.to_log_dict()
        try:
            if event.severity.value in ("error", "critical"):
                self._logger.error("audit_event", **log_dict)
            elif event.severity.value == "warning":
                self._logger.warning("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            # Logging must never take the pipeline down with it
            pass

    def log_receipt_uploaded(
        self,
        filename: Optional[str],
        file_size: int,
        mime_type: str,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.receipt_uploaded(
            filename=filename,
            file_size=file_size,
            mime_type=mime_type,
            correlation_id=correlation_id,
        ))

    def log_extraction_completed(
        self,
        store_name: str,
        category: str,
        item_count: int,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.extraction_completed(
            store_name=store_name,
            category=category,
            item_count=item_count,
            correlation_id=correlation_id,
        ))

    def log_extraction_failed(
        self,
        error_message: str,
        retryable: bool,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.extraction_failed(
            error_message=error_message,
            retryable=retryable,
            correlation_id=correlation_id,
        ))

    def log_validation_warnings(
        self,
        warnings: list[str],
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.validation_warnings(
            warnings=warnings,
            correlation_id=correlation_id,
        ))

    def log_insight_failed(self, error_message: str, correlation_id: UUID) -> None:
        self.log(AuditEventBuilder.insight_failed(
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    def log_receipt_saved(
        self,
        receipt_id: str,
        store_name: str,
        total: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.receipt_saved(
            receipt_id=receipt_id,
            store_name=store_name,
            total=total,
            correlation_id=correlation_id,
        ))

    def log_receipt_deleted(self, receipt_id: str) -> None:
        self.log(AuditEventBuilder.receipt_deleted(receipt_id))

    def log_weekly_trend_updated(self, receipt_count: int, sufficient: bool) -> None:
        self.log(AuditEventBuilder.weekly_trend_updated(receipt_count, sufficient))

    def log_weekly_trend_failed(self, error_message: str) -> None:
        self.log(AuditEventBuilder.weekly_trend_failed(error_message))

    def log_chat_session_created(self, session_id: str) -> None:
        self.log(AuditEventBuilder.chat_session_created(session_id))

    def log_chat_session_deleted(self, session_id: str, promoted_id: Optional[str]) -> None:
        self.log(AuditEventBuilder.chat_session_deleted(session_id, promoted_id))

    def log_chat_message_failed(self, session_id: str, error_message: str) -> None:
        self.log(AuditEventBuilder.chat_message_failed(session_id, error_message))

    def log_chat_reply_dropped(self, session_id: str) -> None:
        self.log(AuditEventBuilder.chat_reply_dropped(session_id))

    def log_chat_title_inferred(self, session_id: str, title: str) -> None:
        self.log(AuditEventBuilder.chat_title_inferred(session_id, title))

    def log_snapshot_corrupt(self, key: str, error_message: str) -> None:
        self.log(AuditEventBuilder.snapshot_corrupt(key, error_message))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))

    def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log external service error."""
        self.log(AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., receipt upload).
    Pass it through all subsequent operations.
    """
    return uuid4()
