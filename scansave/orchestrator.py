"""
Main Orchestrator for ScanSave

This module ties together all the components and defines the
end-to-end flows for:
1. Receipt Upload (image -> encode -> extract -> enrich -> save -> refresh)
2. Receipt Deletion (delete -> refresh)

DESIGN DECISION: The orchestrator enforces the boundaries:
- A receipt is stored only after a successful extraction
- Enrichment (insight) is best effort and never blocks the save
- Derived state (weekly trend, chat context) is refreshed explicitly
  after every ledger mutation
- Every step is audited

CONCURRENCY: One upload in flight per pipeline. A second upload while
one is running is rejected with OperationInProgressError, never queued.
"""

from typing import NamedTuple, Optional
from uuid import UUID

from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from scansave.agents import ChatAgent, EnrichmentError, InsightAgent
from scansave.analytics import (
    WeeklySummary,
    WeeklyTrendAggregator,
    WeeklyTrendTracker,
)
from scansave.audit import AuditLogger, create_correlation_id
from scansave.chat import ChatSessionManager
from scansave.config import AppSettings, Settings, get_settings
from scansave.guards import InFlightGuard
from scansave.i18n import Translator
from scansave.ledger import ReceiptLedger
from scansave.models.receipt import (
    ExtractionOutcome,
    ReceiptRecord,
    UploadResult,
)
from scansave.services.extraction import ExtractionError, ReceiptExtractor
from scansave.services.gemini import GeminiClient
from scansave.services.image import ImageEncodingError, ImagePayload, encode_image
from scansave.services.storage import (
    JsonFileBackend,
    JsonReceiptStore,
    JsonSessionStore,
    StorageError,
)
from scansave.validation import ReceiptValidator


UPLOAD_RESOURCE = "receipt-upload"
FAILED_ANALYSIS_KEY = "error.failedAnalysis"


def _is_retryable(error: BaseException) -> bool:
    return isinstance(error, ExtractionError) and error.retryable


class ReceiptPipeline:
    """
    Orchestrates the receipt flows.

    Upload flow:
    1. Guard -> reject if another upload is running
    2. Encode -> validate type and size
    3. Extract -> schema-validated receipt (retried on service failures)
    4. Enrich -> insight, best effort
    5. Save -> insert into the ledger (persisted first)
    6. Select -> the new receipt becomes the selected one
    7. Refresh -> weekly trend and chat context
    """

    def __init__(
        self,
        ledger: ReceiptLedger,
        extractor: ReceiptExtractor,
        insight_agent: InsightAgent,
        weekly_tracker: WeeklyTrendTracker,
        chat_manager: Optional[ChatSessionManager] = None,
        translator: Optional[Translator] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[AppSettings] = None,
        retry_wait=None,
    ):
        self._ledger = ledger
        self._extractor = extractor
        self._insight_agent = insight_agent
        self._weekly_tracker = weekly_tracker
        self._chat_manager = chat_manager
        self._translator = translator or Translator()
        self._audit_logger = audit_logger or AuditLogger()
        self._settings = settings or get_settings().app
        self._retry_wait = retry_wait or wait_exponential(multiplier=0.5, max=4)

        self._guard = InFlightGuard()
        self._selected_id: Optional[str] = None
        self._language = self._translator.normalize_language(self._settings.default_language)

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def ledger(self) -> ReceiptLedger:
        return self._ledger

    @property
    def language(self) -> str:
        return self._language

    @property
    def is_uploading(self) -> bool:
        return self._guard.is_held(UPLOAD_RESOURCE)

    @property
    def selected_receipt(self) -> Optional[ReceiptRecord]:
        if self._selected_id is None:
            return None
        return self._ledger.get(self._selected_id)

    @property
    def weekly_summary(self) -> Optional[WeeklySummary]:
        return self._weekly_tracker.summary

    def select_receipt(self, receipt_id: Optional[str]) -> Optional[ReceiptRecord]:
        """Select a receipt for display; None or an unknown id clears the selection."""
        record = self._ledger.get(receipt_id) if receipt_id else None
        self._selected_id = record.id if record else None
        return record

    # =========================================================================
    # UPLOAD FLOW
    # =========================================================================

    async def process_upload(
        self,
        image_bytes: bytes,
        mime_type: str,
        filename: Optional[str] = None,
        language: Optional[str] = None,
    ) -> UploadResult:
        """
        Run the full upload flow for one image.

        Returns:
            UploadResult; on failure the ledger is untouched and
            error_message holds the localized failure text

        Raises:
            OperationInProgressError: If another upload is running
            StorageError: If the new ledger snapshot could not be written
        """
        with self._guard.acquire(UPLOAD_RESOURCE):
            language = self._translator.normalize_language(language or self._language)
            correlation_id = create_correlation_id()

            self._audit_logger.log_receipt_uploaded(
                filename=filename,
                file_size=len(image_bytes or b""),
                mime_type=mime_type,
                correlation_id=correlation_id,
            )

            try:
                payload = encode_image(image_bytes, mime_type, filename)
            except ImageEncodingError as e:
                self._audit_logger.log_extraction_failed(
                    error_message=str(e),
                    retryable=False,
                    correlation_id=correlation_id,
                )
                return self._failed(language)

            try:
                outcome = await self._extract(payload, correlation_id)
            except ExtractionError as e:
                self._audit_logger.log_extraction_failed(
                    error_message=str(e),
                    retryable=e.retryable,
                    correlation_id=correlation_id,
                )
                return self._failed(language)

            receipt = outcome.receipt
            self._audit_logger.log_extraction_completed(
                store_name=receipt.store_name,
                category=receipt.category.value,
                item_count=len(receipt.items),
                correlation_id=correlation_id,
            )
            if outcome.warnings:
                self._audit_logger.log_validation_warnings(outcome.warnings, correlation_id)

            insight = await self._generate_insight(outcome, language, correlation_id)
            record = ReceiptRecord.from_extraction(receipt, insight=insight)

            try:
                self._ledger.insert(record)
            except StorageError as e:
                self._audit_logger.log_error(
                    error_type="storage",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
                raise

            self._selected_id = record.id
            await self._after_ledger_change(language)

            return UploadResult(
                success=True,
                record=record,
                warnings=outcome.warnings,
            )

    async def _extract(self, payload: ImagePayload, correlation_id: UUID) -> ExtractionOutcome:
        """Extraction with the retry policy. Only retryable errors are retried."""
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._settings.extraction_max_attempts),
            wait=self._retry_wait,
            retry=retry_if_exception(_is_retryable),
            reraise=True,
        ):
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    self._audit_logger.log_external_service_error(
                        service="gemini",
                        error_message=f"Retrying extraction (attempt {attempt.retry_state.attempt_number})",
                        correlation_id=correlation_id,
                    )
                return await self._extractor.extract(payload)

    async def _generate_insight(
        self,
        outcome: ExtractionOutcome,
        language: str,
        correlation_id: UUID,
    ) -> Optional[str]:
        try:
            return await self._insight_agent.generate_insight(outcome.receipt, language)
        except EnrichmentError as e:
            self._audit_logger.log_insight_failed(str(e), correlation_id)
            return None

    def _failed(self, language: str) -> UploadResult:
        return UploadResult(
            success=False,
            error_message=self._translator.t(FAILED_ANALYSIS_KEY, language),
        )

    # =========================================================================
    # LEDGER MUTATIONS
    # =========================================================================

    async def delete_receipt(self, receipt_id: str, language: Optional[str] = None) -> bool:
        """
        Delete a receipt. Returns False if it does not exist.

        The selection is cleared if it pointed at the deleted receipt.
        """
        if not self._ledger.delete(receipt_id):
            return False
        if self._selected_id == receipt_id:
            self._selected_id = None
        await self._after_ledger_change(language or self._language)
        return True

    async def refresh_weekly_trend(self, language: Optional[str] = None) -> Optional[WeeklySummary]:
        language = self._translator.normalize_language(language or self._language)
        return await self._weekly_tracker.refresh(self._ledger.snapshot(), language)

    async def set_language(self, language: str) -> None:
        """Switch the output language and regenerate language-dependent state."""
        self._language = self._translator.normalize_language(language)
        if self._chat_manager is not None:
            self._chat_manager.set_language(self._language)
        await self.refresh_weekly_trend(self._language)

    async def _after_ledger_change(self, language: str) -> None:
        await self._weekly_tracker.refresh(self._ledger.snapshot(), language)
        if self._chat_manager is not None:
            self._chat_manager.refresh_context()


class AppComponents(NamedTuple):
    """Everything the presentation layer needs, wired together."""

    pipeline: ReceiptPipeline
    ledger: ReceiptLedger
    chat_manager: ChatSessionManager
    weekly_tracker: WeeklyTrendTracker
    translator: Translator
    audit_logger: AuditLogger


def create_app_components(settings: Optional[Settings] = None) -> AppComponents:
    """
    Factory function to create all application components.

    Storage is JSON files under STORAGE_DATA_DIR; all generative calls
    share one GeminiClient. The chat manager is initialized (sessions
    loaded, active session greeted) before this returns.
    """
    settings = settings or get_settings()
    app_settings = settings.app

    audit_logger = AuditLogger()
    translator = Translator()
    language = translator.normalize_language(app_settings.default_language)

    backend = JsonFileBackend(settings.storage.data_path)
    ledger = ReceiptLedger.load(
        JsonReceiptStore(backend),
        translator=translator,
        audit_logger=audit_logger,
    )

    client = GeminiClient(settings.gemini)
    insight_agent = InsightAgent(client, app_settings)
    chat_agent = ChatAgent(client, app_settings)

    weekly_tracker = WeeklyTrendTracker(
        WeeklyTrendAggregator(insight_agent, app_settings),
        audit_logger=audit_logger,
    )

    chat_manager = ChatSessionManager(
        JsonSessionStore(backend),
        chat_agent,
        ledger,
        translator=translator,
        audit_logger=audit_logger,
        language=language,
    )
    chat_manager.initialize()

    pipeline = ReceiptPipeline(
        ledger=ledger,
        extractor=ReceiptExtractor(client, ReceiptValidator()),
        insight_agent=insight_agent,
        weekly_tracker=weekly_tracker,
        chat_manager=chat_manager,
        translator=translator,
        audit_logger=audit_logger,
        settings=app_settings,
    )

    return AppComponents(
        pipeline=pipeline,
        ledger=ledger,
        chat_manager=chat_manager,
        weekly_tracker=weekly_tracker,
        translator=translator,
        audit_logger=audit_logger,
    )
