"""
Integration tests for the receipt pipeline.

The full flow runs against the fake generative client and in-memory
storage: encode -> extract -> insight -> save -> refresh.
"""

import asyncio
import json
from datetime import date, timedelta

import pytest
from PIL import Image
from tenacity import wait_none

from conftest import png_bytes, receipt_json
from scansave.analytics import WeeklySentinel, WeeklyTrendAggregator, WeeklyTrendTracker
from scansave.chat import ChatSessionManager
from scansave.config import Settings
from scansave.guards import OperationInProgressError
from scansave.models.audit import AuditEventType
from scansave.orchestrator import ReceiptPipeline, create_app_components
from scansave.services.extraction import ReceiptExtractor
from scansave.services.gemini import GenerativeServiceError
from scansave.services.storage import RECEIPTS_KEY, InMemoryBackend, JsonReceiptStore, StorageError
from scansave.ledger import ReceiptLedger


TODAY = date.today().isoformat()
YESTERDAY = (date.today() - timedelta(days=1)).isoformat()


@pytest.fixture
def chat_manager(session_store, chat_agent, ledger, translator, audit_logger):
    manager = ChatSessionManager(
        session_store, chat_agent, ledger,
        translator=translator, audit_logger=audit_logger,
    )
    manager.initialize()
    return manager


@pytest.fixture
def pipeline(ledger, fake_client, insight_agent, chat_manager, translator, audit_logger, app_settings):
    return ReceiptPipeline(
        ledger=ledger,
        extractor=ReceiptExtractor(fake_client),
        insight_agent=insight_agent,
        weekly_tracker=WeeklyTrendTracker(
            WeeklyTrendAggregator(insight_agent, app_settings),
            audit_logger,
        ),
        chat_manager=chat_manager,
        translator=translator,
        audit_logger=audit_logger,
        settings=app_settings,
        retry_wait=wait_none(),
    )


def upload(pipeline, **kwargs):
    return asyncio.run(pipeline.process_upload(png_bytes(), "image/png", "receipt.png", **kwargs))


class TestProcessUpload:
    """Tests for ReceiptPipeline.process_upload."""

    def test_successful_upload(self, pipeline, fake_client, ledger, backend, chat_manager):
        fake_client.structured_results.append(receipt_json(date=TODAY))
        fake_client.text_results.append("Looks like a delicious meal!")

        result = upload(pipeline)

        assert result.success is True
        record = result.record
        assert record.store_name == "Corner Bistro"
        assert record.insight == "Looks like a delicious meal!"
        assert ledger.snapshot() == (record,)
        assert pipeline.selected_receipt == record
        assert json.loads(backend.values[RECEIPTS_KEY])[0]["id"] == record.id
        # One receipt in the window: sentinel, no weekly call
        assert pipeline.weekly_summary is WeeklySentinel.INSUFFICIENT_DATA
        assert len(fake_client.text_calls) == 1
        assert chat_manager.context.receipt_count == 1

    def test_second_upload_generates_weekly_summary(self, pipeline, fake_client):
        fake_client.structured_results.extend([
            receipt_json(date=TODAY),
            receipt_json(date=YESTERDAY, storeName="Fresh Market", category="groceries"),
        ])
        fake_client.text_results.extend(["insight one", "insight two", "Weekly summary"])

        upload(pipeline)
        result = upload(pipeline)

        assert result.success is True
        assert pipeline.weekly_summary == "Weekly summary"
        assert [r.store_name for r in pipeline.ledger] == ["Fresh Market", "Corner Bistro"]

    def test_insight_failure_still_saves(self, pipeline, fake_client, audit_logger):
        fake_client.structured_results.append(receipt_json(date=TODAY))
        fake_client.text_results.append(GenerativeServiceError("quota"))

        result = upload(pipeline)

        assert result.success is True
        assert result.record.insight is None
        assert len(pipeline.ledger) == 1
        types = [e.event_type for e in audit_logger.events]
        assert AuditEventType.INSIGHT_FAILED in types

    def test_bad_shape_fails_without_retry(self, pipeline, fake_client, translator):
        fake_client.structured_results.append("not json")

        result = upload(pipeline, language="de")

        assert result.success is False
        assert result.error_message == translator.t("error.failedAnalysis", "de")
        assert len(pipeline.ledger) == 0
        assert len(fake_client.structured_calls) == 1

    def test_service_failure_retried(self, pipeline, fake_client):
        fake_client.structured_results.extend([
            GenerativeServiceError("503"),
            receipt_json(date=TODAY),
        ])
        fake_client.text_results.append("insight")

        result = upload(pipeline)

        assert result.success is True
        assert len(fake_client.structured_calls) == 2

    def test_retries_exhausted(self, pipeline, fake_client, audit_logger):
        fake_client.structured_results.extend([
            GenerativeServiceError("503"),
            GenerativeServiceError("503 again"),
        ])

        result = upload(pipeline)

        assert result.success is False
        assert len(fake_client.structured_calls) == 2
        failed = [e for e in audit_logger.events if e.event_type == AuditEventType.EXTRACTION_FAILED]
        assert failed[-1].details["retryable"] is True

    def test_invalid_image_fails_without_call(self, pipeline, fake_client):
        result = asyncio.run(pipeline.process_upload(b"", "image/png"))
        assert result.success is False
        assert fake_client.structured_calls == []

    def test_oversized_pixel_count_fails_without_call(self, pipeline, fake_client, monkeypatch):
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)
        result = asyncio.run(pipeline.process_upload(png_bytes((40, 40)), "image/png"))
        assert result.success is False
        assert fake_client.structured_calls == []

    def test_warnings_reported(self, pipeline, fake_client):
        fake_client.structured_results.append(receipt_json(date="unknown"))
        fake_client.text_results.append("insight")

        result = upload(pipeline)

        assert result.success is True
        assert len(result.warnings) == 1

    def test_concurrent_upload_rejected(self, pipeline, fake_client):
        async def scenario():
            fake_client.gate = asyncio.Event()
            fake_client.structured_results.append(receipt_json(date=TODAY))
            fake_client.text_results.append("insight")
            first = asyncio.create_task(
                pipeline.process_upload(png_bytes(), "image/png", "a.png")
            )
            while not fake_client.structured_calls:
                await asyncio.sleep(0)
            assert pipeline.is_uploading is True
            with pytest.raises(OperationInProgressError):
                await pipeline.process_upload(png_bytes(), "image/png", "b.png")
            fake_client.gate.set()
            return await first

        result = asyncio.run(scenario())
        assert result.success is True
        assert len(pipeline.ledger) == 1
        assert pipeline.is_uploading is False

    def test_storage_failure_propagates(self, fake_client, insight_agent, app_settings, audit_logger):
        class FailingBackend(InMemoryBackend):
            def write(self, key, payload):
                raise StorageError("disk full")

        pipeline = ReceiptPipeline(
            ledger=ReceiptLedger(JsonReceiptStore(FailingBackend())),
            extractor=ReceiptExtractor(fake_client),
            insight_agent=insight_agent,
            weekly_tracker=WeeklyTrendTracker(WeeklyTrendAggregator(insight_agent, app_settings)),
            audit_logger=audit_logger,
            settings=app_settings,
            retry_wait=wait_none(),
        )
        fake_client.structured_results.append(receipt_json(date=TODAY))
        fake_client.text_results.append("insight")

        with pytest.raises(StorageError):
            upload(pipeline)
        assert len(pipeline.ledger) == 0
        assert pipeline.is_uploading is False


class TestLedgerMutations:
    """Tests for deletion and selection."""

    def test_delete_clears_selection_and_refreshes(self, pipeline, fake_client, chat_manager):
        fake_client.structured_results.append(receipt_json(date=TODAY))
        fake_client.text_results.append("insight")
        record = upload(pipeline).record

        assert asyncio.run(pipeline.delete_receipt(record.id)) is True

        assert pipeline.selected_receipt is None
        assert len(pipeline.ledger) == 0
        assert pipeline.weekly_summary is None
        assert chat_manager.context.receipt_count == 0

    def test_delete_missing(self, pipeline):
        assert asyncio.run(pipeline.delete_receipt("receipt-missing")) is False

    def test_select_receipt(self, pipeline, fake_client):
        fake_client.structured_results.extend([receipt_json(date=TODAY), receipt_json(date=TODAY)])
        fake_client.text_results.extend(["i1", "i2", "weekly"])
        first = upload(pipeline).record
        upload(pipeline)

        assert pipeline.select_receipt(first.id) == first
        assert pipeline.selected_receipt == first
        assert pipeline.select_receipt("receipt-missing") is None
        assert pipeline.selected_receipt is None

    def test_set_language_refreshes_chat_and_weekly(self, pipeline, fake_client, chat_manager):
        fake_client.structured_results.extend([receipt_json(date=TODAY), receipt_json(date=TODAY)])
        fake_client.text_results.extend(["i1", "i2", "weekly en", "weekly de"])
        upload(pipeline)
        upload(pipeline)

        asyncio.run(pipeline.set_language("de"))

        assert pipeline.language == "de"
        assert chat_manager.language == "de"
        assert pipeline.weekly_summary == "weekly de"
        assert "code: de" in fake_client.text_calls[-1]


class TestCreateAppComponents:
    """Tests for the application factory."""

    def test_wires_components_on_disk(self, tmp_path, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "test-key")
        monkeypatch.setenv("STORAGE_DATA_DIR", str(tmp_path))

        components = create_app_components(Settings())

        assert components.pipeline.ledger is components.ledger
        assert len(components.ledger) == 0
        assert len(components.chat_manager.sessions) == 1
        assert (tmp_path / "chat_sessions.json").exists()
        assert (tmp_path / "active_session_id.json").exists()
