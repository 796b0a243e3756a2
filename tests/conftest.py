"""
Shared fixtures for ScanSave tests.

No real API calls in tests: the generative service is replaced by
FakeGeminiClient, and storage runs on InMemoryBackend.
"""

import asyncio
import json
from io import BytesIO
from typing import Optional

import pytest
from PIL import Image

from scansave.agents import ChatAgent, InsightAgent
from scansave.audit import AuditLogger
from scansave.config import AppSettings
from scansave.i18n import Translator
from scansave.ledger import ReceiptLedger
from scansave.models.chat import ChatReply
from scansave.models.receipt import LineItem, ReceiptRecord, SpendingCategory
from scansave.services.gemini import GenerativeServiceError
from scansave.services.storage import (
    InMemoryBackend,
    JsonReceiptStore,
    JsonSessionStore,
)


class FakeGeminiClient:
    """
    Stand-in for GeminiClient.

    Each call pops the next queued result for that call type. A queued
    exception is raised instead of returned. When `gate` is set, calls
    wait for it before answering, so tests can overlap operations.
    """

    def __init__(self, grounding_available: bool = False):
        self.grounding_available = grounding_available
        self.structured_results: list = []
        self.text_results: list = []
        self.chat_results: list = []
        self.structured_calls: list = []
        self.text_calls: list[str] = []
        self.chat_calls: list[dict] = []
        self.gate: Optional[asyncio.Event] = None

    async def _answer(self, queue: list):
        if self.gate is not None:
            await self.gate.wait()
        if not queue:
            raise GenerativeServiceError("No fake result queued")
        result = queue.pop(0)
        if isinstance(result, BaseException):
            raise result
        return result

    async def generate_structured(self, parts, schema) -> str:
        self.structured_calls.append((list(parts), schema))
        return await self._answer(self.structured_results)

    async def generate_text(self, prompt: str) -> str:
        self.text_calls.append(prompt)
        return await self._answer(self.text_results)

    async def send_chat(self, message, history, system_instruction, grounding=False) -> ChatReply:
        self.chat_calls.append({
            "message": message,
            "history": list(history),
            "system_instruction": system_instruction,
            "grounding": grounding,
        })
        result = await self._answer(self.chat_results)
        if isinstance(result, str):
            return ChatReply(text=result)
        return result


def receipt_json(**overrides) -> str:
    data = {
        "storeName": "Corner Bistro",
        "date": "2024-05-10",
        "items": [
            {"description": "Pasta", "price": 12.5},
            {"description": "Lemonade", "price": 3.0},
        ],
        "subtotal": 15.5,
        "tax": 1.24,
        "total": 16.74,
        "category": "food_dining",
        "currency": "$",
    }
    data.update(overrides)
    return json.dumps(data)


def make_record(
    store_name: str = "Corner Bistro",
    date: str = "2024-05-10",
    total: float = 16.74,
    category: SpendingCategory = SpendingCategory.FOOD_DINING,
    items: Optional[list[tuple[str, float]]] = None,
    **kwargs,
) -> ReceiptRecord:
    items = items if items is not None else [("Pasta", 12.5), ("Lemonade", 3.0)]
    return ReceiptRecord(
        store_name=store_name,
        date=date,
        items=[LineItem(description=d, price=p) for d, p in items],
        subtotal=kwargs.pop("subtotal", 15.5),
        tax=kwargs.pop("tax", 1.24),
        total=total,
        category=category,
        currency=kwargs.pop("currency", "$"),
        **kwargs,
    )


def png_bytes(size: tuple[int, int] = (32, 48)) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", size, color=(255, 255, 255)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def app_settings():
    return AppSettings(
        extraction_max_attempts=2,
        weekly_window_days=7,
        weekly_min_receipts=2,
    )


@pytest.fixture
def fake_client():
    return FakeGeminiClient()


@pytest.fixture
def translator():
    return Translator()


@pytest.fixture
def audit_logger():
    return AuditLogger()


@pytest.fixture
def backend():
    return InMemoryBackend()


@pytest.fixture
def receipt_store(backend):
    return JsonReceiptStore(backend)


@pytest.fixture
def session_store(backend):
    return JsonSessionStore(backend)


@pytest.fixture
def ledger(receipt_store, translator, audit_logger):
    return ReceiptLedger.load(receipt_store, translator=translator, audit_logger=audit_logger)


@pytest.fixture
def insight_agent(fake_client, app_settings):
    return InsightAgent(fake_client, app_settings)


@pytest.fixture
def chat_agent(fake_client, app_settings):
    return ChatAgent(fake_client, app_settings)
