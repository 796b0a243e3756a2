"""
AI Agents for ScanSave

CRITICAL BOUNDARIES:

1. INSIGHT AGENT:
   - CAN: Comment on a single receipt, summarize a week of receipts
   - CANNOT: Change receipt data
   - Failure is NEVER fatal: callers treat EnrichmentError as "no value"

2. CHAT AGENT:
   - CAN: Answer from the receipt ledger given in the system instruction
   - CAN: Use the grounding tool for place/location questions when enabled
   - CAN: Name a conversation
   - CANNOT: Persist anything (the session manager owns session state)

All prompts carry the receipt data as JSON and the language as a code.
The agents never select receipts themselves; callers pass what to use.
"""

import json
from typing import Iterable, Optional

from scansave.config import AppSettings, get_settings
from scansave.models.chat import ChatMessage, ChatReply
from scansave.models.receipt import ExtractedReceipt
from scansave.services.gemini import GeminiClient, GenerativeServiceError


# Double quotes are removed anywhere, single quotes only around the title
TITLE_DOUBLE_QUOTES = "\"“”„«»"
TITLE_SINGLE_QUOTES = "'‘’‚‹›"


class EnrichmentError(Exception):
    """Optional enrichment (insight, weekly summary, title) could not be produced."""
    pass


class ChatError(Exception):
    """A chat turn could not be completed."""
    pass


def receipts_to_json(receipts: Iterable[ExtractedReceipt]) -> str:
    """Serialize receipts in wire format for prompt interpolation."""
    return json.dumps(
        [r.to_prompt_dict() for r in receipts],
        ensure_ascii=False,
    )


class InsightAgent:
    """
    Best-effort commentary on receipts.

    RESPONSIBILITIES:
    - One short insight per newly scanned receipt
    - One structured weekly analysis over recent receipts
    """

    def __init__(
        self,
        client: Optional[GeminiClient] = None,
        settings: Optional[AppSettings] = None,
    ):
        self._client = client or GeminiClient()
        self._settings = settings or get_settings().app

    async def generate_insight(self, receipt: ExtractedReceipt, language: str) -> str:
        """
        Generate a short, friendly comment on one receipt.

        Raises:
            EnrichmentError: If the service fails or returns blank text
        """
        receipt_json = json.dumps(receipt.to_prompt_dict(), ensure_ascii=False)
        prompt = (
            "Based on the following receipt data, provide a short, friendly, "
            "and insightful comment about the spending. "
            f"Respond in the language with this code: {language}. "
            "Focus on a single interesting aspect. "
            f"Keep it under {self._settings.insight_max_words} words. "
            f'For example: "Looks like a delicious meal at {receipt.store_name}!" '
            'or "Stocking up on essentials is always a good idea.". '
            f"Receipt data: {receipt_json}"
        )
        return await self._generate(prompt, "insight")

    async def generate_weekly_analysis(
        self,
        receipts: list[ExtractedReceipt],
        language: str,
    ) -> str:
        """
        Summarize the given (already windowed) receipts.

        The caller decides which receipts qualify; this method only asks.
        """
        prompt = (
            f"Here are my expenses from the last {self._settings.weekly_window_days} days: "
            f"{receipts_to_json(receipts)}.\n"
            "Provide a concise analysis of my spending habits. "
            f"Respond in the language with this code: {language}.\n"
            "The response should be a single string with newlines (\\n).\n\n"
            "Structure your response like this:\n"
            "- Start with a friendly summary sentence.\n"
            "- Use a heading **Spending Breakdown:** and then a short bulleted "
            "list of the top 2-3 spending categories.\n"
            "- Use a heading **Smart Savings Tip:** and then provide one "
            "actionable tip for saving money based on the data.\n\n"
            f"Keep the entire response under {self._settings.weekly_max_words} words."
        )
        return await self._generate(prompt, "weekly analysis")

    async def _generate(self, prompt: str, what: str) -> str:
        try:
            text = await self._client.generate_text(prompt)
        except GenerativeServiceError as e:
            raise EnrichmentError(f"Failed to generate {what}: {e}") from e
        if not text or not text.strip():
            raise EnrichmentError(f"Service returned an empty {what}")
        return text.strip()


class ChatAgent:
    """
    Conversational calls for the chat session manager.

    The agent is stateless: the full history and the system instruction
    are passed on every call.
    """

    def __init__(
        self,
        client: Optional[GeminiClient] = None,
        settings: Optional[AppSettings] = None,
    ):
        self._client = client or GeminiClient()
        self._settings = settings or get_settings().app

    @property
    def grounding_available(self) -> bool:
        return self._client.grounding_available

    async def send(
        self,
        message: str,
        history: list[ChatMessage],
        system_instruction: str,
        grounding: bool = False,
    ) -> ChatReply:
        """
        Send one user message with the prior history replayed.

        Raises:
            ChatError: If the service call fails
        """
        try:
            reply = await self._client.send_chat(
                message,
                history,
                system_instruction,
                grounding=grounding,
            )
        except GenerativeServiceError as e:
            raise ChatError(str(e)) from e
        if not reply.text:
            raise ChatError("Service returned an empty reply")
        return reply

    async def generate_title(self, conversation: str, language: str) -> str:
        """
        Name a conversation from its opening exchange.

        Quotes are stripped from the result.

        Raises:
            EnrichmentError: If the service fails or the title is blank
        """
        prompt = (
            "Based on the following conversation start, create a very short, "
            f"concise title ({self._settings.chat_title_max_words} words max). "
            "Respond only with the title text, nothing else. "
            f"Respond in the language with this code: {language}. "
            f"Conversation: {conversation}"
        )
        try:
            text = await self._client.generate_text(prompt)
        except GenerativeServiceError as e:
            raise EnrichmentError(f"Failed to generate chat title: {e}") from e

        title = (text or "").translate({ord(c): None for c in TITLE_DOUBLE_QUOTES})
        title = title.strip().strip(TITLE_SINGLE_QUOTES).strip()
        if not title:
            raise EnrichmentError("Service returned an empty chat title")
        return title
