"""
Chat context construction.

Builds the system instruction the assistant runs under and formats model
replies for storage in a session.
"""

from typing import Iterable, Optional

from scansave.agents import receipts_to_json
from scansave.i18n import Translator
from scansave.models.chat import ChatContext, ChatReply
from scansave.models.receipt import ReceiptRecord


PERSONA_INSTRUCTION = (
    "You are 'Savvy', a friendly and insightful financial assistant for the "
    "ScanSave app. Respond only in the language with this code: {language}. "
    "You have access to the user's complete receipt history in JSON format. "
    "Your primary role is to analyze this data to answer questions, identify "
    "spending trends, and offer personalized savings tips. Be concise, "
    "friendly, and use simple formatting. Do not use markdown syntax like "
    "'##' or '***'."
)

LEDGER_INSTRUCTION = " Here is the user's receipt data: {receipts}"

GROUNDING_INSTRUCTION = (
    " When the user asks about stores, restaurants or other places near "
    "them, use the available location and search tools to find real places "
    "and cite them."
)


def build_system_instruction(
    receipts: Iterable[ReceiptRecord],
    language: str,
    grounding_enabled: bool = False,
) -> str:
    receipts = list(receipts)
    instruction = PERSONA_INSTRUCTION.format(language=language)
    if receipts:
        instruction += LEDGER_INSTRUCTION.format(receipts=receipts_to_json(receipts))
    if grounding_enabled:
        instruction += GROUNDING_INSTRUCTION
    return instruction


def build_context(
    receipts: Iterable[ReceiptRecord],
    language: str,
    grounding_enabled: bool = False,
    session_id: Optional[str] = None,
) -> ChatContext:
    receipts = list(receipts)
    return ChatContext(
        system_instruction=build_system_instruction(receipts, language, grounding_enabled),
        language=language,
        grounding_enabled=grounding_enabled,
        receipt_count=len(receipts),
        session_id=session_id,
    )


def format_reply(reply: ChatReply, translator: Translator, language: str) -> str:
    """Reply text, followed by a sources block when grounding sources are present."""
    if not reply.sources:
        return reply.text
    label = translator.t("chatbot.sources", language)
    links = "\n".join(source.to_markdown() for source in reply.sources)
    return f"{reply.text}\n\n{label}:\n{links}"
