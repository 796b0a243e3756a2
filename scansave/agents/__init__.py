"""AI Agents package."""

from scansave.agents.ai_agents import (
    ChatAgent,
    ChatError,
    EnrichmentError,
    InsightAgent,
    receipts_to_json,
)

__all__ = [
    "ChatAgent",
    "ChatError",
    "EnrichmentError",
    "InsightAgent",
    "receipts_to_json",
]
