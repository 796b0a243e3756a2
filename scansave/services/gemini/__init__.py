"""Generative service client."""

from scansave.services.gemini.client import (
    GeminiClient,
    GenerativeServiceError,
    extract_grounding_sources,
)

__all__ = [
    "GeminiClient",
    "GenerativeServiceError",
    "extract_grounding_sources",
]
