"""
Gemini Client

DESIGN DECISION: This is the only module that imports the Google SDK.
Extraction, enrichment and chat all go through the three calls below, so:
1. Every SDK failure surfaces as one exception type (GenerativeServiceError)
2. Tests substitute a fake client without patching the SDK
3. Model name, temperature and grounding live in GeminiSettings

The client knows nothing about receipts. Callers build prompts and
schemas; the client sends them and returns text.
"""

from typing import Any, Iterable, Optional

import google.generativeai as genai

from scansave.config import GeminiSettings, get_settings
from scansave.models.chat import ChatMessage, ChatReply, GroundingSource


class GenerativeServiceError(Exception):
    """The generative service call failed or returned no usable text."""
    pass


def _response_text(response) -> str:
    try:
        text = response.text
    except (ValueError, AttributeError) as e:
        # Blocked or empty candidates raise ValueError in the SDK
        raise GenerativeServiceError(f"Response contained no text: {e}")
    if text is None:
        raise GenerativeServiceError("Response contained no text")
    return text.strip()


def extract_grounding_sources(response) -> list[GroundingSource]:
    """
    Collect title/uri pairs from grounding metadata.

    Place references (maps chunks) and web references are both accepted.
    Duplicate URIs are dropped, first occurrence wins.
    """
    sources: list[GroundingSource] = []
    seen: set[str] = set()

    for candidate in getattr(response, "candidates", None) or []:
        metadata = getattr(candidate, "grounding_metadata", None)
        if metadata is None:
            continue
        for chunk in getattr(metadata, "grounding_chunks", None) or []:
            for kind in ("maps", "web"):
                ref = getattr(chunk, kind, None)
                uri = getattr(ref, "uri", None) if ref is not None else None
                if not uri or uri in seen:
                    continue
                seen.add(uri)
                title = getattr(ref, "title", None) or uri
                sources.append(GroundingSource(title=title, uri=uri))
    return sources


class GeminiClient:
    """
    Thin async wrapper around google.generativeai.

    IMPORTANT BOUNDARIES:
    1. No retries here - retry policy belongs to the caller
    2. No parsing of model output beyond trimming text
    """

    def __init__(self, settings: Optional[GeminiSettings] = None):
        self._settings = settings or get_settings().gemini
        self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)

    @property
    def grounding_available(self) -> bool:
        return self._settings.enable_grounding

    def _model(
        self,
        generation_config: Optional[dict] = None,
        system_instruction: Optional[str] = None,
        tools: Optional[Any] = None,
    ) -> genai.GenerativeModel:
        config = {
            "temperature": self._settings.temperature,
            "max_output_tokens": self._settings.max_tokens,
        }
        config.update(generation_config or {})
        return genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config=config,
            system_instruction=system_instruction,
            tools=tools,
        )

    async def generate_structured(self, parts: Iterable[Any], schema: dict) -> str:
        """
        Generate JSON constrained to a response schema.

        Returns the raw JSON text; validation is the caller's job.
        """
        model = self._model(generation_config={
            "temperature": self._settings.extraction_temperature,
            "response_mime_type": "application/json",
            "response_schema": schema,
        })
        try:
            response = await model.generate_content_async(list(parts))
        except Exception as e:
            raise GenerativeServiceError(f"Structured generation failed: {e}") from e
        return _response_text(response)

    async def generate_text(self, prompt: str) -> str:
        """Generate free text for a prompt, trimmed of surrounding whitespace."""
        model = self._model()
        try:
            response = await model.generate_content_async(prompt)
        except Exception as e:
            raise GenerativeServiceError(f"Text generation failed: {e}") from e
        return _response_text(response)

    async def send_chat(
        self,
        message: str,
        history: list[ChatMessage],
        system_instruction: str,
        grounding: bool = False,
    ) -> ChatReply:
        """
        Send one chat turn with the full prior history replayed.

        The grounding tool is attached only when requested and enabled.
        """
        tools = self._settings.grounding_tool if grounding and self.grounding_available else None
        model = self._model(system_instruction=system_instruction, tools=tools)
        chat = model.start_chat(history=[
            {"role": m.role.value, "parts": [m.text]}
            for m in history
        ])
        try:
            response = await chat.send_message_async(message)
        except Exception as e:
            raise GenerativeServiceError(f"Chat send failed: {e}") from e
        return ChatReply(
            text=_response_text(response),
            sources=extract_grounding_sources(response),
        )
