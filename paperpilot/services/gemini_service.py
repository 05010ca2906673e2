"""Gemini client built on the google-genai SDK."""

import logging
from typing import Any, Callable, Optional

import httpx
from google import genai
from google.genai import errors, types

from paperpilot.config import ApiProvider
from paperpilot.models.chat import ConversationTurn
from paperpilot.services.llm_base import (
    GenerationResult,
    LLMProvider,
    ProviderAuthError,
    ProviderError,
    ProviderSessionConfig,
)

logger = logging.getLogger(__name__)

AUTH_STATUS_CODES = (401, 403)


def _is_auth_error(error: Exception) -> bool:
    if "API key not valid" in str(error):
        return True
    return isinstance(error, errors.ClientError) and error.code in AUTH_STATUS_CODES


def _to_content(turn: ConversationTurn) -> types.Content:
    role = "user" if turn.role == "user" else "model"
    return types.Content(role=role, parts=[types.Part.from_text(text=turn.text)])


def _grounding_sources(response: Any) -> Optional[list[dict[str, str]]]:
    """Extract ``{"title", "uri"}`` web sources from the first candidate."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return None
    metadata = getattr(candidates[0], "grounding_metadata", None)
    chunks = getattr(metadata, "grounding_chunks", None) or []
    sources = []
    for chunk in chunks:
        web = getattr(chunk, "web", None)
        if web is None or not web.uri:
            continue
        sources.append({"title": web.title or web.uri, "uri": web.uri})
    return sources or None


class GeminiService(LLMProvider):
    """Gemini generation and chat.

    One SDK client is kept for the most recent API key; a different key
    or a rejected key replaces it.
    """

    provider = ApiProvider.GEMINI
    assistant_role = "model"

    def __init__(self, client_factory: Optional[Callable[[str], Any]] = None):
        """Initialize Gemini service.

        Args:
            client_factory: Builds an SDK client from an API key
                (defaults to ``genai.Client``)
        """
        self._client_factory = client_factory or (lambda key: genai.Client(api_key=key))
        self._client: Any = None
        self._client_key: Optional[str] = None

    def _client_for(self, api_key: str) -> Any:
        if not api_key:
            raise ProviderError("Gemini API key is not set.")
        if self._client is not None and self._client_key == api_key:
            return self._client
        self._client = self._client_factory(api_key)
        self._client_key = api_key
        return self._client

    def forget_key(self, api_key: str) -> None:
        if self._client_key == api_key:
            self._client = None
            self._client_key = None

    def _convert(self, error: Exception, api_key: str, prefix: str) -> ProviderError:
        message = getattr(error, "message", None) or str(error) or "Unknown error"
        logger.error("%s: %s", prefix, message)
        if _is_auth_error(error):
            self.forget_key(api_key)
            return ProviderAuthError(f"{prefix}: {message}")
        return ProviderError(f"{prefix}: {message}")

    async def generate_once(
        self,
        api_key: str,
        prompt: str,
        model: str,
        system_instruction: Optional[str] = None,
        use_search_grounding: bool = False,
    ) -> GenerationResult:
        client = self._client_for(api_key)
        config = types.GenerateContentConfig(
            system_instruction=system_instruction or None,
            # Google Search grounding cannot be combined with a JSON response type.
            tools=[types.Tool(google_search=types.GoogleSearch())] if use_search_grounding else None,
        )
        try:
            response = await client.aio.models.generate_content(
                model=model,
                contents=[types.Content(role="user", parts=[types.Part.from_text(text=prompt)])],
                config=config,
            )
        except (errors.APIError, httpx.HTTPError) as e:
            raise self._convert(e, api_key, "Gemini API error") from e

        return GenerationResult(
            text=response.text or "",
            grounding=_grounding_sources(response),
        )

    def open_chat(
        self,
        config: ProviderSessionConfig,
        history: list[ConversationTurn],
    ) -> Any:
        client = self._client_for(config.api_key)
        chat_config = None
        if config.system_instruction:
            chat_config = types.GenerateContentConfig(system_instruction=config.system_instruction)
        return client.aio.chats.create(
            model=config.model,
            history=[_to_content(t) for t in history if t.role != "system"],
            config=chat_config,
        )

    async def send_message(
        self,
        chat: Any,
        config: ProviderSessionConfig,
        history: list[ConversationTurn],
        user_text: str,
    ) -> str:
        # The SDK chat object tracks its own history; *history* is only the
        # caller's copy for persistence.
        try:
            response = await chat.send_message(user_text)
        except (errors.APIError, httpx.HTTPError) as e:
            raise self._convert(e, config.api_key, "Gemini Chat API error") from e
        return response.text or ""
