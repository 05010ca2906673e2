"""OpenRouter client (OpenAI-compatible chat completions over httpx)."""

import logging
from typing import Any, Optional

import httpx

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

OPENROUTER_CHAT_URL = "https://openrouter.ai/api/v1/chat/completions"
TIMEOUT = 120.0
AUTH_STATUS_CODES = (401, 403)


def build_messages(
    user_text: str,
    history: list[ConversationTurn],
    system_instruction: Optional[str] = None,
) -> list[dict[str, str]]:
    """System instruction (unless history already has one) + history + user turn."""
    messages: list[dict[str, str]] = []
    if system_instruction and not any(t.role == "system" for t in history):
        messages.append({"role": "system", "content": system_instruction})
    for turn in history:
        role = "assistant" if turn.role == "model" else turn.role
        messages.append({"role": role, "content": turn.text})
    messages.append({"role": "user", "content": user_text})
    return messages


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.reason_phrase or f"HTTP {response.status_code}"
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return response.reason_phrase or f"HTTP {response.status_code}"


class OpenRouterService(LLMProvider):
    """OpenRouter generation and chat.

    The API is stateless, so a "chat" is just the history resent with
    every request; :meth:`open_chat` has nothing to build.
    """

    provider = ApiProvider.OPENROUTER
    assistant_role = "assistant"

    def __init__(
        self,
        url: str = OPENROUTER_CHAT_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = TIMEOUT,
    ):
        """Initialize OpenRouter service.

        Args:
            url: Chat completions endpoint
            transport: Optional httpx transport (tests use ``httpx.MockTransport``)
            timeout: Request timeout in seconds
        """
        self.url = url
        self._transport = transport
        self._timeout = timeout

    async def complete(
        self,
        api_key: str,
        messages: list[dict[str, str]],
        model: str,
    ) -> str:
        """POST *messages* and return the first choice's content.

        Raises:
            ProviderAuthError: On 401/403
            ProviderError: On any other failure
        """
        if not api_key:
            raise ProviderError("OpenRouter API key is not set.")

        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(
                    self.url,
                    headers=headers,
                    json={"model": model, "messages": messages},
                )
        except httpx.HTTPError as e:
            logger.error("OpenRouter request failed: %s", e)
            raise ProviderError(f"OpenRouter API error: {str(e) or 'Unknown error'}") from e

        if response.status_code != 200:
            message = _error_message(response)
            logger.error("OpenRouter returned %s: %s", response.status_code, message)
            if response.status_code in AUTH_STATUS_CODES:
                raise ProviderAuthError(f"OpenRouter API error: {message}")
            raise ProviderError(f"OpenRouter API error: {message}")

        try:
            data: Any = response.json()
        except ValueError:
            data = None
        choices = data.get("choices") if isinstance(data, dict) else None
        first = choices[0] if isinstance(choices, list) and choices else None
        message = first.get("message") if isinstance(first, dict) else None
        if not isinstance(message, dict):
            raise ProviderError(
                "OpenRouter returned no choices or an unexpected response format."
            )
        return message.get("content") or ""

    async def generate_once(
        self,
        api_key: str,
        prompt: str,
        model: str,
        system_instruction: Optional[str] = None,
        use_search_grounding: bool = False,
    ) -> GenerationResult:
        # OpenRouter has no search grounding; the flag is ignored.
        text = await self.complete(api_key, build_messages(prompt, [], system_instruction), model)
        return GenerationResult(text=text)

    def open_chat(
        self,
        config: ProviderSessionConfig,
        history: list[ConversationTurn],
    ) -> None:
        return None

    async def send_message(
        self,
        chat: Any,
        config: ProviderSessionConfig,
        history: list[ConversationTurn],
        user_text: str,
    ) -> str:
        messages = build_messages(user_text, history, config.system_instruction)
        return await self.complete(config.api_key, messages, config.model)
