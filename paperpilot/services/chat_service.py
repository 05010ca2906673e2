"""Chat panel: transcript plus per-provider conversation histories."""

import logging
import uuid
from typing import Mapping, Optional

from paperpilot.config import ApiProvider
from paperpilot.models.chat import ChatMessage, ConversationTurn
from paperpilot.services.llm_base import ProviderError, ProviderSessionConfig
from paperpilot.services.prompts import CHAT_SYSTEM_INSTRUCTION
from paperpilot.services.provider_session import ProviderSession

logger = logging.getLogger(__name__)


def _message_id() -> str:
    return uuid.uuid4().hex[:12]


class ChatService:
    """Sends chat turns through the provider sessions and keeps the transcript.

    The transcript is what the user sees (errors included); the histories
    are what each provider is sent.  Paper context is never added here.
    """

    def __init__(
        self,
        sessions: Mapping[ApiProvider, ProviderSession],
        system_instruction: str = CHAT_SYSTEM_INSTRUCTION,
    ):
        self.sessions = sessions
        self.system_instruction = system_instruction
        self.messages: list[ChatMessage] = []
        self.histories: dict[ApiProvider, list[ConversationTurn]] = {p: [] for p in ApiProvider}
        self.chat_error: Optional[str] = None
        # Bumped on every reset; a reply from an older epoch must not restore history.
        self._epochs: dict[ApiProvider, int] = {p: 0 for p in ApiProvider}

    def _append(self, sender: str, text: str) -> ChatMessage:
        message = ChatMessage(id=_message_id(), sender=sender, text=text)
        self.messages = self.messages + [message]
        return message

    def _fail(self, error: str) -> ChatMessage:
        self.chat_error = error
        return self._append("ai", f"Error: {error}")

    async def send_message(
        self,
        text: str,
        provider: ApiProvider,
        model: str,
        api_key: str,
    ) -> ChatMessage:
        """Send *text* to *provider* and return the reply (or error) message.

        The user message is always recorded first.  Missing key or model is
        reported in the transcript without contacting the provider.
        """
        self._append("user", text)
        self.chat_error = None

        if not api_key:
            return self._fail(f"API key for {provider.display_name} is not set.")
        if not model:
            return self._fail(f"Model for {provider.display_name} is not selected.")

        config = ProviderSessionConfig(
            api_key=api_key,
            model=model,
            system_instruction=self.system_instruction,
        )
        epoch = self._epochs[provider]
        try:
            result = await self.sessions[provider].converse(
                config, text, self.histories[provider]
            )
        except ProviderError as e:
            logger.error("Chat with %s failed: %s", provider.value, e)
            return self._fail(str(e) or f"Failed to get response from {provider.display_name}.")

        if self._epochs[provider] == epoch:
            self.histories = {**self.histories, provider: result.history}
        else:
            logger.info("Dropping history of a %s reply that finished after a reset", provider.value)
        return self._append("ai", result.text)

    def reset_provider(self, provider: ApiProvider) -> None:
        """Discard the session and history of *provider* (key or model changed)."""
        self.sessions[provider].reset()
        self._epochs = {**self._epochs, provider: self._epochs[provider] + 1}
        self.histories = {**self.histories, provider: []}

    def clear(self) -> None:
        """Clear the transcript and every provider's session and history."""
        for provider in ApiProvider:
            self.reset_provider(provider)
        self.messages = []
        self.chat_error = None
