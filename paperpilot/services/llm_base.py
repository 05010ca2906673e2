"""Shared types for LLM provider clients."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from paperpilot.config import ApiProvider
from paperpilot.models.chat import ConversationTurn


class ProviderError(Exception):
    """Raised when an LLM provider call fails (transport or non-success response)."""


class ProviderAuthError(ProviderError):
    """Raised when the provider rejects the API key."""


@dataclass(frozen=True)
class ProviderSessionConfig:
    """Configuration a chat session was created under."""

    api_key: str
    model: str
    system_instruction: Optional[str] = None


@dataclass
class GenerationResult:
    """Text of a one-shot generation plus optional grounding sources."""

    text: str
    grounding: Optional[list[dict[str, str]]] = None


class LLMProvider(ABC):
    """Uniform surface over one LLM provider.

    One-shot generation is stateless.  Chat goes through a provider-native
    chat object created by :meth:`open_chat` and fed by :meth:`send_message`;
    :class:`~paperpilot.services.provider_session.ProviderSession` decides when
    that object is reused.
    """

    provider: ApiProvider
    #: Role name used for replies in the conversation history
    assistant_role: str = "assistant"

    @abstractmethod
    async def generate_once(
        self,
        api_key: str,
        prompt: str,
        model: str,
        system_instruction: Optional[str] = None,
        use_search_grounding: bool = False,
    ) -> GenerationResult:
        """Single non-conversational generation call."""

    @abstractmethod
    def open_chat(
        self,
        config: ProviderSessionConfig,
        history: list[ConversationTurn],
    ) -> Any:
        """Create the provider-native chat object seeded with *history*."""

    @abstractmethod
    async def send_message(
        self,
        chat: Any,
        config: ProviderSessionConfig,
        history: list[ConversationTurn],
        user_text: str,
    ) -> str:
        """Send one user turn and return the reply text."""
