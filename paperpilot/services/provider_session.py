"""Per-provider conversational session state.

A session is bound to the :class:`ProviderSessionConfig` it was created
under.  Any change of API key, model or system instruction discards it,
and so does an authentication failure, so a corrected key never runs
into a stale session.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, NamedTuple, Optional

from paperpilot.models.chat import ConversationTurn
from paperpilot.services.llm_base import LLMProvider, ProviderAuthError, ProviderSessionConfig

logger = logging.getLogger(__name__)


@dataclass
class SessionHandle:
    """Live chat session: its config, provider-native chat object and history."""

    config: ProviderSessionConfig
    chat: Any = None
    history: list[ConversationTurn] = field(default_factory=list)


class TurnResult(NamedTuple):
    text: str
    history: list[ConversationTurn]


class ProviderSession:
    """Conversational state for one provider (one instance per provider)."""

    def __init__(self, provider: LLMProvider):
        self.provider = provider
        self._handle: Optional[SessionHandle] = None
        self._lock = asyncio.Lock()

    @property
    def handle(self) -> Optional[SessionHandle]:
        return self._handle

    @property
    def config(self) -> Optional[ProviderSessionConfig]:
        return self._handle.config if self._handle else None

    def get_or_create(
        self,
        config: ProviderSessionConfig,
        prior_history: Optional[list[ConversationTurn]] = None,
    ) -> SessionHandle:
        """Return the live handle if it was created with *config*, else a fresh one.

        A fresh handle is seeded with *prior_history*; a reused one keeps its
        own history and ignores *prior_history*.
        """
        if self._handle is not None and self._handle.config == config:
            return self._handle

        history = list(prior_history or [])
        logger.info(
            "Starting %s chat session (model=%s, %d prior turns)",
            self.provider.provider.value,
            config.model,
            len(history),
        )
        self._handle = SessionHandle(
            config=config,
            chat=self.provider.open_chat(config, history),
            history=history,
        )
        return self._handle

    async def send_turn(self, handle: SessionHandle, user_text: str) -> TurnResult:
        """Send *user_text* and append the user and assistant turns.

        Returns the reply text and the new history list; the caller persists it.

        Raises:
            ProviderAuthError: After resetting the session
            ProviderError: On any other provider failure (history unchanged)
        """
        try:
            reply = await self.provider.send_message(
                handle.chat, handle.config, handle.history, user_text
            )
        except ProviderAuthError:
            logger.warning("%s rejected the API key; discarding session", self.provider.provider.value)
            self.reset()
            raise

        history = handle.history + [
            ConversationTurn(role="user", text=user_text),
            ConversationTurn(role=self.provider.assistant_role, text=reply),
        ]
        handle.history = history
        return TurnResult(text=reply, history=list(history))

    async def converse(
        self,
        config: ProviderSessionConfig,
        user_text: str,
        prior_history: Optional[list[ConversationTurn]] = None,
    ) -> TurnResult:
        """Look up the session and send one turn, serialised per provider."""
        async with self._lock:
            handle = self.get_or_create(config, prior_history)
            return await self.send_turn(handle, user_text)

    def reset(self) -> None:
        """Discard the handle and its config; the next lookup builds a fresh session."""
        self._handle = None
