"""Chat data models: provider-side conversation turns and the UI transcript."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

Role = Literal["system", "user", "assistant", "model"]


@dataclass(frozen=True)
class ConversationTurn:
    """One turn of the history a provider sees."""

    role: Role
    text: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "text": self.text}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ConversationTurn":
        return cls(role=data["role"], text=data.get("text", ""))


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ChatMessage:
    """One bubble of the chat transcript shown to the user.

    Errors are recorded as ``sender="ai"`` messages prefixed with
    ``Error:`` so the transcript stays complete.
    """

    id: str
    sender: Literal["user", "ai"]
    text: str
    timestamp: datetime = field(default_factory=_now)

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "sender": self.sender,
            "text": self.text,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChatMessage":
        ts = data.get("timestamp")
        return cls(
            id=str(data["id"]),
            sender=data["sender"],
            text=data.get("text", ""),
            timestamp=datetime.fromisoformat(ts) if ts else _now(),
        )
