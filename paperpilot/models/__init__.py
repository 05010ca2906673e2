"""Data models."""

from paperpilot.models.chat import ChatMessage, ConversationTurn
from paperpilot.models.paper import Paper
from paperpilot.models.section import GeneratedSection, SectionStatus, SectionType

__all__ = [
    "ChatMessage",
    "ConversationTurn",
    "GeneratedSection",
    "Paper",
    "SectionStatus",
    "SectionType",
]
