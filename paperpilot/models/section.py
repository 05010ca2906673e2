"""Generated section slot model."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class SectionType(str, Enum):
    """Named output slots for generated prose."""

    INTRODUCTION = "introduction"
    RELATED_WORKS = "relatedWorks"

    @property
    def prompt_action(self) -> str:
        """Noun phrase used inside the generation prompt."""
        if self is SectionType.INTRODUCTION:
            return "an introduction"
        return "a related works section"

    @property
    def label(self) -> str:
        if self is SectionType.INTRODUCTION:
            return "Introduction"
        return "Related Works"


class SectionStatus(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"
    DONE = "done"
    FAILED = "failed"


@dataclass
class GeneratedSection:
    """Latest attempt for one slot: content, grounding sources and error."""

    name: SectionType
    content: str = ""
    grounding: Optional[list[dict[str, str]]] = None
    error: Optional[str] = None
    status: SectionStatus = SectionStatus.IDLE

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name.value,
            "content": self.content,
            "grounding": self.grounding,
            "error": self.error,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GeneratedSection":
        status = SectionStatus(data.get("status", SectionStatus.IDLE.value))
        # A slot cannot still be generating after a restart.
        if status is SectionStatus.GENERATING:
            status = SectionStatus.IDLE
        return cls(
            name=SectionType(data["name"]),
            content=data.get("content", ""),
            grounding=data.get("grounding"),
            error=data.get("error"),
            status=status,
        )
