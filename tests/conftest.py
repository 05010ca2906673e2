"""Shared fixtures: sample papers, a scripted LLM provider and an isolated workspace."""

from typing import Any, Optional

import pytest

from paperpilot.config import ApiKeys, ApiProvider, Settings
from paperpilot.database.repository import StateRepository
from paperpilot.models.chat import ConversationTurn
from paperpilot.models.paper import Paper
from paperpilot.services.llm_base import GenerationResult, LLMProvider, ProviderSessionConfig
from paperpilot.services.semantic_scholar_service import SearchPage


def make_paper(paper_id: str, citations: Optional[int] = 0, year: Optional[int] = 2020, **kwargs) -> Paper:
    return Paper(
        paper_id=paper_id,
        title=kwargs.pop("title", f"Paper {paper_id}"),
        authors=kwargs.pop("authors", ("Ada Lovelace", "Alan Turing")),
        year=year,
        venue=kwargs.pop("venue", "NeurIPS"),
        url=kwargs.pop("url", f"https://example.org/{paper_id}"),
        abstract=kwargs.pop("abstract", "A short abstract."),
        citation_count=citations,
    )


class FakeProvider(LLMProvider):
    """LLM provider that replays scripted replies and records every call.

    Each entry of *replies* is either a string (returned) or an exception
    (raised).  When the script runs out, ``"reply N"`` is returned.
    """

    def __init__(self, provider: ApiProvider, replies: Optional[list[Any]] = None):
        self.provider = provider
        self.assistant_role = "model" if provider is ApiProvider.GEMINI else "assistant"
        self.replies = list(replies or [])
        self.generate_calls: list[dict[str, Any]] = []
        self.opened: list[tuple[ProviderSessionConfig, list[ConversationTurn]]] = []
        self.sent: list[tuple[Any, list[ConversationTurn], str]] = []
        self.grounding: Optional[list[dict[str, str]]] = None

    def _next(self) -> str:
        if not self.replies:
            return f"reply {len(self.generate_calls) + len(self.sent)}"
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    @property
    def remote_calls(self) -> int:
        return len(self.generate_calls) + len(self.sent)

    async def generate_once(
        self,
        api_key: str,
        prompt: str,
        model: str,
        system_instruction: Optional[str] = None,
        use_search_grounding: bool = False,
    ) -> GenerationResult:
        self.generate_calls.append(
            {
                "api_key": api_key,
                "prompt": prompt,
                "model": model,
                "system_instruction": system_instruction,
                "use_search_grounding": use_search_grounding,
            }
        )
        return GenerationResult(text=self._next(), grounding=self.grounding)

    def open_chat(self, config: ProviderSessionConfig, history: list[ConversationTurn]) -> Any:
        self.opened.append((config, list(history)))
        return {"chat": len(self.opened)}

    async def send_message(
        self,
        chat: Any,
        config: ProviderSessionConfig,
        history: list[ConversationTurn],
        user_text: str,
    ) -> str:
        self.sent.append((chat, list(history), user_text))
        return self._next()


class FakeSearchService:
    """Stands in for ``SemanticScholarService``; serves pages from a fixed list."""

    def __init__(self, papers: list[Paper], error: Optional[Exception] = None):
        self.papers = papers
        self.error = error
        self.calls: list[tuple[str, int, int]] = []

    async def search(self, topic: str, api_key: str, page_size: int, offset: int = 0) -> SearchPage:
        self.calls.append((topic, page_size, offset))
        if self.error:
            raise self.error
        return SearchPage(
            papers=self.papers[offset:offset + page_size],
            total=len(self.papers),
        )

    async def fetch_all(self, topic: str, api_key: str, limit: int) -> list[Paper]:
        self.calls.append((topic, limit, -1))
        if self.error:
            raise self.error
        return self.papers[:limit]


@pytest.fixture(autouse=True)
def reset_settings():
    """Keep the Settings singleton from leaking between tests."""
    Settings.reset()
    yield
    Settings.reset()


@pytest.fixture
def settings(tmp_path) -> Settings:
    metadata_dir = tmp_path / ".metadata"
    metadata_dir.mkdir()
    return Settings(
        db_path=tmp_path / "state.db",
        metadata_dir=metadata_dir,
        api_keys=ApiKeys(semantic_scholar="s2-key", gemini="gem-key", openrouter="or-key"),
        papers_per_page=2,
    )


@pytest.fixture
def repo(settings) -> StateRepository:
    return StateRepository(settings.db_path)


@pytest.fixture
def papers() -> list[Paper]:
    return [
        make_paper("p1", citations=5, year=2019),
        make_paper("p2", citations=50, year=2021),
        make_paper("p3", citations=10, year=2022),
        make_paper("p4", citations=None, year=None),
        make_paper("p5", citations=1, year=2018),
    ]


@pytest.fixture
def providers() -> dict[ApiProvider, FakeProvider]:
    return {p: FakeProvider(p) for p in ApiProvider}
