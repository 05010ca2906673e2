"""Workspace: the user-facing actions and the state they persist.

Both the GUI routers and the CLI drive the application through one
``WorkspaceService``.  It owns the paper store, the search client, the
generation orchestrator (and with it the provider sessions) and the chat
service, and writes the affected state to the repository after every
mutating action.
"""

import logging
from typing import Any, Mapping, Optional

from paperpilot.config import (
    API_KEY_NAMES,
    ApiProvider,
    Settings,
    available_models,
    default_model,
    save_api_keys,
)
from paperpilot.database.repository import StateRepository
from paperpilot.models.chat import ChatMessage, ConversationTurn
from paperpilot.models.section import GeneratedSection, SectionType
from paperpilot.services.chat_service import ChatService
from paperpilot.services.gemini_service import GeminiService
from paperpilot.services.generation_service import GenerationConfig, GenerationOrchestrator
from paperpilot.services.llm_base import LLMProvider
from paperpilot.services.openrouter_service import OpenRouterService
from paperpilot.services.paper_store import PaperStore
from paperpilot.services.semantic_scholar_service import SearchServiceError, SemanticScholarService

logger = logging.getLogger(__name__)

# Repository keys
K_TOPIC = "research_topic"
K_SELECTED = "selected_paper_ids"
K_PAGE = "current_page"
K_TOTAL = "total_papers"
K_GEN_PROVIDER = "generation_provider"
K_CHAT_PROVIDER = "chat_provider"
K_MODELS = "selected_models"
K_SECTIONS = "sections"
K_MESSAGES = "chat_messages"
K_HISTORIES = "chat_histories"


def _provider(value: Any, fallback: ApiProvider = ApiProvider.GEMINI) -> ApiProvider:
    try:
        return ApiProvider(value)
    except ValueError:
        return fallback


class WorkspaceService:
    """Application state and actions for one user workspace."""

    def __init__(
        self,
        settings: Settings,
        repo: StateRepository,
        search_service: Optional[SemanticScholarService] = None,
        providers: Optional[Mapping[ApiProvider, LLMProvider]] = None,
    ):
        """Initialize workspace and load persisted state.

        Args:
            settings: Application settings (API keys, limits)
            repo: Persistent key-value state
            search_service: Paper search client (default: Semantic Scholar)
            providers: LLM clients keyed by provider (default: Gemini + OpenRouter)
        """
        self.settings = settings
        self.repo = repo
        self.search_service = search_service or SemanticScholarService()
        if providers is None:
            providers = {
                ApiProvider.GEMINI: GeminiService(),
                ApiProvider.OPENROUTER: OpenRouterService(),
            }
        self.store = PaperStore()
        self.generator = GenerationOrchestrator(providers, settings.max_context_words)
        self.chat = ChatService(self.generator.sessions)

        self.topic: str = ""
        self.search_error: Optional[str] = None
        self.search_loading = False
        self.selecting_all = False
        self.generation_provider = ApiProvider.GEMINI
        self.chat_provider = ApiProvider.GEMINI
        self.models: dict[ApiProvider, str] = {p: default_model(p) for p in ApiProvider}

        self.load()

    # ── Persistence ───────────────────────────────────────────────────

    def load(self) -> None:
        """Read persisted state from the repository."""
        r = self.repo
        self.topic = r.get(K_TOPIC, "") or ""
        self.store.replace_selection(r.get(K_SELECTED, []) or [])
        self.store.current_page = int(r.get(K_PAGE, 1) or 1)
        self.store.total = int(r.get(K_TOTAL, 0) or 0)
        self.generation_provider = _provider(r.get(K_GEN_PROVIDER))
        self.chat_provider = _provider(r.get(K_CHAT_PROVIDER))

        stored_models = r.get(K_MODELS, {}) or {}
        for provider in ApiProvider:
            if provider.value in stored_models:
                self.models[provider] = stored_models[provider.value]

        self.generator.restore_sections(
            GeneratedSection.from_dict(s) for s in (r.get(K_SECTIONS, []) or [])
        )
        self.chat.messages = [ChatMessage.from_dict(m) for m in r.get(K_MESSAGES, []) or []]
        stored_histories = r.get(K_HISTORIES, {}) or {}
        self.chat.histories = {
            p: [ConversationTurn.from_dict(t) for t in stored_histories.get(p.value, [])]
            for p in ApiProvider
        }

    def _serialize(self, key: str) -> Any:
        if key == K_TOPIC:
            return self.topic
        if key == K_SELECTED:
            return sorted(self.store.selection)
        if key == K_PAGE:
            return self.store.current_page
        if key == K_TOTAL:
            return self.store.total
        if key == K_GEN_PROVIDER:
            return self.generation_provider.value
        if key == K_CHAT_PROVIDER:
            return self.chat_provider.value
        if key == K_MODELS:
            return {p.value: m for p, m in self.models.items()}
        if key == K_SECTIONS:
            return [s.to_dict() for s in self.generator.sections.values()]
        if key == K_MESSAGES:
            return [m.to_dict() for m in self.chat.messages]
        if key == K_HISTORIES:
            return {
                p.value: [t.to_dict() for t in turns]
                for p, turns in self.chat.histories.items()
            }
        raise KeyError(key)

    def _persist(self, *keys: str) -> None:
        self.repo.set_many({key: self._serialize(key) for key in keys})

    async def restore(self) -> None:
        """Refetch the persisted page at startup (the paper cache is not persisted)."""
        if self.topic and self.settings.api_keys.semantic_scholar and not self.store.page:
            await self.fetch_page(self.topic, self.store.current_page)

    # ── Search & selection ────────────────────────────────────────────

    async def search(self, topic: str) -> None:
        """Start a new search: forget selection, drafts and cache, load page 1."""
        self.topic = topic.strip()
        self.store.clear()
        self.generator.clear_sections()
        self._persist(K_TOPIC, K_SELECTED, K_SECTIONS)
        await self.fetch_page(self.topic, 1)

    async def fetch_page(self, topic: str, page: int) -> None:
        """Load one result page; failures empty the page and set ``search_error``."""
        if not self.settings.api_keys.semantic_scholar:
            self.search_error = "Semantic Scholar API key is not set."
            self.store.clear_page()
            self._persist(K_TOTAL)
            return

        page = max(1, page)
        per_page = self.settings.papers_per_page
        self.search_loading = True
        self.search_error = None
        try:
            result = await self.search_service.search(
                topic,
                self.settings.api_keys.semantic_scholar,
                per_page,
                (page - 1) * per_page,
            )
            self.store.set_page(result.papers, result.total, page)
        except SearchServiceError as e:
            self.search_error = str(e) or "Failed to fetch papers."
            self.store.clear_page()
        finally:
            self.search_loading = False
            self._persist(K_PAGE, K_TOTAL)

    async def change_page(self, page: int) -> None:
        if self.topic:
            await self.fetch_page(self.topic, page)

    def toggle_paper(self, paper_id: str) -> bool:
        selected = self.store.toggle_select(paper_id)
        self._persist(K_SELECTED)
        return selected

    def select_page(self) -> None:
        """Add every paper of the current page to the selection."""
        self.store.select_all(self.store.page_ids())
        self._persist(K_SELECTED)

    def deselect_all(self) -> None:
        self.store.deselect_all()
        self._persist(K_SELECTED)

    async def select_all_across_pages(self) -> int:
        """Fetch up to the practical limit of results and select exactly those.

        Returns the number of selected papers (0 on failure).
        """
        if not self.topic or not self.settings.api_keys.semantic_scholar:
            self.search_error = (
                "Cannot select all papers without a topic and Semantic Scholar API key."
            )
            return 0

        self.selecting_all = True
        self.search_error = None
        try:
            papers = await self.search_service.fetch_all(
                self.topic,
                self.settings.api_keys.semantic_scholar,
                self.settings.select_all_limit,
            )
        except SearchServiceError as e:
            self.search_error = str(e) or "Failed to fetch all papers."
            return 0
        finally:
            self.selecting_all = False

        self.store.record_fetch(papers)
        self.store.replace_selection(p.paper_id for p in papers)
        self._persist(K_SELECTED)
        return len(papers)

    async def refresh_cache(self) -> None:
        """Refill the paper cache for the topic without touching the selection.

        Used by processes that start with a persisted selection but an
        empty cache (the CLI).  Fetches the current page plus up to the
        practical limit of results.
        """
        await self.restore()
        if not self.topic or not self.settings.api_keys.semantic_scholar:
            return
        try:
            papers = await self.search_service.fetch_all(
                self.topic,
                self.settings.api_keys.semantic_scholar,
                self.settings.select_all_limit,
            )
        except SearchServiceError as e:
            logger.warning("Could not refill paper cache: %s", e)
            return
        self.store.record_fetch(papers)

    # ── Generation ────────────────────────────────────────────────────

    def generation_config(self) -> GenerationConfig:
        provider = self.generation_provider
        return GenerationConfig(
            provider=provider,
            api_key=self.settings.api_keys.for_provider(provider),
            model=self.models.get(provider, ""),
            use_search_grounding=self.settings.use_search_grounding,
        )

    def can_generate(self) -> bool:
        """Whether the generate buttons should be enabled."""
        config = self.generation_config()
        has_papers = bool(self.store.selection) or bool(self.store.page and self.store.cache)
        return has_papers and bool(self.topic) and bool(config.api_key) and bool(config.model)

    async def generate_section(self, section_type: SectionType) -> GeneratedSection:
        """Generate *section_type* with the current generation provider.

        Raises:
            GenerationValidationError: If a precondition fails
        """
        section = await self.generator.generate(
            section_type,
            self.topic,
            self.store.selection,
            self.store.cache,
            self.store.page,
            self.generation_config(),
        )
        self._persist(K_SECTIONS)
        return section

    # ── Chat ──────────────────────────────────────────────────────────

    async def send_chat(
        self,
        text: str,
        provider: Optional[ApiProvider] = None,
        model: Optional[str] = None,
    ) -> ChatMessage:
        provider = provider or self.chat_provider
        reply = await self.chat.send_message(
            text,
            provider,
            model if model is not None else self.models.get(provider, ""),
            self.settings.api_keys.for_provider(provider),
        )
        self._persist(K_MESSAGES, K_HISTORIES)
        return reply

    def clear_chat(self) -> None:
        self.chat.clear()
        self._persist(K_MESSAGES, K_HISTORIES)

    # ── Configuration changes ─────────────────────────────────────────

    def set_api_key(self, name: str, value: str) -> None:
        """Store an API key; a changed LLM key discards that provider's session and history."""
        if name not in API_KEY_NAMES:
            raise KeyError(f"Unknown API key '{name}'")
        keys = self.settings.api_keys
        changed = getattr(keys, name) != value
        setattr(keys, name, value)
        save_api_keys(self.settings.api_keys_path, keys)
        if changed and name != "semantic_scholar":
            self.chat.reset_provider(ApiProvider(name))
            self._persist(K_HISTORIES)

    def set_model(self, provider: ApiProvider, model: str) -> None:
        """Select *model* for *provider*; a change discards that provider's session and history."""
        changed = self.models.get(provider) != model
        self.models = {**self.models, provider: model}
        if changed:
            self.chat.reset_provider(provider)
        self._persist(K_MODELS, K_HISTORIES)

    def set_generation_provider(self, provider: ApiProvider) -> None:
        self.generation_provider = provider
        self._persist(K_GEN_PROVIDER)

    def set_chat_provider(self, provider: ApiProvider) -> None:
        self.chat_provider = provider
        self._persist(K_CHAT_PROVIDER)

    # ── Views ─────────────────────────────────────────────────────────

    def snapshot(self) -> dict[str, Any]:
        """JSON-serialisable view of the whole workspace."""
        selection = self.store.selection
        keys = self.settings.api_keys
        return {
            "topic": self.topic,
            "search_error": self.search_error,
            "search_loading": self.search_loading,
            "selecting_all": self.selecting_all,
            "papers": [
                {**p.to_dict(), "selected": p.paper_id in selection}
                for p in self.store.page
            ],
            "total_papers": self.store.total,
            "current_page": self.store.current_page,
            "papers_per_page": self.settings.papers_per_page,
            "select_all_limit": self.settings.select_all_limit,
            "selected_ids": sorted(selection),
            "api_keys_set": {name: bool(getattr(keys, name)) for name in API_KEY_NAMES},
            "generation_provider": self.generation_provider.value,
            "chat_provider": self.chat_provider.value,
            "models": {p.value: m for p, m in self.models.items()},
            "available_models": {p.value: available_models(p) for p in ApiProvider},
            "can_generate": self.can_generate(),
            "sections": {t.value: s.to_dict() for t, s in self.generator.sections.items()},
            "chat": {
                "messages": [m.to_dict() for m in self.chat.messages],
                "error": self.chat.chat_error,
            },
        }
