import asyncio

import pytest

from paperpilot.config import ApiProvider
from paperpilot.models.section import SectionStatus, SectionType
from paperpilot.services.generation_service import GenerationValidationError
from paperpilot.services.llm_base import ProviderError
from paperpilot.services.semantic_scholar_service import SearchServiceError
from paperpilot.services.workspace_service import WorkspaceService

from conftest import FakeSearchService


@pytest.fixture
def search(papers):
    return FakeSearchService(papers)


@pytest.fixture
def workspace(settings, repo, search, providers):
    return WorkspaceService(settings, repo, search_service=search, providers=providers)


def _reopen(settings, repo, search, providers):
    return WorkspaceService(settings, repo, search_service=search, providers=providers)


def test_search_loads_first_page(workspace, search):
    asyncio.run(workspace.search("  graph learning  "))

    assert workspace.topic == "graph learning"
    assert workspace.store.page_ids() == ["p1", "p2"]
    assert workspace.store.total == 5
    assert workspace.search_error is None
    assert search.calls[0] == ("graph learning", 2, 0)


def test_change_page_requests_offset(workspace, search):
    asyncio.run(workspace.search("t"))
    asyncio.run(workspace.change_page(3))
    assert search.calls[-1] == ("t", 2, 4)
    assert workspace.store.page_ids() == ["p5"]
    assert workspace.store.current_page == 3


def test_new_search_clears_selection_and_sections(workspace):
    asyncio.run(workspace.search("first"))
    workspace.toggle_paper("p1")
    asyncio.run(workspace.generate_section(SectionType.INTRODUCTION))

    asyncio.run(workspace.search("second"))

    assert workspace.store.selection == frozenset()
    assert workspace.generator.sections[SectionType.INTRODUCTION].status is SectionStatus.IDLE


def test_search_failure_empties_page(settings, repo, providers, papers):
    failing = FakeSearchService(papers, error=SearchServiceError("Semantic Scholar API error (500): boom"))
    workspace = WorkspaceService(settings, repo, search_service=failing, providers=providers)

    asyncio.run(workspace.search("t"))

    assert workspace.search_error == "Semantic Scholar API error (500): boom"
    assert workspace.store.page == []
    assert workspace.store.total == 0
    assert workspace.search_loading is False


def test_search_without_key_sets_error(workspace, settings, search):
    settings.api_keys.semantic_scholar = ""
    asyncio.run(workspace.search("t"))
    assert workspace.search_error == "Semantic Scholar API key is not set."
    assert search.calls == []


def test_selection_persists_across_restart(workspace, settings, repo, search, providers):
    asyncio.run(workspace.search("t"))
    workspace.toggle_paper("p1")
    workspace.toggle_paper("p9")

    reopened = _reopen(settings, repo, search, providers)
    assert reopened.topic == "t"
    assert reopened.store.selection == frozenset({"p1", "p9"})
    assert reopened.store.total == 5


def test_restore_refetches_persisted_page(workspace, settings, repo, search, providers):
    asyncio.run(workspace.search("t"))
    asyncio.run(workspace.change_page(2))

    reopened = _reopen(settings, repo, search, providers)
    assert reopened.store.page == []
    asyncio.run(reopened.restore())
    assert reopened.store.page_ids() == ["p3", "p4"]


def test_select_page_unions_with_existing_selection(workspace):
    asyncio.run(workspace.search("t"))
    workspace.toggle_paper("p5")
    workspace.select_page()
    assert workspace.store.selection == frozenset({"p1", "p2", "p5"})


def test_select_all_across_pages_replaces_selection(workspace, settings):
    settings.select_all_limit = 4
    asyncio.run(workspace.search("t"))
    workspace.toggle_paper("outside")

    count = asyncio.run(workspace.select_all_across_pages())

    assert count == 4
    assert workspace.store.selection == frozenset({"p1", "p2", "p3", "p4"})
    assert set(workspace.store.cache) >= {"p1", "p2", "p3", "p4"}
    assert workspace.selecting_all is False


def test_select_all_without_topic_fails(workspace):
    assert asyncio.run(workspace.select_all_across_pages()) == 0
    assert "without a topic" in workspace.search_error


def test_generate_uses_selected_papers_from_other_pages(workspace, providers):
    asyncio.run(workspace.search("t"))
    asyncio.run(workspace.select_all_across_pages())
    workspace.deselect_all()
    workspace.toggle_paper("p3")
    workspace.toggle_paper("p5")

    section = asyncio.run(workspace.generate_section(SectionType.RELATED_WORKS))

    prompt = providers[ApiProvider.GEMINI].generate_calls[0]["prompt"]
    assert section.status is SectionStatus.DONE
    assert "[1] Title: Paper p3" in prompt
    assert "[2] Title: Paper p5" in prompt
    assert "Paper p1" not in prompt


def test_generate_without_selection_uses_page(workspace, providers):
    asyncio.run(workspace.search("t"))
    asyncio.run(workspace.generate_section(SectionType.INTRODUCTION))
    prompt = providers[ApiProvider.GEMINI].generate_calls[0]["prompt"]
    assert "[1] Title: Paper p2" in prompt
    assert "[2] Title: Paper p1" in prompt


def test_generate_uses_generation_provider_and_model(workspace, providers):
    asyncio.run(workspace.search("t"))
    workspace.set_generation_provider(ApiProvider.OPENROUTER)
    workspace.set_model(ApiProvider.OPENROUTER, "openai/gpt-4o-mini")

    asyncio.run(workspace.generate_section(SectionType.INTRODUCTION))

    call = providers[ApiProvider.OPENROUTER].generate_calls[0]
    assert call["api_key"] == "or-key"
    assert call["model"] == "openai/gpt-4o-mini"
    assert providers[ApiProvider.GEMINI].remote_calls == 0


def test_generate_without_key_is_rejected(workspace, settings, providers):
    asyncio.run(workspace.search("t"))
    settings.api_keys.gemini = ""
    assert workspace.can_generate() is False
    with pytest.raises(GenerationValidationError, match="API key for Gemini is not set."):
        asyncio.run(workspace.generate_section(SectionType.INTRODUCTION))
    assert providers[ApiProvider.GEMINI].remote_calls == 0


def test_sections_persist_across_restart(workspace, settings, repo, search, providers):
    providers[ApiProvider.GEMINI].replies = ["Intro [1]", ProviderError("quota")]
    asyncio.run(workspace.search("t"))
    asyncio.run(workspace.generate_section(SectionType.INTRODUCTION))
    asyncio.run(workspace.generate_section(SectionType.RELATED_WORKS))

    reopened = _reopen(settings, repo, search, providers)
    sections = reopened.generator.sections
    assert sections[SectionType.INTRODUCTION].content == "Intro [1]"
    assert sections[SectionType.RELATED_WORKS].status is SectionStatus.FAILED
    assert sections[SectionType.RELATED_WORKS].error == "quota"


def test_chat_uses_chat_provider_and_persists(workspace, settings, repo, search, providers):
    providers[ApiProvider.OPENROUTER].replies = ["hello back"]
    workspace.set_chat_provider(ApiProvider.OPENROUTER)

    reply = asyncio.run(workspace.send_chat("hello"))

    assert reply.text == "hello back"
    reopened = _reopen(settings, repo, search, providers)
    assert reopened.chat_provider is ApiProvider.OPENROUTER
    assert [m.text for m in reopened.chat.messages] == ["hello", "hello back"]
    assert len(reopened.chat.histories[ApiProvider.OPENROUTER]) == 2


def test_chat_does_not_include_paper_context(workspace, providers):
    asyncio.run(workspace.search("t"))
    workspace.select_page()
    asyncio.run(workspace.send_chat("what is new?"))
    chat, history, text = providers[ApiProvider.GEMINI].sent[0]
    assert text == "what is new?"
    assert history == []


def test_changing_model_resets_that_providers_conversation(workspace, providers):
    asyncio.run(workspace.send_chat("one"))
    asyncio.run(workspace.send_chat("two", ApiProvider.OPENROUTER))

    workspace.set_model(ApiProvider.GEMINI, "gemini-2.5-pro")

    assert workspace.chat.histories[ApiProvider.GEMINI] == []
    assert len(workspace.chat.histories[ApiProvider.OPENROUTER]) == 2
    asyncio.run(workspace.send_chat("three"))
    config, history = providers[ApiProvider.GEMINI].opened[-1]
    assert config.model == "gemini-2.5-pro"
    assert history == []


def test_setting_same_model_keeps_conversation(workspace):
    asyncio.run(workspace.send_chat("one"))
    workspace.set_model(ApiProvider.GEMINI, workspace.models[ApiProvider.GEMINI])
    assert len(workspace.chat.histories[ApiProvider.GEMINI]) == 2


def test_set_api_key_saves_yaml_and_resets_session(workspace, settings):
    asyncio.run(workspace.send_chat("one"))

    workspace.set_api_key("gemini", "new-key")

    assert "new-key" in settings.api_keys_path.read_text(encoding="utf-8")
    assert workspace.chat.histories[ApiProvider.GEMINI] == []
    assert workspace.generator.sessions[ApiProvider.GEMINI].handle is None


def test_set_unknown_api_key_raises(workspace):
    with pytest.raises(KeyError):
        workspace.set_api_key("bing", "x")


def test_clear_chat(workspace, settings, repo, search, providers):
    asyncio.run(workspace.send_chat("one"))
    workspace.clear_chat()
    assert workspace.chat.messages == []
    assert _reopen(settings, repo, search, providers).chat.messages == []


def test_snapshot_marks_selected_papers(workspace):
    asyncio.run(workspace.search("t"))
    workspace.toggle_paper("p2")
    snap = workspace.snapshot()

    assert [(p["paper_id"], p["selected"]) for p in snap["papers"]] == [("p1", False), ("p2", True)]
    assert snap["selected_ids"] == ["p2"]
    assert snap["api_keys_set"] == {"semantic_scholar": True, "gemini": True, "openrouter": True}
    assert snap["can_generate"] is True
    assert snap["sections"]["relatedWorks"]["status"] == "idle"
