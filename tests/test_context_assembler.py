from paperpilot.models.paper import Paper
from paperpilot.services.context_assembler import build_context, rank_papers, render_block
from paperpilot.utils.text import count_words

from conftest import make_paper


def _cache(papers):
    return {p.paper_id: p for p in papers}


def test_render_block_uses_na_for_missing_fields():
    paper = Paper(paper_id="x", title="Untitled work")
    block = render_block(3, paper)
    assert block == (
        "[3] Title: Untitled work\n"
        "Authors: N/A\n"
        "Year: N/A\n"
        "Venue: N/A\n"
        "URL: N/A\n"
        "Abstract: N/A\n\n"
    )


def test_rank_by_citations_then_year_missing_as_zero():
    papers = [
        make_paper("a", citations=None, year=2024),
        make_paper("b", citations=10, year=2001),
        make_paper("c", citations=10, year=2015),
        make_paper("d", citations=0, year=None),
    ]
    assert [p.paper_id for p in rank_papers(papers)] == ["c", "b", "a", "d"]


def test_selected_papers_are_numbered_by_rank(papers):
    context = build_context({"p1", "p2", "p3"}, [], _cache(papers), 3000)
    assert context.startswith("[1] Title: Paper p2\n")
    assert "[2] Title: Paper p3\n" in context
    assert "[3] Title: Paper p1\n" in context
    assert "p4" not in context
    assert not context.endswith("\n")


def test_empty_selection_falls_back_to_current_page(papers):
    page = [papers[0], papers[4]]
    context = build_context(set(), page, _cache(papers), 3000)
    assert "[1] Title: Paper p1" in context
    assert "[2] Title: Paper p5" in context
    assert "[3]" not in context


def test_uncached_selected_ids_are_skipped(papers):
    context = build_context({"p1", "missing"}, [], _cache(papers), 3000)
    assert context.startswith("[1] Title: Paper p1")
    assert "[2]" not in context


def test_nothing_selected_and_empty_page_gives_empty_context(papers):
    assert build_context(set(), [], _cache(papers), 3000) == ""


def test_word_budget_drops_lowest_ranked_papers(papers):
    cache = _cache(papers)
    one_block = count_words(render_block(1, papers[1]))
    # Room for two blocks but not three.
    context = build_context({"p1", "p2", "p3"}, [], cache, 2 * one_block + 1)
    assert "[1] Title: Paper p2" in context
    assert "[2] Title: Paper p3" in context
    assert "Paper p1" not in context
    assert count_words(context) <= 2 * one_block + 1


def test_first_block_over_budget_gives_empty_context():
    long_paper = make_paper("big", abstract="word " * 500)
    assert build_context({"big"}, [], {"big": long_paper}, 100) == ""


def test_selection_order_does_not_change_output(papers):
    cache = _cache(papers)
    first = build_context(["p3", "p1", "p2"], [], cache, 3000)
    second = build_context(["p2", "p3", "p1"], [], cache, 3000)
    assert first == second


def test_ties_keep_cache_order():
    a = make_paper("a", citations=3, year=2020, title="First fetched")
    b = make_paper("b", citations=3, year=2020, title="Second fetched")
    context = build_context({"a", "b"}, [], {"a": a, "b": b}, 3000)
    assert context.index("First fetched") < context.index("Second fetched")


def test_zero_budget_gives_empty_context(papers):
    assert build_context({"p1"}, [], _cache(papers), 0) == ""


def test_more_cited_older_paper_comes_first():
    p1 = make_paper("P1", citations=10, year=2020, title="Ten citations")
    p2 = make_paper("P2", citations=50, year=2019, title="Fifty citations")
    context = build_context({"P1", "P2"}, [], {"P1": p1, "P2": p2}, 3000)
    assert "[1] Title: Fifty citations" in context
    assert "[2] Title: Ten citations" in context
