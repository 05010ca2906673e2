"""Citation-numbered paper context for generation prompts.

The selected papers (or, with an empty selection, the papers of the
page on screen) are ranked by citation count then year, numbered
``[1]..[k]`` and rendered as fixed-shape blocks until the word budget
is reached.  Truncation therefore drops the least-cited papers first.
"""

from typing import Iterable, Mapping

from paperpilot.models.paper import Paper
from paperpilot.utils.text import count_words, join_authors, or_na


def rank_papers(papers: Iterable[Paper]) -> list[Paper]:
    """Sort by citation count desc, then year desc (missing values count as 0)."""
    return sorted(
        papers,
        key=lambda p: (p.citation_count or 0, p.year or 0),
        reverse=True,
    )


def render_block(number: int, paper: Paper) -> str:
    """Render one numbered paper entry, including the trailing blank line."""
    return (
        f"[{number}] Title: {paper.title}\n"
        f"Authors: {join_authors(paper.authors)}\n"
        f"Year: {or_na(paper.year)}\n"
        f"Venue: {or_na(paper.venue)}\n"
        f"URL: {or_na(paper.url)}\n"
        f"Abstract: {or_na(paper.abstract)}\n\n"
    )


def _candidates(
    selection: Iterable[str],
    fallback_page: Iterable[Paper],
    cache: Mapping[str, Paper],
) -> list[Paper]:
    wanted = set(selection) or {p.paper_id for p in fallback_page}
    # Cache order keeps equal-ranked papers in a stable, fetch-order sequence.
    return [paper for pid, paper in cache.items() if pid in wanted]


def build_context(
    selection: Iterable[str],
    fallback_page: Iterable[Paper],
    cache: Mapping[str, Paper],
    word_budget: int,
) -> str:
    """Assemble the prompt context.

    Args:
        selection: Selected paper ids (may reference uncached papers)
        fallback_page: Papers on the current page, used when nothing is selected
        cache: Every fetched paper keyed by id
        word_budget: Maximum whitespace-delimited tokens in the result

    Returns:
        The numbered blocks joined and right-stripped; ``""`` when no
        paper fits (nothing to cite, or the first block alone is too long).
    """
    blocks: list[str] = []
    word_count = 0
    for paper in rank_papers(_candidates(selection, fallback_page, cache)):
        block = render_block(len(blocks) + 1, paper)
        block_words = count_words(block)
        if word_count + block_words > word_budget:
            break
        blocks.append(block)
        word_count += block_words
    return "".join(blocks).rstrip()
