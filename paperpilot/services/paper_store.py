"""In-memory paper cache, current search page and selection."""

from typing import Iterable

from paperpilot.models.paper import Paper


class PaperStore:
    """Holds search results, every paper fetched this session, and the selection.

    Mutations always rebind a fresh container instead of editing the
    current one, so readers never observe a half-applied update.
    """

    def __init__(self) -> None:
        self.cache: dict[str, Paper] = {}
        self.selection: frozenset[str] = frozenset()
        self.page: list[Paper] = []
        self.total: int = 0
        self.current_page: int = 1

    # -- cache ---------------------------------------------------------------

    def record_fetch(self, papers: Iterable[Paper]) -> None:
        """Merge *papers* into the cache; entries with the same id are replaced."""
        merged = dict(self.cache)
        for paper in papers:
            merged[paper.paper_id] = paper
        self.cache = merged

    def set_page(self, papers: list[Paper], total: int, page: int) -> None:
        """Record the currently displayed page and cache its papers."""
        self.record_fetch(papers)
        self.page = list(papers)
        self.total = total
        self.current_page = page

    def clear_page(self) -> None:
        self.page = []
        self.total = 0

    def clear(self) -> None:
        """Forget the cache, the page and the selection (new topic)."""
        self.cache = {}
        self.selection = frozenset()
        self.page = []
        self.total = 0
        self.current_page = 1

    def resolve(self, ids: Iterable[str]) -> list[Paper]:
        """Papers for *ids* found in the cache, in cache order; misses are skipped."""
        wanted = set(ids)
        return [p for pid, p in self.cache.items() if pid in wanted]

    # -- selection -----------------------------------------------------------

    def toggle_select(self, paper_id: str) -> bool:
        """Flip membership of *paper_id*.  Returns the new membership."""
        if paper_id in self.selection:
            self.selection = self.selection - {paper_id}
            return False
        self.selection = self.selection | {paper_id}
        return True

    def select_all(self, ids: Iterable[str]) -> None:
        self.selection = self.selection | frozenset(ids)

    def replace_selection(self, ids: Iterable[str]) -> None:
        self.selection = frozenset(ids)

    def deselect_all(self) -> None:
        self.selection = frozenset()

    def page_ids(self) -> list[str]:
        return [p.paper_id for p in self.page]
