"""Paper data model."""

from dataclasses import asdict, dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class Paper:
    """Represents a research paper as returned by the search index.

    Identity is ``paper_id``; instances are never mutated after a fetch.
    """

    paper_id: str
    title: str
    authors: tuple[str, ...] = ()
    year: Optional[int] = None
    venue: Optional[str] = None
    url: Optional[str] = None
    abstract: Optional[str] = None
    citation_count: Optional[int] = None

    @classmethod
    def from_semantic_scholar(cls, record: dict[str, Any]) -> "Paper":
        """Build a Paper from a Semantic Scholar ``/paper/search`` record."""
        authors = tuple(
            a["name"].strip()
            for a in record.get("authors") or []
            if a and a.get("name")
        )
        return cls(
            paper_id=str(record["paperId"]),
            title=(record.get("title") or "").strip(),
            authors=authors,
            year=record.get("year"),
            venue=record.get("venue") or None,
            url=record.get("url") or None,
            abstract=record.get("abstract") or None,
            citation_count=record.get("citationCount"),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Paper":
        """Inverse of :meth:`to_dict`."""
        return cls(
            paper_id=data["paper_id"],
            title=data.get("title", ""),
            authors=tuple(data.get("authors") or ()),
            year=data.get("year"),
            venue=data.get("venue"),
            url=data.get("url"),
            abstract=data.get("abstract"),
            citation_count=data.get("citation_count"),
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["authors"] = list(self.authors)
        return data
