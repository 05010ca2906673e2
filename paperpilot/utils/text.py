"""Text helpers shared by the context assembler, prompts and console."""

from typing import Any, Iterable


def count_words(text: str) -> int:
    """Number of whitespace-delimited tokens in *text*."""
    return len(text.split())


def join_authors(authors: Iterable[str], fallback: str = "N/A") -> str:
    """Comma-join author names, or *fallback* when there are none."""
    names = [a for a in authors if a]
    return ", ".join(names) if names else fallback


def or_na(value: Any) -> str:
    """Render *value* for a prompt field; empty / missing values become ``N/A``."""
    if value is None or value == "" or value == 0:
        return "N/A"
    return str(value)
