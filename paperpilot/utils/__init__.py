"""Utility functions."""

from paperpilot.utils.text import count_words, join_authors, or_na

__all__ = ["count_words", "join_authors", "or_na"]
