"""PaperPilot - Semantic Scholar search to citation-backed drafts.

A tool for searching academic papers, selecting a reading set,
drafting introduction / related-works sections with an LLM,
and chatting with the same provider.
"""

__version__ = "1.0.0"

from paperpilot.config import Settings
from paperpilot.models.paper import Paper

__all__ = ["Paper", "Settings", "__version__"]
