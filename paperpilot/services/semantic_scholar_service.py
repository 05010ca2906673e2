"""Semantic Scholar Graph API client for paper search."""

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from paperpilot.models.paper import Paper

logger = logging.getLogger(__name__)

S2_SEARCH_URL = "https://api.semanticscholar.org/graph/v1/paper/search"
S2_FIELDS = [
    "paperId",
    "title",
    "authors",
    "year",
    "venue",
    "url",
    "abstract",
    "citationCount",
]
# The search endpoint refuses pages larger than this
MAX_PAGE_SIZE = 100
TIMEOUT = 30.0


class SearchServiceError(Exception):
    """Raised when the paper search request fails."""


@dataclass
class SearchPage:
    """One page of search results and the index-wide hit count."""

    papers: list[Paper]
    total: int
    next_offset: Optional[int] = None


class SemanticScholarService:
    """Async client for ``/graph/v1/paper/search``.

    Every call is a single attempt: no retry on rate limits or errors.
    """

    def __init__(
        self,
        url: str = S2_SEARCH_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = TIMEOUT,
    ):
        """Initialize search service.

        Args:
            url: Search endpoint
            transport: Optional httpx transport (tests use ``httpx.MockTransport``)
            timeout: Request timeout in seconds
        """
        self.url = url
        self._transport = transport
        self._timeout = timeout

    async def _get(
        self,
        client: httpx.AsyncClient,
        topic: str,
        api_key: str,
        limit: int,
        offset: int,
    ) -> dict[str, Any]:
        params = {
            "query": topic,
            "offset": offset,
            "limit": limit,
            "fields": ",".join(S2_FIELDS),
        }
        try:
            response = await client.get(self.url, params=params, headers={"x-api-key": api_key})
        except httpx.HTTPError as e:
            logger.error("Semantic Scholar request failed: %s", e)
            raise SearchServiceError(f"Semantic Scholar API error: {str(e) or 'request failed'}") from e

        if response.status_code != 200:
            message = response.reason_phrase or f"HTTP {response.status_code}"
            try:
                body = response.json()
                if isinstance(body, dict) and (body.get("message") or body.get("error")):
                    message = str(body.get("message") or body.get("error"))
            except ValueError:
                pass
            logger.error("Semantic Scholar returned %s: %s", response.status_code, message)
            raise SearchServiceError(
                f"Semantic Scholar API error ({response.status_code}): {message}"
            )
        try:
            data = response.json()
        except ValueError as e:
            logger.error("Semantic Scholar returned a non-JSON body: %s", e)
            raise SearchServiceError("Semantic Scholar API error: unexpected response format.") from e
        if not isinstance(data, dict):
            raise SearchServiceError("Semantic Scholar API error: unexpected response format.")
        return data

    @staticmethod
    def _parse(data: dict[str, Any]) -> SearchPage:
        papers = [
            Paper.from_semantic_scholar(record)
            for record in data.get("data") or []
            if record and record.get("paperId")
        ]
        return SearchPage(
            papers=papers,
            total=int(data.get("total") or 0),
            next_offset=data.get("next"),
        )

    async def search(
        self,
        topic: str,
        api_key: str,
        page_size: int,
        offset: int = 0,
    ) -> SearchPage:
        """Fetch one page of results for *topic*.

        Raises:
            SearchServiceError: Missing key, transport failure or non-200 response
        """
        if not api_key:
            raise SearchServiceError("Semantic Scholar API key is not set.")
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            data = await self._get(client, topic, api_key, min(page_size, MAX_PAGE_SIZE), offset)
        return self._parse(data)

    async def fetch_all(self, topic: str, api_key: str, limit: int) -> list[Paper]:
        """Fetch up to *limit* papers for *topic*, one page request at a time.

        Stops early when the index runs out of results.  Papers are
        deduplicated by id, first occurrence wins.
        """
        if not api_key:
            raise SearchServiceError("Semantic Scholar API key is not set.")

        papers: dict[str, Paper] = {}
        offset = 0
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            while len(papers) < limit:
                page_size = min(MAX_PAGE_SIZE, limit - len(papers))
                page = self._parse(await self._get(client, topic, api_key, page_size, offset))
                before = len(papers)
                for paper in page.papers:
                    papers.setdefault(paper.paper_id, paper)
                # A page of nothing but duplicates means the index is looping.
                if len(papers) == before or page.next_offset is None:
                    break
                offset = page.next_offset
                if offset >= page.total:
                    break

        logger.info("Fetched %d papers for %r", len(papers), topic)
        return list(papers.values())[:limit]
