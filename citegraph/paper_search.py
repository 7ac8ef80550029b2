"""
Semantic Scholar API client.

Uses the /paper/search endpoint, which ranks papers by relevance to a
free-text query.
"""

from typing import Optional, List, Set

import httpx

from citegraph.service_interfaces import Author, Paper, PaperSearchInterface
from citegraph.logging_config import Logger, log_performance
from citegraph.validation_and_errors import UpstreamFailure


logger = Logger(__name__)


DEFAULT_FIELDS = {"title", "authors", "paperId"}


class SemanticScholarClient(PaperSearchInterface):
    """Client for the Semantic Scholar Graph API."""

    BASE_URL = "https://api.semanticscholar.org/graph/v1"
    MAX_LIMIT = 100

    def __init__(
        self,
        api_key: Optional[str] = None,
        client: Optional[httpx.Client] = None,
        timeout: float = 30.0,
    ):
        self.api_key = api_key
        self.client = client or httpx.Client(base_url=self.BASE_URL, timeout=timeout)

    def _headers(self) -> dict:
        headers = {}
        if self.api_key:
            headers["x-api-key"] = self.api_key
        return headers

    @log_performance
    def search(
        self,
        query: str,
        limit: int = 10,
        fields: Optional[Set[str]] = None,
    ) -> List[Paper]:
        logger.info(f"S2 search: {query!r}", count=limit)
        params = {
            "query": query,
            "limit": min(limit, self.MAX_LIMIT),
            "fields": ",".join(sorted(fields or DEFAULT_FIELDS)),
        }

        try:
            resp = self.client.get("/paper/search", params=params, headers=self._headers())
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as e:
            raise UpstreamFailure("paper_search", str(e)) from e
        except ValueError as e:
            raise UpstreamFailure("paper_search", f"invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise UpstreamFailure("paper_search", "response body is not an object")
        items = data.get("data") or []
        if not isinstance(items, list):
            raise UpstreamFailure("paper_search", "'data' is not a list")

        return [self._parse_paper(item) for item in items]

    def _parse_paper(self, item) -> Paper:
        """Convert an API result to Paper."""
        if not isinstance(item, dict):
            raise UpstreamFailure("paper_search", f"unexpected result entry: {item!r}")

        authors = []
        for author in item.get("authors") or []:
            if author and author.get("name"):
                authors.append(Author(author_id=author.get("authorId") or "", name=author["name"]))

        return Paper(
            paper_id=item.get("paperId") or "",
            title=item.get("title") or "",
            authors=authors,
        )

    def close(self):
        self.client.close()
