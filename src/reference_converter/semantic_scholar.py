"""Semantic Scholar graph API provider."""
from __future__ import annotations

import urllib.parse
from typing import Any, Dict, List, Optional, Sequence

from .metadata import MetadataProvider, first_author_query
from .models import Candidate
from .normalization import collapse_whitespace

API_BASE_URL = "https://api.semanticscholar.org/graph/v1"
SEARCH_FIELDS = "title,authors,year,journal,venue,externalIds,url,abstract,citationCount"
RESULT_LIMIT = 5


def _optional_int(value: Any) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


class SemanticScholarProvider(MetadataProvider):
    """Search papers by title and first author on the Semantic Scholar graph."""

    name = "semantic_scholar"
    label = "Semantic Scholar"

    def build_search_url(
        self, title: str, authors: Optional[Sequence[str]] = None, year: Optional[int] = None
    ) -> str:
        query = " ".join(part for part in (title, first_author_query(authors)) if part)
        params = {"query": query, "fields": SEARCH_FIELDS, "limit": str(RESULT_LIMIT)}
        return f"{API_BASE_URL}/paper/search?{urllib.parse.urlencode(params)}"

    def probe_url(self) -> str:
        params = {"query": "test", "limit": "1"}
        return f"{API_BASE_URL}/paper/search?{urllib.parse.urlencode(params)}"

    def headers(self) -> Dict[str, str]:
        headers = super().headers()
        if self.settings.semantic_scholar_api_key:
            headers["x-api-key"] = self.settings.semantic_scholar_api_key
        return headers

    def parse_candidates(self, data: Dict[str, Any]) -> List[Candidate]:
        items = data.get("data") or []
        return [self._parse_paper(item) for item in items if isinstance(item, dict)]

    def _parse_paper(self, paper: Dict[str, Any]) -> Candidate:
        journal = paper.get("journal") or {}
        if not isinstance(journal, dict):
            journal = {}
        external_ids = paper.get("externalIds") or {}
        authors = [
            collapse_whitespace(author.get("name"))
            for author in paper.get("authors") or []
            if isinstance(author, dict) and author.get("name")
        ]
        return Candidate(
            title=collapse_whitespace(paper.get("title")),
            authors=authors,
            year=_optional_int(paper.get("year")),
            venue=collapse_whitespace(journal.get("name") or paper.get("venue")),
            doi=str(external_ids.get("DOI") or ""),
            url=paper.get("url") or "",
            abstract=collapse_whitespace(paper.get("abstract")),
            citation_count=_optional_int(paper.get("citationCount")),
            volume=collapse_whitespace(journal.get("volume")),
            pages=collapse_whitespace(journal.get("pages")),
            provider=self.name,
        )

    def provenance_note(self, candidate: Candidate) -> str:
        if candidate.citation_count is None:
            return ""
        return f"Cited by {candidate.citation_count} (Semantic Scholar)"


__all__ = ["SemanticScholarProvider"]
