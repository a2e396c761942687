"""Crossref works API provider."""
from __future__ import annotations

import urllib.parse
from typing import Any, Dict, List, Optional, Sequence

from .metadata import MetadataProvider, first_author_query
from .models import Candidate
from .normalization import bare_doi, collapse_whitespace, strip_markup

API_BASE_URL = "https://api.crossref.org/works"
RESULT_ROWS = 5
SELECT_FIELDS = (
    "title,author,issued,published-print,published-online,container-title,"
    "volume,issue,page,DOI,URL,abstract,type"
)
_DATE_FIELDS = ("published-print", "published-online", "issued")


def _first_value(value: Any) -> str:
    if isinstance(value, list) and value:
        return collapse_whitespace(value[0])
    if isinstance(value, str):
        return collapse_whitespace(value)
    return ""


def _year(item: Dict[str, Any]) -> Optional[int]:
    for name in _DATE_FIELDS:
        date = item.get(name)
        if not isinstance(date, dict):
            continue
        parts = date.get("date-parts") or []
        if parts and parts[0] and parts[0][0]:
            try:
                return int(parts[0][0])
            except (TypeError, ValueError):
                continue
    return None


class CrossrefProvider(MetadataProvider):
    """Bibliographic search against the Crossref works registry."""

    name = "crossref"
    label = "Crossref"

    def build_search_url(
        self, title: str, authors: Optional[Sequence[str]] = None, year: Optional[int] = None
    ) -> str:
        params = {"query.bibliographic": title, "rows": str(RESULT_ROWS), "select": SELECT_FIELDS}
        surname = first_author_query(authors)
        if surname:
            params["query.author"] = surname
        if year:
            params["filter"] = f"from-pub-date:{year - 1},until-pub-date:{year + 1}"
        if self.settings.crossref_mailto:
            params["mailto"] = self.settings.crossref_mailto
        return f"{API_BASE_URL}?{urllib.parse.urlencode(params)}"

    def probe_url(self) -> str:
        return f"{API_BASE_URL}?{urllib.parse.urlencode({'query': 'test', 'rows': '1'})}"

    def parse_candidates(self, data: Dict[str, Any]) -> List[Candidate]:
        message = data.get("message")
        if not isinstance(message, dict):
            return []
        items = message.get("items") or []
        return [self._parse_item(item) for item in items if isinstance(item, dict)]

    def _parse_item(self, item: Dict[str, Any]) -> Candidate:
        authors: List[str] = []
        for author in item.get("author") or []:
            family = collapse_whitespace(author.get("family"))
            given = collapse_whitespace(author.get("given"))
            if family and given:
                authors.append(f"{family}, {given}")
            elif family:
                authors.append(family)
            elif author.get("name"):
                authors.append(collapse_whitespace(author["name"]))
        return Candidate(
            title=_first_value(item.get("title")),
            authors=authors,
            year=_year(item),
            venue=_first_value(item.get("container-title")),
            doi=bare_doi(item.get("DOI")),
            url=item.get("URL") or "",
            abstract=strip_markup(item.get("abstract")),
            volume=collapse_whitespace(item.get("volume")),
            number=collapse_whitespace(item.get("issue")),
            pages=collapse_whitespace(item.get("page")),
            provider=self.name,
        )

    def provenance_note(self, candidate: Candidate) -> str:
        return "Retrieved from Crossref"


__all__ = ["CrossrefProvider"]
