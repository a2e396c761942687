"""Metadata provider interface shared by the external lookup services."""
from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

import httpx

from .config import ProviderSettings
from .errors import ProviderError
from .models import Candidate, FieldSet
from .normalization import bare_doi, collapse_whitespace, normalize_page_range

logger = logging.getLogger(__name__)

Fetcher = Callable[[str, float], str]


def first_author_query(authors: Optional[Sequence[str]]) -> str:
    """Surname of the first author, as used in provider search queries."""
    if not authors:
        return ""
    first = authors[0].strip()
    if "," in first:
        return first.split(",", 1)[0].strip()
    parts = first.split()
    return parts[-1] if parts else ""


class MetadataProvider:
    """Base interface for scholarly metadata search services.

    Subclasses build a search URL and turn the decoded JSON payload into
    :class:`Candidate` objects. Transport, decoding and error translation
    live here so every provider fails the same way: with ``ProviderError``.
    """

    name: str = "base"
    label: str = "Base"

    def __init__(
        self,
        fetcher: Optional[Fetcher] = None,
        timeout: float = 10.0,
        settings: Optional[ProviderSettings] = None,
    ):
        self.fetcher = fetcher or self._http_get
        self.timeout = timeout
        self.settings = settings or ProviderSettings()

    def search(
        self,
        title: str,
        authors: Optional[Sequence[str]] = None,
        year: Optional[int] = None,
    ) -> List[Candidate]:
        url = self.build_search_url(title, authors, year)
        logger.debug("%s search: %s", self.label, url)
        data = self._fetch_json(url)
        try:
            candidates = self.parse_candidates(data)
        except (AttributeError, TypeError, KeyError, ValueError, IndexError) as exc:
            raise ProviderError(self.label, f"malformed payload: {exc}") from exc
        logger.debug("%s returned %d candidates", self.label, len(candidates))
        return candidates

    def build_search_url(
        self, title: str, authors: Optional[Sequence[str]], year: Optional[int]
    ) -> str:  # pragma: no cover - interface
        raise NotImplementedError

    def parse_candidates(self, data: Dict[str, Any]) -> List[Candidate]:  # pragma: no cover - interface
        raise NotImplementedError

    def probe_url(self) -> str:  # pragma: no cover - interface
        raise NotImplementedError

    def check(self) -> None:
        """Issue a trivial query; raises ``ProviderError`` when the service is unreachable."""
        self._fetch_json(self.probe_url())

    def provenance_note(self, candidate: Candidate) -> str:
        return ""

    def candidate_fields(self, candidate: Candidate) -> FieldSet:
        """Map a candidate onto logical field names; empty values are left out."""
        fields = FieldSet()
        values = {
            "title": candidate.title,
            "author": " and ".join(candidate.authors),
            "year": str(candidate.year) if candidate.year else "",
            "journal": candidate.venue,
            "volume": candidate.volume,
            "number": candidate.number,
            "pages": normalize_page_range(candidate.pages),
            "doi": bare_doi(candidate.doi),
            "url": candidate.url,
            "abstract": candidate.abstract,
            "note": self.provenance_note(candidate),
        }
        for name, value in values.items():
            value = collapse_whitespace(value)
            if value:
                fields[name] = value
        return fields

    def headers(self) -> Dict[str, str]:
        return {"User-Agent": self.settings.user_agent, "Accept": "application/json"}

    def _http_get(self, url: str, timeout: float) -> str:
        try:
            response = httpx.get(url, headers=self.headers(), timeout=timeout, follow_redirects=True)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise ProviderError(self.label, f"request timed out after {timeout:g}s") from exc
        except httpx.HTTPStatusError as exc:
            raise ProviderError(self.label, f"HTTP {exc.response.status_code}") from exc
        except httpx.RequestError as exc:
            raise ProviderError(self.label, f"request failed: {exc}") from exc
        return response.text

    def _fetch_json(self, url: str) -> Dict[str, Any]:
        try:
            payload = self.fetcher(url, self.timeout)
        except ProviderError:
            raise
        except Exception as exc:
            # any fetcher failure is a provider failure
            raise ProviderError(self.label, f"request failed: {exc}") from exc
        if not payload:
            raise ProviderError(self.label, "empty response")
        try:
            data = json.loads(payload)
        except ValueError as exc:
            raise ProviderError(self.label, "malformed JSON payload") from exc
        if not isinstance(data, dict):
            raise ProviderError(self.label, "unexpected payload shape")
        return data


__all__ = ["Fetcher", "MetadataProvider", "first_author_query"]
