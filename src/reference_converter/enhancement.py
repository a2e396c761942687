"""External enhancement pipeline: provider lookups merged into extracted fields."""
from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional, Sequence, Tuple

from .config import ConversionOptions, ProviderSettings
from .crossref import CrossrefProvider
from .errors import ProviderError
from .matcher import MATCH_THRESHOLD, Scorer, parse_year, score_candidate, select_best
from .metadata import MetadataProvider
from .models import EnhancementResult, FieldSet
from .rate_limit import RateLimiter
from .semantic_scholar import SemanticScholarProvider

logger = logging.getLogger(__name__)

_AUTHOR_SEPARATOR = re.compile(r"\s+and\s+")


def merge_fields(original: FieldSet, offered: FieldSet) -> FieldSet:
    """Fill only the fields that are empty in ``original``.

    A provenance ``note`` is appended to an existing note instead of replacing it.
    """
    merged = original.copy()
    for name, value in offered.filled():
        if name == "note" and not original.is_empty("note"):
            merged["note"] = f"{original['note']}; {value}"
        elif original.is_empty(name):
            merged[name] = value
    return merged


class EnhancementPipeline:
    """Try providers in priority order; the first accepted match wins."""

    def __init__(
        self,
        providers: Sequence[MetadataProvider],
        rate_limiter: Optional[RateLimiter] = None,
        threshold: float = MATCH_THRESHOLD,
        scorer: Scorer = score_candidate,
    ):
        self.providers = list(providers)
        self.rate_limiter = rate_limiter or RateLimiter()
        self.threshold = threshold
        self.scorer = scorer

    @classmethod
    def from_options(
        cls, options: ConversionOptions, settings: Optional[ProviderSettings] = None
    ) -> "EnhancementPipeline":
        settings = settings or ProviderSettings()
        timeout = options.api_timeout
        providers = [
            SemanticScholarProvider(timeout=timeout, settings=settings),
            CrossrefProvider(timeout=timeout, settings=settings),
        ]
        return cls(providers, RateLimiter(options.api_rate_limit_delay))

    def lookup(self, fields: FieldSet, warnings: List[str]) -> Optional[EnhancementResult]:
        title = fields["title"].strip()
        if not title:
            return None
        authors = [name for name in _AUTHOR_SEPARATOR.split(fields["author"].strip()) if name]
        year = parse_year(fields["year"])

        for provider in self.providers:
            self.rate_limiter.acquire()
            try:
                candidates = provider.search(title, authors, year)
            except ProviderError as exc:
                message = f"{exc.provider} lookup failed for '{title}': {exc.message}"
                logger.warning(message)
                warnings.append(message)
                continue
            match = select_best(candidates, title, authors, year, self.threshold, self.scorer)
            if match is None:
                logger.debug("%s: no candidate above %.2f for %r", provider.label, self.threshold, title)
                continue
            candidate, score = match
            logger.info("Matched %r via %s (score %.2f)", title, provider.label, score)
            return EnhancementResult(fields=provider.candidate_fields(candidate), provider=provider.name, score=score)
        return None

    def enhance(self, fields: FieldSet) -> Tuple[FieldSet, List[str]]:
        """Return the merged fields and any provider warnings; never raises ``ProviderError``."""
        warnings: List[str] = []
        result = self.lookup(fields, warnings)
        if result is None:
            return fields, warnings
        return merge_fields(fields, result.fields), warnings

    def check_connectivity(self) -> Dict[str, Dict[str, str]]:
        """Probe every provider once and report ``{label: {status, message}}``."""
        results: Dict[str, Dict[str, str]] = {}
        for provider in self.providers:
            self.rate_limiter.acquire()
            try:
                provider.check()
            except ProviderError as exc:
                results[provider.label] = {"status": "error", "message": exc.message}
            else:
                results[provider.label] = {"status": "success", "message": "API accessible"}
        return results


__all__ = ["EnhancementPipeline", "merge_fields"]
