"""Fuzzy matching of provider candidates against extracted record fields."""
from __future__ import annotations

from typing import Callable, Iterable, List, Optional, Sequence, Set, Tuple

from .models import Candidate
from .normalization import first_year, normalize_text

TITLE_WEIGHT = 0.6
AUTHOR_WEIGHT = 0.3
YEAR_WEIGHT = 0.1
YEAR_TOLERANCE = 1
MATCH_THRESHOLD = 0.7

Scorer = Callable[[Candidate, str, Sequence[str], Optional[int]], float]


def tokens(text: str | None) -> Set[str]:
    """Lowercase whitespace tokens with punctuation removed."""
    return set(normalize_text(text).split())


def token_set_similarity(left: str | None, right: str | None) -> float:
    """Intersection over union of the two token sets; 0.0 when either is empty."""
    left_tokens, right_tokens = tokens(left), tokens(right)
    if not left_tokens or not right_tokens:
        return 0.0
    return len(left_tokens & right_tokens) / len(left_tokens | right_tokens)


def parse_year(value: object) -> Optional[int]:
    if isinstance(value, int):
        return value
    year = first_year(str(value or ""))
    return int(year) if year else None


def score_candidate(
    candidate: Candidate,
    title: str,
    authors: Sequence[str] = (),
    year: Optional[int] = None,
) -> float:
    """Weighted title/author/year blend, normalized by the weights that apply.

    A component only counts when both the record and the candidate carry it.
    """
    score = 0.0
    weights = 0.0
    if candidate.title and title:
        score += TITLE_WEIGHT * token_set_similarity(candidate.title, title)
        weights += TITLE_WEIGHT
    if candidate.authors and authors:
        similarity = token_set_similarity(" ".join(candidate.authors), " ".join(authors))
        score += AUTHOR_WEIGHT * similarity
        weights += AUTHOR_WEIGHT
    if candidate.year is not None and year is not None:
        if abs(candidate.year - year) <= YEAR_TOLERANCE:
            score += YEAR_WEIGHT
        weights += YEAR_WEIGHT
    return score / weights if weights else 0.0


def rank_candidates(
    candidates: Iterable[Candidate],
    title: str,
    authors: Sequence[str] = (),
    year: Optional[int] = None,
    scorer: Scorer = score_candidate,
) -> List[Tuple[Candidate, float]]:
    scored = [(candidate, scorer(candidate, title, authors, year)) for candidate in candidates]
    # sorted() is stable, so provider order breaks ties
    return sorted(scored, key=lambda pair: pair[1], reverse=True)


def select_best(
    candidates: Iterable[Candidate],
    title: str,
    authors: Sequence[str] = (),
    year: Optional[int] = None,
    threshold: float = MATCH_THRESHOLD,
    scorer: Scorer = score_candidate,
) -> Optional[Tuple[Candidate, float]]:
    """Return the top candidate and its score, only when the score beats ``threshold``."""
    ranked = rank_candidates(candidates, title, authors, year, scorer)
    if not ranked:
        return None
    best, score = ranked[0]
    if score > threshold:
        return best, score
    return None


__all__ = [
    "MATCH_THRESHOLD",
    "parse_year",
    "rank_candidates",
    "score_candidate",
    "select_best",
    "token_set_similarity",
    "tokens",
]
