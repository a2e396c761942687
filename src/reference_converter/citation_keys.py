"""Citation key derivation and per-run uniqueness tracking."""
from __future__ import annotations

import re
from string import ascii_lowercase
from typing import List, Set

from .models import FieldSet
from .normalization import fold_accents

STOP_WORDS = frozenset({"the", "and", "of", "in", "on", "at", "to", "for", "with", "by"})
MIN_KEY_LENGTH = 3
TITLE_KEY_THRESHOLD = 10
MAX_TITLE_WORDS = 2

_NON_LETTER = re.compile(r"[^a-z]")
_NON_WORD = re.compile(r"[^A-Za-z0-9]")
_INVALID_KEY = re.compile(r"[^A-Za-z0-9_]")


def first_author_surname(author: str) -> str:
    """Surname of the first author in an ``" and "``-joined author string."""
    if not author:
        return ""
    first = re.split(r"\s+and\s+", author.strip(), maxsplit=1)[0].strip()
    if "," in first:
        surname = first.split(",", 1)[0]
    else:
        parts = first.split()
        surname = parts[-1] if parts else ""
    return _NON_LETTER.sub("", fold_accents(surname).lower())


def significant_title_words(title: str, limit: int = MAX_TITLE_WORDS) -> List[str]:
    words: List[str] = []
    for raw in (title or "").split():
        word = _NON_WORD.sub("", fold_accents(raw))
        if len(word) <= 3 or word.lower() in STOP_WORDS:
            continue
        words.append(word[0].upper() + word[1:].lower())
        if len(words) == limit:
            break
    return words


def generate_citation_key(fields: FieldSet, position: int) -> str:
    """Build ``<surname><year><TitleWords>``, or ``ref<position>`` when too short.

    Title words are appended only while the key is shorter than ten characters.
    """
    key = first_author_surname(fields["author"]) + fields["year"]
    for word in significant_title_words(fields["title"]):
        if len(key) >= TITLE_KEY_THRESHOLD:
            break
        key += word
    key = _INVALID_KEY.sub("", key)
    if len(key) < MIN_KEY_LENGTH:
        return f"ref{position}"
    return key


def _letter_suffixes():
    """a, b, ..., z, aa, ab, ..."""
    length = 1
    while True:
        stack = [""]
        for _ in range(length):
            stack = [prefix + letter for prefix in stack for letter in ascii_lowercase]
        yield from stack
        length += 1


class CitationKeyRegistry:
    """Hands out unique keys for one run; exact duplicates get letter suffixes."""

    def __init__(self) -> None:
        self._used: Set[str] = set()

    def claim(self, key: str) -> str:
        suffixes = _letter_suffixes()
        candidate = key
        while candidate in self._used:
            candidate = key + next(suffixes)
        self._used.add(candidate)
        return candidate

    def __contains__(self, key: str) -> bool:
        return key in self._used

    def __len__(self) -> int:
        return len(self._used)


__all__ = [
    "CitationKeyRegistry",
    "first_author_surname",
    "generate_citation_key",
    "significant_title_words",
]
