"""Data models for XML to BibTeX conversion runs."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple


class EntryType:
    """BibTeX entry types produced by the converter."""

    ARTICLE = "article"
    BOOK = "book"
    INCOLLECTION = "incollection"
    INPROCEEDINGS = "inproceedings"
    PROCEEDINGS = "proceedings"
    PHDTHESIS = "phdthesis"
    TECHREPORT = "techreport"
    ONLINE = "online"
    PATENT = "patent"
    UNPUBLISHED = "unpublished"
    MISC = "misc"


class FieldSet(Dict[str, str]):
    """Logical field values of one record; a missing field reads as ``""``."""

    def __missing__(self, key: str) -> str:
        return ""

    def is_empty(self, name: str) -> bool:
        return not (self.get(name) or "").strip()

    def filled(self) -> Iterator[Tuple[str, str]]:
        """Yield ``(name, value)`` pairs with a non-blank value, in insertion order."""
        for name, value in self.items():
            if value and value.strip():
                yield name, value

    def copy(self) -> "FieldSet":
        return FieldSet(self)


class MacroRef(str):
    """A reference to an ``@string`` definition, emitted bare and never escaped."""


@dataclass(frozen=True)
class EntryDescriptor:
    """A classified, keyed record ready for formatting."""

    citation_key: str
    entry_type: str
    fields: FieldSet
    record_index: int = 0


@dataclass
class JournalEntry:
    key: str
    display_name: str
    category: str


@dataclass
class PublisherEntry:
    key: str
    display_name: str
    category: str


@dataclass
class Candidate:
    """A provider search hit normalized into a common shape."""

    title: str = ""
    authors: List[str] = field(default_factory=list)
    year: Optional[int] = None
    venue: str = ""
    doi: str = ""
    url: str = ""
    abstract: str = ""
    citation_count: Optional[int] = None
    volume: str = ""
    number: str = ""
    pages: str = ""
    provider: str = ""


@dataclass
class EnhancementResult:
    """Fields offered by the best matching candidate of one provider."""

    fields: FieldSet
    provider: str
    score: float


@dataclass
class ConversionResult:
    """Outcome of one conversion run."""

    entries: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    entry_count: int = 0
    processing_time_ms: int = 0
    bibtex: str = ""
    errors: List[str] = field(default_factory=list)
    record_count: int = 0
    cancelled: bool = False
    descriptors: List[EntryDescriptor] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        """True when a document-level error stopped the run."""
        return bool(self.errors)


__all__ = [
    "EntryType",
    "FieldSet",
    "MacroRef",
    "EntryDescriptor",
    "JournalEntry",
    "PublisherEntry",
    "Candidate",
    "EnhancementResult",
    "ConversionResult",
]
