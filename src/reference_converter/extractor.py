"""Per-record field extraction driven by declarative lookup rules."""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple
from xml.etree import ElementTree

from .models import FieldSet
from .normalization import bare_doi, collapse_whitespace, first_year, normalize_page_range
from .xml_tree import RawRecord, attribute, children, element_text, find_tag, iter_path, iter_tag, local_name


class Lookup(Enum):
    PATH = "path"
    TAG = "tag"
    NAMED = "named"
    ATTRIBUTE = "attribute"
    TYPED = "typed"


@dataclass(frozen=True)
class Rule:
    """One way of finding a field value inside a record element."""

    lookup: Lookup
    key: str
    qualifier: Tuple[str, str] = ("", "")


def path(key: str) -> Rule:
    return Rule(Lookup.PATH, key)


def tag(key: str) -> Rule:
    return Rule(Lookup.TAG, key)


def named(key: str) -> Rule:
    return Rule(Lookup.NAMED, key)


def attr(key: str) -> Rule:
    return Rule(Lookup.ATTRIBUTE, key)


def typed(key: str, attribute_name: str, value: str) -> Rule:
    return Rule(Lookup.TYPED, key, (attribute_name, value))


DOI_PATTERN = re.compile(r"10\.\d{4,9}/\S+", re.IGNORECASE)

# Rule order is priority order; the first rule yielding non-empty text wins.
FIELD_RULES: Dict[str, Tuple[Rule, ...]] = {
    "title": (path("titles/title"), tag("title"), named("title"), attr("title")),
    "year": (
        path("dates/year"),
        tag("year"),
        path("pub-dates/date"),
        tag("date"),
        tag("published"),
        tag("publication-date"),
        named("year"),
        attr("year"),
    ),
    "journal": (
        path("periodical/full-title"),
        tag("journal"),
        tag("journal-title"),
        tag("periodical"),
        tag("secondary-title"),
        tag("publication"),
        tag("source"),
        named("journal"),
        attr("journal"),
    ),
    "booktitle": (
        tag("booktitle"),
        tag("book-title"),
        tag("container-title"),
        tag("secondary-title"),
        named("booktitle"),
    ),
    "volume": (tag("volume"), named("volume"), attr("volume")),
    "number": (tag("number"), tag("issue"), named("number"), named("issue")),
    "pages": (tag("pages"), tag("page"), tag("page-range"), named("pages")),
    "publisher": (tag("publisher"), named("publisher"), attr("publisher")),
    "address": (tag("pub-location"), tag("address"), tag("location"), named("address")),
    "doi": (
        tag("doi"),
        typed("electronic-resource-num", "source", "DOI"),
        typed("identifier", "type", "doi"),
        typed("article-id", "pub-id-type", "doi"),
        tag("electronic-resource-num"),
        named("doi"),
        attr("doi"),
    ),
    "url": (
        path("urls/related-urls/url"),
        path("urls/url"),
        tag("url"),
        tag("link"),
        named("url"),
        attr("url"),
    ),
    "isbn": (tag("isbn"), named("isbn")),
    "issn": (tag("issn"), named("issn")),
    "abstract": (tag("abstract"), tag("summary"), named("abstract")),
    "note": (tag("note"), tag("notes"), tag("research-notes"), tag("comment"), named("note")),
    "chapter": (tag("chapter"), tag("section")),
    "edition": (tag("edition"), named("edition")),
    "series": (tag("series"), tag("collection-title"), path("titles/tertiary-title")),
    "organization": (tag("organization"), tag("sponsor")),
    "institution": (tag("institution"), tag("university")),
    "school": (tag("school"), tag("university"), tag("academic-department")),
}

AUTHOR_CONTAINERS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("contributors/authors", ("author",)),
    ("authors", ("author", "creator", "name")),
    ("creators", ("creator", "author")),
)
AUTHOR_ELEMENTS: Tuple[Rule, ...] = (
    tag("author"),
    tag("creator"),
    typed("contributor", "type", "author"),
    named("author"),
)
AUTHOR_STRINGS: Tuple[Rule, ...] = (tag("authors"), tag("creators"), attr("author"), attr("authors"))

KEYWORD_LISTS: Tuple[Rule, ...] = (path("keywords/keyword"), tag("keyword"))
KEYWORD_STRINGS: Tuple[Rule, ...] = (tag("keywords"), tag("subject"), tag("tags"), named("keywords"))

TYPE_RULES: Tuple[Rule, ...] = (
    tag("type"),
    tag("publication-type"),
    tag("reference-type"),
    tag("genre"),
    named("type"),
    attr("type"),
)

JOURNAL_SCAN: Tuple[Rule, ...] = (tag("secondary-title"), tag("journal"), path("periodical/full-title"))
PUBLISHER_SCAN: Tuple[Rule, ...] = (tag("publisher"), tag("pub-location"))

_AND_OR_SEMICOLON = re.compile(r"\s*;\s*|\s+and\s+", re.IGNORECASE)
_KEYWORD_SPLIT = re.compile(r"[,;]")


def _matches(element: ElementTree.Element, rule: Rule) -> Iterator[ElementTree.Element]:
    if rule.lookup is Lookup.PATH:
        yield from iter_path(element, rule.key)
    elif rule.lookup is Lookup.TAG:
        yield from iter_tag(element, rule.key)
    elif rule.lookup is Lookup.NAMED:
        wanted = rule.key.lower()
        for node in element.iter():
            if node is element or not isinstance(node.tag, str):
                continue
            if attribute(node, "name").lower() == wanted or attribute(node, "field").lower() == wanted:
                yield node
    elif rule.lookup is Lookup.TYPED:
        attribute_name, value = rule.qualifier
        for node in iter_tag(element, rule.key):
            if attribute(node, attribute_name).lower() == value.lower():
                yield node


def resolve_all(element: ElementTree.Element, rule: Rule) -> List[str]:
    """All non-empty texts a rule finds inside ``element``."""
    if rule.lookup is Lookup.ATTRIBUTE:
        value = collapse_whitespace(attribute(element, rule.key))
        return [value] if value else []
    texts = (element_text(node) for node in _matches(element, rule))
    return [text for text in texts if text]


def resolve_first(
    element: ElementTree.Element,
    rules: Iterable[Rule],
    accept: Optional[Callable[[str], bool]] = None,
) -> str:
    """Return the first non-empty (and accepted) text across rules in priority order."""
    for rule in rules:
        for text in resolve_all(element, rule):
            if accept is None or accept(text):
                return text
    return ""


def split_author_string(value: str) -> List[str]:
    """Split one delimited author string into names.

    Semicolons and the word "and" always separate authors. Commas separate
    authors too, except a single comma in a lone ``Last, First`` name.
    """
    names: List[str] = []
    for chunk in _AND_OR_SEMICOLON.split(value):
        chunk = chunk.strip(" ,")
        if not chunk:
            continue
        pieces = [piece.strip() for piece in chunk.split(",") if piece.strip()]
        if len(pieces) == 2 and (len(pieces[0].split()) < 2 or len(pieces[1].split()) < 2):
            names.append(f"{pieces[0]}, {pieces[1]}")
        else:
            names.extend(pieces)
    return names


class FieldExtractor:
    """Resolve the logical fields of one record."""

    def __init__(self, rules: Dict[str, Tuple[Rule, ...]] = FIELD_RULES):
        self.rules = rules

    def extract(self, record: RawRecord | ElementTree.Element, custom_fields: Sequence[str] = ()) -> FieldSet:
        element = record.element if isinstance(record, RawRecord) else record
        fields = FieldSet()
        for name, rules in self.rules.items():
            if name == "year":
                fields[name] = first_year(resolve_first(element, rules, accept=lambda t: bool(first_year(t))))
            elif name == "pages":
                fields[name] = normalize_page_range(resolve_first(element, rules))
            elif name == "doi":
                fields[name] = self._doi(element, rules)
            else:
                fields[name] = resolve_first(element, rules)
            if name == "title":
                fields["author"] = " and ".join(self.authors(element))
        fields["keywords"] = ", ".join(self.keywords(element))
        for custom in custom_fields:
            key = custom.strip().lower()
            if key and fields.is_empty(key):
                fields[key] = resolve_first(element, (tag(custom), named(custom), attr(custom)))
        return fields

    @staticmethod
    def _doi(element: ElementTree.Element, rules: Iterable[Rule]) -> str:
        value = resolve_first(element, rules, accept=lambda t: bool(DOI_PATTERN.search(t)))
        match = DOI_PATTERN.search(bare_doi(value))
        return match.group(0).rstrip(".,;") if match else ""

    def authors(self, element: ElementTree.Element) -> List[str]:
        for container_path, member_tags in AUTHOR_CONTAINERS:
            for container in iter_path(element, container_path):
                names = [
                    element_text(child)
                    for child in children(container)
                    if local_name(child.tag) in member_tags
                ]
                names = [name for name in names if name]
                if names:
                    return names
        for rule in AUTHOR_ELEMENTS:
            names = resolve_all(element, rule)
            if len(names) > 1:
                return names
            if names:
                return split_author_string(names[0])
        value = resolve_first(element, AUTHOR_STRINGS)
        return split_author_string(value) if value else []

    def keywords(self, element: ElementTree.Element) -> List[str]:
        for rule in KEYWORD_LISTS:
            values = resolve_all(element, rule)
            if values:
                return values
        value = resolve_first(element, KEYWORD_STRINGS)
        return [part.strip() for part in _KEYWORD_SPLIT.split(value) if part.strip()]

    def declared_type(self, element: ElementTree.Element) -> str:
        """Return the record's explicit reference type, if it declares one."""
        ref_type = find_tag(element, "ref-type")
        if ref_type is not None:
            declared = collapse_whitespace(attribute(ref_type, "name")) or element_text(ref_type)
            if declared:
                return declared
        return resolve_first(element, TYPE_RULES)

    def title(self, element: ElementTree.Element) -> str:
        return resolve_first(element, self.rules["title"])

    def journal_names(self, element: ElementTree.Element) -> List[str]:
        return [text for rule in JOURNAL_SCAN for text in resolve_all(element, rule)]

    def publisher_names(self, element: ElementTree.Element) -> List[str]:
        return [text for rule in PUBLISHER_SCAN for text in resolve_all(element, rule)]


__all__ = [
    "FIELD_RULES",
    "FieldExtractor",
    "Lookup",
    "Rule",
    "resolve_all",
    "resolve_first",
    "split_author_string",
]
