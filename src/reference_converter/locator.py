"""Locate repeated record elements in XML documents of unknown shape."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple
from xml.etree import ElementTree

from .xml_tree import RawRecord, SourceDocument, attribute, children, local_name

logger = logging.getLogger(__name__)

Predicate = Callable[[SourceDocument, ElementTree.Element], bool]

RECORD_ATTRIBUTES = ("title", "author", "journal")


def _named(*names: str) -> Predicate:
    wanted = set(names)

    def predicate(_doc: SourceDocument, element: ElementTree.Element) -> bool:
        return local_name(element.tag) in wanted

    return predicate


def _child_of(name: str, parent: str) -> Predicate:
    def predicate(doc: SourceDocument, element: ElementTree.Element) -> bool:
        if local_name(element.tag) != name:
            return False
        owner = doc.parent_of(element)
        return owner is not None and local_name(owner.tag) == parent

    return predicate


def _has_record_attributes(_doc: SourceDocument, element: ElementTree.Element) -> bool:
    return any(attribute(element, name) for name in RECORD_ATTRIBUTES)


def _root_child_with_title(doc: SourceDocument, element: ElementTree.Element) -> bool:
    if doc.parent_of(element) is not doc.root:
        return False
    return any(local_name(child.tag) in {"title", "author"} for child in children(element))


# Most specific interpretation first; the first pattern with any match wins.
RECORD_PATTERNS: Tuple[Tuple[str, Predicate], ...] = (
    ("records/record", _child_of("record", "records")),
    ("database/record", _child_of("record", "database")),
    ("record", _named("record")),
    ("reference", _named("reference")),
    ("citation", _named("citation")),
    ("item|entry", _named("item", "entry")),
    ("*[title|author|journal]", _has_record_attributes),
    ("root children with title/author", _root_child_with_title),
)


@dataclass
class LocatorResult:
    records: List[RawRecord] = field(default_factory=list)
    pattern: Optional[str] = None
    structure: str = ""

    def __bool__(self) -> bool:
        return bool(self.records)


class RecordLocator:
    """Find the record elements of a document by trying structural patterns in order."""

    def __init__(self, patterns: Tuple[Tuple[str, Predicate], ...] = RECORD_PATTERNS):
        self.patterns = patterns

    def locate(self, document: SourceDocument) -> LocatorResult:
        for name, predicate in self.patterns:
            matches = [element for element in document.walk() if predicate(document, element)]
            if matches:
                logger.info("Found %d records using path: %s", len(matches), name)
                return LocatorResult(
                    records=[
                        RawRecord(element=element, position=position, path=document.path_of(element))
                        for position, element in enumerate(matches, start=1)
                    ],
                    pattern=name,
                )
            logger.debug("No records for pattern %s", name)
        structure = document.describe()
        logger.error("No records found in XML data. XML structure: %s", structure)
        return LocatorResult(structure=structure)


__all__ = ["RECORD_PATTERNS", "LocatorResult", "RecordLocator"]
