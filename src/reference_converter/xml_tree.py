"""Parsed XML documents with namespace-free, case-insensitive lookups."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple
from xml.etree import ElementTree

from .errors import XmlParseError
from .normalization import collapse_whitespace

Path = Tuple[int, ...]


def local_name(tag: object) -> str:
    """Return the lowercased tag name without namespace URI or prefix."""
    if not isinstance(tag, str):
        return ""
    if "}" in tag:
        tag = tag.rsplit("}", 1)[1]
    if ":" in tag:
        tag = tag.rsplit(":", 1)[1]
    return tag.lower()


def children(element: ElementTree.Element) -> List[ElementTree.Element]:
    return [child for child in element if isinstance(child.tag, str)]


def iter_tag(element: ElementTree.Element, name: str) -> Iterator[ElementTree.Element]:
    """Yield descendants (not ``element`` itself) whose local name is ``name``."""
    wanted = name.lower()
    for node in element.iter():
        if node is not element and local_name(node.tag) == wanted:
            yield node


def find_tag(element: ElementTree.Element, name: str) -> Optional[ElementTree.Element]:
    return next(iter_tag(element, name), None)


def iter_path(element: ElementTree.Element, path: str) -> Iterator[ElementTree.Element]:
    """Yield matches of a ``a/b/c`` descendant chain, in document order."""
    segments = [segment for segment in path.split("/") if segment]
    if not segments:
        return
    seen = set()

    def walk(node: ElementTree.Element, depth: int) -> Iterator[ElementTree.Element]:
        for match in iter_tag(node, segments[depth]):
            if depth == len(segments) - 1:
                if id(match) not in seen:
                    seen.add(id(match))
                    yield match
            else:
                yield from walk(match, depth + 1)

    yield from walk(element, 0)


def attribute(element: ElementTree.Element, name: str) -> str:
    wanted = name.lower()
    for key, value in element.attrib.items():
        if local_name(key) == wanted:
            return value
    return ""


def element_text(element: Optional[ElementTree.Element]) -> str:
    """Resolve an element to plain text, preferring nested ``style`` runs."""
    if element is None:
        return ""
    styled = list(iter_tag(element, "style"))
    if styled:
        text = "".join("".join(node.itertext()) for node in styled)
        if text.strip():
            return collapse_whitespace(text)
    return collapse_whitespace("".join(element.itertext()))


@dataclass(frozen=True)
class RawRecord:
    """One located record element and where it sits in the document."""

    element: ElementTree.Element
    position: int
    path: Path


class SourceDocument:
    """One parsed XML input; owned by a single conversion run."""

    def __init__(self, root: ElementTree.Element):
        self.root = root
        self._paths: Dict[int, Path] = {}
        self._parents: Dict[int, ElementTree.Element] = {}
        self._index(root, ())

    @classmethod
    def parse(cls, text: str) -> "SourceDocument":
        source = (text or "").lstrip("\ufeff")
        if not source.strip():
            raise XmlParseError("XML document is empty")
        try:
            root = ElementTree.fromstring(source)
        except ElementTree.ParseError as exc:
            raise XmlParseError(f"XML parsing error: {exc}") from exc
        return cls(root)

    def _index(self, element: ElementTree.Element, path: Path) -> None:
        self._paths[id(element)] = path
        for position, child in enumerate(children(element)):
            self._parents[id(child)] = element
            self._index(child, path + (position,))

    def walk(self) -> Iterator[ElementTree.Element]:
        """All elements in document order, root first."""
        return (node for node in self.root.iter() if isinstance(node.tag, str))

    def path_of(self, element: ElementTree.Element) -> Path:
        return self._paths.get(id(element), ())

    def parent_of(self, element: ElementTree.Element) -> Optional[ElementTree.Element]:
        return self._parents.get(id(element))

    @property
    def root_name(self) -> str:
        return local_name(self.root.tag)

    def describe(self, max_depth: int = 3, max_children: int = 5) -> str:
        return describe_structure(self.root, max_depth=max_depth, max_children=max_children)


def describe_structure(
    element: ElementTree.Element, max_depth: int = 3, max_children: int = 5, depth: int = 0
) -> str:
    """Summarize the tag layout, e.g. ``library[shelf[book, ...], ...]``."""
    if depth >= max_depth:
        return "..."
    kids = children(element)
    name = local_name(element.tag)
    if not kids:
        return name
    parts = [
        describe_structure(child, max_depth=max_depth, max_children=max_children, depth=depth + 1)
        for child in kids[:max_children]
    ]
    if len(kids) > max_children:
        parts.append("...")
    return f"{name}[{', '.join(parts)}]"


__all__ = [
    "RawRecord",
    "SourceDocument",
    "attribute",
    "children",
    "describe_structure",
    "element_text",
    "find_tag",
    "iter_path",
    "iter_tag",
    "local_name",
]
