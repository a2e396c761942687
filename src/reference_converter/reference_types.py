"""Entry type classification for converted records."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .models import EntryType, FieldSet


@dataclass(frozen=True)
class ReferenceType:
    key: str
    label: str


REFERENCE_TYPES = {
    EntryType.ARTICLE: ReferenceType(EntryType.ARTICLE, "Journal Article"),
    EntryType.BOOK: ReferenceType(EntryType.BOOK, "Book"),
    EntryType.INCOLLECTION: ReferenceType(EntryType.INCOLLECTION, "Book Section"),
    EntryType.INPROCEEDINGS: ReferenceType(EntryType.INPROCEEDINGS, "Conference Paper"),
    EntryType.PROCEEDINGS: ReferenceType(EntryType.PROCEEDINGS, "Conference Proceedings"),
    EntryType.PHDTHESIS: ReferenceType(EntryType.PHDTHESIS, "Thesis"),
    EntryType.TECHREPORT: ReferenceType(EntryType.TECHREPORT, "Report"),
    EntryType.ONLINE: ReferenceType(EntryType.ONLINE, "Web Page"),
    EntryType.PATENT: ReferenceType(EntryType.PATENT, "Patent"),
    EntryType.UNPUBLISHED: ReferenceType(EntryType.UNPUBLISHED, "Unpublished Work"),
    EntryType.MISC: ReferenceType(EntryType.MISC, "Generic"),
}


# EndNote reference-type names as exported in ``<ref-type name="...">``.
_ENDNOTE_TYPE_MAP = {
    "journal article": EntryType.ARTICLE,
    "magazine article": EntryType.ARTICLE,
    "newspaper article": EntryType.ARTICLE,
    "electronic article": EntryType.ARTICLE,
    "book": EntryType.BOOK,
    "edited book": EntryType.BOOK,
    "book section": EntryType.INCOLLECTION,
    "conference paper": EntryType.INPROCEEDINGS,
    "conference proceedings": EntryType.PROCEEDINGS,
    "conference proceeding": EntryType.PROCEEDINGS,
    "thesis": EntryType.PHDTHESIS,
    "report": EntryType.TECHREPORT,
    "web page": EntryType.ONLINE,
    "patent": EntryType.PATENT,
    "unpublished work": EntryType.UNPUBLISHED,
    "manuscript": EntryType.UNPUBLISHED,
    "generic": EntryType.MISC,
}

# Numeric ``<ref-type>`` codes used by EndNote when the name attribute is missing.
_ENDNOTE_TYPE_CODES = {
    "5": EntryType.INCOLLECTION,
    "6": EntryType.BOOK,
    "10": EntryType.PROCEEDINGS,
    "12": EntryType.ONLINE,
    "13": EntryType.MISC,
    "17": EntryType.ARTICLE,
    "25": EntryType.PATENT,
    "27": EntryType.TECHREPORT,
    "32": EntryType.PHDTHESIS,
    "34": EntryType.UNPUBLISHED,
    "47": EntryType.INPROCEEDINGS,
}

# Substring rules, checked in order against the lower-cased declared type.
_TYPE_KEYWORDS: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("article", "journal"), EntryType.ARTICLE),
    (("book",), EntryType.BOOK),
    (("chapter", "inbook"), EntryType.INCOLLECTION),
    (("conference", "proceeding"), EntryType.INPROCEEDINGS),
    (("thesis", "dissertation"), EntryType.PHDTHESIS),
    (("report", "tech"), EntryType.TECHREPORT),
    (("web", "online"), EntryType.ONLINE),
)


def type_from_declaration(declared: Optional[str]) -> Optional[str]:
    """Map an explicit reference type string to an entry type, or None."""
    if not declared:
        return None
    text = " ".join(declared.lower().split())
    if text in _ENDNOTE_TYPE_MAP:
        return _ENDNOTE_TYPE_MAP[text]
    if text in _ENDNOTE_TYPE_CODES:
        return _ENDNOTE_TYPE_CODES[text]
    for keywords, entry_type in _TYPE_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return entry_type
    return None


def type_from_fields(fields: FieldSet) -> str:
    if not fields.is_empty("journal"):
        return EntryType.ARTICLE
    if not fields.is_empty("booktitle"):
        return EntryType.INPROCEEDINGS
    if not fields.is_empty("publisher"):
        return EntryType.BOOK
    return EntryType.MISC


def classify_reference(fields: FieldSet, declared: Optional[str] = None) -> str:
    """Return the BibTeX entry type: explicit declaration first, then field heuristics."""
    return type_from_declaration(declared) or type_from_fields(fields)


def reconcile_venue(fields: FieldSet, entry_type: str) -> FieldSet:
    """Keep a shared venue string on the field the entry type expects.

    EndNote stores both journal names and book titles in ``secondary-title``,
    so extraction can fill ``journal`` and ``booktitle`` with the same text.
    """
    journal, booktitle = fields["journal"], fields["booktitle"]
    if not journal or journal != booktitle:
        return fields
    reconciled = fields.copy()
    if entry_type in (EntryType.INCOLLECTION, EntryType.INPROCEEDINGS, EntryType.PROCEEDINGS):
        reconciled["journal"] = ""
    else:
        reconciled["booktitle"] = ""
    return reconciled


def label_for_type(type_key: str | None) -> str:
    if not type_key:
        return REFERENCE_TYPES[EntryType.MISC].label
    ref_type = REFERENCE_TYPES.get(type_key, REFERENCE_TYPES[EntryType.MISC])
    return ref_type.label
