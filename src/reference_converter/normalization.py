"""Normalization helpers shared by extraction, matching, and formatting."""
from __future__ import annotations

import re
import unicodedata

_WHITESPACE = re.compile(r"\s+")
_YEAR = re.compile(r"(?<!\d)(?:19|20)\d{2}(?!\d)")
_PAGE_RANGE = re.compile(r"(\d+)\s*(?:-{1,2}|[\u2010-\u2014\u2212])\s*(\d+)")
_MARKUP = re.compile(r"<[^>]+>")
_DOI_PREFIX = re.compile(r"^(?:https?://(?:dx\.)?doi\.org/|doi:\s*)", re.IGNORECASE)

LATEX_ESCAPES = {
    "&": r"\&",
    "%": r"\%",
    "$": r"\$",
    "#": r"\#",
    "_": r"\_",
    "{": r"\{",
    "}": r"\}",
    "~": r"\textasciitilde{}",
    "^": r"\textasciicircum{}",
    "\\": r"\textbackslash{}",
}

# Sequences that are already escaped are matched first and copied through.
_LATEX_TOKEN = re.compile(
    r"(\\(?:[&%$#_{}]|text(?:backslash|asciitilde|asciicircum)\{\}))|([&%$#_{}~^\\])"
)


def collapse_whitespace(value: object) -> str:
    if not value:
        return ""
    return _WHITESPACE.sub(" ", str(value)).strip()


def fold_accents(value: str | None) -> str:
    """Strip combining marks so that ``Müller`` becomes ``Muller``."""
    if not value:
        return ""
    text = unicodedata.normalize("NFKD", value)
    return "".join(ch for ch in text if not unicodedata.combining(ch))


def normalize_text(value: str | None) -> str:
    """Normalize text for fuzzy comparison: folded, lowercased, punctuation removed."""
    if not value:
        return ""
    text = fold_accents(value).replace("&", " and ").lower()
    text = re.sub(r"[^\w\s]", " ", text)
    return collapse_whitespace(text)


def escape_latex(value: str | None) -> str:
    """Escape LaTeX special characters exactly once."""
    if not value:
        return ""

    def replace(match: re.Match) -> str:
        if match.group(1):
            return match.group(1)
        return LATEX_ESCAPES[match.group(2)]

    return _LATEX_TOKEN.sub(replace, value)


def normalize_page_range(value: str | None) -> str:
    """Rewrite any dash between two page numbers as the BibTeX ``--``."""
    if not value:
        return ""
    return _PAGE_RANGE.sub(r"\1--\2", collapse_whitespace(value))


def first_year(value: str | None) -> str:
    if not value:
        return ""
    match = _YEAR.search(value)
    return match.group(0) if match else ""


def strip_markup(value: str | None) -> str:
    """Drop XML/HTML tags (e.g. JATS ``<jats:p>`` in Crossref abstracts)."""
    if not value:
        return ""
    return collapse_whitespace(_MARKUP.sub(" ", value))


def bare_doi(value: str | None) -> str:
    if not value:
        return ""
    return _DOI_PREFIX.sub("", value.strip())


__all__ = [
    "LATEX_ESCAPES",
    "collapse_whitespace",
    "fold_accents",
    "normalize_text",
    "escape_latex",
    "normalize_page_range",
    "first_year",
    "strip_markup",
    "bare_doi",
]
