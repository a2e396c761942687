"""Style-aware rendering of entries as BibTeX/BibLaTeX text."""
from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from .config import CITATION_STYLES, DEFAULT_STYLE, ConversionOptions
from .models import EntryDescriptor, FieldSet, MacroRef
from .normalization import escape_latex

BASE_ORDER = [
    "title",
    "author",
    "journal",
    "journaltitle",
    "booktitle",
    "year",
    "volume",
    "number",
    "pages",
    "endpages",
    "publisher",
    "address",
    "location",
    "doi",
    "url",
    "isbn",
    "issn",
]

FIELD_ORDERS: Dict[str, List[str]] = {
    "acm": [
        "author",
        "title",
        "journal",
        "journaltitle",
        "booktitle",
        "year",
        "volume",
        "number",
        "pages",
        "publisher",
        "doi",
        "url",
    ],
    "ieee": [
        "author",
        "title",
        "journal",
        "journaltitle",
        "booktitle",
        "year",
        "volume",
        "number",
        "pages",
        "publisher",
        "doi",
    ],
    "biblatex": [
        "author",
        "title",
        "journaltitle",
        "booktitle",
        "year",
        "volume",
        "number",
        "pages",
        "endpages",
        "publisher",
        "location",
        "doi",
        "url",
        "isbn",
        "issn",
    ],
}

BIBLATEX_RENAMES = {
    "journal": "journaltitle",
    "address": "location",
    "school": "institution",
}

# Optional fields and the option that switches each on.
OPTIONAL_FIELDS = {
    "abstract": "include_abstract",
    "keywords": "include_keywords",
    "note": "include_notes",
}

VERBATIM_FIELDS = frozenset({"url", "doi"})


class StyleFormatter:
    """Apply a citation style profile and render entries.

    Escaping happens here, per field, so macro references from the string
    definition registry are never touched.
    """

    SUPPORTED_STYLES = set(CITATION_STYLES)

    def __init__(self, options: Optional[ConversionOptions] = None):
        self.options = options or ConversionOptions()

    @property
    def style(self) -> str:
        style = self.options.citation_style
        return style if style in self.SUPPORTED_STYLES else DEFAULT_STYLE

    def field_order(self) -> List[str]:
        return FIELD_ORDERS.get(self.style, BASE_ORDER)

    def styled_fields(self, fields: FieldSet) -> FieldSet:
        styled = fields.copy()
        transform = getattr(self, f"_transform_{self.style}", None)
        if transform:
            styled = transform(styled)
        if self.options.use_biblatex_fields or self.style == "biblatex":
            styled = self._rename_biblatex(styled)
        return styled

    @staticmethod
    def _transform_acm(fields: FieldSet) -> FieldSet:
        journal = fields["journal"]
        if journal and not isinstance(journal, MacroRef) and not journal.startswith("ACM "):
            fields["journal"] = f"ACM {journal}"
        booktitle = fields["booktitle"]
        if booktitle and not isinstance(booktitle, MacroRef) and not booktitle.lower().startswith("proceedings"):
            fields["booktitle"] = f"Proceedings of {booktitle}"
        return fields

    @staticmethod
    def _transform_ieee(fields: FieldSet) -> FieldSet:
        journal = fields["journal"]
        if journal and not isinstance(journal, MacroRef) and "IEEE" not in journal:
            fields["journal"] = f"IEEE {journal}"
        return fields

    @staticmethod
    def _transform_biblatex(fields: FieldSet) -> FieldSet:
        pages = fields["pages"]
        if "--" in pages:
            start, end = pages.split("--", 1)
            fields["pages"] = start.strip()
            fields["endpages"] = end.strip()
        return fields

    @staticmethod
    def _rename_biblatex(fields: FieldSet) -> FieldSet:
        renamed = FieldSet()
        for name, value in fields.items():
            target = BIBLATEX_RENAMES.get(name)
            if target and value and fields.is_empty(target):
                renamed[target] = value
            elif target and value:
                renamed[name] = value
            elif not target:
                renamed.setdefault(name, value)
        return renamed

    def ordered_fields(self, fields: FieldSet) -> List[Tuple[str, str]]:
        """Return ``(name, value)`` pairs in emission order, empty values dropped."""
        styled = self.styled_fields(fields)
        order = self.field_order()
        emitted = [(name, styled[name]) for name in order if not styled.is_empty(name)]
        for name, value in styled.filled():
            if name in order:
                continue
            option = OPTIONAL_FIELDS.get(name)
            if option and not getattr(self.options, option):
                continue
            emitted.append((name, value))
        return emitted

    def format_value(self, name: str, value: str) -> str:
        if isinstance(value, MacroRef):
            return str(value)
        if self.options.escape_latex and name not in VERBATIM_FIELDS:
            value = escape_latex(value)
        return f"{{{value}}}"

    def format(self, entry: EntryDescriptor) -> str:
        lines = [f"@{entry.entry_type}{{{entry.citation_key},"]
        pairs = self.ordered_fields(entry.fields)
        for position, (name, value) in enumerate(pairs, start=1):
            separator = "," if position < len(pairs) else ""
            lines.append(f"  {name} = {self.format_value(name, value)}{separator}")
        if not pairs:
            lines[0] = lines[0].rstrip(",")
        lines.append("}")
        return "\n".join(lines)


__all__ = ["BASE_ORDER", "FIELD_ORDERS", "StyleFormatter"]
