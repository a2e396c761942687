"""Per-run registry of journal and publisher ``@string`` definitions."""
from __future__ import annotations

import logging
import re
from typing import Dict, Iterable, List, Optional, Pattern, Tuple

from .extractor import FieldExtractor
from .models import FieldSet, JournalEntry, MacroRef, PublisherEntry
from .normalization import collapse_whitespace, escape_latex, fold_accents
from .xml_tree import RawRecord

logger = logging.getLogger(__name__)

JOURNAL_KEY_LENGTH = 20
PUBLISHER_KEY_LENGTH = 15
DEFAULT_CATEGORY = "Other"


def _words(*terms: str) -> Pattern[str]:
    return re.compile(r"\b(?:" + "|".join(terms) + r")\b", re.IGNORECASE)


# Publisher and venue families first, generic venue kinds after them.
JOURNAL_CATEGORIES: Tuple[Tuple[str, Pattern[str]], ...] = (
    ("ACM", _words(r"acm", r"association for computing machinery", r"cacm", r"sig(?:plan|chi|graph|soft|ir|kdd|mod|comm|ops|act|arch|metrics)")),
    ("IEEE", _words(r"ieee", r"institute of electrical and electronics engineers", r"computer society")),
    ("SIAM", _words(r"siam", r"society for industrial and applied mathematics")),
    ("AMS", _words(r"ams", r"american mathematical society")),
    ("Springer", _words(r"springer", r"lecture notes in", r"lncs")),
    ("Elsevier", _words(r"elsevier", r"science ?direct")),
    ("Conference", _words(r"proc\.?\s+of", r"proceedings", r"conference", r"symposium", r"workshop")),
    ("Journal", _words(r"journal", r"transactions", r"quarterly", r"review", r"letters")),
    ("Magazine", _words(r"magazine", r"bulletin", r"forum", r"digest")),
)

PUBLISHER_CATEGORIES: Tuple[Tuple[str, Pattern[str]], ...] = (
    ("ACM", _words(r"acm", r"association for computing machinery")),
    ("IEEE", _words(r"ieee", r"institute of electrical and electronics engineers")),
    ("Commercial", _words(r"wiley", r"springer", r"elsevier", r"mcgraw", r"addison", r"wesley", r"pearson", r"sage")),
    ("Academic", _words(r"academic", r"university", r"press")),
)


def derive_key(name: str, length: int, prefix: str) -> str:
    """Lowercase alphanumerics of ``name`` truncated to ``length``.

    Distinct names can truncate to the same key; the registry keeps the first.
    """
    key = re.sub(r"[^a-z0-9]", "", fold_accents(name).lower())[:length]
    if key and key[0].isdigit():
        key = (prefix + key)[:length]
    return key


def categorize(name: str, categories: Tuple[Tuple[str, Pattern[str]], ...]) -> str:
    for category, pattern in categories:
        if pattern.search(name):
            return category
    return DEFAULT_CATEGORY


class StringDefinitionRegistry:
    """Collect venue names across one run and hand out ``@string`` keys."""

    def __init__(self) -> None:
        self.journals: Dict[str, JournalEntry] = {}
        self.publishers: Dict[str, PublisherEntry] = {}
        self._journal_keys: Dict[str, str] = {}
        self._publisher_keys: Dict[str, str] = {}

    def __len__(self) -> int:
        return len(self.journals) + len(self.publishers)

    def add_journal(self, name: str) -> Optional[str]:
        name = collapse_whitespace(name)
        if not name:
            return None
        if name in self._journal_keys:
            return self._journal_keys[name]
        key = derive_key(name, JOURNAL_KEY_LENGTH, "j")
        if not key:
            return None
        if key in self.publishers:
            return self._share(key, name, self.publishers[key], self._journal_keys)
        if key in self.journals:
            logger.debug("Journal key %s already used by %r; keeping %r literal", key, self.journals[key].display_name, name)
            return None
        self.journals[key] = JournalEntry(key=key, display_name=name, category=categorize(name, JOURNAL_CATEGORIES))
        self._journal_keys[name] = key
        return key

    def add_publisher(self, name: str) -> Optional[str]:
        name = collapse_whitespace(name)
        if not name:
            return None
        if name in self._publisher_keys:
            return self._publisher_keys[name]
        key = derive_key(name, PUBLISHER_KEY_LENGTH, "p")
        if not key:
            return None
        if key in self.journals:
            return self._share(key, name, self.journals[key], self._publisher_keys)
        if key in self.publishers:
            logger.debug("Publisher key %s already used by %r; keeping %r literal", key, self.publishers[key].display_name, name)
            return None
        self.publishers[key] = PublisherEntry(key=key, display_name=name, category=categorize(name, PUBLISHER_CATEGORIES))
        self._publisher_keys[name] = key
        return key

    @staticmethod
    def _share(key: str, name: str, owner, names: Dict[str, str]) -> Optional[str]:
        """Journals and publishers share one @string namespace; reuse a key only for the same name."""
        if owner.display_name != name:
            logger.debug("Key %s already defines %r; keeping %r literal", key, owner.display_name, name)
            return None
        names[name] = key
        return key

    def collect(self, records: Iterable[RawRecord], extractor: FieldExtractor) -> None:
        """Pre-scan every record for journal and publisher names."""
        for record in records:
            for name in extractor.journal_names(record.element):
                self.add_journal(name)
            for name in extractor.publisher_names(record.element):
                self.add_publisher(name)
        logger.info(
            "Collected %d journals and %d publishers for string definitions",
            len(self.journals),
            len(self.publishers),
        )

    def journal_key(self, name: str) -> Optional[str]:
        return self._journal_keys.get(name)

    def publisher_key(self, name: str) -> Optional[str]:
        return self._publisher_keys.get(name)

    def rewrite(self, fields: FieldSet) -> FieldSet:
        """Replace registered journal/publisher values by macro references."""
        rewritten = fields.copy()
        journal_key = self.journal_key(fields["journal"])
        if journal_key:
            rewritten["journal"] = MacroRef(journal_key)
        publisher_key = self.publisher_key(fields["publisher"])
        if publisher_key:
            rewritten["publisher"] = MacroRef(publisher_key)
        return rewritten

    def render(self, escape: bool = True) -> str:
        """Render the definitions block grouped by category, or ``""`` when empty."""
        if not self:
            return ""
        lines = ["% String definitions for journals and publishers"]
        lines.extend(self._render_group("Journals", self.journals.values(), escape))
        lines.extend(self._render_group("Publishers", self.publishers.values(), escape))
        return "\n".join(lines)

    @staticmethod
    def _render_group(kind: str, entries, escape: bool) -> List[str]:
        grouped: Dict[str, List] = {}
        for entry in entries:
            grouped.setdefault(entry.category, []).append(entry)
        lines: List[str] = []
        for category, members in grouped.items():
            lines.append("")
            lines.append(f"% {category} {kind}")
            for entry in members:
                value = escape_latex(entry.display_name) if escape else entry.display_name
                value = value.replace('"', '{"}')
                lines.append(f'@string{{{entry.key} = "{value}"}}')
        return lines


__all__ = [
    "JOURNAL_CATEGORIES",
    "PUBLISHER_CATEGORIES",
    "StringDefinitionRegistry",
    "categorize",
    "derive_key",
]
