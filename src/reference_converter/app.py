"""High-level orchestrator for XML to BibTeX conversion runs."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

from .citation_keys import CitationKeyRegistry, generate_citation_key
from .config import ConversionOptions, ProviderSettings
from .enhancement import EnhancementPipeline
from .errors import XmlParseError
from .extractor import FieldExtractor
from .formatter import StyleFormatter
from .locator import RecordLocator
from .models import ConversionResult, EntryDescriptor
from .reference_types import classify_reference, label_for_type, reconcile_venue
from .string_definitions import StringDefinitionRegistry
from .xml_tree import RawRecord, SourceDocument

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], object]


class Decision(Enum):
    CONTINUE = "continue"
    CANCEL = "cancel"


def decide(progress: Optional[ProgressCallback], current: int, total: int, message: str) -> Decision:
    """Turn a progress callback answer into a continue/cancel decision.

    ``False`` or ``Decision.CANCEL`` cancels; anything else, including ``None``,
    lets the run continue.
    """
    if progress is None:
        return Decision.CONTINUE
    answer = progress(current, total, message)
    if answer is False or answer is Decision.CANCEL:
        return Decision.CANCEL
    return Decision.CONTINUE


@dataclass
class ConversionRun:
    """Mutable state scoped to a single ``convert()`` call."""

    options: ConversionOptions
    keys: CitationKeyRegistry = field(default_factory=CitationKeyRegistry)
    registry: Optional[StringDefinitionRegistry] = None
    warnings: List[str] = field(default_factory=list)
    failures: int = 0


class ReferenceConverterApp:
    """Coordinates parsing, extraction, enhancement and formatting of references."""

    def __init__(
        self,
        options: ConversionOptions | None = None,
        enhancement: EnhancementPipeline | None = None,
        provider_settings: ProviderSettings | None = None,
        locator: RecordLocator | None = None,
        extractor: FieldExtractor | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.options = options or ConversionOptions()
        self.enhancement = enhancement
        self.provider_settings = provider_settings
        self.locator = locator or RecordLocator()
        self.extractor = extractor or FieldExtractor()
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def _pipeline(self, options: ConversionOptions) -> Optional[EnhancementPipeline]:
        if not options.enable_api_enhancement:
            return None
        if self.enhancement is None:
            self.enhancement = EnhancementPipeline.from_options(options, self.provider_settings)
        return self.enhancement

    def convert(
        self,
        xml_text: str,
        options: ConversionOptions | None = None,
        progress: ProgressCallback | None = None,
    ) -> ConversionResult:
        """Convert XML text into BibTeX; document-level failures land in ``result.errors``."""

        options = options or self.options
        started = time.perf_counter()
        result = ConversionResult()

        try:
            document = SourceDocument.parse(xml_text)
        except XmlParseError as exc:
            logger.error("XML parsing failed: %s", exc)
            result.errors.append(str(exc))
            return self._finish(result, started)

        located = self.locator.locate(document)
        if not located:
            result.errors.append(f"No records found in XML data. XML structure: {located.structure}")
            return self._finish(result, started)

        records = located.records
        total = len(records)
        result.record_count = total
        run = ConversionRun(options=options)
        if options.use_string_definitions:
            run.registry = StringDefinitionRegistry()
            message = "Collecting journal and publisher information for string definitions..."
            if decide(progress, 0, total, message) is Decision.CANCEL:
                self._cancel(result, run, 0, total)
                records = []
            else:
                run.registry.collect(records, self.extractor)

        formatter = StyleFormatter(options)
        pipeline = self._pipeline(options)
        logger.info("Processing %d records...", total)

        for record in records:
            title = self.extractor.title(record.element)
            message = f"Processing record {record.position}/{total}: Extracting {title or 'reference'}..."
            if decide(progress, record.position, total, message) is Decision.CANCEL:
                self._cancel(result, run, record.position - 1, total)
                break
            try:
                entry = self.process_record(record, run, pipeline)
            except Exception as exc:
                label = f" ({title})" if title else ""
                warning = f"Error processing record {record.position}{label}: {exc}"
                logger.warning(warning)
                run.warnings.append(warning)
                run.failures += 1
                continue
            if entry is None:
                warning = f"Skipped record {record.position}: no title or author found"
                logger.warning(warning)
                run.warnings.append(warning)
                run.failures += 1
                continue
            result.descriptors.append(entry)
            result.entries.append(formatter.format(entry))
            logger.debug(
                "Processed record %d: %s (%s)",
                record.position,
                entry.citation_key,
                label_for_type(entry.entry_type),
            )

        if not result.cancelled:
            decide(progress, total, total, "Generating final output...")
        result.warnings = run.warnings
        result.bibtex = self.render_output(result, run, options)
        logger.info(
            "Conversion completed: %d BibTeX entries from %d XML records",
            len(result.entries),
            total,
        )
        return self._finish(result, started)

    @staticmethod
    def _cancel(result: ConversionResult, run: ConversionRun, processed: int, total: int) -> None:
        logger.info("Conversion cancelled by user")
        result.cancelled = True
        run.warnings.append(f"Conversion cancelled after {processed} of {total} records")

    def process_record(
        self,
        record: RawRecord,
        run: ConversionRun,
        pipeline: Optional[EnhancementPipeline] = None,
    ) -> Optional[EntryDescriptor]:
        """Build the entry for one record, or None when it has neither title nor author."""

        fields = self.extractor.extract(record, run.options.custom_fields)
        if fields.is_empty("title") and fields.is_empty("author"):
            return None
        entry_type = classify_reference(fields, self.extractor.declared_type(record.element))
        fields = reconcile_venue(fields, entry_type)
        citation_key = run.keys.claim(generate_citation_key(fields, record.position))
        if pipeline is not None:
            fields, warnings = pipeline.enhance(fields)
            run.warnings.extend(warnings)
        if run.registry is not None:
            fields = run.registry.rewrite(fields)
        return EntryDescriptor(
            citation_key=citation_key,
            entry_type=entry_type,
            fields=fields,
            record_index=record.position,
        )

    def render_output(
        self, result: ConversionResult, run: ConversionRun, options: ConversionOptions
    ) -> str:
        parts = [self._statistics(result, run, options)]
        if run.registry is not None:
            definitions = run.registry.render(escape=options.escape_latex)
            if definitions:
                parts.append(definitions)
        parts.extend(result.entries)
        return "\n\n".join(parts) + "\n"

    def _statistics(
        self, result: ConversionResult, run: ConversionRun, options: ConversionOptions
    ) -> str:
        converted = len(result.entries)
        lines = [
            "% BibTeX file generated by Reference Converter",
            f"% Generation time: {self.clock().isoformat()}",
            f"% Citation style: {StyleFormatter(options).style}",
            f"% Total records processed: {result.record_count}",
            f"% Successfully converted: {converted}",
            f"% Conversion errors: {run.failures}",
            f"% Configuration: {options.describe()}",
        ]
        return "\n".join(lines)

    @staticmethod
    def _finish(result: ConversionResult, started: float) -> ConversionResult:
        result.entry_count = len(result.entries)
        result.processing_time_ms = int((time.perf_counter() - started) * 1000)
        return result

    def convert_file(
        self,
        path: str | Path,
        options: ConversionOptions | None = None,
        progress: ProgressCallback | None = None,
    ) -> ConversionResult:
        """Convenience wrapper reading UTF-8 XML from disk."""

        text = Path(path).read_text(encoding="utf-8")
        return self.convert(text, options=options, progress=progress)


__all__ = ["ConversionRun", "Decision", "ReferenceConverterApp", "decide"]
