"""Command line interface for converting XML reference exports."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List

from .app import ReferenceConverterApp
from .config import CITATION_STYLES, load_options, load_provider_settings
from .enhancement import EnhancementPipeline
from .models import ConversionResult, EntryDescriptor
from .report import render_report

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def _serialize_entry(entry: EntryDescriptor) -> Dict[str, Any]:
    return {
        "citation_key": entry.citation_key,
        "entry_type": entry.entry_type,
        "record_index": entry.record_index,
        "fields": {name: str(value) for name, value in entry.fields.filled()},
    }


def build_result(result: ConversionResult) -> Dict[str, Any]:
    """Serialize a conversion result into JSON-compatible data."""
    data = asdict(result)
    data["descriptors"] = [_serialize_entry(entry) for entry in result.descriptors]
    data["failed"] = result.failed
    return data


def _configure_logging(verbose: bool, quiet: bool) -> None:
    level = logging.INFO
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Convert XML reference exports to BibTeX")
    parser.add_argument("input", type=Path, help="Path to the XML export to convert")
    parser.add_argument("-o", "--output", type=Path, help="Write BibTeX to this file instead of stdout")
    parser.add_argument(
        "--style",
        type=str.lower,
        choices=CITATION_STYLES,
        help="Citation style profile used for field order and venue prefixes",
    )
    parser.add_argument(
        "--no-escape-latex",
        dest="escape_latex",
        action="store_false",
        default=None,
        help="Emit field values without LaTeX escaping",
    )
    parser.add_argument(
        "--string-definitions",
        dest="use_string_definitions",
        action="store_true",
        default=None,
        help="Emit @string definitions for journals and publishers",
    )
    parser.add_argument(
        "--biblatex-fields",
        dest="use_biblatex_fields",
        action="store_true",
        default=None,
        help="Use BibLaTeX field names (journaltitle, location)",
    )
    parser.add_argument(
        "--enhance",
        dest="enable_api_enhancement",
        action="store_true",
        default=None,
        help="Fill missing fields from Semantic Scholar and Crossref",
    )
    parser.add_argument("--include-abstract", action="store_true", default=None, help="Emit abstracts")
    parser.add_argument("--include-keywords", action="store_true", default=None, help="Emit keywords")
    parser.add_argument("--include-notes", action="store_true", default=None, help="Emit notes")
    parser.add_argument(
        "--custom-field",
        dest="custom_fields",
        action="append",
        metavar="NAME",
        help="Extract and emit an additional field (can be repeated)",
    )
    parser.add_argument("--api-timeout-ms", type=int, help="Per-request timeout for metadata providers")
    parser.add_argument(
        "--api-delay-ms",
        dest="api_rate_limit_delay_ms",
        type=int,
        help="Minimum delay between metadata provider requests",
    )
    parser.add_argument(
        "--check-apis",
        action="store_true",
        help="Probe the metadata providers and exit",
    )
    parser.add_argument(
        "--json-output",
        type=Path,
        help="Write the structured conversion result to a JSON file",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Log debug details")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only log warnings and errors")
    return parser


def main(argv: List[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose, args.quiet)

    options = load_options(
        citation_style=args.style,
        escape_latex=args.escape_latex,
        use_string_definitions=args.use_string_definitions,
        use_biblatex_fields=args.use_biblatex_fields,
        enable_api_enhancement=args.enable_api_enhancement,
        include_abstract=args.include_abstract,
        include_keywords=args.include_keywords,
        include_notes=args.include_notes,
        custom_fields=args.custom_fields,
        api_timeout_ms=args.api_timeout_ms,
        api_rate_limit_delay_ms=args.api_rate_limit_delay_ms,
    )
    settings = load_provider_settings()

    if args.check_apis:
        pipeline = EnhancementPipeline.from_options(options, settings)
        for provider, status in pipeline.check_connectivity().items():
            print(f"{provider}: {status['status']} ({status['message']})")
        return 0

    converter = ReferenceConverterApp(options=options, provider_settings=settings)
    result = converter.convert_file(args.input)

    print(render_report(result), file=sys.stderr)

    if args.json_output:
        args.json_output.write_text(json.dumps(build_result(result), indent=2), encoding="utf-8")

    if result.failed:
        return 1

    if args.output:
        args.output.write_text(result.bibtex, encoding="utf-8")
    else:
        sys.stdout.write(result.bibtex)
    return 0


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    raise SystemExit(main())
