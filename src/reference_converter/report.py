"""Conversion run reporting utilities."""
from __future__ import annotations

from .models import ConversionResult


def render_report(result: ConversionResult) -> str:
    """Return a human-readable summary of a conversion run."""

    header_lines = ["Reference Conversion Report"]
    if result.failed:
        header_lines.append("Conversion failed.")
        return "\n".join(header_lines + [f"[ERROR] {error}" for error in result.errors])

    header_lines.append(f"Records found: {result.record_count}")
    header_lines.append(f"Entries converted: {result.entry_count}")
    header_lines.append(f"Warnings: {len(result.warnings)}")
    header_lines.append(f"Processing time: {result.processing_time_ms} ms")
    if result.cancelled:
        header_lines.append("Run cancelled before all records were processed.")

    if not result.warnings:
        header_lines.append("No conversion issues detected.")
        return "\n".join(header_lines)

    lines = header_lines + ["Issues:"]
    lines.extend(f"[WARNING] {warning}" for warning in result.warnings)
    return "\n".join(lines)
