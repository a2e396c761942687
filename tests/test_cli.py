import json
from pathlib import Path

from reference_converter import cli


def _write_export(tmp_path: Path, smith_xml: str) -> Path:
    export = tmp_path / "export.xml"
    export.write_text(smith_xml, encoding="utf-8")
    return export


def test_cli_writes_outputs(tmp_path: Path, smith_xml):
    export = _write_export(tmp_path, smith_xml)
    bib_out = tmp_path / "refs.bib"
    json_out = tmp_path / "result.json"

    exit_code = cli.main([str(export), "-o", str(bib_out), "--json-output", str(json_out), "--style", "ACM", "-q"])

    assert exit_code == 0
    bibtex = bib_out.read_text(encoding="utf-8")
    assert "% Citation style: acm" in bibtex
    assert "@misc{smith2023Study," in bibtex

    data = json.loads(json_out.read_text(encoding="utf-8"))
    assert data["entry_count"] == 1
    assert data["failed"] is False
    assert data["descriptors"][0]["citation_key"] == "smith2023Study"
    assert data["descriptors"][0]["fields"]["author"] == "Smith, John"


def test_cli_prints_bibtex_to_stdout_and_report_to_stderr(tmp_path: Path, smith_xml, capsys):
    export = _write_export(tmp_path, smith_xml)

    exit_code = cli.main([str(export), "--string-definitions", "-q"])

    captured = capsys.readouterr()
    assert exit_code == 0
    assert captured.out.startswith("% BibTeX file generated by Reference Converter")
    assert "String definitions=True" in captured.out
    assert "Reference Conversion Report" in captured.err
    assert "Entries converted: 1" in captured.err


def test_cli_fails_on_malformed_xml(tmp_path: Path, capsys):
    export = tmp_path / "broken.xml"
    export.write_text("<references><record>", encoding="utf-8")
    bib_out = tmp_path / "refs.bib"
    json_out = tmp_path / "result.json"

    exit_code = cli.main([str(export), "-o", str(bib_out), "--json-output", str(json_out), "-q"])

    assert exit_code == 1
    assert not bib_out.exists()
    assert json.loads(json_out.read_text(encoding="utf-8"))["failed"] is True
    assert "[ERROR] XML parsing error" in capsys.readouterr().err


def test_cli_custom_fields_reach_the_converter(tmp_path: Path, capsys):
    export = tmp_path / "export.xml"
    export.write_text(
        "<references><record><title>Tagged</title><language>Norwegian</language></record></references>",
        encoding="utf-8",
    )

    cli.main([str(export), "--custom-field", "Language", "-q"])

    assert "language = {Norwegian}" in capsys.readouterr().out


def test_cli_check_apis_uses_pipeline(monkeypatch, tmp_path: Path, capsys):
    class FakePipeline:
        @classmethod
        def from_options(cls, options, settings):
            assert options.api_timeout_ms == 1500
            return cls()

        def check_connectivity(self):
            return {
                "Semantic Scholar": {"status": "success", "message": "API accessible"},
                "Crossref": {"status": "error", "message": "HTTP 503"},
            }

    monkeypatch.setattr(cli, "EnhancementPipeline", FakePipeline)

    exit_code = cli.main([str(tmp_path / "unused.xml"), "--check-apis", "--api-timeout-ms", "1500", "-q"])

    assert exit_code == 0
    assert capsys.readouterr().out.splitlines() == [
        "Semantic Scholar: success (API accessible)",
        "Crossref: error (HTTP 503)",
    ]


def test_build_result_serializes_macro_fields(endnote_xml):
    from reference_converter.app import ReferenceConverterApp
    from reference_converter.config import ConversionOptions

    result = ReferenceConverterApp().convert(endnote_xml, options=ConversionOptions(use_string_definitions=True))

    data = cli.build_result(result)

    assert json.loads(json.dumps(data))["descriptors"][0]["fields"]["journal"] == "ieeetransactionsonco"
