import pytest

from reference_converter.errors import XmlParseError
from reference_converter.locator import RecordLocator
from reference_converter.xml_tree import SourceDocument, describe_structure


def _locate(xml: str):
    return RecordLocator().locate(SourceDocument.parse(xml))


def test_endnote_export_uses_records_record_pattern(endnote_xml):
    located = _locate(endnote_xml)

    assert located.pattern == "records/record"
    assert [record.position for record in located.records] == [1, 2, 3]
    assert located.records[0].path == (0, 0)


def test_most_specific_pattern_wins_without_merging():
    xml = """
    <export>
      <database><record><title>Inside database</title></record></database>
      <reference><title>Loose reference</title></reference>
    </export>
    """
    located = _locate(xml)

    assert located.pattern == "database/record"
    assert len(located.records) == 1


def test_attribute_bearing_elements_are_records():
    xml = '<bib><paper title="One" author="A"/><paper title="Two" author="B"/></bib>'
    located = _locate(xml)

    assert located.pattern == "*[title|author|journal]"
    assert len(located.records) == 2


def test_root_children_with_title_are_last_resort():
    xml = "<shelf><book><title>One</title></book><book><author>Two</author></book><note>x</note></shelf>"
    located = _locate(xml)

    assert located.pattern == "root children with title/author"
    assert len(located.records) == 2


def test_no_records_reports_structure():
    xml = "<library><shelf><box><thing/></box></shelf><shelf/></library>"
    located = _locate(xml)

    assert not located
    assert located.records == []
    assert located.structure == "library[shelf[box[...]], shelf]"


def test_describe_structure_limits_breadth():
    document = SourceDocument.parse("<root>" + "<a/>" * 7 + "</root>")

    assert describe_structure(document.root) == "root[a, a, a, a, a, ...]"


def test_parse_strips_byte_order_mark():
    document = SourceDocument.parse("\ufeff<records><record/></records>")

    assert document.root_name == "records"


@pytest.mark.parametrize("text", ["", "   ", "<records><record></records>", "not xml at all"])
def test_malformed_input_raises_parse_error(text):
    with pytest.raises(XmlParseError):
        SourceDocument.parse(text)
