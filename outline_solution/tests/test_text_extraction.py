import asyncio

import fitz
import pytest

from pdf_outline.native import extract_native_outline
from pdf_outline.text_extraction import ColumnAwareTextIndex, PyMuPDFDocument, normalize_text

COLUMN_TEXT = "widget output stays in range"


@pytest.fixture
def two_column_doc():
    doc = fitz.open()
    page = doc.new_page()

    banner = "A Banner Line"
    while fitz.get_text_length(banner, fontname="helv", fontsize=10) < 430:
        banner += " Across Both Columns"
    page.insert_text((72, 60), banner, fontname="helv", fontsize=10)

    for i in range(12):
        y = 120 + i * 14
        page.insert_text((72, y), COLUMN_TEXT, fontname="helv", fontsize=10)
        page.insert_text((330, y), COLUMN_TEXT, fontname="helv", fontsize=10)

    yield doc
    doc.close()


def test_normalize_text():
    assert normalize_text("  two  spaces\n here ") == "two spaces here"
    assert normalize_text("Draft: Results", [r"^draft:\s*"]) == "Results"


def test_index_not_built_until_build(two_column_doc):
    index = ColumnAwareTextIndex(two_column_doc)
    assert not index.is_built
    index.build()
    assert index.is_built
    assert index.get_page_count() == 1
    assert index.get_column_aware_lines(2) is None


def test_two_columns_detected(two_column_doc):
    index = ColumnAwareTextIndex(two_column_doc)
    index.build()
    page_data = index.get_column_aware_lines(1)

    assert len(page_data.columns) == 2
    left, right = page_data.columns
    assert left.right < 330 < right.right
    assert left.left <= 72

    first = page_data.segments[0]
    assert first.column_index == -1
    assert first.lines[0].text.startswith("A Banner Line")

    column_lines = [line for segment in page_data.segments[1:] for line in segment.lines]
    assert len(column_lines) == 24
    assert {line.column_index for line in column_lines if line.x < 200} == {0}
    assert {line.column_index for line in column_lines if line.x > 300} == {1}
    assert all(line.is_at_column_start for line in column_lines)


def test_line_font_metadata(two_column_doc):
    index = ColumnAwareTextIndex(two_column_doc)
    index.build()
    line = index.get_column_aware_lines(1).segments[1].lines[0]

    assert line.text == COLUMN_TEXT
    assert line.font_size == pytest.approx(10.0)
    assert line.font_name == "Helvetica"
    assert line.original_y == pytest.approx(two_column_doc[0].rect.height - 120, abs=1)
    assert line.items[0].width > 0


def test_single_column_page():
    doc = fitz.open()
    page = doc.new_page()
    for i in range(15):
        page.insert_text((72, 100 + i * 14), f"single column body text line {i}", fontname="helv", fontsize=10)

    index = ColumnAwareTextIndex(doc)
    index.build()
    page_data = index.get_column_aware_lines(1)
    assert len(page_data.columns) == 1
    assert [segment.column_index for segment in page_data.segments] == [0]
    doc.close()


def test_document_outline_and_destinations():
    doc = fitz.open()
    for _ in range(3):
        doc.new_page()
    doc.set_toc([[1, "One", 1], [2, "One A", 2], [1, "Two", 3]])
    document = PyMuPDFDocument(doc)

    outline = asyncio.run(document.get_outline())
    assert [entry.title for entry in outline] == ["One", "Two"]
    assert [entry.title for entry in outline[0].items] == ["One A"]

    dest = outline[0].items[0].dest
    assert asyncio.run(document.get_page_index(dest[0])) == 1
    assert document.all_named_destinations == {}

    with pytest.raises(KeyError):
        asyncio.run(document.get_page_index(-42))
    doc.close()


def test_bookmark_position_in_pdf_space(tmp_path):
    path = tmp_path / "positioned.pdf"
    doc = fitz.open()
    doc.new_page()
    doc.new_page()
    doc.set_toc([
        [1, "Method", 1, {"kind": fitz.LINK_GOTO, "page": 0, "to": fitz.Point(72, 300)}],
        [1, "Results", 2, {"kind": fitz.LINK_GOTO, "page": 1, "to": fitz.Point(100, 50)}],
    ])
    doc.save(str(path))
    doc.close()

    with fitz.open(str(path)) as doc:
        page_height = doc[0].rect.height
        outline = asyncio.run(extract_native_outline(PyMuPDFDocument(doc), None))

    method, results = outline
    assert (method.page_index, method.left) == (0, pytest.approx(72))
    assert method.top == pytest.approx(page_height - 300)
    assert results.page_index == 1
    assert results.top == pytest.approx(page_height - 50)


def test_links_outside_document_have_no_destination():
    doc = fitz.open()
    doc.new_page()
    document = PyMuPDFDocument(doc)

    remote = {"kind": fitz.LINK_GOTOR, "file": "other.pdf", "page": 0, "to": fitz.Point(0, 0)}
    assert document._bookmark_destination(1, remote) is None
    assert document._bookmark_destination(1, {"kind": fitz.LINK_URI, "uri": "https://example.org"}) is None
    assert document._bookmark_destination(1, {"kind": fitz.LINK_NAMED, "nameddest": "sec:intro"}) == "sec:intro"
    assert document._bookmark_destination(1, {"kind": fitz.LINK_GOTO, "page": 0})[0] == doc.page_xref(0)
    doc.close()
