import asyncio
import json

import fitz
import pytest

from pdf_outline.extractor import (
    OutlineSource,
    PDFOutlineExtractor,
    build_heuristic_outline,
    build_outline,
    build_outline_with_source,
)
from pdf_outline.processor import process_pdfs, validate_batch_input

from conftest import FakeDocument, FakeLineProvider, bookmark, titles


def run(document, provider):
    return asyncio.run(build_outline_with_source(document, provider))


def test_single_root_children_promoted(heuristic_provider):
    document = FakeDocument(outline=[
        bookmark("Document", 0, bookmark("A", 0), bookmark("B", 1), bookmark("C", 2)),
    ])
    outline, source = run(document, heuristic_provider)
    assert titles(outline) == ["A", "B", "C"]
    assert source is OutlineSource.PROMOTED_ROOT


def test_multiple_roots_used_as_is(heuristic_provider):
    document = FakeDocument(outline=[bookmark("Intro", 0), bookmark("Method", 1, bookmark("Data", 1))])
    outline, source = run(document, heuristic_provider)
    assert titles(outline) == ["Intro", "Method"]
    assert titles(outline[1].children) == ["Data"]
    assert source is OutlineSource.NATIVE


@pytest.mark.parametrize("native", [
    [],
    [bookmark("Document", 0)],
    [bookmark("Document", 0, bookmark("Only Child", 0))],
])
def test_unusable_native_outline_falls_back(heuristic_provider, native):
    outline, source = run(FakeDocument(outline=native), heuristic_provider)
    assert source is OutlineSource.HEURISTIC
    assert titles(outline) == ["1 Introduction", "2 Method", "3 References"]


def test_heuristic_outline(heuristic_provider):
    outline = build_heuristic_outline(heuristic_provider)
    assert titles(outline[1].children) == ["2.1 Data Collection"]
    assert outline[2].children == []
    assert outline[0].page_index == 0


def test_outline_error_falls_back(heuristic_provider):
    document = FakeDocument(outline_error=RuntimeError("broken outline"))
    outline = asyncio.run(build_outline(document, heuristic_provider))
    assert titles(outline) == ["1 Introduction", "2 Method", "3 References"]


def test_no_document_uses_heuristics(heuristic_provider):
    outline = asyncio.run(build_outline(None, heuristic_provider))
    assert len(outline) == 3


def test_unbuilt_provider_yields_empty_outline():
    provider = FakeLineProvider([], is_built=False)
    assert asyncio.run(build_outline(FakeDocument(), provider)) == []
    assert build_heuristic_outline(None) == []


def test_native_outline_without_provider():
    document = FakeDocument(outline=[bookmark("Intro", 0), bookmark("End", 1)])
    outline = asyncio.run(build_outline(document, FakeLineProvider([], is_built=False)))
    assert titles(outline) == ["Intro", "End"]
    assert all(item.column_index == -1 for item in outline)


def _write_body(page, y, count, x=72):
    for i in range(count):
        page.insert_text((x, y + i * 14), f"the measured widget output stays within range {i}",
                         fontname="helv", fontsize=10)
    return y + count * 14


@pytest.fixture
def bookmarked_pdf(tmp_path):
    path = tmp_path / "bookmarked.pdf"
    doc = fitz.open()
    for i in range(3):
        page = doc.new_page()
        page.insert_text((72, 100), f"Page {i + 1}", fontname="helv", fontsize=10)
    doc.set_toc([
        [1, "Introduction", 1],
        [2, "Background", 1],
        [1, "Method", 2],
        [1, "Results", 3],
    ])
    doc.save(str(path))
    doc.close()
    return path


@pytest.fixture
def plain_pdf(tmp_path):
    path = tmp_path / "plain.pdf"
    doc = fitz.open()

    page = doc.new_page()
    page.insert_text((72, 90), "Adaptive Widget Calibration", fontname="hebo", fontsize=20)
    page.insert_text((72, 320), "1 Introduction", fontname="hebo", fontsize=12)
    _write_body(page, 340, 25)

    page = doc.new_page()
    page.insert_text((72, 80), "2 Method", fontname="hebo", fontsize=12)
    y = _write_body(page, 100, 8)
    page.insert_text((72, y + 10), "2.1 Data Collection", fontname="hebo", fontsize=12)
    y = _write_body(page, y + 30, 8)
    page.insert_text((72, y + 10), "3 References", fontname="hebo", fontsize=12)
    page.insert_text((72, y + 30), "3.1 Extra Tables", fontname="hebo", fontsize=12)
    _write_body(page, y + 50, 5)

    doc.save(str(path))
    doc.close()
    return path


def test_extract_bookmarked_pdf(bookmarked_pdf):
    result = PDFOutlineExtractor().extract_outline(str(bookmarked_pdf))

    assert result["source"] == "native"
    assert [item["title"] for item in result["outline"]] == ["Introduction", "Method", "Results"]
    assert [item["pageIndex"] for item in result["outline"]] == [0, 1, 2]
    assert [child["title"] for child in result["outline"][0]["children"]] == ["Background"]
    assert [(e["title"], e["depth"]) for e in result["flat_outline"]] == [
        ("Introduction", 0), ("Background", 1), ("Method", 0), ("Results", 0),
    ]


def test_extract_plain_pdf(plain_pdf):
    extractor = PDFOutlineExtractor()
    result = extractor.extract_outline(str(plain_pdf), include_metadata=True)

    assert result["source"] == "heuristic"
    assert result["title"] == "Adaptive Widget Calibration"
    assert [(e["title"], e["pageNumber"], e["depth"]) for e in result["flat_outline"]] == [
        ("1 Introduction", 1, 0),
        ("2 Method", 2, 0),
        ("2.1 Data Collection", 2, 1),
        ("3 References", 2, 0),
    ]
    assert result["metadata"]["page_count"] == 2
    assert result["metadata"]["headings_count"] == 4

    stats = extractor.get_processing_stats()
    assert stats["successful_extractions"] == 1
    assert stats["total_headings"] == 4


def test_invalid_pdf_raises(tmp_path):
    extractor = PDFOutlineExtractor()
    with pytest.raises(ValueError, match="Invalid PDF"):
        extractor.extract_outline(str(tmp_path / "missing.pdf"))
    assert extractor.get_processing_stats()["failed_extractions"] == 1


def test_unknown_setting_rejected():
    with pytest.raises(TypeError):
        PDFOutlineExtractor(min_heading_length=3)


def test_process_pdfs_writes_outputs(bookmarked_pdf, plain_pdf, tmp_path):
    missing = tmp_path / "missing.pdf"
    output_dir = tmp_path / "out"

    results = process_pdfs([str(plain_pdf), str(bookmarked_pdf), str(missing)], output_dir=str(output_dir),
                           parallel=False, output_formats=["json", "txt", "md"])

    stats = results["statistics"]
    assert (stats["successful"], stats["failed"]) == (2, 1)
    assert stats["sources"] == {"heuristic": 1, "native": 1}
    assert [r["filename"] for r in results["results"]] == ["bookmarked.pdf", "missing.pdf", "plain.pdf"]

    saved = json.loads((output_dir / "bookmarked.json").read_text(encoding="utf-8"))
    assert [item["title"] for item in saved["outline"]] == ["Introduction", "Method", "Results"]
    assert saved["source"] == "native"
    assert not (output_dir / "missing.json").exists()
    assert "Background (Page 1)" in (output_dir / "extraction_results.txt").read_text(encoding="utf-8")
    assert (output_dir / "extraction_results.md").exists()


def test_process_pdfs_in_threads_matches_sequential(bookmarked_pdf, plain_pdf, tmp_path):
    missing = tmp_path / "missing.pdf"
    results = process_pdfs([str(plain_pdf), str(missing), str(bookmarked_pdf)], output_dir=str(tmp_path / "out"),
                           parallel=True, max_workers=3)

    stats = results["statistics"]
    assert (stats["successful"], stats["failed"]) == (2, 1)
    assert stats["sources"] == {"heuristic": 1, "native": 1}
    assert [r["filename"] for r in results["results"]] == ["bookmarked.pdf", "missing.pdf", "plain.pdf"]

    failed = results["results"][1]
    assert failed["status"] == "error"
    assert (failed["source"], failed["outline"]) == (None, [])


def test_validate_batch_input(plain_pdf, tmp_path):
    empty = tmp_path / "empty.pdf"
    empty.write_bytes(b"")
    notes = tmp_path / "notes.txt"
    notes.write_text("not a pdf")

    valid, rejected = validate_batch_input([str(plain_pdf), str(empty), str(notes), str(tmp_path / "gone.pdf")])
    assert valid == [str(plain_pdf)]
    assert [reason.split(": ")[-1] for reason in rejected] == ["Empty file", "Not a PDF file", "File does not exist"]
