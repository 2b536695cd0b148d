import fitz
import pytest

from trip_extractor.preprocessor import group_rows
from trip_extractor.reader import PdfReadError, read_pdf_elements, read_pdf_fragments


def _make_pdf(path, lines_per_page):
    doc = fitz.open()
    for lines in lines_per_page:
        page = doc.new_page()
        for (x, y), text in lines:
            page.insert_text((x, y), text, fontsize=10)
    doc.save(str(path))
    doc.close()
    return str(path)


def test_fragments_use_bottom_up_coordinates(tmp_path):
    pdf = _make_pdf(tmp_path / "one.pdf", [[((72, 100), "Driver Name : ALI")]])
    pages = read_pdf_fragments(pdf)

    assert list(pages) == [1]
    frag = pages[1][0]
    assert frag.text == "Driver Name : ALI"
    assert frag.x == pytest.approx(72, abs=1)
    assert frag.y == pytest.approx(842 - 100, abs=1)


def test_rows_come_out_top_to_bottom(tmp_path):
    pdf = _make_pdf(tmp_path / "order.pdf", [[
        ((72, 300), "Page footer"),
        ((72, 100), "Driver Name : ALI"),
    ]])
    rows = group_rows(read_pdf_fragments(pdf)[1])

    assert [r.line_text for r in rows] == ["Driver Name : ALI", "Page footer"]


def test_page_filter_and_elements(tmp_path):
    pdf = _make_pdf(tmp_path / "two.pdf", [
        [((72, 100), "first page")],
        [((72, 100), "second page")],
    ])
    assert list(read_pdf_fragments(pdf, pages=[2])) == [2]

    elements = read_pdf_elements(pdf)
    assert [(e["page"], e["text"]) for e in elements] == [(1, "first page"), (2, "second page")]
    assert elements[0]["index"] == 1


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_pdf_fragments(str(tmp_path / "absent.pdf"))


def test_garbage_file_is_a_read_error(tmp_path):
    path = tmp_path / "broken.pdf"
    path.write_bytes(b"this is not a pdf")
    with pytest.raises(PdfReadError):
        read_pdf_fragments(str(path))


def test_pdf_without_text_is_a_read_error(tmp_path):
    pdf = _make_pdf(tmp_path / "blank.pdf", [[]])
    with pytest.raises(PdfReadError, match="No text found"):
        read_pdf_fragments(pdf)
