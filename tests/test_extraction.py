"""Tests for course_rag.extraction."""

import io

from course_rag.extraction import extract_text, file_extension


def test_file_extension_is_lowercased():
    assert file_extension("Lecture 1.PDF") == ".pdf"
    assert file_extension("notes") == ""


def test_plain_text_types_decode_utf8():
    for name in ("notes.txt", "README.md", "grades.csv"):
        result = extract_text(name, "Photosynthesis in the café".encode())
        assert result.ok
        assert result.text == "Photosynthesis in the café"


def test_unsupported_type_reports_error():
    result = extract_text("archive.zip", b"PK\x03\x04")
    assert not result.ok
    assert result.text == ""
    assert "Unsupported file type" in result.error


def test_empty_text_reports_error():
    result = extract_text("blank.txt", b"   \n\n ")
    assert not result.ok
    assert result.error == "No text extracted from file"


def test_corrupt_pdf_does_not_raise():
    result = extract_text("broken.pdf", b"not really a pdf")
    assert not result.ok
    assert result.error.startswith("Failed to extract text from broken.pdf")


def test_docx_paragraphs():
    from docx import Document

    doc = Document()
    doc.add_paragraph("Mitochondria are the powerhouse of the cell.")
    doc.add_paragraph("")
    doc.add_paragraph("Enzymes speed up reactions.")
    buf = io.BytesIO()
    doc.save(buf)

    result = extract_text("lecture.docx", buf.getvalue())

    assert result.ok
    assert result.text == (
        "Mitochondria are the powerhouse of the cell.\nEnzymes speed up reactions."
    )


def test_xlsx_rows_are_tab_joined():
    import openpyxl

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.append(["Week", "Topic"])
    ws.append([1, "Cells"])
    buf = io.BytesIO()
    wb.save(buf)

    result = extract_text("schedule.xlsx", buf.getvalue())

    assert result.ok
    assert result.text.splitlines() == ["Week\tTopic", "1\tCells"]
