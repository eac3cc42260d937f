"""Plain-text extraction from uploaded course files.

Supports: PDF, DOCX, PPTX, XLSX, TXT, MD, CSV.  Parsers work on in-memory
bytes so nothing is written to disk.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import PurePosixPath

logger = logging.getLogger(__name__)

PLAIN_TEXT_EXTENSIONS = frozenset({".txt", ".md", ".csv"})


@dataclass(frozen=True)
class ExtractionResult:
    text: str = ""
    error: str | None = None

    @property
    def ok(self) -> bool:
        return bool(self.text) and self.error is None


def file_extension(file_name: str) -> str:
    """Lower-cased extension including the dot, e.g. ``".pdf"``."""
    return PurePosixPath(file_name).suffix.lower()


def _pdf_text(data: bytes) -> str:
    import fitz  # PyMuPDF

    with fitz.open(stream=data, filetype="pdf") as pdf:
        return "\n".join(page.get_text() for page in pdf)


def _docx_text(data: bytes) -> str:
    from docx import Document

    doc = Document(io.BytesIO(data))
    return "\n".join(p.text for p in doc.paragraphs if p.text.strip())


def _pptx_text(data: bytes) -> str:
    from pptx import Presentation

    prs = Presentation(io.BytesIO(data))
    lines: list[str] = []
    for slide in prs.slides:
        for shape in slide.shapes:
            if shape.has_text_frame:
                for para in shape.text_frame.paragraphs:
                    text = para.text.strip()
                    if text:
                        lines.append(text)
    return "\n".join(lines)


def _xlsx_text(data: bytes) -> str:
    import openpyxl

    wb = openpyxl.load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    lines: list[str] = []
    try:
        for ws in wb.worksheets:
            for row in ws.iter_rows(values_only=True):
                row_text = "\t".join(str(c) for c in row if c is not None)
                if row_text.strip():
                    lines.append(row_text)
    finally:
        wb.close()
    return "\n".join(lines)


_EXTRACTORS = {
    ".pdf": _pdf_text,
    ".docx": _docx_text,
    ".pptx": _pptx_text,
    ".xlsx": _xlsx_text,
}


def extract_text(file_name: str, data: bytes) -> ExtractionResult:
    """Extract text from *data*, choosing the parser by *file_name*'s extension.

    Never raises: unsupported types and parser failures are reported through
    ``ExtractionResult.error`` with empty text.
    """
    ext = file_extension(file_name)

    if ext in PLAIN_TEXT_EXTENSIONS:
        text = data.decode("utf-8", errors="ignore")
    elif ext in _EXTRACTORS:
        try:
            text = _EXTRACTORS[ext](data)
        except Exception as exc:
            logger.warning("Text extraction failed for '%s': %s", file_name, exc)
            return ExtractionResult(error=f"Failed to extract text from {file_name}: {exc}")
    else:
        return ExtractionResult(error=f"Unsupported file type: {ext or file_name}")

    if not text.strip():
        return ExtractionResult(error="No text extracted from file")
    return ExtractionResult(text=text)
