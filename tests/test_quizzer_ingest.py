from __future__ import annotations

import base64
from pathlib import Path
from types import SimpleNamespace

import pytest
from pypdf import PdfWriter
from pypdf.errors import PdfReadError

from doc_quiz.quizzer.ingest import (
    IngestionError,
    detect_kind,
    extract,
)


def _reader(*pages):
    def _open(path: Path):
        return SimpleNamespace(
            pages=[SimpleNamespace(extract_text=lambda text=t: text) for t in pages]
        )

    return _open


def test_pdf_pages_are_joined_in_order(workspace) -> None:
    path = workspace.write("notes.pdf", b"%PDF-1.4")

    document = extract(path, pdf_reader=_reader("Page one", None, "Page three"))

    assert document.kind == "application/pdf"
    assert document.name == "notes.pdf"
    assert document.is_image is False
    assert document.content == "Page one\n\nPage three\n"


def test_pdf_without_text_is_rejected(workspace) -> None:
    path = workspace.write("scan.pdf", b"%PDF-1.4")

    with pytest.raises(IngestionError, match="empty"):
        extract(path, pdf_reader=_reader("", "  \n"))


def test_blank_pdf_written_by_pypdf_is_rejected(workspace) -> None:
    path = workspace.write("blank.pdf", b"")
    writer = PdfWriter()
    writer.add_blank_page(width=72, height=72)
    with path.open("wb") as handle:
        writer.write(handle)

    with pytest.raises(IngestionError, match="empty"):
        extract(path)


def test_unreadable_pdf_is_wrapped(workspace) -> None:
    path = workspace.write("broken.pdf", b"not a pdf")

    def _boom(path: Path):
        raise PdfReadError("EOF marker not found")

    with pytest.raises(IngestionError, match="EOF marker"):
        extract(path, pdf_reader=_boom)


def test_image_is_base64_encoded(workspace) -> None:
    raw = b"\x89PNG\r\n\x1a\nfake-image-bytes"
    path = workspace.write("diagram.png", raw)

    document = extract(path)

    assert document.kind == "image/png"
    assert document.is_image is True
    assert base64.b64decode(document.content) == raw


def test_empty_image_is_rejected(workspace) -> None:
    path = workspace.write("empty.jpg", b"")

    with pytest.raises(IngestionError, match="empty"):
        extract(path)


def test_unreadable_image_is_rejected(
    workspace, monkeypatch: pytest.MonkeyPatch
) -> None:
    path = workspace.write("page.png", b"\x89PNG")

    def _deny(self):
        raise PermissionError(13, "Permission denied", str(self))

    monkeypatch.setattr(Path, "read_bytes", _deny)

    with pytest.raises(IngestionError, match="Could not read image page.png"):
        extract(path)


def test_unsupported_type_is_rejected(workspace) -> None:
    path = workspace.write("notes.txt", "plain text")

    with pytest.raises(IngestionError, match="PDF file or an image"):
        extract(path)


def test_missing_file_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(IngestionError, match="File not found"):
        extract(tmp_path / "nowhere.pdf")


def test_detect_kind_uses_extension() -> None:
    assert detect_kind(Path("a.PDF")) == "application/pdf"
    assert detect_kind(Path("photo.jpeg")) == "image/jpeg"
    assert detect_kind(Path("archive")) is None
