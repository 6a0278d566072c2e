"""Turn an uploaded file into provider-ready content.

PDFs become their page text in page order; images are passed through as
base64 so the provider can look at them directly.
"""

from __future__ import annotations

import base64
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

from pypdf import PdfReader
from pypdf.errors import PyPdfError

PDF_MIME = "application/pdf"

PdfReaderFactory = Callable[[Path], Any]


class IngestionError(RuntimeError):
    """Raised when a file is unsupported or yields no usable content."""


@dataclass(frozen=True)
class IngestedDocument:
    """Extracted payload plus the metadata the controller keeps around."""

    name: str
    kind: str
    content: str

    @property
    def is_image(self) -> bool:
        return self.kind.startswith("image/")


def detect_kind(path: Path) -> Optional[str]:
    guessed, _ = mimetypes.guess_type(path.name)
    return guessed


def extract(
    path: Path, *, pdf_reader: Optional[PdfReaderFactory] = None
) -> IngestedDocument:
    """Extract ``path`` into an :class:`IngestedDocument`."""

    source = Path(path).expanduser()
    if not source.is_file():
        raise IngestionError(f"File not found: {source}")

    kind = detect_kind(source) or ""
    if kind == PDF_MIME:
        content = extract_pdf_text(source, reader=pdf_reader or PdfReader)
    elif kind.startswith("image/"):
        content = encode_image(source)
    else:
        raise IngestionError("Please upload a PDF file or an image.")
    return IngestedDocument(name=source.name, kind=kind, content=content)


def extract_pdf_text(path: Path, *, reader: PdfReaderFactory) -> str:
    """Concatenate page text, one line per page."""

    try:
        document = reader(path)
        pages = [page.extract_text() or "" for page in document.pages]
    except (PyPdfError, OSError) as exc:
        raise IngestionError(f"Could not read PDF {path.name}: {exc}") from exc
    text = "".join(page + "\n" for page in pages)
    if not text.strip():
        raise IngestionError(
            "PDF appears to be empty or contains only images."
        )
    return text


def encode_image(path: Path) -> str:
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise IngestionError(f"Could not read image {path.name}: {exc}") from exc
    if not data:
        raise IngestionError(f"Image file is empty: {path.name}")
    return base64.b64encode(data).decode("ascii")
