# src/infrastructure/document_source.py

from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Tuple

import fitz
import pdfplumber

from src.domain.errors import (
    CorpusUnavailableError,
    DocumentExtractionError,
    LayoutUnavailableError,
)
from src.domain.interfaces import DocumentSourcePort
from src.domain.models import DocumentRef, PageLayout, TextRun, Viewport


SUPPORTED_EXTENSIONS = {".pdf", ".txt", ".md"}
PDF_EXTENSION = ".pdf"

# Viewport pixels per PDF point used for boxes and previews.
DEFAULT_VIEWPORT_SCALE = 1.5


class FileSystemDocumentSource(DocumentSourcePort):
    """
    Serves documents from one or more directory trees.

    Each root is registered under a short key; document ids are
    '<key>/<path relative to the root>' so clients can tell roots apart.

    Text:
    - PDF: pdfplumber first, PyMuPDF as fallback
    - TXT / MD: read as UTF-8

    Layout (PDF only): PyMuPDF spans, re-expressed in PDF user space
    (origin bottom-left, baseline anchored) with a y-flipping viewport.
    """

    def __init__(
        self,
        roots: Dict[str, str],
        viewport_scale: float = DEFAULT_VIEWPORT_SCALE,
    ):
        self._roots = {key: Path(directory) for key, directory in roots.items()}
        self._viewport_scale = viewport_scale

    @property
    def roots(self) -> Dict[str, str]:
        return {key: str(path) for key, path in self._roots.items()}

    # ─── DocumentSourcePort ──────────────────────────────────────────────────

    def list_documents(self) -> List[DocumentRef]:
        available = {key: path for key, path in self._roots.items() if path.is_dir()}

        for key, path in self._roots.items():
            if key not in available:
                print(f"[DocumentSource] ⚠ Skipping '{key}': directory {path} not found.")

        if not available:
            raise CorpusUnavailableError(
                "None of the configured document directories could be reached: "
                + ", ".join(str(path) for path in self._roots.values())
            )

        documents: List[DocumentRef] = []
        for key, root in available.items():
            found = self._scan_root(key, root)
            print(f"[DocumentSource] Found {len(found)} documents in '{key}' ({root}).")
            documents.extend(found)

        return documents

    def extract_text(self, document: DocumentRef) -> str:
        if document.path.suffix.lower() == PDF_EXTENSION:
            return self._extract_pdf_text(document.path)
        try:
            return document.path.read_text(encoding="utf-8", errors="ignore")
        except OSError as error:
            raise DocumentExtractionError(
                f"Cannot read '{document.document_id}': {error}"
            ) from error

    def load_pages(self, document: DocumentRef) -> List[PageLayout]:
        if document.path.suffix.lower() != PDF_EXTENSION:
            raise LayoutUnavailableError(
                f"'{document.document_id}' has no page layout."
            )

        layouts: List[PageLayout] = []
        with fitz.open(str(document.path)) as pdf:
            for index, page in enumerate(pdf):
                layouts.append(self._page_layout(page, page_number=index + 1))
        return layouts

    # ─── Private: Traversal ──────────────────────────────────────────────────

    @staticmethod
    def _scan_root(key: str, root: Path) -> List[DocumentRef]:
        documents: List[DocumentRef] = []

        for file_path in sorted(root.rglob("*")):
            if file_path.suffix.lower() not in SUPPORTED_EXTENSIONS:
                continue
            try:
                if not file_path.is_file():
                    continue
                modified = file_path.stat().st_mtime
            except OSError as error:
                print(f"[DocumentSource] ⚠ Cannot access {file_path}: {error}")
                continue

            documents.append(DocumentRef(
                document_id=f"{key}/{file_path.relative_to(root).as_posix()}",
                path=file_path,
                modified_at=datetime.fromtimestamp(modified, tz=timezone.utc),
            ))

        return documents

    # ─── Private: PDF text ───────────────────────────────────────────────────

    def _extract_pdf_text(self, file_path: Path) -> str:
        """
        Concatenate page texts. Falls back to PyMuPDF when pdfplumber fails
        or finds nothing (some producers confuse its layout analysis).
        """
        errors: List[str] = []

        for extractor in (self._extract_pages_pdfplumber, self._extract_pages_pymupdf):
            try:
                pages = extractor(file_path)
            except Exception as error:
                print(f"[DocumentSource] {extractor.__name__} error on {file_path.name}: {error}")
                errors.append(str(error))
                continue
            if pages:
                return "\n".join(text for _, text in pages)

        if len(errors) == 2:
            raise DocumentExtractionError(
                f"Cannot extract text from {file_path.name}: {'; '.join(errors)}"
            )
        return ""

    @staticmethod
    def _extract_pages_pdfplumber(file_path: Path) -> List[Tuple[int, str]]:
        pages = []
        with pdfplumber.open(str(file_path)) as pdf:
            for i, page in enumerate(pdf.pages):
                text = page.extract_text(x_tolerance=2, y_tolerance=2)
                if text:
                    pages.append((i + 1, text))
        return pages

    @staticmethod
    def _extract_pages_pymupdf(file_path: Path) -> List[Tuple[int, str]]:
        pages = []
        with fitz.open(str(file_path)) as pdf:
            for i, page in enumerate(pdf):
                text = page.get_text()
                if text:
                    pages.append((i + 1, text))
        return pages

    # ─── Private: PDF layout ─────────────────────────────────────────────────

    def _page_layout(self, page: "fitz.Page", page_number: int) -> PageLayout:
        scale = self._viewport_scale
        page_width, page_height = page.rect.width, page.rect.height

        viewport = Viewport(
            width=page_width * scale,
            height=page_height * scale,
            scale=scale,
            transform=(scale, 0.0, 0.0, -scale, 0.0, page_height * scale),
        )

        runs: List[TextRun] = []
        for block in page.get_text("dict")["blocks"]:
            for line in block.get("lines", []):
                cos, sin = line["dir"]
                for span in line["spans"]:
                    if span["text"].strip():
                        runs.append(_span_to_run(span, cos, sin, page_height))

        return PageLayout(page_number=page_number, viewport=viewport, runs=runs)


def _span_to_run(span: dict, cos: float, sin: float, page_height: float) -> TextRun:
    """
    PyMuPDF reports spans top-left based (y down). Flip to PDF user space
    so the run transform carries the font size on its y axis.
    """
    size = span["size"]
    origin_x, origin_y = span["origin"]
    x0, y0, x1, y1 = span["bbox"]
    width = (x1 - x0) if abs(cos) >= abs(sin) else (y1 - y0)

    return TextRun(
        text=span["text"],
        width=width,
        transform=(
            size * cos,
            -size * sin,
            size * sin,
            size * cos,
            origin_x,
            page_height - origin_y,
        ),
    )
