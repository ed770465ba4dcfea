# src/infrastructure/page_renderer.py

from typing import List

import fitz

from src.domain.errors import PreviewRenderError
from src.domain.interfaces import PageRendererPort
from src.domain.models import BoundingBox, DocumentRef, PageLayout


HIGHLIGHT_COLOR = (1.0, 0.84, 0.0)   # gold
HIGHLIGHT_OPACITY = 0.4


def _to_page_rect(box: BoundingBox, scale: float) -> fitz.Rect:
    """Viewport units back to PyMuPDF page units (top-left origin)."""
    return fitz.Rect(
        box.x / scale,
        box.y / scale,
        (box.x + box.width) / scale,
        (box.y + box.height) / scale,
    )


class PyMuPdfPageRenderer(PageRendererPort):
    """
    Renders a cropped PNG of a PDF page with matching runs highlighted.

    The document is opened per call and never saved, so the highlight
    drawing only lives in memory. No state is shared between calls.
    """

    def render_preview(
        self,
        document: DocumentRef,
        page: PageLayout,
        highlights: List[BoundingBox],
        crop: BoundingBox,
    ) -> bytes:
        scale = page.viewport.scale
        clip = _to_page_rect(crop, scale)
        if clip.is_empty:
            raise PreviewRenderError(
                f"Empty crop for page {page.page_number} of '{document.document_id}'."
            )

        try:
            with fitz.open(str(document.path)) as pdf:
                pdf_page = pdf[page.page_number - 1]
                for box in highlights:
                    pdf_page.draw_rect(
                        _to_page_rect(box, scale),
                        color=None,
                        fill=HIGHLIGHT_COLOR,
                        fill_opacity=HIGHLIGHT_OPACITY,
                        overlay=True,
                    )
                pixmap = pdf_page.get_pixmap(matrix=fitz.Matrix(scale, scale), clip=clip)
                image = pixmap.tobytes("png")
        except Exception as error:
            raise PreviewRenderError(
                f"Cannot render page {page.page_number} of '{document.document_id}': {error}"
            ) from error

        print(
            f"[PageRenderer] Rendered preview for '{document.document_id}' "
            f"page {page.page_number} ({len(image)} bytes)."
        )
        return image
