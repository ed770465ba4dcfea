# tests/test_page_renderer.py

import fitz
import pytest

from src.domain.errors import PreviewRenderError
from src.domain.models import BoundingBox
from src.application.page_locator import locate_page_matches, preview_crop
from src.application.search_service import FuzzySearchService
from src.infrastructure.document_source import FileSystemDocumentSource
from src.infrastructure.page_renderer import PyMuPdfPageRenderer


PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


@pytest.fixture
def order_corpus(tmp_path):
    root = tmp_path / "invoices"
    root.mkdir()
    pdf = fitz.open()
    for text in ["Cover page", "Pancake Mix x 2", "Shipping", "Terms", "Pan Cake Mix refill"]:
        page = pdf.new_page(width=612, height=792)
        page.insert_text((72, 100), text, fontsize=12)
    pdf.save(str(root / "order.pdf"))
    pdf.close()
    (root / "memo.txt").write_text("Reminder: reorder pancake mix", encoding="utf-8")
    return root


def test_renders_cropped_png(order_corpus):
    source = FileSystemDocumentSource(roots={"invoices": str(order_corpus)})
    document = next(d for d in source.list_documents() if d.document_id.endswith(".pdf"))
    pages = source.load_pages(document)
    first = locate_page_matches(pages, "pancake")[0]
    layout = pages[first.page_number - 1]
    crop = preview_crop(first.boxes[0], layout.viewport)

    image = PyMuPdfPageRenderer().render_preview(document, layout, first.boxes, crop)

    assert image.startswith(PNG_SIGNATURE)
    pixmap = fitz.Pixmap(image)
    assert pixmap.width == pytest.approx(crop.width, abs=2)
    assert pixmap.height == pytest.approx(crop.height, abs=2)


def test_empty_crop_is_a_render_error(order_corpus):
    source = FileSystemDocumentSource(roots={"invoices": str(order_corpus)})
    document = next(d for d in source.list_documents() if d.document_id.endswith(".pdf"))
    layout = source.load_pages(document)[0]

    with pytest.raises(PreviewRenderError):
        PyMuPdfPageRenderer().render_preview(
            document, layout, [], BoundingBox(x=10.0, y=10.0, width=0.0, height=0.0),
        )


def test_end_to_end_search_over_real_files(order_corpus):
    source = FileSystemDocumentSource(roots={"invoices": str(order_corpus)})
    service = FuzzySearchService(source, page_renderer=PyMuPdfPageRenderer())

    results = {r.document_id: r for r in service.search("pancake")}

    order = results["invoices/order.pdf"]
    assert order.matched_pages == [2, 5]
    assert order.primary_page == 2
    assert order.page_count == 2
    assert order.preview_image.startswith(PNG_SIGNATURE)

    memo = results["invoices/memo.txt"]
    assert memo.matched_pages == []
    assert memo.preview_image is None
    assert "pancake mix" in memo.snippet
