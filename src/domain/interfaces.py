# src/domain/interfaces.py

from abc import ABC, abstractmethod
from typing import List

from .models import BoundingBox, DocumentRef, PageLayout


class DocumentSourcePort(ABC):
    """
    Port for any corpus of documents.
    Traversal, format handling and text caching are adapter concerns.
    """

    @abstractmethod
    def list_documents(self) -> List[DocumentRef]:
        """
        Return every searchable document in the corpus.
        Raises CorpusUnavailableError when the corpus cannot be reached at all.
        """
        ...

    @abstractmethod
    def extract_text(self, document: DocumentRef) -> str: ...

    @abstractmethod
    def load_pages(self, document: DocumentRef) -> List[PageLayout]:
        """
        Return per-page text runs with their viewport.
        Raises LayoutUnavailableError for formats without page layout.
        """
        ...


class PageRendererPort(ABC):

    @abstractmethod
    def render_preview(
        self,
        document: DocumentRef,
        page: PageLayout,
        highlights: List[BoundingBox],
        crop: BoundingBox,
    ) -> bytes:
        """
        Rasterize `page` with `highlights` drawn on it, cropped to `crop`
        (viewport units). Returns encoded image bytes.
        """
        ...
