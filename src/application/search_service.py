# src/application/search_service.py

import re
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Dict, List, Optional, Tuple

from src.application.page_locator import locate_page_matches, preview_crop
from src.application.text_matching import find_match
from src.domain.errors import LayoutUnavailableError, SearchCancelledError
from src.domain.interfaces import DocumentSourcePort, PageRendererPort
from src.domain.models import DocumentRef, SearchResult


SNIPPET_CONTEXT_CHARS = 50
DEFAULT_MAX_WORKERS = 4

# How often the collector wakes up to look at the caller's cancel signal.
_POLL_INTERVAL_SECONDS = 0.05


def build_snippet(
    text: str,
    match_offset: int,
    query_length: int,
    context: int = SNIPPET_CONTEXT_CHARS,
) -> str:
    """Whitespace-collapsed excerpt around a match, with '...' where clipped."""
    start = max(0, match_offset - context)
    end = min(len(text), match_offset + query_length + context)

    snippet = re.sub(r"\s+", " ", text[start:end]).strip()
    if start > 0:
        snippet = "..." + snippet
    if end < len(text):
        snippet = snippet + "..."
    return snippet


class FuzzySearchService:
    """
    Core use case: find every document that approximately contains a query.

    Per-document work (text fetch, matching, page lookup, preview) runs on a
    bounded thread pool. A document that fails is logged and left out; a
    failing page lookup only costs the result its pages and preview.

    Results are ordered newest first. Ties keep corpus order.
    """

    def __init__(
        self,
        document_source: DocumentSourcePort,
        page_renderer: Optional[PageRendererPort] = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
        timeout: Optional[float] = None,
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1.")

        self._document_source = document_source
        self._page_renderer = page_renderer
        self._max_workers = max_workers
        self._timeout = timeout

    def search(
        self,
        query: Optional[str],
        cancel_event: Optional[threading.Event] = None,
        timeout: Optional[float] = None,
    ) -> List[SearchResult]:
        """
        Raises:
            ValueError:             query is missing or blank.
            CorpusUnavailableError: the document source cannot be reached.
            SearchCancelledError:   cancel_event was set or the timeout expired.
        """
        query = (query or "").strip()
        if not query:
            raise ValueError("Query cannot be empty.")

        documents = self._document_source.list_documents()
        print(f"[SearchService] Searching {len(documents)} documents for \"{query}\"...")

        matches = self._run_workers(
            documents,
            query,
            cancel_event,
            timeout if timeout is not None else self._timeout,
        )

        results = [result for result in matches if result is not None]
        # list.sort is stable, including with reverse=True
        results.sort(key=lambda result: result.modified_at, reverse=True)

        print(f"[SearchService] ✓ {len(results)} matching document(s).")
        return results

    # ─── Private: Worker pool ────────────────────────────────────────────────

    def _run_workers(
        self,
        documents: List[DocumentRef],
        query: str,
        cancel_event: Optional[threading.Event],
        timeout: Optional[float],
    ) -> List[Optional[SearchResult]]:
        """Run every document through the pool; results keep corpus order."""
        results: List[Optional[SearchResult]] = [None] * len(documents)
        if not documents:
            return results

        abandon = threading.Event()
        deadline = time.monotonic() + timeout if timeout is not None else None
        executor = ThreadPoolExecutor(
            max_workers=self._max_workers,
            thread_name_prefix="fuzzy-search",
        )

        try:
            futures: Dict[Future, int] = {
                executor.submit(self._process_document, document, query, abandon): index
                for index, document in enumerate(documents)
            }
            pending = set(futures)

            while pending:
                if cancel_event is not None and cancel_event.is_set():
                    raise SearchCancelledError("Search was cancelled.")
                if deadline is not None and time.monotonic() >= deadline:
                    raise SearchCancelledError(f"Search timed out after {timeout} seconds.")

                done, pending = wait(
                    pending,
                    timeout=_POLL_INTERVAL_SECONDS,
                    return_when=FIRST_COMPLETED,
                )
                for future in done:
                    results[futures[future]] = future.result()

        except SearchCancelledError:
            abandon.set()
            print("[SearchService] ⚠ Search abandoned — discarding in-flight work.")
            raise

        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        return results

    def _process_document(
        self,
        document: DocumentRef,
        query: str,
        abandon: threading.Event,
    ) -> Optional[SearchResult]:
        try:
            return self._match_document(document, query, abandon)
        except SearchCancelledError:
            return None
        except Exception as error:
            print(f"[SearchService] ⚠ Failed to process '{document.document_id}': {error}")
            return None

    # ─── Private: Per-document pipeline ──────────────────────────────────────

    def _match_document(
        self,
        document: DocumentRef,
        query: str,
        abandon: threading.Event,
    ) -> Optional[SearchResult]:
        _raise_if_abandoned(abandon)
        text = self._document_source.extract_text(document)

        _raise_if_abandoned(abandon)
        match_offset = find_match(text, query)
        if match_offset is None:
            return None

        snippet = build_snippet(text, match_offset, len(query))
        preview_image, matched_pages = self._locate_pages(document, query, abandon)

        print(f"[SearchService] Match in '{document.document_id}' (pages: {matched_pages or '-'})")
        return SearchResult(
            document_id=document.document_id,
            modified_at=document.modified_at,
            snippet=snippet,
            preview_image=preview_image,
            matched_pages=matched_pages,
        )

    def _locate_pages(
        self,
        document: DocumentRef,
        query: str,
        abandon: threading.Event,
    ) -> Tuple[Optional[bytes], List[int]]:
        """
        Matched page numbers plus a preview of the first one.
        Any failure here degrades to (None, []), i.e. snippet only.
        """
        try:
            pages = self._document_source.load_pages(document)

            _raise_if_abandoned(abandon)
            page_matches = locate_page_matches(pages, query)
            if not page_matches:
                return None, []

            preview_image = None
            if self._page_renderer is not None:
                first_match = page_matches[0]
                layout = next(p for p in pages if p.page_number == first_match.page_number)
                crop = preview_crop(first_match.boxes[0], layout.viewport)

                _raise_if_abandoned(abandon)
                preview_image = self._page_renderer.render_preview(
                    document,
                    layout,
                    first_match.boxes,
                    crop,
                )

            return preview_image, [match.page_number for match in page_matches]

        except SearchCancelledError:
            raise
        except LayoutUnavailableError:
            return None, []
        except Exception as error:
            print(
                f"[SearchService] ⚠ Page lookup failed for '{document.document_id}': "
                f"{error} — falling back to snippet only."
            )
            return None, []


def _raise_if_abandoned(abandon: threading.Event) -> None:
    if abandon.is_set():
        raise SearchCancelledError("Search was abandoned.")
