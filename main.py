# main.py

import sys
from src.infrastructure.document_source import FileSystemDocumentSource
from src.infrastructure.page_renderer import PyMuPdfPageRenderer
from src.application.search_service import FuzzySearchService
from src.domain.errors import CorpusUnavailableError, SearchCancelledError
from src.interface.cli import (
    display_welcome_banner,
    display_corpus_roots,
    prompt_for_query,
    display_results,
    display_error,
    ask_continue,
)


# Root key → directory. Keys prefix every document id.
SEARCH_DIRECTORIES = {
    "invoices": "invoices",
}
MAX_WORKERS = 4
SEARCH_TIMEOUT_SECONDS = 120.0


def main() -> None:
    display_welcome_banner()

    # ── 1. Initialize infrastructure ─────────────────────────────────────────
    document_source = FileSystemDocumentSource(roots=SEARCH_DIRECTORIES)
    search_service = FuzzySearchService(
        document_source=document_source,
        page_renderer=PyMuPdfPageRenderer(),
        max_workers=MAX_WORKERS,
        timeout=SEARCH_TIMEOUT_SECONDS,
    )
    display_corpus_roots(document_source.roots)

    # ── 2. Interactive search loop ────────────────────────────────────────────
    while True:
        query = prompt_for_query()
        try:
            results = search_service.search(query)
            display_results(query, results)
        except ValueError as error:
            display_error(str(error))
        except SearchCancelledError as error:
            display_error(str(error))
        except CorpusUnavailableError as error:
            display_error(str(error))
            sys.exit(1)

        if not ask_continue():
            break


if __name__ == "__main__":
    main()
