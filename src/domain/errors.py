# src/domain/errors.py


class CorpusUnavailableError(RuntimeError):
    """No configured document root could be reached."""


class SearchCancelledError(RuntimeError):
    """The search was cancelled or timed out before all documents finished."""


class DocumentExtractionError(RuntimeError):
    """Text could not be extracted from a single document."""


class LayoutUnavailableError(RuntimeError):
    """The document has no page layout (e.g. plain text)."""


class PreviewRenderError(RuntimeError):
    """A page could not be rasterized into a preview image."""
