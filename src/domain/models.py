# src/domain/models.py

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple


# (a, b, c, d, e, f): maps (x, y) to (a*x + c*y + e, b*x + d*y + f)
Transform = Tuple[float, float, float, float, float, float]


@dataclass(frozen=True)
class NormalizedText:
    """
    Canonical comparison form of a text.
    Offsets into `normalized` map back to the source via map_to_original().
    """
    normalized: str
    source_length: int


@dataclass(frozen=True)
class MatchCandidate:
    offset: int      # into the normalized text
    distance: int    # 0 = exact


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned rectangle in viewport units."""
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class TextRun:
    """
    A contiguous piece of text on a page, placed in page space by `transform`.
    (e, f) is the run origin; width runs along the baseline.
    """
    text: str
    width: float
    transform: Transform


@dataclass(frozen=True)
class Viewport:
    width: float
    height: float
    scale: float
    transform: Transform


@dataclass
class PageLayout:
    page_number: int
    viewport: Viewport
    runs: List[TextRun] = field(default_factory=list, repr=False)


@dataclass
class PageMatch:
    page_number: int
    boxes: List[BoundingBox] = field(default_factory=list)


@dataclass(frozen=True)
class DocumentRef:
    """
    A document yielded by a document source.
    document_id is stable across requests: '<root key>/<relative path>'.
    """
    document_id: str
    path: Path
    modified_at: datetime


@dataclass
class SearchResult:
    """
    Represents one matched document returned to the user.
    """
    document_id: str
    modified_at: datetime
    snippet: str
    preview_image: Optional[bytes] = field(default=None, repr=False)
    matched_pages: List[int] = field(default_factory=list)

    @property
    def primary_page(self) -> int:
        return self.matched_pages[0] if self.matched_pages else 1

    @property
    def page_count(self) -> int:
        return len(self.matched_pages)

    def __repr__(self) -> str:
        return (
            f"SearchResult(document='{self.document_id}', "
            f"modified='{self.modified_at.isoformat()}', "
            f"pages={self.matched_pages}, "
            f"snippet='{self.snippet[:80]}')"
        )
