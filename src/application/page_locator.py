# src/application/page_locator.py

import math
from typing import Iterable, List

import numpy as np

from src.application.text_matching import edit_distance, match_threshold, normalize_text
from src.domain.models import BoundingBox, PageLayout, PageMatch, TextRun, Viewport


# Viewport units around the first hit; vertical padding is half of this.
PREVIEW_PADDING = 100


# ─── Run matching ────────────────────────────────────────────────────────────

def run_matches(run_text: str, query: str) -> bool:
    """
    Cheaper per-run policy: accept the first window under the threshold
    instead of searching for the best one.
    """
    return _normalized_run_matches(normalize_text(run_text), normalize_text(query))


def _normalized_run_matches(normalized_run: str, normalized_query: str) -> bool:
    if not normalized_query:
        return False
    if normalized_query in normalized_run:
        return True
    if not normalized_run:
        return False

    query_length = len(normalized_query)
    threshold = match_threshold(query_length)

    # Runs of roughly the query's length are compared whole (single-word runs).
    if abs(len(normalized_run) - query_length) <= threshold:
        return edit_distance(normalized_query, normalized_run, score_cutoff=threshold) <= threshold

    for offset in range(len(normalized_run) - query_length + 1):
        window = normalized_run[offset : offset + query_length]
        if edit_distance(normalized_query, window, score_cutoff=threshold) <= threshold:
            return True
    return False


# ─── Geometry ────────────────────────────────────────────────────────────────

def _as_matrix(transform) -> np.ndarray:
    a, b, c, d, e, f = transform
    return np.array([
        [a, c, e],
        [b, d, f],
        [0.0, 0.0, 1.0],
    ])


def run_bounding_box(run: TextRun, viewport: Viewport) -> BoundingBox:
    """
    Viewport rectangle covered by a run: from its origin, `width` along the
    baseline and one font height (length of the transform's y axis) up.
    """
    _, _, c, d, x, y = run.transform
    height = math.hypot(c, d)

    corners = np.array([
        [x, x + run.width],
        [y, y + height],
        [1.0, 1.0],
    ])
    mapped = _as_matrix(viewport.transform) @ corners

    min_x, max_x = float(mapped[0].min()), float(mapped[0].max())
    min_y, max_y = float(mapped[1].min()), float(mapped[1].max())
    return BoundingBox(x=min_x, y=min_y, width=max_x - min_x, height=max_y - min_y)


def preview_crop(
    box: BoundingBox,
    viewport: Viewport,
    padding: float = PREVIEW_PADDING,
) -> BoundingBox:
    """Padded rectangle around `box`, clamped to the viewport."""
    crop_x = max(0.0, box.x - padding)
    crop_y = max(0.0, box.y - padding / 2)
    crop_width = min(viewport.width - crop_x, box.width + padding * 2)
    crop_height = min(viewport.height - crop_y, box.height + padding)
    return BoundingBox(
        x=crop_x,
        y=crop_y,
        width=max(0.0, crop_width),
        height=max(0.0, crop_height),
    )


# ─── Page aggregation ────────────────────────────────────────────────────────

def locate_page_matches(pages: Iterable[PageLayout], query: str) -> List[PageMatch]:
    """
    One PageMatch per page holding at least one matching run,
    in ascending page order. Boxes keep the page's run order.
    """
    normalized_query = normalize_text(query)
    matches: List[PageMatch] = []

    for page in sorted(pages, key=lambda p: p.page_number):
        boxes = [
            run_bounding_box(run, page.viewport)
            for run in page.runs
            if _normalized_run_matches(normalize_text(run.text), normalized_query)
        ]
        if boxes:
            matches.append(PageMatch(page_number=page.page_number, boxes=boxes))

    return matches
