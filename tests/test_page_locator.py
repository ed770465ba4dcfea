# tests/test_page_locator.py

import pytest
from src.domain.models import BoundingBox, PageLayout, TextRun, Viewport
from src.application.page_locator import (
    locate_page_matches,
    preview_crop,
    run_bounding_box,
    run_matches,
)


PAGE_WIDTH = 612.0
PAGE_HEIGHT = 792.0
SCALE = 1.5


def _viewport() -> Viewport:
    """Letter page at 1.5x with the y axis flipped (PDF space → screen)."""
    return Viewport(
        width=PAGE_WIDTH * SCALE,
        height=PAGE_HEIGHT * SCALE,
        scale=SCALE,
        transform=(SCALE, 0.0, 0.0, -SCALE, 0.0, PAGE_HEIGHT * SCALE),
    )


def _run(text: str, x: float = 100.0, y: float = 700.0, width: float = 50.0) -> TextRun:
    return TextRun(text=text, width=width, transform=(12.0, 0.0, 0.0, 12.0, x, y))


def _page(number: int, *texts: str) -> PageLayout:
    return PageLayout(
        page_number=number,
        viewport=_viewport(),
        runs=[_run(text, y=700.0 - 20 * i) for i, text in enumerate(texts)],
    )


# ── Run matching ──────────────────────────────────────────────────────────────

def test_run_containing_query_matches():
    assert run_matches("Pan Cake Mix", "pancake")


def test_run_of_similar_length_is_compared_whole():
    assert run_matches("invoise", "invoice")
    assert not run_matches("inwoize", "invoice")


def test_long_run_is_scanned_with_windows():
    assert run_matches("Invoise #4411 attached", "invoice")
    assert not run_matches("Inwoize #4411 attached", "invoice")


def test_run_shorter_than_query_beyond_threshold_does_not_match():
    assert not run_matches("invo", "invoice")


def test_empty_run_or_query_never_matches():
    assert not run_matches("", "invoice")
    assert not run_matches("   ", "invoice")
    assert not run_matches("anything", "")


# ── Geometry ──────────────────────────────────────────────────────────────────

def test_bounding_box_flips_into_viewport_space():
    box = run_bounding_box(_run("Hello", x=100.0, y=700.0, width=50.0), _viewport())

    assert box.x == pytest.approx(150.0)
    assert box.y == pytest.approx(120.0)
    assert box.width == pytest.approx(75.0)
    assert box.height == pytest.approx(18.0)


def test_bounding_box_height_comes_from_vertical_axis():
    rotated = TextRun(text="Hello", width=40.0, transform=(0.0, 10.0, -10.0, 0.0, 200.0, 300.0))
    box = run_bounding_box(rotated, _viewport())

    assert box.width == pytest.approx(60.0)
    assert box.height == pytest.approx(15.0)


def test_bounding_box_is_never_negative_under_mirroring_viewport():
    mirrored = Viewport(width=100.0, height=100.0, scale=1.0, transform=(-1.0, 0.0, 0.0, -1.0, 100.0, 100.0))
    box = run_bounding_box(_run("Hello", x=10.0, y=10.0, width=20.0), mirrored)

    assert box == BoundingBox(x=70.0, y=78.0, width=20.0, height=12.0)


def test_preview_crop_pads_twice_as_much_horizontally():
    crop = preview_crop(BoundingBox(150.0, 120.0, 75.0, 18.0), _viewport())
    assert crop == BoundingBox(x=50.0, y=70.0, width=275.0, height=118.0)


def test_preview_crop_clamps_to_top_left():
    crop = preview_crop(BoundingBox(20.0, 10.0, 50.0, 10.0), _viewport())
    assert crop == BoundingBox(x=0.0, y=0.0, width=250.0, height=110.0)


def test_preview_crop_clamps_to_bottom_right():
    crop = preview_crop(BoundingBox(900.0, 1180.0, 10.0, 5.0), _viewport())
    assert crop == BoundingBox(x=800.0, y=1130.0, width=118.0, height=58.0)


# ── Page aggregation ──────────────────────────────────────────────────────────

def test_pages_with_matches_are_aggregated_in_page_order():
    pages = [
        _page(5, "Pancake mix, 2 boxes"),
        _page(1, "Order summary"),
        _page(2, "Item: Pan Cake Mix", "Total", "pancakes"),
        _page(3, "Nothing here"),
        _page(4),
    ]

    matches = locate_page_matches(pages, "pancake")

    assert [m.page_number for m in matches] == [2, 5]
    assert len(matches[0].boxes) == 2
    assert len(matches[1].boxes) == 1
    # boxes follow the page's run order (second match sits lower on the page)
    assert matches[0].boxes[0].y < matches[0].boxes[1].y


def test_no_matching_runs_yields_no_pages():
    assert locate_page_matches([_page(1, "Order summary")], "pancake") == []
