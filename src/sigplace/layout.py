from __future__ import annotations

import pymupdf as fitz  # PyMuPDF

from .models import PdfPlacement, Placement, Size


def clamp_axis(value: float, viewport_extent: float, mark_extent: float) -> float:
    """Confine one coordinate to [0, viewport - mark]; 0 wins when the mark is larger."""
    return max(0.0, min(value, viewport_extent - mark_extent))


def clamp_placement(placement: Placement, viewport: Size, mark: Size) -> Placement:
    """Return a placement that keeps the mark's box inside the viewport."""
    return Placement(
        clamp_axis(placement.x, viewport.width, mark.width),
        clamp_axis(placement.y, viewport.height, mark.height),
    )


def scale_placement(placement: Placement, old: Size, new: Size) -> Placement:
    return Placement(
        placement.x * new.width / old.width,
        placement.y * new.height / old.height,
    )


def centered_on_pointer(pointer_x: float, pointer_y: float, mark: Size) -> Placement:
    return Placement(pointer_x - mark.width / 2, pointer_y - mark.height / 2)


def contains(placement: Placement, mark: Size, x: float, y: float) -> bool:
    return (
        placement.x <= x <= placement.x + mark.width
        and placement.y <= y <= placement.y + mark.height
    )


def map_to_pdf(
    rendered: Size, native: Size, placement: Placement, mark: Size
) -> PdfPlacement:
    """Convert a viewport placement into native PDF page coordinates.

    Only the position is rescaled from rendered pixels to page points; the
    mark keeps its display size in points. The vertical axis is flipped
    because PDF pages grow upwards from the bottom-left corner while the
    viewport grows downwards from the top-left, and the embed anchor is the
    image's lower-left corner.
    """

    if not rendered.is_positive:
        raise ValueError("page has not been rendered yet")

    scale_x = native.width / rendered.width
    scale_y = native.height / rendered.height
    return PdfPlacement(
        x=placement.x * scale_x,
        y=native.height - placement.y * scale_y - mark.height,
        width=mark.width,
        height=mark.height,
    )


def to_page_rect(placement: PdfPlacement, page_rect: fitz.Rect) -> fitz.Rect:
    """Express a bottom-left anchored placement as a PyMuPDF (top-left origin) rect."""
    y0 = page_rect.height - placement.y - placement.height
    x0 = placement.x
    return fitz.Rect(
        page_rect.x0 + x0,
        page_rect.y0 + y0,
        page_rect.x0 + x0 + placement.width,
        page_rect.y0 + y0 + placement.height,
    )
