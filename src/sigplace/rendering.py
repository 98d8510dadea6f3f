from __future__ import annotations

import logging
from dataclasses import dataclass

import pymupdf as fitz  # PyMuPDF
from PIL import Image

from .config import MIN_RENDER_ZOOM
from .errors import RenderingFailure
from .models import Size


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderedPage:
    image: Image.Image
    rendered: Size
    native: Size


def fit_zoom(page_rect: fitz.Rect, box: Size) -> float:
    zoom = min(box.width / page_rect.width, box.height / page_rect.height)
    return max(zoom, MIN_RENDER_ZOOM)


def render_first_page(data: bytes, box: Size, pdf_opener=fitz.open) -> RenderedPage:
    """Render page 1 of ``data`` scaled to fit inside ``box``."""
    try:
        doc = pdf_opener(stream=data, filetype="pdf")
    except (RuntimeError, ValueError) as exc:
        raise RenderingFailure(f"Unable to open that PDF: {exc}") from exc

    try:
        if len(doc) == 0:
            raise RenderingFailure("The PDF has no pages.")
        page = doc.load_page(0)
        rect = page.rect
        if rect.is_empty:
            raise RenderingFailure("The first page has no area.")
        zoom = fit_zoom(rect, box)
        pix = page.get_pixmap(matrix=fitz.Matrix(zoom, zoom), alpha=False)
        image = Image.frombytes("RGB", [pix.width, pix.height], pix.samples)
    except RenderingFailure:
        raise
    except (RuntimeError, ValueError) as exc:
        raise RenderingFailure(f"Unable to render the first page: {exc}") from exc
    finally:
        doc.close()

    logger.debug(
        "Rendered page 1 at %dx%d px (native %.1fx%.1f pt)",
        image.width,
        image.height,
        rect.width,
        rect.height,
    )
    return RenderedPage(
        image=image,
        rendered=Size(image.width, image.height),
        native=Size(rect.width, rect.height),
    )
