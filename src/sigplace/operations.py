from __future__ import annotations

import logging
from typing import Callable, Dict

import pymupdf as fitz  # PyMuPDF

from .errors import EmbedFailure
from .layout import map_to_pdf, to_page_rect
from .models import LoadedMark, PdfPlacement, Placement, Size


logger = logging.getLogger(__name__)

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
JPEG_SIGNATURE = b"\xff\xd8\xff"


def open_document(data: bytes, pdf_opener=fitz.open) -> fitz.Document:
    try:
        doc = pdf_opener(stream=data, filetype="pdf")
        page_count = len(doc)
    except (RuntimeError, ValueError) as exc:
        raise EmbedFailure(f"Unable to open the PDF: {exc}") from exc
    if page_count == 0:
        doc.close()
        raise EmbedFailure("The PDF has no pages to sign.")
    return doc


def _embed_png(page: fitz.Page, rect: fitz.Rect, data: bytes) -> None:
    if not data.startswith(PNG_SIGNATURE):
        raise EmbedFailure("Signature is declared as PNG but is not PNG data.")
    page.insert_image(rect, stream=data, keep_proportion=False, overlay=True)


def _embed_jpeg(page: fitz.Page, rect: fitz.Rect, data: bytes) -> None:
    if not data.startswith(JPEG_SIGNATURE):
        raise EmbedFailure("Signature is declared as JPEG but is not JPEG data.")
    page.insert_image(rect, stream=data, keep_proportion=False, overlay=True)


EMBEDDERS: Dict[str, Callable[[fitz.Page, fitz.Rect, bytes], None]] = {
    "PNG": _embed_png,
    "JPEG": _embed_jpeg,
}


def embed_mark(
    doc: fitz.Document,
    mark: LoadedMark,
    placement: PdfPlacement,
    page_index: int = 0,
) -> fitz.Rect:
    """Draw the mark on the requested page and return the rectangle used."""
    embedder = EMBEDDERS.get(mark.format)
    if embedder is None:
        raise EmbedFailure(
            f"{mark.name} is a {mark.format} image; only PNG and JPEG can be embedded."
        )

    try:
        page = doc.load_page(page_index)
    except IndexError as exc:
        raise EmbedFailure(
            f"Page {page_index} is out of range for document with {len(doc)} page(s)."
        ) from exc

    rect = to_page_rect(placement, page.rect)
    try:
        embedder(page, rect, mark.data)
    except EmbedFailure:
        raise
    except (RuntimeError, ValueError) as exc:
        raise EmbedFailure(f"Unable to embed {mark.name}: {exc}") from exc
    return rect


def serialize(doc: fitz.Document) -> bytes:
    try:
        return doc.tobytes(garbage=4, deflate=True)
    except (RuntimeError, ValueError) as exc:
        raise EmbedFailure(f"Unable to write the signed PDF: {exc}") from exc


def sign_pdf(
    data: bytes,
    mark: LoadedMark,
    placement: Placement,
    rendered: Size,
    pdf_opener=fitz.open,
) -> bytes:
    """Return a copy of ``data`` with ``mark`` drawn on page 1 at ``placement``."""
    doc = open_document(data, pdf_opener=pdf_opener)
    try:
        page_rect = doc.load_page(0).rect
        native = Size(page_rect.width, page_rect.height)
        pdf_placement = map_to_pdf(rendered, native, placement, mark.display_size)
        rect = embed_mark(doc, mark, pdf_placement)
        logger.info(
            "Embedded %s at (%.1f, %.1f) size %sx%s on page 1",
            mark.name,
            pdf_placement.x,
            pdf_placement.y,
            pdf_placement.width,
            pdf_placement.height,
        )
        logger.debug("Page rectangle for embed: %s", rect)
        return serialize(doc)
    finally:
        doc.close()
