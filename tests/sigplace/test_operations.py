from __future__ import annotations

import fitz  # PyMuPDF
import pytest

from sigplace.errors import EmbedFailure
from sigplace.models import LoadedMark, PdfPlacement, Placement, Size
from sigplace.operations import embed_mark, open_document, serialize, sign_pdf


class RecordingPage:
    def __init__(self, rect=fitz.Rect(0, 0, 612, 792)):
        self.rect = rect
        self.calls: list[dict] = []

    def insert_image(self, rect, stream, keep_proportion=True, overlay=True):
        self.calls.append(
            {
                "rect": rect,
                "stream": stream,
                "keep_proportion": keep_proportion,
                "overlay": overlay,
            }
        )


class ExplodingPage(RecordingPage):
    def insert_image(self, rect, stream, keep_proportion=True, overlay=True):
        raise ValueError("bad image")


class DummyDoc:
    def __init__(self, pages):
        self._pages = pages

    def __len__(self) -> int:
        return len(self._pages)

    def load_page(self, index: int):
        return self._pages[index]


def _mark(path, fmt: str) -> LoadedMark:
    return LoadedMark(name=path.name, data=path.read_bytes(), format=fmt)


PLACEMENT = PdfPlacement(51, 692.5, 100, 50)


def test_embed_mark_png_draws_at_flipped_rect(png_path):
    page = RecordingPage()

    rect = embed_mark(DummyDoc([page]), _mark(png_path, "PNG"), PLACEMENT)

    assert rect == fitz.Rect(51, 49.5, 151, 99.5)
    call = page.calls[0]
    assert call["rect"] == rect
    assert call["stream"] == png_path.read_bytes()
    assert call["keep_proportion"] is False
    assert call["overlay"] is True


def test_embed_mark_jpeg_uses_jpeg_embedder(jpeg_path):
    page = RecordingPage()

    embed_mark(DummyDoc([page]), _mark(jpeg_path, "JPEG"), PLACEMENT)

    assert len(page.calls) == 1


def test_embed_mark_rejects_unsupported_format(gif_path):
    page = RecordingPage()

    with pytest.raises(EmbedFailure) as excinfo:
        embed_mark(DummyDoc([page]), _mark(gif_path, "GIF"), PLACEMENT)

    assert "only PNG and JPEG" in str(excinfo.value)
    assert page.calls == []


def test_embed_mark_rejects_bytes_that_do_not_match_declared_format(jpeg_path):
    page = RecordingPage()

    with pytest.raises(EmbedFailure):
        embed_mark(DummyDoc([page]), _mark(jpeg_path, "PNG"), PLACEMENT)

    assert page.calls == []


def test_embed_mark_wraps_page_index_errors(png_path):
    with pytest.raises(EmbedFailure) as excinfo:
        embed_mark(DummyDoc([]), _mark(png_path, "PNG"), PLACEMENT, page_index=3)

    assert "out of range" in str(excinfo.value)


def test_embed_mark_wraps_collaborator_errors(png_path):
    with pytest.raises(EmbedFailure):
        embed_mark(DummyDoc([ExplodingPage()]), _mark(png_path, "PNG"), PLACEMENT)


def test_open_document_rejects_garbage():
    with pytest.raises(EmbedFailure):
        open_document(b"%PDF-1.7 this is not really a pdf")


def test_open_document_rejects_empty_document():
    def opener(stream, filetype):
        return fitz.open()

    with pytest.raises(EmbedFailure):
        open_document(b"%PDF-", pdf_opener=opener)


@pytest.mark.parametrize("fixture, fmt", [("png_path", "PNG"), ("jpeg_path", "JPEG")])
def test_sign_pdf_places_image_on_first_page(request, make_pdf, fixture, fmt):
    path = request.getfixturevalue(fixture)
    mark = _mark(path, fmt)

    signed = sign_pdf(make_pdf(pages=2), mark, Placement(50, 50), Size(600, 800))

    doc = fitz.open(stream=signed, filetype="pdf")
    try:
        assert len(doc) == 2
        first = doc.load_page(0)
        images = first.get_images(full=True)
        assert images
        (bbox,) = first.get_image_rects(images[0][0])
        assert bbox.x0 == pytest.approx(51, abs=0.01)
        assert bbox.y0 == pytest.approx(49.5, abs=0.01)
        assert bbox.x1 == pytest.approx(151, abs=0.01)
        assert bbox.y1 == pytest.approx(99.5, abs=0.01)
        assert doc.load_page(1).get_images() == []
    finally:
        doc.close()


def test_serialize_returns_pdf_bytes(make_pdf):
    doc = fitz.open(stream=make_pdf(), filetype="pdf")
    try:
        assert serialize(doc).startswith(b"%PDF-")
    finally:
        doc.close()
