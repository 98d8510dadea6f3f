from __future__ import annotations

import fitz
import pytest

from sigplace.errors import RenderingFailure
from sigplace.models import Size
from sigplace.rendering import fit_zoom, render_first_page


def test_render_first_page_fits_box_and_reports_native_size(make_pdf):
    page = render_first_page(make_pdf(612, 792), Size(306, 1000))

    assert page.native == Size(612, 792)
    assert page.rendered == Size(306, 396)
    assert page.image.size == (306, 396)


def test_fit_zoom_has_a_floor():
    assert fit_zoom(fitz.Rect(0, 0, 1000, 1000), Size(10, 10)) == 0.25


def test_render_first_page_rejects_garbage():
    with pytest.raises(RenderingFailure):
        render_first_page(b"not a pdf at all", Size(600, 800))


def test_render_first_page_rejects_documents_without_pages():
    def opener(stream, filetype):
        return fitz.open()

    with pytest.raises(RenderingFailure):
        render_first_page(b"%PDF-", Size(600, 800), pdf_opener=opener)
