from __future__ import annotations

import sys
from pathlib import Path

import pytest


# Ensure the src/ directory is importable when running tests without
# installing the package in editable mode.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


def make_pdf_bytes(width: float = 612, height: float = 792, pages: int = 1) -> bytes:
    import fitz

    doc = fitz.open()
    for _ in range(pages):
        doc.new_page(width=width, height=height)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def make_pdf():
    return make_pdf_bytes


@pytest.fixture
def pdf_path(tmp_path: Path) -> Path:
    path = tmp_path / "contract.pdf"
    path.write_bytes(make_pdf_bytes())
    return path


@pytest.fixture
def png_path(tmp_path: Path) -> Path:
    from PIL import Image

    path = tmp_path / "sig.png"
    Image.new("RGBA", (40, 20), color=(0, 0, 255, 128)).save(path)
    return path


@pytest.fixture
def jpeg_path(tmp_path: Path) -> Path:
    from PIL import Image

    path = tmp_path / "sig.jpg"
    Image.new("RGB", (40, 20), color="black").save(path, format="JPEG")
    return path


@pytest.fixture
def gif_path(tmp_path: Path) -> Path:
    from PIL import Image

    path = tmp_path / "sig.gif"
    Image.new("P", (40, 20)).save(path, format="GIF")
    return path


@pytest.fixture
def text_path(tmp_path: Path) -> Path:
    path = tmp_path / "notes.txt"
    path.write_text("not a pdf, not an image")
    return path
