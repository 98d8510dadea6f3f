from __future__ import annotations

import io
import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from PIL import Image

from .config import DEFAULT_MARK_SIZE, DEFAULT_PLACEMENT, MIN_MARK_SIZE
from .errors import InvalidFileType
from .layout import centered_on_pointer, clamp_placement, contains, scale_placement
from .models import DragState, LoadedDocument, LoadedMark, Placement, Size


logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF-"
# Readers tolerate leading garbage before the header within the first KiB.
PDF_HEADER_WINDOW = 1024


def is_pdf(data: bytes) -> bool:
    return PDF_MAGIC in data[:PDF_HEADER_WINDOW]


def sniff_image_format(data: bytes) -> Optional[str]:
    """Return Pillow's format name for ``data`` or None if it is not an image."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            return img.format
    except (OSError, ValueError):
        return None


def decode_preview(mark: LoadedMark) -> Image.Image:
    """Fully decode a mark into an RGBA image suitable for on-screen preview."""
    try:
        with Image.open(io.BytesIO(mark.data)) as img:
            img.load()
            return img.convert("RGBA")
    except (OSError, ValueError) as exc:
        raise InvalidFileType(f"Unable to decode image {mark.name}.") from exc


class DocumentSource:
    def __init__(self) -> None:
        self.current: Optional[LoadedDocument] = None
        self.generation: int = 0

    def load(self, path: Path) -> LoadedDocument:
        path = Path(path)
        data = path.read_bytes()
        if not is_pdf(data):
            raise InvalidFileType(f"{path.name} is not a PDF document.")
        self.generation += 1
        self.current = LoadedDocument(name=path.name, data=data)
        logger.info("Loaded document %s (%d bytes)", path.name, len(data))
        return self.current

    def report_render(self, generation: int, rendered: Size, native: Size) -> bool:
        """Store page dimensions unless the render belongs to a replaced document."""
        if self.current is None or generation != self.generation:
            logger.debug("Discarding stale render for generation %d", generation)
            return False
        self.current.rendered_width = rendered.width
        self.current.rendered_height = rendered.height
        self.current.native_width = native.width
        self.current.native_height = native.height
        return True

    def invalidate_render(self, generation: int) -> None:
        if self.current is not None and generation == self.generation:
            self.current.rendered_width = 0.0
            self.current.rendered_height = 0.0


class MarkSource:
    def __init__(self) -> None:
        self.current: Optional[LoadedMark] = None
        self.preview: Optional[Image.Image] = None
        self.generation: int = 0
        self.display_size = Size(*DEFAULT_MARK_SIZE)

    def load(self, path: Path) -> LoadedMark:
        path = Path(path)
        data = path.read_bytes()
        fmt = sniff_image_format(data)
        if fmt is None:
            raise InvalidFileType(f"{path.name} is not an image.")
        self.generation += 1
        self.preview = None
        self.current = LoadedMark(
            name=path.name,
            data=data,
            format=fmt,
            display_width=self.display_size.width,
            display_height=self.display_size.height,
        )
        logger.info("Loaded signature %s (%s)", path.name, fmt)
        return self.current

    def apply_preview(self, generation: int, image: Image.Image) -> bool:
        if self.current is None or generation != self.generation:
            logger.debug("Discarding stale preview for generation %d", generation)
            return False
        self.preview = image
        return True

    def set_display_size(self, width: float, height: float) -> Size:
        size = Size(max(MIN_MARK_SIZE, int(width)), max(MIN_MARK_SIZE, int(height)))
        self.display_size = size
        if self.current is not None:
            self.current.display_width = size.width
            self.current.display_height = size.height
        return size

    @property
    def ready(self) -> bool:
        return self.current is not None and self.preview is not None


class PlacementTracker:
    """Idle/Dragging state machine for the draggable mark."""

    def __init__(self, position: Placement = Placement(*DEFAULT_PLACEMENT)) -> None:
        self.position = position
        self.state = DragState.IDLE

    @property
    def is_dragging(self) -> bool:
        return self.state is DragState.DRAGGING

    def press(self, x: float, y: float, mark: Size) -> bool:
        if not contains(self.position, mark, x, y):
            return False
        self.state = DragState.DRAGGING
        return True

    def move(self, x: float, y: float, viewport: Size, mark: Size) -> Placement:
        if not self.is_dragging:
            return self.position
        if not (0 <= x <= viewport.width and 0 <= y <= viewport.height):
            self.leave()
            return self.position
        self.position = clamp_placement(centered_on_pointer(x, y, mark), viewport, mark)
        return self.position

    def release(self) -> None:
        self.state = DragState.IDLE

    # Leaving the viewport counts as a release, not a cancel.
    leave = release

    def reclamp(self, viewport: Size, mark: Size) -> Placement:
        self.position = clamp_placement(self.position, viewport, mark)
        return self.position

    def rescale(self, old: Size, new: Size) -> Placement:
        """Follow the page when the same document is redrawn at another size."""
        self.position = scale_placement(self.position, old, new)
        return self.position


@dataclass(frozen=True)
class ExportSnapshot:
    document: LoadedDocument
    mark: LoadedMark
    placement: Placement
    export_name: str
    document_generation: int
    mark_generation: int


class SigningSession:
    """All mutable state of the signing window, changed only through these methods."""

    def __init__(self) -> None:
        self.documents = DocumentSource()
        self.marks = MarkSource()
        self.tracker = PlacementTracker()
        self.export_name: str = ""
        self.download_complete: bool = False

    @property
    def document(self) -> Optional[LoadedDocument]:
        return self.documents.current

    @property
    def mark(self) -> Optional[LoadedMark]:
        return self.marks.current

    @property
    def can_export(self) -> bool:
        return (
            self.document is not None
            and self.document.is_rendered
            and self.marks.ready
        )

    def open_document(self, path: Path) -> int:
        document = self.documents.load(path)
        self.export_name = document.base_name
        self.download_complete = False
        return self.documents.generation

    def apply_render(self, generation: int, rendered: Size, native: Size) -> bool:
        document = self.document
        previous = document.rendered_size if document and document.is_rendered else None
        if not self.documents.report_render(generation, rendered, native):
            return False
        if previous is not None and previous != rendered:
            self.tracker.rescale(previous, rendered)
        self.tracker.reclamp(rendered, self.marks.display_size)
        return True

    def open_mark(self, path: Path) -> int:
        self.marks.load(path)
        self.download_complete = False
        return self.marks.generation

    def apply_preview(self, generation: int, image: Image.Image) -> bool:
        return self.marks.apply_preview(generation, image)

    def resize_mark(self, width: float, height: float) -> Size:
        size = self.marks.set_display_size(width, height)
        if self.document is not None and self.document.is_rendered:
            self.tracker.reclamp(self.document.rendered_size, size)
        return size

    def snapshot(self) -> ExportSnapshot:
        if self.document is None or self.mark is None:
            raise ValueError("a document and a signature are required")
        return ExportSnapshot(
            document=replace(self.document),
            mark=replace(self.mark),
            placement=self.tracker.position,
            export_name=self.export_name,
            document_generation=self.documents.generation,
            mark_generation=self.marks.generation,
        )

    def finish_export(self, snapshot: ExportSnapshot) -> bool:
        """Flag the download as complete if the exported files are still current."""
        current = (
            snapshot.document_generation == self.documents.generation
            and snapshot.mark_generation == self.marks.generation
        )
        self.download_complete = current
        return current
