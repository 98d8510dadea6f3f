from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .config import DEFAULT_MARK_SIZE, EMBEDDABLE_FORMATS


@dataclass(frozen=True)
class Size:
    width: float
    height: float

    @property
    def is_positive(self) -> bool:
        return self.width > 0 and self.height > 0


@dataclass(frozen=True)
class Placement:
    """Top-left corner of the mark in viewport pixels."""

    x: float
    y: float


@dataclass(frozen=True)
class PdfPlacement:
    """Lower-left anchor and size of the mark in PDF points (origin bottom-left)."""

    x: float
    y: float
    width: float
    height: float


class DragState(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


@dataclass
class LoadedDocument:
    name: str
    data: bytes
    rendered_width: float = 0.0
    rendered_height: float = 0.0
    native_width: float = 0.0
    native_height: float = 0.0

    @property
    def base_name(self) -> str:
        path = Path(self.name)
        return path.stem if path.suffix.lower() == ".pdf" else path.name

    @property
    def is_rendered(self) -> bool:
        return self.rendered_width > 0 and self.rendered_height > 0

    @property
    def rendered_size(self) -> Size:
        return Size(self.rendered_width, self.rendered_height)

    @property
    def native_size(self) -> Size:
        return Size(self.native_width, self.native_height)


@dataclass
class LoadedMark:
    name: str
    data: bytes
    format: str
    display_width: int = DEFAULT_MARK_SIZE[0]
    display_height: int = DEFAULT_MARK_SIZE[1]

    @property
    def embeddable(self) -> bool:
        return self.format in EMBEDDABLE_FORMATS

    @property
    def display_size(self) -> Size:
        return Size(self.display_width, self.display_height)
