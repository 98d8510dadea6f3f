from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import pymupdf as fitz  # PyMuPDF

from .config import DEFAULT_EXPORT_NAME
from .errors import RenderingFailure
from .models import LoadedDocument, LoadedMark, Placement
from .operations import sign_pdf

if TYPE_CHECKING:
    from .services import DownloadService


logger = logging.getLogger(__name__)


def export_filename(export_name: str) -> str:
    return f"{export_name.strip() or DEFAULT_EXPORT_NAME}.pdf"


class ExportOrchestrator:
    """Signs the current document and hands the result to the download service.

    At most one export runs at a time; overlapping calls are refused.
    """

    def __init__(self, downloads: DownloadService, pdf_opener=fitz.open) -> None:
        self.downloads = downloads
        self._open_pdf = pdf_opener
        self._lock = threading.Lock()

    @property
    def in_flight(self) -> bool:
        return self._lock.locked()

    def export(
        self,
        document: LoadedDocument,
        mark: LoadedMark,
        placement: Placement,
        export_name: str,
    ) -> Optional[Path]:
        if not self._lock.acquire(blocking=False):
            logger.warning("Export already in progress; ignoring duplicate request")
            return None
        try:
            if not document.is_rendered:
                raise RenderingFailure("The page has not finished rendering yet.")
            signed = sign_pdf(
                document.data,
                mark,
                placement,
                document.rendered_size,
                pdf_opener=self._open_pdf,
            )
            return self.downloads.save(export_filename(export_name), signed)
        finally:
            self._lock.release()
