from __future__ import annotations

from pathlib import Path


APP_NAME = "PDF Signature Tool"
APP_DESCRIPTION = (
    "Upload your PDF document and signature, "
    "then drag and drop to sign your document."
)


DEFAULT_MARK_SIZE = (100, 50)
DEFAULT_PLACEMENT = (50.0, 50.0)
MIN_MARK_SIZE = 1
DEFAULT_EXPORT_NAME = "signed-document"
EMBEDDABLE_FORMATS = frozenset({"PNG", "JPEG"})
DEFAULT_DOWNLOAD_DIR = Path.home() / "Downloads"

MIN_RENDER_ZOOM = 0.25
DEFAULT_CANVAS_BG = "#111111"
DEFAULT_STATUS_BG = "#0f0f0f"
MARK_OUTLINE = "#60a5fa"
DEFAULT_RENDER_DEBOUNCE_MS = 120
DOWNLOAD_COMPLETE_RESET_MS = 3000
EXPORT_POLL_MS = 50

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

