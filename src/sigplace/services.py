from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from tkinter import filedialog, messagebox

from .config import DEFAULT_DOWNLOAD_DIR
from .errors import SaveFailure


logger = logging.getLogger(__name__)


class FileDialogs(Protocol):
    def ask_open_pdf(self, parent) -> Path | None: ...

    def ask_image(self, parent) -> Path | None: ...


class MessageService(Protocol):
    def info(self, title: str, message: str) -> None: ...

    def error(self, title: str, message: str) -> None: ...


class DownloadService(Protocol):
    def save(self, filename: str, data: bytes) -> Path: ...


class DefaultFileDialogs:
    def ask_open_pdf(self, parent) -> Path | None:
        filename = filedialog.askopenfilename(
            title="Upload PDF", filetypes=[("PDF files", "*.pdf")], parent=parent
        )
        return Path(filename) if filename else None

    def ask_image(self, parent) -> Path | None:
        filename = filedialog.askopenfilename(
            title="Upload signature",
            filetypes=[
                ("Image files", "*.png *.jpg *.jpeg"),
                ("All images", "*.png *.jpg *.jpeg *.gif *.bmp *.webp"),
                ("All files", "*.*"),
            ],
            parent=parent,
        )
        return Path(filename) if filename else None


class DefaultMessageService:
    def info(self, title: str, message: str) -> None:  # pragma: no cover - UI side effect
        messagebox.showinfo(title, message)

    def error(self, title: str, message: str) -> None:  # pragma: no cover - UI side effect
        messagebox.showerror(title, message)


def safe_filename(filename: str) -> str:
    return filename.replace("/", "_").replace("\\", "_")


def numbered(path: Path, n: int) -> Path:
    return path.with_name(f"{path.stem} ({n}){path.suffix}")


class DownloadsFolder:
    """Drops files into a folder the way a browser download would.

    Existing files are never overwritten; a numbered copy such as
    ``signed-document (1).pdf`` is written instead.
    """

    def __init__(self, directory: Path = DEFAULT_DOWNLOAD_DIR) -> None:
        self.directory = Path(directory)

    def save(self, filename: str, data: bytes) -> Path:
        target = self.directory / safe_filename(filename)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            n = 0
            while True:
                candidate = numbered(target, n) if n else target
                try:
                    with open(candidate, "xb") as fh:
                        fh.write(data)
                except FileExistsError:
                    n += 1
                    continue
                break
        except (OSError, ValueError) as exc:
            raise SaveFailure(f"Could not save {filename}: {exc}") from exc
        logger.info("Saved %s (%d bytes)", candidate, len(data))
        return candidate
