from __future__ import annotations

import logging
import tkinter as tk
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Optional

import customtkinter as ctk
import pymupdf as fitz  # PyMuPDF
from PIL import Image, ImageTk

# Absolute imports so the module also works as a standalone entry script.
from sigplace.config import (
    APP_DESCRIPTION,
    APP_NAME,
    DEFAULT_CANVAS_BG,
    DEFAULT_RENDER_DEBOUNCE_MS,
    DEFAULT_STATUS_BG,
    DOWNLOAD_COMPLETE_RESET_MS,
    EXPORT_POLL_MS,
    LOG_FORMAT,
    MARK_OUTLINE,
)
from sigplace.controllers import ExportSnapshot, SigningSession, decode_preview
from sigplace.errors import InvalidFileType, RenderingFailure, SigningError
from sigplace.export import ExportOrchestrator
from sigplace.models import Size
from sigplace.rendering import render_first_page
from sigplace.services import (
    DefaultFileDialogs,
    DefaultMessageService,
    DownloadService,
    DownloadsFolder,
    FileDialogs,
    MessageService,
)


logger = logging.getLogger(__name__)

ctk.set_appearance_mode("dark")
ctk.set_default_color_theme("dark-blue")

DOWNLOAD_LABEL = "Download Signed PDF"
PROCESSING_LABEL = "Processing..."
COMPLETE_LABEL = "Downloaded Successfully!"


class SignatureApp(ctk.CTk):
    def __init__(
        self,
        file_dialogs: FileDialogs | None = None,
        messages: MessageService | None = None,
        downloads: DownloadService | None = None,
        pdf_opener=fitz.open,
    ) -> None:
        super().__init__()
        self.title(APP_NAME)
        self.geometry("1200x900")

        self.file_dialogs = file_dialogs or DefaultFileDialogs()
        self.messages = messages or DefaultMessageService()
        self._open_pdf_bytes = pdf_opener
        self.session = SigningSession()
        self.exporter = ExportOrchestrator(
            downloads or DownloadsFolder(), pdf_opener=pdf_opener
        )
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="export")
        self._export_future: Optional[Future] = None
        self._export_snapshot: Optional[ExportSnapshot] = None

        self.page_photo: Optional[ImageTk.PhotoImage] = None
        self.mark_photo: Optional[ImageTk.PhotoImage] = None
        self.preview_image: Optional[ctk.CTkImage] = None
        self._mark_items: list[int] = []
        self._render_job: Optional[str] = None
        self._reset_job: Optional[str] = None

        self.status_var = tk.StringVar(value="Upload a PDF to get started.")
        self.export_name_var = tk.StringVar(value="")
        self.width_var = tk.StringVar(value=str(self.session.marks.display_size.width))
        self.height_var = tk.StringVar(value=str(self.session.marks.display_size.height))
        self.export_name_var.trace_add("write", self._on_export_name_changed)
        self.width_var.trace_add("write", self._on_size_changed)
        self.height_var.trace_add("write", self._on_size_changed)

        self._build_ui()

    # Tk helpers --------------------------------------------------------------
    def winfo_exists(self) -> bool:  # type: ignore[override]
        """Return False instead of raising if the Tk app has already been destroyed."""
        try:
            return bool(super().winfo_exists())
        except tk.TclError:
            return False

    def destroy(self) -> None:
        self._executor.shutdown(wait=False)
        super().destroy()

    # UI setup -----------------------------------------------------------------
    def _build_ui(self) -> None:
        body = ctk.CTkFrame(self, fg_color="transparent")
        body.pack(fill=tk.BOTH, expand=True, padx=12, pady=12)

        sidebar = ctk.CTkFrame(body, width=300, corner_radius=12)
        sidebar.pack(side=tk.LEFT, fill=tk.Y, padx=(0, 12))
        heading_font = ctk.CTkFont(size=16, weight="bold")
        button_kwargs = {"corner_radius": 8, "height": 36}

        ctk.CTkLabel(sidebar, text="Upload PDF", font=heading_font, anchor="w").pack(
            fill=tk.X, padx=12, pady=(12, 4)
        )
        ctk.CTkButton(
            sidebar, text="Choose PDF...", command=self._open_pdf, **button_kwargs
        ).pack(fill=tk.X, padx=12)
        self.pdf_label = ctk.CTkLabel(sidebar, text="No PDF selected", anchor="w")
        self.pdf_label.pack(fill=tk.X, padx=12, pady=(4, 0))
        ctk.CTkLabel(sidebar, text="Download File Name", anchor="w").pack(
            fill=tk.X, padx=12, pady=(8, 0)
        )
        ctk.CTkEntry(sidebar, textvariable=self.export_name_var).pack(fill=tk.X, padx=12)

        ctk.CTkLabel(
            sidebar, text="Upload Signature", font=heading_font, anchor="w"
        ).pack(fill=tk.X, padx=12, pady=(20, 4))
        ctk.CTkButton(
            sidebar,
            text="Choose image...",
            command=self._load_signature,
            **button_kwargs,
        ).pack(fill=tk.X, padx=12)
        self.preview_label = ctk.CTkLabel(sidebar, text="No signature selected")
        self.preview_label.pack(padx=12, pady=8)

        size_row = ctk.CTkFrame(sidebar, fg_color="transparent")
        size_row.pack(fill=tk.X, padx=12)
        ctk.CTkLabel(size_row, text="Width (px)").grid(row=0, column=0, sticky="w")
        ctk.CTkLabel(size_row, text="Height (px)").grid(row=0, column=1, sticky="w")
        ctk.CTkEntry(size_row, textvariable=self.width_var, width=120).grid(
            row=1, column=0, padx=(0, 6)
        )
        ctk.CTkEntry(size_row, textvariable=self.height_var, width=120).grid(
            row=1, column=1
        )

        self.download_button = ctk.CTkButton(
            sidebar,
            text=DOWNLOAD_LABEL,
            command=self._download,
            state=tk.DISABLED,
            corner_radius=10,
            height=44,
        )
        self.download_button.pack(fill=tk.X, padx=12, pady=20)

        canvas_frame = ctk.CTkFrame(body, corner_radius=12)
        canvas_frame.pack(side=tk.LEFT, fill=tk.BOTH, expand=True)
        self.canvas = tk.Canvas(
            canvas_frame,
            bg=DEFAULT_CANVAS_BG,
            highlightthickness=0,
            bd=0,
        )
        self.canvas.pack(fill=tk.BOTH, expand=True, padx=8, pady=8)
        self.canvas.bind("<ButtonPress-1>", self._on_press)
        self.canvas.bind("<Motion>", self._on_motion)
        self.canvas.bind("<ButtonRelease-1>", self._on_release)
        self.canvas.bind("<Leave>", self._on_leave)
        self.canvas.bind("<Configure>", self._handle_canvas_resize)

        status_bar = ctk.CTkFrame(self, fg_color=DEFAULT_STATUS_BG, corner_radius=0)
        status_bar.pack(fill=tk.X)
        ctk.CTkLabel(
            status_bar,
            textvariable=self.status_var,
            anchor="w",
            font=ctk.CTkFont(size=13),
        ).pack(fill=tk.X, padx=10, pady=6)

    # File pickers -------------------------------------------------------------
    def _open_pdf(self) -> None:
        path = self.file_dialogs.ask_open_pdf(self)
        if not path:
            return
        try:
            generation = self.session.open_document(path)
        except InvalidFileType as exc:
            self.messages.error("Invalid file", str(exc))
            return
        except OSError as exc:
            logger.warning("Could not read %s: %s", path, exc)
            self.messages.error("Error", "Unable to read that file.")
            return

        self.pdf_label.configure(text=Path(path).name)
        self.export_name_var.set(self.session.export_name)
        self.status_var.set("PDF loaded. Upload a signature and drag it into place.")
        self._cancel_download_reset()
        self._schedule_render(0, generation)
        self._refresh_download_button()

    def _load_signature(self) -> None:
        path = self.file_dialogs.ask_image(self)
        if not path:
            return
        try:
            generation = self.session.open_mark(path)
        except InvalidFileType as exc:
            self.messages.error("Invalid file", str(exc))
            return
        except OSError as exc:
            logger.warning("Could not read %s: %s", path, exc)
            self.messages.error("Error", "Unable to read that file.")
            return

        self._remove_mark_items()
        self._cancel_download_reset()
        self._refresh_download_button()
        self.after_idle(self._decode_signature, generation)

    def _decode_signature(self, generation: int) -> None:
        mark = self.session.mark
        if mark is None or generation != self.session.marks.generation:
            return
        try:
            preview = decode_preview(mark)
        except InvalidFileType as exc:
            self.messages.error("Invalid file", str(exc))
            return
        if not self.session.apply_preview(generation, preview):
            return

        if mark.embeddable:
            self.status_var.set(f"Loaded {mark.name}. Drag it to position.")
        else:
            self.status_var.set(
                f"{mark.name} is {mark.format}; only PNG and JPEG signatures can be embedded."
            )
        self._update_preview()
        self._draw_mark()
        self._refresh_download_button()

    # Inputs ---------------------------------------------------------------------
    def _on_export_name_changed(self, *_args) -> None:
        self.session.export_name = self.export_name_var.get()

    def _on_size_changed(self, *_args) -> None:
        try:
            width = int(self.width_var.get())
            height = int(self.height_var.get())
        except ValueError:
            return
        size = self.session.resize_mark(width, height)
        # Show the clamped value; the trace fires again but sees no change.
        if size.width != width:
            self.width_var.set(str(size.width))
        if size.height != height:
            self.height_var.set(str(size.height))
        self._update_preview()
        self._draw_mark()

    # Page rendering -------------------------------------------------------------
    def _schedule_render(self, delay: int, generation: int) -> None:
        if self._render_job:
            self.after_cancel(self._render_job)
        self._render_job = self.after(delay, self._render_page, generation)

    def _render_page(self, generation: int) -> None:
        self._render_job = None
        document = self.session.document
        if document is None:
            self._draw_placeholder("Upload a PDF to see preview")
            return
        # PyMuPDF must not run on two threads at once.
        if self._export_future is not None:
            self._schedule_render(DEFAULT_RENDER_DEBOUNCE_MS, generation)
            return

        box = Size(max(100, self.canvas.winfo_width()), max(100, self.canvas.winfo_height()))
        try:
            page = render_first_page(document.data, box, pdf_opener=self._open_pdf_bytes)
        except RenderingFailure as exc:
            logger.warning("Rendering failed for %s: %s", document.name, exc)
            self.session.documents.invalidate_render(generation)
            self._draw_placeholder("This PDF could not be displayed.")
            self.status_var.set(str(exc))
            self._refresh_download_button()
            return

        if not self.session.apply_render(generation, page.rendered, page.native):
            return

        self.page_photo = ImageTk.PhotoImage(page.image)
        self.canvas.delete("all")
        self._mark_items = []
        self.canvas.create_image(0, 0, image=self.page_photo, anchor="nw")
        self._draw_mark()
        self._refresh_download_button()

    def _draw_placeholder(self, text: str) -> None:
        self.canvas.delete("all")
        self._mark_items = []
        self.canvas.create_text(
            self.canvas.winfo_width() / 2,
            self.canvas.winfo_height() / 2,
            text=text,
            fill="#bbbbbb",
            font=("Segoe UI", 16),
        )

    def _handle_canvas_resize(self, _event: tk.Event) -> None:  # type: ignore[override]
        if self.session.document is None:
            self._draw_placeholder("Upload a PDF to see preview")
            return
        self._schedule_render(DEFAULT_RENDER_DEBOUNCE_MS, self.session.documents.generation)

    # Signature overlay ------------------------------------------------------------
    def _mark_visible(self) -> bool:
        document = self.session.document
        return document is not None and document.is_rendered and self.session.marks.ready

    def _update_preview(self) -> None:
        preview = self.session.marks.preview
        if preview is None:
            return
        size = self.session.marks.display_size
        self.preview_image = ctk.CTkImage(
            light_image=preview, dark_image=preview, size=(size.width, size.height)
        )
        self.preview_label.configure(image=self.preview_image, text="")

    def _draw_mark(self) -> None:
        self._remove_mark_items()
        if not self._mark_visible():
            return

        size = self.session.marks.display_size
        resized = self.session.marks.preview.resize(
            (int(size.width), int(size.height)), Image.LANCZOS
        )
        self.mark_photo = ImageTk.PhotoImage(resized)
        x, y = self.session.tracker.position.x, self.session.tracker.position.y
        self._mark_items = [
            self.canvas.create_image(x, y, image=self.mark_photo, anchor="nw"),
            self.canvas.create_rectangle(
                x, y, x + size.width, y + size.height, outline=MARK_OUTLINE, width=2
            ),
            self.canvas.create_text(
                x + size.width / 2,
                y - 10,
                text="Drag to position",
                fill=MARK_OUTLINE,
                font=("Segoe UI", 10),
            ),
        ]

    def _move_mark_items(self) -> None:
        if len(self._mark_items) != 3:
            self._draw_mark()
            return
        image_id, outline_id, caption_id = self._mark_items
        size = self.session.marks.display_size
        x, y = self.session.tracker.position.x, self.session.tracker.position.y
        self.canvas.coords(image_id, x, y)
        self.canvas.coords(outline_id, x, y, x + size.width, y + size.height)
        self.canvas.coords(caption_id, x + size.width / 2, y - 10)

    def _remove_mark_items(self) -> None:
        for item in self._mark_items:
            self.canvas.delete(item)
        self._mark_items = []
        self.mark_photo = None

    # Pointer events --------------------------------------------------------------
    def _on_press(self, event: tk.Event) -> Optional[str]:
        if not self._mark_visible():
            return None
        if self.session.tracker.press(event.x, event.y, self.session.marks.display_size):
            return "break"
        return None

    def _on_motion(self, event: tk.Event) -> None:
        if not self.session.tracker.is_dragging or not self._mark_visible():
            return
        self.session.tracker.move(
            event.x,
            event.y,
            self.session.document.rendered_size,
            self.session.marks.display_size,
        )
        self._move_mark_items()

    def _on_release(self, _event: tk.Event) -> None:
        self.session.tracker.release()

    def _on_leave(self, _event: tk.Event) -> None:
        self.session.tracker.leave()

    # Export -----------------------------------------------------------------------
    def _download(self) -> None:
        if self._export_future is not None or self.exporter.in_flight:
            return
        if not self.session.can_export:
            self.messages.info("Not ready", "Upload a PDF and a signature first.")
            return

        snapshot = self.session.snapshot()
        self._cancel_download_reset()
        self._export_snapshot = snapshot
        self._export_future = self._executor.submit(
            self.exporter.export,
            snapshot.document,
            snapshot.mark,
            snapshot.placement,
            snapshot.export_name,
        )
        self._refresh_download_button()
        self.after(EXPORT_POLL_MS, self._poll_export)

    def _poll_export(self) -> None:
        future = self._export_future
        if future is None:
            return
        if not future.done():
            self.after(EXPORT_POLL_MS, self._poll_export)
            return

        snapshot = self._export_snapshot
        self._export_future = None
        self._export_snapshot = None
        try:
            saved = future.result()
        except SigningError as exc:
            logger.warning("Signing failed: %s", exc)
            self.messages.error("Could not sign PDF", str(exc))
            return
        finally:
            self._refresh_download_button()

        if saved is None:
            return
        self.status_var.set(f"Saved signed PDF to {saved}")
        if snapshot is not None and self.session.finish_export(snapshot):
            self._reset_job = self.after(
                DOWNLOAD_COMPLETE_RESET_MS, self._clear_download_complete
            )
        self._refresh_download_button()

    def _clear_download_complete(self) -> None:
        self._reset_job = None
        self.session.download_complete = False
        self._refresh_download_button()

    def _cancel_download_reset(self) -> None:
        if self._reset_job:
            self.after_cancel(self._reset_job)
            self._reset_job = None
        self.session.download_complete = False

    def _refresh_download_button(self) -> None:
        busy = self._export_future is not None
        if busy:
            text = PROCESSING_LABEL
        elif self.session.download_complete:
            text = COMPLETE_LABEL
        else:
            text = DOWNLOAD_LABEL
        ready = self.session.can_export and not busy
        self.download_button.configure(
            text=text, state=tk.NORMAL if ready else tk.DISABLED
        )


def main() -> None:
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    logger.info("Starting %s: %s", APP_NAME, APP_DESCRIPTION)
    app = SignatureApp()
    app.mainloop()


if __name__ == "__main__":
    main()
