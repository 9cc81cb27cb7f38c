"""Rendering backend built from locally installed tools.

* Office documents and other formats LibreOffice understands go through a
  headless ``soffice`` process.
* Raster images are decoded with Pillow.
* HTML is laid out by WeasyPrint.
* PDF pages are edited with pypdf and linearized with ``qpdf`` when present.
"""

from __future__ import annotations

import glob
import io
import logging
import os
import shutil
import subprocess
import sys
import uuid
from pathlib import Path
from types import ModuleType

from pypdf import PdfWriter
from pypdf.errors import PyPdfError
from pypdf.generic import RectangleObject

from ..config import BackendConfig
from ..temp import TempArtifacts
from .base import PageGeometry, Rect, RenderingError, RenderingModuleMissing

LOGGER = logging.getLogger("pdf_conversion.rendering")

RASTER_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".bmp", ".gif", ".tif", ".tiff", ".webp"})

OFFICE_REMEDIATION = (
    "Install LibreOffice (https://www.libreoffice.org/download/).",
    "Make sure 'soffice' is on PATH or set backend.office_executable in config.toml.",
)
HTML_REMEDIATION = (
    "Install WeasyPrint: pip install weasyprint.",
    "Install its native Pango/GObject libraries (https://doc.courtbouillon.org/weasyprint/stable/first_steps.html).",
    "On Windows point backend.html_module_path at the directory containing the GTK DLLs.",
)
QPDF_SUCCESS_CODES = (0, 3)


def find_office_executable(configured: str | None = None) -> str | None:
    if configured:
        return configured if Path(configured).exists() or shutil.which(configured) else None
    for name in ("soffice", "libreoffice"):
        found = shutil.which(name)
        if found:
            return found
    if sys.platform == "win32":
        for pattern in (
            r"C:\Program Files\LibreOffice*\program\soffice.exe",
            r"C:\Program Files (x86)\LibreOffice*\program\soffice.exe",
        ):
            matches = sorted(glob.glob(pattern))
            if matches:
                return matches[-1]
    elif sys.platform == "darwin":
        candidate = "/Applications/LibreOffice.app/Contents/MacOS/soffice"
        if os.path.isfile(candidate):
            return candidate
    return None


class LocalRenderingBackend:
    def __init__(self, config: BackendConfig | None = None, temp_dir: Path | None = None) -> None:
        self._config = config or BackendConfig()
        self._temp_dir = temp_dir
        self._office: str | None = None
        self._qpdf: str | None = None
        self._weasyprint: ModuleType | None = None

    # -- lifecycle -----------------------------------------------------

    def initialize(self, license_key: str | None) -> None:
        if license_key:
            LOGGER.info("License key supplied; the local backend does not require one")
        self._office = find_office_executable(self._config.office_executable)
        if self._office:
            LOGGER.info("Using LibreOffice at %s", self._office)
        else:
            LOGGER.warning("LibreOffice not found; office conversions will fail until it is installed")
        self._qpdf = shutil.which("qpdf")
        if not self._qpdf:
            LOGGER.info("qpdf not found; PDFs will be saved without linearization")

    def availability(self) -> dict[str, bool]:
        try:
            self._load_weasyprint()
            html_ready = True
        except RenderingModuleMissing:
            html_ready = False
        return {
            "libreoffice": find_office_executable(self._config.office_executable) is not None,
            "weasyprint": html_ready,
            "qpdf": shutil.which("qpdf") is not None,
        }

    # -- rendering -----------------------------------------------------

    def render_office_to_pdf(self, source: Path) -> PdfWriter:
        LOGGER.debug("Using LibreOffice conversion for office document %s", source)
        return self._from_bytes(self._run_office(source))

    def render_generic_to_pdf(self, source: Path) -> PdfWriter:
        extension = source.suffix.lower()
        if extension == ".pdf":
            return self.open_pdf(source)
        if extension in RASTER_EXTENSIONS:
            LOGGER.debug("Using image conversion for %s", source)
            return self._from_bytes(self._render_image(source))
        LOGGER.debug("Using generic LibreOffice conversion for %s", source)
        return self._from_bytes(self._run_office(source))

    def render_html_string_to_pdf(self, html: str, base_url: str | None = None) -> PdfWriter:
        weasyprint = self._load_weasyprint()
        try:
            data = weasyprint.HTML(string=html, base_url=base_url).write_pdf()
        except Exception as exc:
            raise RenderingError(f"HTML rendering failed: {exc}") from exc
        return self._from_bytes(data)

    def render_html_url_to_pdf(self, url: str) -> PdfWriter:
        weasyprint = self._load_weasyprint()
        try:
            data = weasyprint.HTML(url=url).write_pdf()
        except Exception as exc:
            raise RenderingError(f"HTML rendering failed for {url}: {exc}") from exc
        return self._from_bytes(data)

    # -- page editing --------------------------------------------------

    def open_pdf(self, path: Path) -> PdfWriter:
        try:
            return PdfWriter(clone_from=str(path))
        except (PyPdfError, OSError, ValueError) as exc:
            raise RenderingError(f"Unable to open PDF {path.name}: {exc}") from exc

    def new_document(self) -> PdfWriter:
        return PdfWriter()

    def page_count(self, document: PdfWriter) -> int:
        return len(document.pages)

    def get_page_crop_box(self, document: PdfWriter, index: int) -> PageGeometry:
        box = document.pages[index].cropbox
        return PageGeometry(width=float(box.width), height=float(box.height))

    def scale_page(self, document: PdfWriter, index: int, factor: float) -> None:
        document.pages[index].scale_by(factor)

    def set_media_box(self, document: PdfWriter, index: int, rect: Rect) -> None:
        document.pages[index].mediabox = _rectangle(rect)

    def set_crop_box(self, document: PdfWriter, index: int, rect: Rect) -> None:
        document.pages[index].cropbox = _rectangle(rect)

    def insert_pages(
        self, destination: PdfWriter, source: PdfWriter, start: int = 0, stop: int | None = None
    ) -> None:
        stop = len(source.pages) if stop is None else stop
        for index in range(start, stop):
            destination.add_page(source.pages[index])

    def save(self, document: PdfWriter, path: Path, linearized: bool = True) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        qpdf = self._qpdf or shutil.which("qpdf")
        if not (linearized and self._config.linearize and qpdf):
            self._write(document, path)
            return

        staging = path.with_name(f".{path.stem}.{uuid.uuid4().hex}.tmp.pdf")
        try:
            self._write(document, staging)
            command = [qpdf, "--linearize", str(staging), str(path)]
            LOGGER.debug("Running qpdf command: %s", command)
            try:
                result = subprocess.run(command, capture_output=True, text=True, check=False)
            except OSError as exc:
                raise RenderingError(f"Failed to execute qpdf: {exc}") from exc
            if result.returncode not in QPDF_SUCCESS_CODES:
                raise RenderingError(f"qpdf failed: {result.stderr.strip()}")
        finally:
            staging.unlink(missing_ok=True)

    def close(self, document: PdfWriter) -> None:
        document.close()

    # -- helpers -------------------------------------------------------

    def _write(self, document: PdfWriter, path: Path) -> None:
        try:
            with path.open("wb") as handle:
                document.write(handle)
        except (PyPdfError, OSError) as exc:
            raise RenderingError(f"Failed to write PDF to {path.name}: {exc}") from exc

    def _from_bytes(self, data: bytes) -> PdfWriter:
        if not data:
            raise RenderingError("Renderer produced an empty PDF")
        try:
            return PdfWriter(clone_from=io.BytesIO(data))
        except (PyPdfError, ValueError) as exc:
            raise RenderingError(f"Renderer produced an unreadable PDF: {exc}") from exc

    def _load_weasyprint(self) -> ModuleType:
        if self._weasyprint is not None:
            return self._weasyprint
        if self._config.html_module_path:
            os.environ.setdefault("WEASYPRINT_DLL_DIRECTORIES", str(self._config.html_module_path))
        try:
            import weasyprint
        except (ImportError, OSError) as exc:
            LOGGER.error("WeasyPrint is unavailable: %s", exc)
            raise RenderingModuleMissing("weasyprint", HTML_REMEDIATION) from exc
        self._weasyprint = weasyprint
        return weasyprint

    def _run_office(self, source: Path) -> bytes:
        office = self._office or find_office_executable(self._config.office_executable)
        if not office:
            raise RenderingModuleMissing("libreoffice", OFFICE_REMEDIATION)

        with TempArtifacts(self._temp_dir) as temps:
            workdir = temps.workdir(prefix="lo_conv_")
            profile = (workdir / "profile").as_uri()
            command = [
                office,
                "--headless",
                "--norestore",
                f"-env:UserInstallation={profile}",
                "--convert-to",
                "pdf",
                "--outdir",
                str(workdir),
                str(source),
            ]
            LOGGER.debug("Running LibreOffice command: %s", command)
            try:
                result = subprocess.run(
                    command,
                    capture_output=True,
                    text=True,
                    timeout=self._config.office_timeout_s,
                    env={**os.environ, "HOME": str(workdir)},
                    check=False,
                )
            except subprocess.TimeoutExpired as exc:
                raise RenderingError(
                    f"LibreOffice timed out after {self._config.office_timeout_s}s"
                ) from exc
            except OSError as exc:
                raise RenderingError(f"Failed to execute LibreOffice: {exc}") from exc

            produced = workdir / f"{source.stem}.pdf"
            if result.returncode != 0 or not produced.is_file():
                message = (result.stderr or result.stdout or "").strip() or "no PDF produced"
                raise RenderingError(f"LibreOffice conversion failed: {message}")
            return produced.read_bytes()

    def _render_image(self, source: Path) -> bytes:
        from PIL import Image, ImageOps, ImageSequence, UnidentifiedImageError

        try:
            with Image.open(source) as image:
                frames = [
                    _flatten(ImageOps.exif_transpose(frame.copy()))
                    for frame in ImageSequence.Iterator(image)
                ]
        except (UnidentifiedImageError, OSError) as exc:
            raise RenderingError(f"Unable to decode image {source.name}: {exc}") from exc
        if not frames:
            raise RenderingError(f"Image {source.name} contains no frames")

        buffer = io.BytesIO()
        first, rest = frames[0], frames[1:]
        first.save(buffer, format="PDF", save_all=True, append_images=rest, resolution=72.0)
        return buffer.getvalue()


def _flatten(frame):  # type: ignore[no-untyped-def]
    from PIL import Image

    if frame.mode in ("RGBA", "LA") or (frame.mode == "P" and "transparency" in frame.info):
        rgba = frame.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.split()[-1])
        return background
    return frame.convert("RGB")


def _rectangle(rect: Rect) -> RectangleObject:
    return RectangleObject([rect.left, rect.bottom, rect.right, rect.top])


__all__ = ["LocalRenderingBackend", "RASTER_EXTENSIONS", "find_office_executable"]
