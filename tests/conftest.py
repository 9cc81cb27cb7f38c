from __future__ import annotations

import threading
from pathlib import Path
from urllib.parse import urlparse
from urllib.request import url2pathname

import pytest
from pypdf import PdfReader, PdfWriter

from core.pdf_conversion.config import AppConfig, BackendConfig, RuntimeConfig
from core.pdf_conversion.core import ConversionService
from core.pdf_conversion.rendering import LocalRenderingBackend, RenderingError, RenderingModuleMissing

A4 = (595.0, 842.0)


class FakeBackend(LocalRenderingBackend):
    """Local backend whose renderers emit blank pages instead of calling LibreOffice/WeasyPrint.

    Page sizes are looked up by source file name, then by extension.
    """

    def __init__(self, page_sizes: dict[str, list[tuple[float, float]]] | None = None) -> None:
        super().__init__(BackendConfig(linearize=False))
        self.page_sizes = dict(page_sizes or {})
        self.fail_on: set[str] = set()
        self.html_missing = False
        self.html_string_fails = False
        self.initialize_calls = 0
        self.calls: list[tuple[str, str]] = []
        self.rendered_html: list[str] = []
        self.fallback_bytes: bytes | None = None
        self.saved_linearized: list[bool] = []
        self.open_documents = 0
        self._count_lock = threading.Lock()

    def initialize(self, license_key: str | None) -> None:
        with self._count_lock:
            self.initialize_calls += 1

    def availability(self) -> dict[str, bool]:
        return {"libreoffice": True, "weasyprint": not self.html_missing, "qpdf": False}

    def render_office_to_pdf(self, source: Path) -> PdfWriter:
        self.calls.append(("office", source.name))
        return self._blank_for(source)

    def render_generic_to_pdf(self, source: Path) -> PdfWriter:
        self.calls.append(("generic", source.name))
        if source.suffix.lower() == ".pdf":
            return self.open_pdf(source)
        return self._blank_for(source)

    def render_html_string_to_pdf(self, html: str, base_url: str | None = None) -> PdfWriter:
        self.calls.append(("html_string", base_url or ""))
        self.rendered_html.append(html)
        if self.html_missing:
            raise RenderingModuleMissing("weasyprint", ("Install WeasyPrint",))
        if self.html_string_fails:
            raise RenderingError("string rendering failed")
        return self._blank([A4])

    def render_html_url_to_pdf(self, url: str) -> PdfWriter:
        self.calls.append(("html_url", url))
        self.fallback_bytes = Path(url2pathname(urlparse(url).path)).read_bytes()
        return self._blank([A4])

    def open_pdf(self, path: Path) -> PdfWriter:
        document = super().open_pdf(path)
        self.open_documents += 1
        return document

    def new_document(self) -> PdfWriter:
        self.open_documents += 1
        return super().new_document()

    def save(self, document: PdfWriter, path: Path, linearized: bool = True) -> None:
        self.saved_linearized.append(linearized)
        super().save(document, path, linearized)

    def close(self, document: PdfWriter) -> None:
        self.open_documents -= 1
        super().close(document)

    def _blank_for(self, source: Path) -> PdfWriter:
        if source.name in self.fail_on:
            raise RenderingError(f"cannot render {source.name}")
        sizes = self.page_sizes.get(source.name) or self.page_sizes.get(source.suffix.lower()) or [A4]
        return self._blank(sizes)

    def _blank(self, sizes: list[tuple[float, float]]) -> PdfWriter:
        writer = PdfWriter()
        for width, height in sizes:
            writer.add_blank_page(width=width, height=height)
        self.open_documents += 1
        return writer


def write_pdf(path: Path, sizes: list[tuple[float, float]]) -> Path:
    writer = PdfWriter()
    for width, height in sizes:
        writer.add_blank_page(width=width, height=height)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as handle:
        writer.write(handle)
    return path


def page_sizes(path: Path) -> list[tuple[float, float]]:
    reader = PdfReader(str(path))
    return [(float(page.cropbox.width), float(page.cropbox.height)) for page in reader.pages]


@pytest.fixture
def config(tmp_path: Path) -> AppConfig:
    runtime = RuntimeConfig(
        input_dir=tmp_path / "input",
        output_dir=tmp_path / "output",
        temp_dir=tmp_path / "tmp",
        max_file_size_mb=1,
    )
    return AppConfig(runtime=runtime, backend=BackendConfig(linearize=False))


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def service(config: AppConfig, backend: FakeBackend) -> ConversionService:
    return ConversionService(config, backend)


def temp_leftovers(config: AppConfig) -> list[Path]:
    assert config.runtime.temp_dir is not None
    if not config.runtime.temp_dir.exists():
        return []
    return sorted(config.runtime.temp_dir.iterdir())
