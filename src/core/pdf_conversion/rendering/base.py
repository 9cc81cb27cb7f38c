from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

PdfDocument = Any


class RenderingError(RuntimeError):
    """Raised by a backend when rendering or PDF manipulation fails."""


class RenderingModuleMissing(RenderingError):
    """Raised when an optional rendering component is not installed."""

    def __init__(self, module: str, remediation: tuple[str, ...] = ()) -> None:
        super().__init__(f"Rendering module '{module}' is not available")
        self.module = module
        self.remediation = remediation


@dataclass(frozen=True, slots=True)
class PageGeometry:
    width: float
    height: float


@dataclass(frozen=True, slots=True)
class Rect:
    left: float
    bottom: float
    right: float
    top: float

    @classmethod
    def of_size(cls, width: float, height: float) -> "Rect":
        return cls(0.0, 0.0, width, height)

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.top - self.bottom


class RenderingBackend(Protocol):
    """Synchronous document renderer and PDF page editor.

    Every call may block and may raise :class:`RenderingError`.
    """

    def initialize(self, license_key: str | None) -> None:
        ...

    def availability(self) -> dict[str, bool]:
        ...

    def render_office_to_pdf(self, source: Path) -> PdfDocument:
        ...

    def render_generic_to_pdf(self, source: Path) -> PdfDocument:
        ...

    def render_html_string_to_pdf(self, html: str, base_url: str | None = None) -> PdfDocument:
        ...

    def render_html_url_to_pdf(self, url: str) -> PdfDocument:
        ...

    def open_pdf(self, path: Path) -> PdfDocument:
        ...

    def new_document(self) -> PdfDocument:
        ...

    def page_count(self, document: PdfDocument) -> int:
        ...

    def get_page_crop_box(self, document: PdfDocument, index: int) -> PageGeometry:
        ...

    def scale_page(self, document: PdfDocument, index: int, factor: float) -> None:
        ...

    def set_media_box(self, document: PdfDocument, index: int, rect: Rect) -> None:
        ...

    def set_crop_box(self, document: PdfDocument, index: int, rect: Rect) -> None:
        ...

    def insert_pages(
        self, destination: PdfDocument, source: PdfDocument, start: int = 0, stop: int | None = None
    ) -> None:
        ...

    def save(self, document: PdfDocument, path: Path, linearized: bool = True) -> None:
        ...

    def close(self, document: PdfDocument) -> None:
        ...


__all__ = [
    "PageGeometry",
    "PdfDocument",
    "Rect",
    "RenderingBackend",
    "RenderingError",
    "RenderingModuleMissing",
]
