from .base import (
    PageGeometry,
    PdfDocument,
    Rect,
    RenderingBackend,
    RenderingError,
    RenderingModuleMissing,
)
from .gate import BackendGate
from .local import LocalRenderingBackend

__all__ = [
    "BackendGate",
    "LocalRenderingBackend",
    "PageGeometry",
    "PdfDocument",
    "Rect",
    "RenderingBackend",
    "RenderingError",
    "RenderingModuleMissing",
]
