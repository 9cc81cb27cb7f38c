from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Mapping


class ConversionCategory(str, Enum):
    OFFICE = "office"
    IMAGE = "image"
    MARKUP = "markup"
    PDF_NATIVE = "pdf"
    GENERIC = "generic"


OFFICE_EXTENSIONS: frozenset[str] = frozenset(
    {
        ".doc", ".docx", ".docm", ".dot", ".dotx", ".dotm",
        ".xls", ".xlsx", ".xlsm", ".xlt", ".xltx", ".xltm",
        ".ppt", ".pptx", ".pptm", ".pot", ".potx", ".potm", ".pps", ".ppsx", ".ppsm",
    }
)

IMAGE_EXTENSIONS: frozenset[str] = frozenset(
    {
        ".jpg", ".jpeg", ".png", ".bmp", ".gif", ".tif", ".tiff", ".webp",
        ".svg", ".emf", ".wmf", ".eps",
    }
)

MARKUP_EXTENSIONS: frozenset[str] = frozenset({".html", ".htm"})

PDF_EXTENSIONS: frozenset[str] = frozenset({".pdf"})


def _build_table() -> Mapping[str, ConversionCategory]:
    table: dict[str, ConversionCategory] = {}
    for extensions, category in (
        (OFFICE_EXTENSIONS, ConversionCategory.OFFICE),
        (IMAGE_EXTENSIONS, ConversionCategory.IMAGE),
        (MARKUP_EXTENSIONS, ConversionCategory.MARKUP),
        (PDF_EXTENSIONS, ConversionCategory.PDF_NATIVE),
    ):
        for extension in extensions:
            table[extension] = category
    return MappingProxyType(table)


CATEGORY_TABLE: Mapping[str, ConversionCategory] = _build_table()


def classify(extension: str) -> ConversionCategory:
    """Map a file extension (with or without the dot) to its conversion category.

    Unknown extensions are passed through to the backend's generic converter.
    """

    normalized = extension.strip().lower()
    if normalized and not normalized.startswith("."):
        normalized = f".{normalized}"
    return CATEGORY_TABLE.get(normalized, ConversionCategory.GENERIC)


__all__ = [
    "CATEGORY_TABLE",
    "ConversionCategory",
    "IMAGE_EXTENSIONS",
    "MARKUP_EXTENSIONS",
    "OFFICE_EXTENSIONS",
    "PDF_EXTENSIONS",
    "classify",
]
