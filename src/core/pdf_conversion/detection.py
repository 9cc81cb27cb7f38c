from __future__ import annotations

import io
import logging
import zipfile
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePath

LOGGER = logging.getLogger("pdf_conversion.detection")

ZIP_SIGNATURE = b"PK\x03\x04"
OLE_SIGNATURE = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"

# Order matters: the first matching entry wins.
SIGNATURES: tuple[tuple[str, tuple[bytes, ...]], ...] = (
    (".pdf", (b"%PDF",)),
    (".docx", (ZIP_SIGNATURE,)),
    (".xlsx", (ZIP_SIGNATURE,)),
    (".pptx", (ZIP_SIGNATURE,)),
    (".doc", (OLE_SIGNATURE,)),
    (".xls", (OLE_SIGNATURE,)),
    (".ppt", (OLE_SIGNATURE,)),
    (".jpg", (b"\xff\xd8\xff",)),
    (".jpeg", (b"\xff\xd8\xff",)),
    (".png", (b"\x89PNG\r\n\x1a\n",)),
    (".gif", (b"GIF8",)),
    (".bmp", (b"BM",)),
    (".tif", (b"II*\x00", b"MM\x00*")),
    (".tiff", (b"II*\x00", b"MM\x00*")),
    (".webp", (b"RIFF",)),
)

MIN_SIGNATURE_BYTES = 8
TEXT_SAMPLE_SIZE = 1000
TEXT_RATIO_THRESHOLD = 0.95

_ZIP_OFFICE_FAMILY = {
    ".docx": ("word/",),
    ".xlsx": ("xl/",),
    ".pptx": ("ppt/",),
}
_ZIP_OFFICE_HINTS = {
    ".docx": ".docx", ".docm": ".docx", ".dotx": ".docx", ".dotm": ".docx",
    ".xlsx": ".xlsx", ".xlsm": ".xlsx", ".xltx": ".xlsx", ".xltm": ".xlsx",
    ".pptx": ".pptx", ".pptm": ".pptx", ".potx": ".pptx", ".potm": ".pptx",
    ".ppsx": ".pptx", ".ppsm": ".pptx",
}
_TEXT_BYTES = frozenset(range(0x20, 0x7F)) | {0x09, 0x0A, 0x0D}


class DetectionSource(str, Enum):
    SIGNATURE = "signature"
    FILE_NAME = "file_name"
    TEXT_HEURISTIC = "text_heuristic"


@dataclass(frozen=True, slots=True)
class DetectionResult:
    extension: str
    source: DetectionSource


def hint_extension(file_name: str | None) -> str | None:
    if not file_name or not file_name.strip():
        return None
    suffix = PurePath(file_name.strip().replace("\\", "/")).suffix.lower()
    return suffix or None


def match_signature(data: bytes) -> str | None:
    """Return the first signature-table extension whose magic bytes prefix *data*."""

    if len(data) < MIN_SIGNATURE_BYTES:
        return None
    for extension, prefixes in SIGNATURES:
        if any(data.startswith(prefix) for prefix in prefixes):
            return extension
    return None


def looks_like_text(data: bytes) -> bool:
    sample = data[:TEXT_SAMPLE_SIZE]
    if not sample:
        return False
    printable = sum(1 for byte in sample if byte in _TEXT_BYTES)
    return printable / len(sample) > TEXT_RATIO_THRESHOLD


def disambiguate_zip(data: bytes, file_name: str | None = None) -> str:
    """Pick docx/xlsx/pptx for a zip container by looking at its part names."""

    try:
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            names = archive.namelist()
    except (zipfile.BadZipFile, EOFError, ValueError):
        names = []
    family: str | None = None
    for extension, prefixes in _ZIP_OFFICE_FAMILY.items():
        if any(name.startswith(prefix) for name in names for prefix in prefixes):
            family = extension
            break
    # A macro-enabled or template hint is kept when it agrees with the container.
    hint = hint_extension(file_name)
    if hint in _ZIP_OFFICE_HINTS and family in (None, _ZIP_OFFICE_HINTS[hint]):
        return hint
    return family or ".docx"


def detect(data: bytes, file_name: str | None = None) -> DetectionResult | None:
    signature = match_signature(data)
    if signature is not None:
        if signature in _ZIP_OFFICE_FAMILY:
            signature = disambiguate_zip(data, file_name)
        LOGGER.info("Detected file type from magic bytes: %s", signature)
        return DetectionResult(signature, DetectionSource.SIGNATURE)

    hinted = hint_extension(file_name)
    if hinted:
        LOGGER.info("Detected file type from file name: %s", hinted)
        return DetectionResult(hinted, DetectionSource.FILE_NAME)

    if looks_like_text(data):
        LOGGER.info("Detected as text file based on content analysis")
        return DetectionResult(".txt", DetectionSource.TEXT_HEURISTIC)

    LOGGER.warning("Could not detect file type from byte content or file name")
    return None


def detect_extension(data: bytes, file_name: str | None = None) -> str | None:
    result = detect(data, file_name)
    return result.extension if result else None


__all__ = [
    "DetectionResult",
    "DetectionSource",
    "SIGNATURES",
    "detect",
    "detect_extension",
    "disambiguate_zip",
    "hint_extension",
    "looks_like_text",
    "match_signature",
]
