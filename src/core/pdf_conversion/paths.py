from __future__ import annotations

import logging
import secrets
from datetime import datetime
from pathlib import Path, PurePath
from typing import Callable

LOGGER = logging.getLogger("pdf_conversion.paths")

TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
DEFAULT_MERGE_NAME = "mergePDF"
DEFAULT_URL_PREFIX = "url_conversion"
PDF_SUFFIX = ".pdf"

Clock = Callable[[], datetime]


def timestamp(clock: Clock = datetime.now) -> str:
    return clock().strftime(TIMESTAMP_FORMAT)


def timestamp_ms(clock: Clock = datetime.now) -> str:
    return clock().strftime("%Y%m%d_%H%M%S_%f")[:-3]


def clean_base_name(value: str | None) -> str | None:
    """Strip directory components from a caller-supplied base name."""

    if value is None:
        return None
    name = PurePath(value.strip().replace("\\", "/")).name
    if name in {"", ".", ".."}:
        return None
    return name


def _unique_suffix(output_dir: Path, base: str) -> Path:
    # Only reached when a timestamped name is taken within the same second.
    while True:
        candidate = output_dir / f"{base}_{secrets.token_hex(3)}{PDF_SUFFIX}"
        if not candidate.exists():
            return candidate


def resolve_output_path(
    base_name: str | None,
    source_name: str,
    output_dir: Path,
    *,
    clock: Clock = datetime.now,
) -> Path:
    """Return ``<output_dir>/<name>.pdf`` without overwriting an existing file.

    The caller's base name wins over the source file's stem. On collision a
    second-precision timestamp is appended to the base name.
    """

    name = clean_base_name(base_name) or PurePath(source_name).stem or "converted"
    candidate = output_dir / f"{name}{PDF_SUFFIX}"
    if not candidate.exists():
        return candidate

    stamped = f"{name}_{timestamp(clock)}"
    candidate = output_dir / f"{stamped}{PDF_SUFFIX}"
    LOGGER.info("File already exists - added timestamp: %s", candidate.name)
    if candidate.exists():
        candidate = _unique_suffix(output_dir, stamped)
    return candidate


def resolve_merge_output_path(
    base_name: str | None,
    output_dir: Path,
    *,
    clock: Clock = datetime.now,
) -> Path:
    """Merge outputs are always timestamped and never reuse an existing file."""

    name = clean_base_name(base_name) or DEFAULT_MERGE_NAME
    stamped = f"{name}_{timestamp(clock)}"
    candidate = output_dir / f"{stamped}{PDF_SUFFIX}"
    if candidate.exists():
        candidate = _unique_suffix(output_dir, stamped)
    LOGGER.info("Merge output path prepared: %s", candidate)
    return candidate


def resolve_url_output_path(
    base_name: str | None,
    output_dir: Path,
    *,
    clock: Clock = datetime.now,
) -> Path:
    name = clean_base_name(base_name) or f"{DEFAULT_URL_PREFIX}_{timestamp(clock)}"
    candidate = output_dir / f"{name}{PDF_SUFFIX}"
    if not candidate.exists():
        return candidate
    stamped = f"{name}_{timestamp_ms(clock)}"
    candidate = output_dir / f"{stamped}{PDF_SUFFIX}"
    if candidate.exists():
        candidate = _unique_suffix(output_dir, stamped)
    return candidate


def download_name(base_name: str | None, hint: str | None, default: str = "converted") -> str:
    """File name reported for in-memory results (no collision handling needed)."""

    name = clean_base_name(base_name)
    if not name and hint:
        name = PurePath(hint.strip().replace("\\", "/")).stem or None
    return f"{name or default}{PDF_SUFFIX}"


__all__ = [
    "Clock",
    "DEFAULT_MERGE_NAME",
    "TIMESTAMP_FORMAT",
    "clean_base_name",
    "download_name",
    "resolve_merge_output_path",
    "resolve_output_path",
    "resolve_url_output_path",
    "timestamp",
]
