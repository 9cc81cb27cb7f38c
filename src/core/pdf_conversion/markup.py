from __future__ import annotations

import codecs
import logging
import re
from pathlib import Path

LOGGER = logging.getLogger("pdf_conversion.markup")

CHARSET_META = (
    '\n    <meta http-equiv="Content-Type" content="text/html; charset=UTF-8">'
    '\n    <meta charset="UTF-8">'
)

_HEAD_OPEN = re.compile(r"<head\b[^>]*>", re.IGNORECASE)
_HTML_OPEN = re.compile(r"<html\b[^>]*>", re.IGNORECASE)

_BOMS: tuple[tuple[bytes, str], ...] = (
    (codecs.BOM_UTF8, "utf-8-sig"),
    (codecs.BOM_UTF32_LE, "utf-32"),
    (codecs.BOM_UTF32_BE, "utf-32"),
    (codecs.BOM_UTF16_LE, "utf-16"),
    (codecs.BOM_UTF16_BE, "utf-16"),
)


def decode_markup(data: bytes) -> str:
    """Decode markup as UTF-8 unless a byte-order mark says otherwise."""

    for bom, encoding in _BOMS:
        if data.startswith(bom):
            return data.decode(encoding, errors="replace")
    return data.decode("utf-8", errors="replace")


def read_markup(path: Path) -> str:
    return decode_markup(path.read_bytes())


def has_charset(html: str) -> bool:
    return "charset" in html.lower()


def ensure_charset(html: str) -> str:
    """Inject a UTF-8 charset declaration when the document carries none."""

    if has_charset(html):
        return html

    head = _HEAD_OPEN.search(html)
    if head:
        LOGGER.info("Adding UTF-8 charset meta tag to HTML content")
        return html[: head.end()] + CHARSET_META + html[head.end():]

    root = _HTML_OPEN.search(html)
    if root:
        LOGGER.info("Adding <head> with UTF-8 charset meta tag to HTML content")
        synthesized = f"\n<head>{CHARSET_META}\n</head>"
        return html[: root.end()] + synthesized + html[root.end():]

    return html


__all__ = ["CHARSET_META", "decode_markup", "ensure_charset", "has_charset", "read_markup"]
