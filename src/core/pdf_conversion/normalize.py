from __future__ import annotations

import logging

from .rendering.base import PageGeometry, PdfDocument, Rect, RenderingBackend

LOGGER = logging.getLogger("pdf_conversion.normalize")

# A4 in points.
REFERENCE_PAGE = PageGeometry(width=595.0, height=842.0)
UPPER_BOUND = 1.5
LOWER_BOUND = 0.5


def needs_normalization(page: PageGeometry, reference: PageGeometry = REFERENCE_PAGE) -> bool:
    return (
        page.width > reference.width * UPPER_BOUND
        or page.height > reference.height * UPPER_BOUND
        or page.width < reference.width * LOWER_BOUND
        or page.height < reference.height * LOWER_BOUND
    )


def scale_factor(page: PageGeometry, reference: PageGeometry = REFERENCE_PAGE) -> float:
    return min(reference.width / page.width, reference.height / page.height)


def normalize_document(
    backend: RenderingBackend,
    document: PdfDocument,
    reference: PageGeometry = REFERENCE_PAGE,
) -> int:
    """Fit out-of-range pages onto the reference page size.

    Pages within the bounds are left untouched. Returns how many pages were
    rescaled.
    """

    target = Rect.of_size(reference.width, reference.height)
    normalized = 0
    for index in range(backend.page_count(document)):
        page = backend.get_page_crop_box(document, index)
        if page.width <= 0 or page.height <= 0 or not needs_normalization(page, reference):
            continue
        factor = scale_factor(page, reference)
        LOGGER.info(
            "Normalizing page %d from %.1fx%.1f to %.0fx%.0f (scale %.4f)",
            index + 1,
            page.width,
            page.height,
            reference.width,
            reference.height,
            factor,
        )
        backend.scale_page(document, index, factor)
        backend.set_media_box(document, index, target)
        backend.set_crop_box(document, index, target)
        normalized += 1
    return normalized


__all__ = [
    "LOWER_BOUND",
    "REFERENCE_PAGE",
    "UPPER_BOUND",
    "needs_normalization",
    "normalize_document",
    "scale_factor",
]
