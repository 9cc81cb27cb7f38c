import pytest

from core.pdf_conversion.categories import (
    CATEGORY_TABLE,
    IMAGE_EXTENSIONS,
    MARKUP_EXTENSIONS,
    OFFICE_EXTENSIONS,
    PDF_EXTENSIONS,
    ConversionCategory,
    classify,
)


def test_table_sizes():
    assert len(OFFICE_EXTENSIONS) == 21
    assert len(IMAGE_EXTENSIONS) == 12
    assert len(MARKUP_EXTENSIONS) == 2
    assert len(PDF_EXTENSIONS) == 1
    assert len(CATEGORY_TABLE) == 36


@pytest.mark.parametrize(
    ("extension", "expected"),
    [
        (".docx", ConversionCategory.OFFICE),
        ("XLSX", ConversionCategory.OFFICE),
        (".ppsm", ConversionCategory.OFFICE),
        (".PNG", ConversionCategory.IMAGE),
        ("svg", ConversionCategory.IMAGE),
        (".htm", ConversionCategory.MARKUP),
        (".pdf", ConversionCategory.PDF_NATIVE),
        (".txt", ConversionCategory.GENERIC),
        (".xyz", ConversionCategory.GENERIC),
        ("", ConversionCategory.GENERIC),
    ],
)
def test_classify(extension, expected):
    assert classify(extension) is expected


def test_table_is_read_only():
    with pytest.raises(TypeError):
        CATEGORY_TABLE[".txt"] = ConversionCategory.OFFICE  # type: ignore[index]
