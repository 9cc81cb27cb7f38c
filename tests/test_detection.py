import io
import zipfile

import pytest

from core.pdf_conversion.detection import (
    DetectionSource,
    detect,
    detect_extension,
    looks_like_text,
    match_signature,
)


def _zip(*names: str) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        archive.writestr("[Content_Types].xml", "<Types/>")
        for name in names:
            archive.writestr(name, "<x/>")
    return buffer.getvalue()


@pytest.mark.parametrize(
    ("data", "expected"),
    [
        (b"%PDF-1.7\n%\xe2\xe3", ".pdf"),
        (b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1" + b"\x00" * 8, ".doc"),
        (b"\xff\xd8\xff\xe0\x00\x10JFIF", ".jpg"),
        (b"\x89PNG\r\n\x1a\n" + b"\x00" * 8, ".png"),
        (b"GIF89a" + b"\x00" * 8, ".gif"),
        (b"BM" + b"\x00" * 14, ".bmp"),
        (b"II*\x00" + b"\x00" * 8, ".tif"),
        (b"MM\x00*" + b"\x00" * 8, ".tif"),
        (b"RIFF\x00\x00\x00\x00WEBP", ".webp"),
    ],
)
def test_signatures(data, expected):
    assert match_signature(data) == expected


def test_signature_needs_eight_bytes():
    assert match_signature(b"%PDF") is None
    assert detect_extension(b"%PDF", "note.docx") == ".docx"


def test_zip_disambiguated_by_entries():
    assert detect_extension(_zip("word/document.xml")) == ".docx"
    assert detect_extension(_zip("xl/workbook.xml")) == ".xlsx"
    assert detect_extension(_zip("ppt/presentation.xml")) == ".pptx"


def test_zip_keeps_agreeing_hint():
    assert detect_extension(_zip("word/document.xml"), "macro.docm") == ".docm"
    assert detect_extension(_zip("xl/workbook.xml"), "wrong.docx") == ".xlsx"


def test_zip_without_office_entries_defaults_to_docx():
    assert detect_extension(_zip("random.txt")) == ".docx"


def test_signature_beats_file_name():
    result = detect(b"%PDF-1.4\n%abc", "report.docx")
    assert result is not None
    assert result.extension == ".pdf"
    assert result.source is DetectionSource.SIGNATURE


def test_file_name_fallback():
    result = detect(b"\x00\x01\x02\x03\x04\x05\x06\x07\x08", "Notes.MD")
    assert result is not None
    assert result.extension == ".md"
    assert result.source is DetectionSource.FILE_NAME


def test_text_heuristic():
    result = detect(b"plain text\twith tabs\r\nand newlines")
    assert result is not None
    assert result.extension == ".txt"
    assert result.source is DetectionSource.TEXT_HEURISTIC


def test_text_threshold_is_strict():
    # exactly 95% printable is not enough
    assert not looks_like_text(b"a" * 95 + b"\x00" * 5)
    assert looks_like_text(b"a" * 96 + b"\x00" * 4)


def test_text_heuristic_samples_first_1000_bytes():
    assert looks_like_text(b"a" * 1000 + b"\x00" * 5000)


def test_binary_without_hint_is_undetectable():
    assert detect(bytes(range(256))) is None
    assert detect_extension(b"") is None
