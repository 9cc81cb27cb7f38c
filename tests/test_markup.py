import codecs

from core.pdf_conversion.markup import decode_markup, ensure_charset


def test_charset_injected_into_head():
    html = "<html><head><title>t</title></head><body>é</body></html>"
    fixed = ensure_charset(html)
    assert fixed.startswith("<html><head>\n    <meta http-equiv=")
    assert '<meta charset="UTF-8">' in fixed
    assert fixed.endswith("<title>t</title></head><body>é</body></html>")


def test_head_synthesized_after_html():
    fixed = ensure_charset('<html lang="fr"><body>x</body></html>')
    assert fixed.startswith('<html lang="fr">\n<head>')
    assert "</head><body>x</body>" in fixed


def test_header_tag_is_not_head():
    fixed = ensure_charset("<html><body><header>x</header></body></html>")
    assert "<head>" in fixed
    assert fixed.index("<head>") < fixed.index("<header>")


def test_existing_charset_untouched():
    html = '<html><head><meta charset="iso-8859-1"></head></html>'
    assert ensure_charset(html) == html


def test_fragment_without_html_untouched():
    assert ensure_charset("<p>hi</p>") == "<p>hi</p>"


def test_decode_honours_bom():
    assert decode_markup(codecs.BOM_UTF8 + "é".encode("utf-8")) == "é"
    assert decode_markup("é".encode("utf-16")) == "é"
    assert decode_markup("é".encode("utf-8")) == "é"
