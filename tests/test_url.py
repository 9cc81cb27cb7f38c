from datetime import datetime

import httpx

from core.pdf_conversion.core import ConversionService

from conftest import FakeBackend, temp_leftovers


def _service(config, handler, backend=None, clock=None):
    kwargs = {"clock": clock} if clock else {}
    return ConversionService(
        config, backend or FakeBackend(), transport=httpx.MockTransport(handler), **kwargs
    )


def test_url_conversion_success(config):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["user_agent"] = request.headers["user-agent"]
        return httpx.Response(200, html="<html><head></head><body>Olá</body></html>")

    backend = FakeBackend()
    service = _service(config, handler, backend, clock=lambda: datetime(2024, 1, 2, 3, 4, 5))

    result = service.convert_url("https://example.com/page")

    assert result.success
    assert result.output_file_name == "url_conversion_20240102_030405.pdf"
    assert seen["user_agent"].startswith("Mozilla/5.0")
    assert "Olá" in backend.rendered_html[0]
    assert '<meta charset="UTF-8">' in backend.rendered_html[0]
    assert backend.calls[0] == ("html_string", "https://example.com/page")
    assert temp_leftovers(config) == []


def test_url_conversion_with_name(config):
    service = _service(config, lambda request: httpx.Response(200, text="<html></html>"))
    result = service.convert_url("http://example.com", "landing")
    assert result.output_file_name == "landing.pdf"


def test_http_error_status(config):
    service = _service(config, lambda request: httpx.Response(404, text="nope"))

    result = service.convert_url("https://example.com/missing")

    assert not result.success
    assert result.error_code == "DOWNLOAD_FAILED"
    assert result.error_message == "Failed to download HTML from URL"
    assert result.error_detail == "HTTP Status: 404"
    assert list(config.runtime.output_dir.glob("*.pdf")) == []


def test_network_error(config):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    result = _service(config, handler).convert_url("https://unreachable.example")

    assert not result.success
    assert result.error_code == "DOWNLOAD_FAILED"
    assert result.error_detail == "Network error: connection refused"


def test_redirects_followed(config):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/old":
            return httpx.Response(301, headers={"Location": "https://example.com/new"})
        return httpx.Response(200, text="<html><body>moved</body></html>")

    result = _service(config, handler).convert_url("https://example.com/old")
    assert result.success


def test_invalid_url_rejected(config):
    calls = []
    service = _service(config, lambda request: calls.append(request) or httpx.Response(200))
    result = service.convert_url("ftp://example.com/file")
    assert not result.success
    assert result.error_code == "INVALID_INPUT"
    assert calls == []


def test_render_failure_cleans_temp(config):
    backend = FakeBackend()
    backend.html_missing = True
    service = _service(config, lambda request: httpx.Response(200, text="<html></html>"), backend)

    result = service.convert_url("https://example.com")

    assert result.error_code == "MODULE_MISSING"
    assert temp_leftovers(config) == []
    assert list(config.runtime.output_dir.glob("*.pdf")) == []
