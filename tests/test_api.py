import base64

import httpx
import pytest
from fastapi.testclient import TestClient

from api.app import create_app

from conftest import A4, FakeBackend, write_pdf

PREFIX = "/api/pdf-conversion"


@pytest.fixture
def client(config, backend):
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html><body>hi</body></html>"))
    app = create_app(config, backend=backend, transport=transport)
    with TestClient(app) as test_client:
        yield test_client


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_backend_health(client, backend):
    response = client.get("/health/backend")
    body = response.json()
    assert body["initialized"] is True
    assert body["status"] == "degraded"
    assert body["components"]["qpdf"] is False
    assert backend.initialize_calls == 1


def test_api_disabled(config):
    config.runtime.enable_api = False
    with pytest.raises(RuntimeError):
        create_app(config, backend=FakeBackend())


def test_convert(client, config):
    (config.runtime.input_dir / "memo.docx").write_bytes(b"x")
    response = client.post(f"{PREFIX}/convert", json={"source_file_path": "memo.docx"})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["output_file_name"] == "memo.pdf"


def test_convert_failure_body(client):
    response = client.post(f"{PREFIX}/convert", json={"source_file_path": "ghost.docx"})
    assert response.status_code == 400
    body = response.json()
    assert body["title"] == "File validation failed"
    assert body["code"] == "NOT_FOUND"
    assert body["detail"].startswith("File not found")


def test_convert_and_download(client, config):
    (config.runtime.input_dir / "memo.docx").write_bytes(b"x")
    response = client.post(
        f"{PREFIX}/convert-and-download",
        json={"source_file_path": str(config.runtime.input_dir / "memo.docx"), "output_name": "out"},
    )
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert 'filename="out.pdf"' in response.headers["content-disposition"]
    assert response.content.startswith(b"%PDF")


def test_upload_and_convert(client):
    response = client.post(
        f"{PREFIX}/upload-and-convert",
        files={"file": ("sheet.xlsx", b"data", "application/octet-stream")},
    )
    assert response.status_code == 200
    assert 'filename="sheet.pdf"' in response.headers["content-disposition"]


def test_upload_empty_file(client):
    response = client.post(
        f"{PREFIX}/upload-and-convert",
        files={"file": ("empty.docx", b"", "application/octet-stream")},
    )
    assert response.status_code == 400
    assert response.json()["title"] == "No file provided"


def test_merge_accepts_comma_string(client, config):
    write_pdf(config.runtime.input_dir / "a.pdf", [A4])
    (config.runtime.input_dir / "b.docx").write_bytes(b"x")
    response = client.post(f"{PREFIX}/merge", json={"source_files": "a.pdf, b.docx, missing.txt"})
    assert response.status_code == 200
    body = response.json()
    assert body["successful_files"] == ["a.pdf", "b.docx"]
    assert body["failed_files"][0]["file_name"] == "missing.txt"
    assert body["page_count"] == 2


def test_merge_nothing_prepared(client):
    response = client.post(f"{PREFIX}/merge", json={"source_files": ["x.pdf"]})
    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "NOTHING_TO_MERGE"
    assert body["failed_files"][0]["file_name"] == "x.pdf"


def test_merge_empty_list(client):
    response = client.post(f"{PREFIX}/merge", json={"source_files": " , "})
    assert response.status_code == 400
    assert response.json()["title"] == "No files provided for merging"


def test_merge_and_download(client, config):
    write_pdf(config.runtime.input_dir / "a.pdf", [A4, A4])
    response = client.post(f"{PREFIX}/merge-and-download", json={"source_files": ["a.pdf"]})
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"


def test_convert_from_url(client):
    response = client.post(f"{PREFIX}/convert-from-url", json={"url": "https://example.com", "output_name": "site"})
    assert response.status_code == 200
    assert 'filename="site.pdf"' in response.headers["content-disposition"]


def test_convert_from_bytes(client):
    payload = base64.b64encode(b"plain text document").decode()
    response = client.post(f"{PREFIX}/convert-from-bytes", json={"file_bytes": payload})
    assert response.status_code == 200
    body = response.json()
    assert body["detected_type"] == ".txt"
    assert body["output_file_name"] == "converted.pdf"
    assert base64.b64decode(body["pdf_base64"]).startswith(b"%PDF")


def test_convert_from_bytes_invalid_base64(client):
    response = client.post(f"{PREFIX}/convert-from-bytes", json={"file_bytes": "not base64!"})
    assert response.status_code == 400
    assert response.json()["title"] == "Invalid file data"


def test_convert_from_bytes_and_download(client):
    payload = base64.b64encode(b"plain text document").decode()
    response = client.post(
        f"{PREFIX}/convert-from-bytes-and-download",
        json={"file_bytes": payload, "original_file_name": "notes.txt"},
    )
    assert response.status_code == 200
    assert 'filename="notes.pdf"' in response.headers["content-disposition"]


def test_bytes_download_with_non_ascii_name(client):
    payload = base64.b64encode(b"quarterly report").decode()
    response = client.post(
        f"{PREFIX}/convert-from-bytes-and-download",
        json={"file_bytes": payload, "original_file_name": "report.txt", "output_name": "דוח"},
    )
    assert response.status_code == 200
    assert response.headers["content-disposition"] == (
        "attachment; filename*=utf-8''%D7%93%D7%95%D7%97.pdf"
    )


def test_validate_endpoint(client, config):
    (config.runtime.input_dir / "ok.txt").write_text("x")
    assert client.get(f"{PREFIX}/validate", params={"file_path": "ok.txt"}).json() == {
        "valid": True,
        "reason": None,
        "code": None,
    }
    missing = client.get(f"{PREFIX}/validate", params={"file_path": "nope.txt"})
    assert missing.status_code == 400
    assert missing.json()["code"] == "NOT_FOUND"
    assert client.get(f"{PREFIX}/validate").status_code == 400


def test_settings_endpoint(client):
    body = client.get(f"{PREFIX}/settings").json()
    assert body["backend_status"]["initialized"] is True
    assert body["backend"]["license_key_configured"] is False
    assert f"{PREFIX}/merge" in body["endpoints"]
