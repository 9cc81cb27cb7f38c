import subprocess
from pathlib import Path

import pytest

from core.pdf_conversion.config import BackendConfig
from core.pdf_conversion.rendering import LocalRenderingBackend, RenderingError

from conftest import A4, write_pdf


@pytest.fixture
def office(tmp_path):
    executable = tmp_path / "soffice"
    executable.write_text("")
    return str(executable)


def _backend(office, temp_dir):
    return LocalRenderingBackend(BackendConfig(office_executable=office, linearize=False), temp_dir)


def test_office_workdir_is_removed_after_conversion(tmp_path, office, monkeypatch):
    temp_dir = tmp_path / "tmp"
    source = tmp_path / "memo.docx"
    source.write_bytes(b"x")

    def fake_run(command, **kwargs):
        outdir = command[command.index("--outdir") + 1]
        write_pdf(Path(outdir) / "memo.pdf", [A4])
        return subprocess.CompletedProcess(command, 0, "", "")

    monkeypatch.setattr(subprocess, "run", fake_run)
    backend = _backend(office, temp_dir)

    document = backend.render_office_to_pdf(source)

    assert backend.page_count(document) == 1
    assert list(temp_dir.iterdir()) == []


def test_office_workdir_is_removed_after_failure(tmp_path, office, monkeypatch):
    temp_dir = tmp_path / "tmp"
    source = tmp_path / "memo.docx"
    source.write_bytes(b"x")
    monkeypatch.setattr(
        subprocess, "run", lambda command, **kwargs: subprocess.CompletedProcess(command, 1, "", "bad input")
    )
    backend = _backend(office, temp_dir)

    with pytest.raises(RenderingError, match="bad input"):
        backend.render_office_to_pdf(source)
    assert list(temp_dir.iterdir()) == []
