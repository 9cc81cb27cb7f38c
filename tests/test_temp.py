import logging

import pytest

from core.pdf_conversion.temp import TempArtifacts


def test_release_on_normal_exit(tmp_path):
    with TempArtifacts(tmp_path) as temps:
        first = temps.write_bytes(b"a", suffix=".bin")
        second = temps.path(suffix=".pdf")
        second.write_bytes(b"b")
        workdir = temps.workdir()
        (workdir / "inner.txt").write_text("x")
        assert first.exists() and second.exists() and workdir.exists()
    assert list(tmp_path.iterdir()) == []


def test_release_on_exception(tmp_path):
    with pytest.raises(RuntimeError):
        with TempArtifacts(tmp_path) as temps:
            temps.write_bytes(b"a", suffix=".bin")
            raise RuntimeError("boom")
    assert list(tmp_path.iterdir()) == []


def test_paths_are_unique(tmp_path):
    with TempArtifacts(tmp_path) as temps:
        paths = {temps.path(suffix=".pdf") for _ in range(50)}
    assert len(paths) == 50


def test_release_single_artifact_once(tmp_path):
    with TempArtifacts(tmp_path) as temps:
        keep = temps.write_bytes(b"keep")
        drop = temps.write_bytes(b"drop")
        temps.release(drop)
        temps.release(drop)
        assert not drop.exists()
        assert keep.exists()
        assert temps.owned == (keep,)


def test_write_text_with_bom(tmp_path):
    with TempArtifacts(tmp_path) as temps:
        target = temps.write_text("héllo", suffix=".html", bom=True)
        assert target.read_bytes().startswith(b"\xef\xbb\xbf")
        assert target.read_bytes()[3:].decode("utf-8") == "héllo"


def test_cleanup_failure_is_logged_not_raised(tmp_path, monkeypatch, caplog):
    def refuse(self, missing_ok=False):
        raise PermissionError("denied")

    with caplog.at_level(logging.WARNING, logger="pdf_conversion.temp"):
        with TempArtifacts(tmp_path) as temps:
            temps.write_bytes(b"a")
            monkeypatch.setattr("pathlib.Path.unlink", refuse)
    assert "Failed to delete temporary artifact" in caplog.text
