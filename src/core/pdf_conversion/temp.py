"""Scoped ownership of temporary files created while serving one request."""

from __future__ import annotations

import logging
import shutil
import tempfile
import uuid
from pathlib import Path

LOGGER = logging.getLogger("pdf_conversion.temp")


class TempArtifacts:
    """Hands out unique temp paths and deletes every one of them on release.

    Use as a context manager so release runs on normal return, early return
    and exceptions alike. Each artifact is released at most once; a failed
    delete is logged and never replaces the caller's result or exception.
    """

    def __init__(self, directory: Path | None = None) -> None:
        self._directory = Path(directory) if directory else Path(tempfile.gettempdir())
        self._owned: list[Path] = []

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def owned(self) -> tuple[Path, ...]:
        return tuple(self._owned)

    def path(self, suffix: str = "", prefix: str = "") -> Path:
        self._directory.mkdir(parents=True, exist_ok=True)
        candidate = self._directory / f"{prefix}{uuid.uuid4()}{suffix}"
        self._owned.append(candidate)
        LOGGER.debug("Reserved temporary path %s", candidate)
        return candidate

    def workdir(self, prefix: str = "pdfconv_") -> Path:
        self._directory.mkdir(parents=True, exist_ok=True)
        created = Path(tempfile.mkdtemp(prefix=prefix, dir=self._directory))
        self._owned.append(created)
        return created

    def write_bytes(self, data: bytes, suffix: str = "", prefix: str = "") -> Path:
        target = self.path(suffix=suffix, prefix=prefix)
        target.write_bytes(data)
        return target

    def write_text(self, text: str, suffix: str = "", prefix: str = "", *, bom: bool = False) -> Path:
        target = self.path(suffix=suffix, prefix=prefix)
        target.write_text(text, encoding="utf-8-sig" if bom else "utf-8")
        return target

    def release(self, path: Path | None = None) -> None:
        targets = [path] if path is not None else list(self._owned)
        for target in targets:
            if target not in self._owned:
                continue
            self._owned.remove(target)
            _discard(target)

    def __enter__(self) -> "TempArtifacts":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()


def _discard(target: Path) -> None:
    try:
        if target.is_dir():
            shutil.rmtree(target)
        else:
            target.unlink(missing_ok=True)
        LOGGER.debug("Deleted temporary artifact %s", target)
    except OSError as exc:
        LOGGER.warning("Failed to delete temporary artifact %s: %s", target, exc)


__all__ = ["TempArtifacts"]
