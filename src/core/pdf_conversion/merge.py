from __future__ import annotations

import logging
import shutil
import time
from datetime import datetime
from pathlib import Path
from typing import Callable, Sequence

from .config import AppConfig
from .errors import ConversionError, MergeError
from .models import MergeLedger, MergeResult
from .normalize import normalize_document
from .paths import Clock, resolve_merge_output_path
from .rendering import BackendGate, RenderingError
from .temp import TempArtifacts
from .validation import FileValidator

LOGGER = logging.getLogger("pdf_conversion.merge")

RenderToFile = Callable[[Path, Path], None]


def parse_file_list(value: str | Sequence[str]) -> list[str]:
    """Accept a comma-separated string or a list; trim entries and drop empties."""

    items = value.split(",") if isinstance(value, str) else list(value)
    return [item.strip() for item in items if item and item.strip()]


class MergePipeline:
    """Convert or copy each input to a temp PDF, normalize pages and concatenate."""

    def __init__(
        self,
        config: AppConfig,
        gate: BackendGate,
        validator: FileValidator,
        render_to_file: RenderToFile,
        *,
        clock: Clock = datetime.now,
    ) -> None:
        self._config = config
        self._gate = gate
        self._validator = validator
        self._render_to_file = render_to_file
        self._clock = clock

    def run(self, file_names: Sequence[str], output_name: str | None = None) -> MergeResult:
        start = time.perf_counter()
        ledger = MergeLedger(total_requested=len(file_names))
        LOGGER.info("Starting merge operation for %d files", len(file_names))

        if not file_names:
            return MergeResult.failed(
                "No files provided for merging", code="INVALID_INPUT", ledger=ledger
            )

        with TempArtifacts(self._config.runtime.temp_dir) as temps:
            try:
                prepared = self._prepare(file_names, ledger, temps)
                if not prepared:
                    raise MergeError(
                        "No files were successfully prepared for merging",
                        f"Failed to prepare all {len(file_names)} files",
                        code="NOTHING_TO_MERGE",
                    )
                output_path = resolve_merge_output_path(
                    output_name, self._config.runtime.output_dir, clock=self._clock
                )
                page_count = self._merge(prepared, output_path)
            except ConversionError as exc:
                LOGGER.error("Merge operation failed: %s", exc.detail or exc.message)
                return MergeResult.failed(
                    exc.message,
                    exc.detail,
                    code=exc.code,
                    ledger=ledger,
                    duration_s=time.perf_counter() - start,
                )
            except Exception as exc:
                LOGGER.exception("Merge operation failed")
                return MergeResult.failed(
                    "Merge operation failed",
                    f"{type(exc).__name__}: {exc}",
                    code="MERGE_FAILED",
                    ledger=ledger,
                    duration_s=time.perf_counter() - start,
                )

        elapsed = time.perf_counter() - start
        LOGGER.info(
            "Merge operation completed: %s (%d/%d files, %d pages, %.0fms)",
            output_path,
            len(ledger.succeeded),
            ledger.total_requested,
            page_count,
            elapsed * 1000,
        )
        return MergeResult.succeeded(output_path, ledger, page_count, elapsed)

    def _prepare(
        self, file_names: Sequence[str], ledger: MergeLedger, temps: TempArtifacts
    ) -> list[Path]:
        prepared: list[Path] = []
        input_dir = self._config.runtime.input_dir
        for file_name in file_names:
            source = input_dir / file_name.strip()
            outcome = self._validator.validate_strict(source)
            if not outcome:
                LOGGER.warning("File validation failed for %s: %s", file_name, outcome.reason)
                ledger.record_failure(file_name, outcome.reason or "Validation failed")
                continue

            target = temps.path(suffix=".pdf")
            try:
                if source.suffix.lower() == ".pdf":
                    LOGGER.info("File %s is already PDF - copying directly", file_name)
                    self._check_readable(source)
                    shutil.copyfile(source, target)
                else:
                    LOGGER.info("Converting %s to PDF", file_name)
                    self._render_to_file(source, target)
            except RenderingError as exc:
                LOGGER.error("Failed to prepare %s: %s", file_name, exc)
                ledger.record_failure(file_name, str(exc))
                temps.release(target)
                continue
            except ConversionError as exc:
                LOGGER.error("Failed to prepare %s: %s", file_name, exc.detail or exc.message)
                ledger.record_failure(file_name, exc.detail or exc.message)
                temps.release(target)
                continue
            except OSError as exc:
                LOGGER.error("Failed to prepare %s: %s", file_name, exc)
                ledger.record_failure(file_name, f"{type(exc).__name__}: {exc}")
                temps.release(target)
                continue

            prepared.append(target)
            ledger.record_success(file_name)
            LOGGER.info("Successfully prepared %s for merging", file_name)
        return prepared

    def _check_readable(self, source: Path) -> None:
        backend = self._gate.ensure_ready()
        backend.close(backend.open_pdf(source))

    def _merge(self, pdf_files: Sequence[Path], output_path: Path) -> int:
        backend = self._gate.ensure_ready()
        merged = backend.new_document()
        try:
            for pdf_file in pdf_files:
                document = backend.open_pdf(pdf_file)
                try:
                    normalize_document(backend, document)
                    backend.insert_pages(merged, document)
                    LOGGER.debug(
                        "Added %d pages from %s", backend.page_count(document), pdf_file.name
                    )
                finally:
                    backend.close(document)
            page_count = backend.page_count(merged)
            backend.save(merged, output_path, linearized=True)
        except RenderingError as exc:
            output_path.unlink(missing_ok=True)
            raise MergeError("Merge operation failed", f"Failed to merge PDF files: {exc}") from exc
        finally:
            backend.close(merged)
        return page_count


__all__ = ["MergePipeline", "parse_file_list"]
