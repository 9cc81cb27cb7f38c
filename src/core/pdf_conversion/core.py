from __future__ import annotations

import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Sequence
from urllib.parse import urlparse

import httpx

from .categories import ConversionCategory, classify
from .config import AppConfig
from .detection import detect_extension
from .errors import (
    BackendError,
    ConversionError,
    DetectionError,
    DownloadError,
    ModuleMissingError,
    StorageError,
    ValidationError,
)
from .logging import ConversionLogEntry, ConversionLogger, generate_run_id
from .markup import decode_markup, ensure_charset, read_markup
from .merge import MergePipeline, parse_file_list
from .models import ByteConversionResult, ConversionResult, MergeResult
from .paths import Clock, clean_base_name, download_name, resolve_output_path, resolve_url_output_path
from .rendering import (
    BackendGate,
    LocalRenderingBackend,
    PdfDocument,
    RenderingBackend,
    RenderingError,
    RenderingModuleMissing,
)
from .temp import TempArtifacts
from .validation import FileValidator, ValidationOutcome

LOGGER = logging.getLogger("pdf_conversion.service")


def ensure_directories(config: AppConfig) -> None:
    config.runtime.input_dir.mkdir(parents=True, exist_ok=True)
    config.runtime.output_dir.mkdir(parents=True, exist_ok=True)
    if config.runtime.temp_dir:
        config.runtime.temp_dir.mkdir(parents=True, exist_ok=True)


class ConversionService:
    """Entry points for every conversion the engine offers.

    Public methods never raise for domain failures; they return a result
    object whose ``error_*`` fields describe what went wrong. Each call owns
    its temporary files and deletes them before returning.
    """

    def __init__(
        self,
        config: AppConfig,
        backend: RenderingBackend | None = None,
        *,
        gate: BackendGate | None = None,
        transport: httpx.BaseTransport | None = None,
        clock: Clock = datetime.now,
    ) -> None:
        self._config = config
        if gate is None:
            backend = backend or LocalRenderingBackend(config.backend, config.runtime.temp_dir)
            gate = BackendGate(backend, config.backend.license_key)
        self._gate = gate
        self._validator = FileValidator(config)
        self._journal = ConversionLogger(config.runtime.log_path)
        self._transport = transport
        self._clock = clock
        self._merger = MergePipeline(
            config, gate, self._validator, self.render_to_file, clock=clock
        )
        ensure_directories(config)

    @property
    def config(self) -> AppConfig:
        return self._config

    @property
    def gate(self) -> BackendGate:
        return self._gate

    # -- path based ------------------------------------------------------

    def convert_file(self, path: Path | str, output_name: str | None = None) -> ConversionResult:
        """Convert a file that lives under the configured input directory."""

        return self._convert_path(Path(path), output_name, strict=True, operation="convert")

    def convert_uploaded_file(
        self,
        path: Path | str,
        output_name: str | None = None,
        *,
        source_name: str | None = None,
    ) -> ConversionResult:
        """Convert an already-staged upload; the input-root check is skipped."""

        return self._convert_path(
            Path(path), output_name, strict=False, operation="upload", source_name=source_name
        )

    def convert_upload(
        self, file_name: str, payload: bytes, output_name: str | None = None
    ) -> ConversionResult:
        """Stage uploaded bytes to a temp file and convert them.

        The output name defaults to the uploaded file's stem.
        """

        start = time.perf_counter()
        name = clean_base_name(file_name) or "upload"
        with TempArtifacts(self._config.runtime.temp_dir) as temps:
            try:
                outcome = self._validator.check_size(len(payload))
                if not outcome:
                    raise ValidationError("File validation failed", outcome.reason, code=outcome.code)
                staged = self._stage_upload(temps, name, payload)
            except ConversionError as exc:
                result = ConversionResult.from_error(exc, time.perf_counter() - start)
                self._record("upload", name, result)
                return result
            LOGGER.info("Upload %s staged at %s", name, staged)
            return self.convert_uploaded_file(staged, output_name, source_name=name)

    def _stage_upload(self, temps: TempArtifacts, name: str, payload: bytes) -> Path:
        suffix = Path(name).suffix.lower()
        try:
            if classify(suffix) is ConversionCategory.MARKUP:
                return temps.write_text(decode_markup(payload), suffix=suffix, bom=True)
            return temps.write_bytes(payload, suffix=suffix)
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageError("Failed to stage upload", f"{type(exc).__name__}: {exc}") from exc

    def _convert_path(
        self,
        path: Path,
        output_name: str | None,
        *,
        strict: bool,
        operation: str,
        source_name: str | None = None,
    ) -> ConversionResult:
        start = time.perf_counter()
        LOGGER.info("Starting conversion for file: %s", source_name or path)
        try:
            outcome = (
                self._validator.validate_strict(path)
                if strict
                else self._validator.validate_relaxed(path)
            )
            if not outcome:
                raise ValidationError("File validation failed", outcome.reason, code=outcome.code)
            output_path = resolve_output_path(
                output_name, source_name or path.name, self._config.runtime.output_dir, clock=self._clock
            )
            self.render_to_file(path, output_path)
            result = ConversionResult.succeeded(output_path, time.perf_counter() - start)
        except ConversionError as exc:
            LOGGER.warning("Conversion failed for %s: %s", path, exc.detail or exc.message)
            result = ConversionResult.from_error(exc, time.perf_counter() - start)
        except Exception as exc:
            LOGGER.exception("Unexpected error converting %s", path)
            result = ConversionResult.failed(
                "File conversion failed",
                f"{type(exc).__name__}: {exc}",
                code="CONVERSION_FAILED",
                duration_s=time.perf_counter() - start,
            )
        else:
            LOGGER.info(
                "Conversion completed: %s (%.0fms)", result.output_path, result.duration_s * 1000
            )
        self._record(operation, source_name or str(path), result, detected_type=path.suffix.lower())
        return result

    # -- bytes -----------------------------------------------------------

    def convert_bytes(
        self,
        data: bytes,
        original_file_name: str | None = None,
        output_name: str | None = None,
    ) -> ByteConversionResult:
        """Convert an in-memory document and return the PDF bytes.

        The file type is sniffed from the content first and the optional
        file name second. No file survives the call.
        """

        start = time.perf_counter()
        detected: str | None = None
        LOGGER.info("Starting byte array conversion. Size: %d bytes", len(data))
        try:
            with TempArtifacts(self._config.runtime.temp_dir) as temps:
                if not data:
                    raise ValidationError("No file data provided", "The byte array is empty")
                outcome = self._validator.check_size(len(data))
                if not outcome:
                    raise ValidationError("File validation failed", outcome.reason, code=outcome.code)

                detected = detect_extension(data, original_file_name)
                if detected is None:
                    raise DetectionError(
                        "File type detection failed",
                        "Could not detect file type. Please provide OriginalFileName parameter.",
                    )
                if not self._config.is_allowed(detected):
                    allowed = ", ".join(self._config.runtime.allowed_extensions)
                    raise ValidationError(
                        "Unsupported file type",
                        f"File type '{detected}' is not supported. Allowed extensions: {allowed}",
                        code="EXTENSION_NOT_ALLOWED",
                    )

                try:
                    source = temps.write_bytes(data, suffix=detected)
                    target = temps.path(suffix=".pdf")
                except OSError as exc:
                    raise StorageError("Failed to create temporary file", str(exc)) from exc
                self.render_to_file(source, target)
                pdf_bytes = target.read_bytes()
        except ConversionError as exc:
            LOGGER.warning("Byte array conversion failed: %s", exc.detail or exc.message)
            result = ByteConversionResult.from_error(exc, time.perf_counter() - start)
        except Exception as exc:
            LOGGER.exception("Unexpected error during byte array conversion")
            result = ByteConversionResult.failed(
                "Byte array conversion failed",
                f"{type(exc).__name__}: {exc}",
                code="CONVERSION_FAILED",
                duration_s=time.perf_counter() - start,
            )
        else:
            result = ByteConversionResult.succeeded(
                pdf_bytes,
                download_name(output_name, original_file_name),
                detected,
                time.perf_counter() - start,
            )
            LOGGER.info(
                "Byte array conversion completed. PDF size: %d bytes (%.0fms)",
                result.pdf_size_bytes,
                result.duration_s * 1000,
            )
        self._record(
            "bytes",
            original_file_name or "<bytes>",
            result,
            detected_type=detected,
            size_bytes=result.pdf_size_bytes,
        )
        return result

    # -- url -------------------------------------------------------------

    def convert_url(self, url: str, output_name: str | None = None) -> ConversionResult:
        start = time.perf_counter()
        LOGGER.info("Starting URL to PDF conversion: %s", url)
        try:
            parsed = urlparse(url or "")
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                raise ValidationError("Invalid URL", f"URL must be an absolute http(s) address: {url}")
            html = self._download(url)
            output_path = resolve_url_output_path(
                output_name, self._config.runtime.output_dir, clock=self._clock
            )
            with TempArtifacts(self._config.runtime.temp_dir) as temps:
                try:
                    source = temps.write_text(html, suffix=".html", prefix="url_", bom=True)
                except OSError as exc:
                    raise StorageError("Failed to create temporary file", str(exc)) from exc
                self.render_to_file(source, output_path, ConversionCategory.MARKUP, base_url=url)
            result = ConversionResult.succeeded(output_path, time.perf_counter() - start)
        except ConversionError as exc:
            LOGGER.warning("URL conversion failed for %s: %s", url, exc.detail or exc.message)
            result = ConversionResult.from_error(exc, time.perf_counter() - start)
        except Exception as exc:
            LOGGER.exception("Unexpected error converting URL %s", url)
            result = ConversionResult.failed(
                "URL to PDF conversion failed",
                f"{type(exc).__name__}: {exc}",
                code="CONVERSION_FAILED",
                duration_s=time.perf_counter() - start,
            )
        else:
            LOGGER.info("URL conversion completed: %s", result.output_path)
        self._record("url", url, result, detected_type=".html")
        return result

    def _download(self, url: str) -> str:
        download = self._config.download
        try:
            with httpx.Client(
                timeout=download.timeout_s,
                headers={"User-Agent": download.user_agent},
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = client.get(url)
        except httpx.HTTPError as exc:
            LOGGER.error("Network error downloading %s: %s", url, exc)
            raise DownloadError("Failed to download HTML from URL", f"Network error: {exc}") from exc
        if not response.is_success:
            LOGGER.error("Failed to download %s: HTTP %d", url, response.status_code)
            raise DownloadError(
                "Failed to download HTML from URL",
                f"HTTP Status: {response.status_code}",
                status_code=response.status_code,
            )
        LOGGER.debug("Downloaded %d bytes from %s", len(response.content), url)
        return response.text

    # -- merge -----------------------------------------------------------

    def merge_files(
        self, file_names: str | Sequence[str], output_name: str | None = None
    ) -> MergeResult:
        """Merge input-directory files, in order, into one timestamped PDF."""

        names = parse_file_list(file_names)
        result = self._merger.run(names, output_name)
        self._record(
            "merge",
            ",".join(names),
            result,
            size_bytes=result.output_path.stat().st_size if result.output_path else 0,
        )
        return result

    # -- misc ------------------------------------------------------------

    def validate_file(self, path: Path | str) -> ValidationOutcome:
        return self._validator.validate_strict(Path(path))

    def backend_status(self) -> dict[str, Any]:
        try:
            self._gate.ensure_ready()
        except Exception as exc:
            LOGGER.error("Rendering backend initialization failed: %s", exc)
            return {"initialized": False, "detail": f"{type(exc).__name__}: {exc}"}
        return {"initialized": True, "components": self._gate.backend.availability()}

    # -- rendering -------------------------------------------------------

    def render_to_file(
        self,
        source: Path,
        target: Path,
        category: ConversionCategory | None = None,
        *,
        base_url: str | None = None,
    ) -> None:
        """Render *source* to a linearized PDF at *target*.

        Raises :class:`BackendError` (or :class:`ModuleMissingError`) when the
        backend fails; a partially written *target* is removed.
        """

        category = category or classify(source.suffix)
        try:
            backend = self._gate.ensure_ready()
        except Exception as exc:
            raise BackendError(
                "Rendering backend initialization failed", f"{type(exc).__name__}: {exc}"
            ) from exc

        LOGGER.debug("Rendering %s as %s", source.name, category.value)
        try:
            document = self._render(backend, source, category, base_url)
            try:
                backend.save(document, target, linearized=True)
            finally:
                backend.close(document)
        except RenderingModuleMissing as exc:
            target.unlink(missing_ok=True)
            LOGGER.error("Rendering module '%s' is not installed", exc.module)
            steps = " ".join(f"{index}. {step}" for index, step in enumerate(exc.remediation, 1))
            raise ModuleMissingError(
                f"Rendering module '{exc.module}' is not installed",
                f"{exc} To fix this: {steps}" if steps else str(exc),
            ) from exc
        except RenderingError as exc:
            target.unlink(missing_ok=True)
            LOGGER.error("Rendering failed for %s: %s", source.name, exc)
            raise BackendError("Rendering failed", f"{type(exc).__name__}: {exc}") from exc
        except OSError as exc:
            target.unlink(missing_ok=True)
            raise StorageError("File operation failed", f"{type(exc).__name__}: {exc}") from exc

    def _render(
        self,
        backend: RenderingBackend,
        source: Path,
        category: ConversionCategory,
        base_url: str | None,
    ) -> PdfDocument:
        if category is ConversionCategory.OFFICE:
            return backend.render_office_to_pdf(source)
        if category is ConversionCategory.MARKUP:
            return self._render_markup(backend, source, base_url)
        return backend.render_generic_to_pdf(source)

    def _render_markup(
        self, backend: RenderingBackend, source: Path, base_url: str | None
    ) -> PdfDocument:
        html = ensure_charset(read_markup(source))
        try:
            return backend.render_html_string_to_pdf(
                html, base_url=base_url or source.parent.as_uri() + "/"
            )
        except RenderingModuleMissing:
            raise
        except RenderingError as exc:
            LOGGER.warning("String-based HTML rendering failed, retrying from file: %s", exc)

        with TempArtifacts(self._config.runtime.temp_dir) as temps:
            fallback = temps.write_text(html, suffix=".html", prefix="html_", bom=True)
            return backend.render_html_url_to_pdf(fallback.as_uri())

    def _record(
        self,
        operation: str,
        source: str,
        result: ConversionResult | ByteConversionResult | MergeResult,
        *,
        detected_type: str | None = None,
        size_bytes: int | None = None,
    ) -> None:
        output_path = getattr(result, "output_path", None)
        if size_bytes is None:
            size_bytes = getattr(result, "size_bytes", None) or 0
        self._journal.append(
            ConversionLogEntry(
                run_id=generate_run_id(operation),
                operation=operation,
                source=source,
                status="success" if result.success else "failed",
                detected_type=detected_type,
                error_code=result.error_code,
                duration_ms=round(result.duration_s * 1000, 2),
                output_path=str(output_path) if output_path else None,
                size_bytes=size_bytes,
            )
        )


__all__ = ["ConversionService", "ensure_directories"]
