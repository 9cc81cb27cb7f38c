"""Domain models for PDF conversion results."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from .errors import ConversionError


@dataclass(frozen=True, slots=True)
class ConversionResult:
    """Outcome of a conversion that writes its PDF into the output directory."""

    success: bool
    output_path: Path | None = None
    output_file_name: str | None = None
    size_bytes: int | None = None
    duration_s: float = 0.0
    error_code: str | None = None
    error_message: str | None = None
    error_detail: str | None = None

    @classmethod
    def succeeded(cls, output_path: Path, duration_s: float) -> "ConversionResult":
        return cls(
            success=True,
            output_path=output_path,
            output_file_name=output_path.name,
            size_bytes=output_path.stat().st_size,
            duration_s=duration_s,
        )

    @classmethod
    def failed(
        cls,
        message: str,
        detail: str | None = None,
        *,
        code: str | None = None,
        duration_s: float = 0.0,
    ) -> "ConversionResult":
        return cls(
            success=False,
            duration_s=duration_s,
            error_code=code,
            error_message=message,
            error_detail=detail,
        )

    @classmethod
    def from_error(cls, exc: ConversionError, duration_s: float = 0.0) -> "ConversionResult":
        return cls.failed(exc.message, exc.detail, code=exc.code, duration_s=duration_s)


@dataclass(frozen=True, slots=True)
class ByteConversionResult:
    """Outcome of an in-memory conversion; nothing is left on disk."""

    success: bool
    pdf_bytes: bytes | None = None
    output_file_name: str | None = None
    pdf_size_bytes: int = 0
    detected_type: str | None = None
    duration_s: float = 0.0
    error_code: str | None = None
    error_message: str | None = None
    error_detail: str | None = None

    @classmethod
    def succeeded(
        cls, pdf_bytes: bytes, output_file_name: str, detected_type: str, duration_s: float
    ) -> "ByteConversionResult":
        return cls(
            success=True,
            pdf_bytes=pdf_bytes,
            output_file_name=output_file_name,
            pdf_size_bytes=len(pdf_bytes),
            detected_type=detected_type,
            duration_s=duration_s,
        )

    @classmethod
    def failed(
        cls,
        message: str,
        detail: str | None = None,
        *,
        code: str | None = None,
        duration_s: float = 0.0,
    ) -> "ByteConversionResult":
        return cls(
            success=False,
            duration_s=duration_s,
            error_code=code,
            error_message=message,
            error_detail=detail,
        )

    @classmethod
    def from_error(cls, exc: ConversionError, duration_s: float = 0.0) -> "ByteConversionResult":
        return cls.failed(exc.message, exc.detail, code=exc.code, duration_s=duration_s)


@dataclass(frozen=True, slots=True)
class FailedFile:
    file_name: str
    error_message: str


@dataclass(slots=True)
class MergeLedger:
    """Per-item bookkeeping for one merge batch."""

    total_requested: int
    succeeded: list[str] = field(default_factory=list)
    failed: list[FailedFile] = field(default_factory=list)

    def record_success(self, file_name: str) -> None:
        self.succeeded.append(file_name)

    def record_failure(self, file_name: str, reason: str) -> None:
        self.failed.append(FailedFile(file_name=file_name, error_message=reason))


@dataclass(frozen=True, slots=True)
class MergeResult:
    success: bool
    output_path: Path | None = None
    output_file_name: str | None = None
    total_files: int = 0
    files_processed: int = 0
    successful_files: tuple[str, ...] = ()
    failed_files: tuple[FailedFile, ...] = ()
    page_count: int = 0
    duration_s: float = 0.0
    error_code: str | None = None
    error_message: str | None = None
    error_detail: str | None = None

    @classmethod
    def succeeded(
        cls, output_path: Path, ledger: MergeLedger, page_count: int, duration_s: float
    ) -> "MergeResult":
        return cls(
            success=True,
            output_path=output_path,
            output_file_name=output_path.name,
            total_files=ledger.total_requested,
            files_processed=len(ledger.succeeded),
            successful_files=tuple(ledger.succeeded),
            failed_files=tuple(ledger.failed),
            page_count=page_count,
            duration_s=duration_s,
        )

    @classmethod
    def failed(
        cls,
        message: str,
        detail: str | None = None,
        *,
        code: str | None = None,
        ledger: MergeLedger | None = None,
        duration_s: float = 0.0,
    ) -> "MergeResult":
        return cls(
            success=False,
            total_files=ledger.total_requested if ledger else 0,
            successful_files=tuple(ledger.succeeded) if ledger else (),
            failed_files=tuple(ledger.failed) if ledger else (),
            duration_s=duration_s,
            error_code=code,
            error_message=message,
            error_detail=detail,
        )


__all__ = [
    "ByteConversionResult",
    "ConversionResult",
    "FailedFile",
    "MergeLedger",
    "MergeResult",
]
