from __future__ import annotations

import base64
import binascii

from pydantic import BaseModel, Field, field_validator

from core.pdf_conversion.merge import parse_file_list
from core.pdf_conversion.models import ByteConversionResult, ConversionResult, MergeResult


class ConvertRequest(BaseModel):
    source_file_path: str = Field(..., min_length=1, description="Path of the file to convert")
    output_name: str | None = None


class UrlConvertRequest(BaseModel):
    url: str = Field(..., min_length=1)
    output_name: str | None = None


class BytesConvertRequest(BaseModel):
    file_bytes: str = Field(..., description="Base64-encoded document content")
    original_file_name: str | None = None
    output_name: str | None = None

    def payload(self) -> bytes:
        try:
            return base64.b64decode(self.file_bytes, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError(f"file_bytes is not valid base64: {exc}") from exc


class MergeRequest(BaseModel):
    source_files: list[str] = Field(default_factory=list)
    output_name: str | None = None

    @field_validator("source_files", mode="before")
    @classmethod
    def _split(cls, value: object) -> object:
        if isinstance(value, str) or (
            isinstance(value, (list, tuple)) and all(isinstance(item, str) for item in value)
        ):
            return parse_file_list(value)
        return value


class ConversionResponse(BaseModel):
    success: bool
    output_path: str
    output_file_name: str
    size_bytes: int
    duration_ms: float
    message: str = "File converted successfully"

    @classmethod
    def from_result(cls, result: ConversionResult) -> "ConversionResponse":
        return cls(
            success=result.success,
            output_path=str(result.output_path),
            output_file_name=result.output_file_name or "",
            size_bytes=result.size_bytes or 0,
            duration_ms=round(result.duration_s * 1000, 2),
        )


class ByteConversionResponse(BaseModel):
    success: bool
    pdf_base64: str
    output_file_name: str
    pdf_size_bytes: int
    detected_type: str | None = None
    duration_ms: float

    @classmethod
    def from_result(cls, result: ByteConversionResult) -> "ByteConversionResponse":
        return cls(
            success=result.success,
            pdf_base64=base64.b64encode(result.pdf_bytes or b"").decode("ascii"),
            output_file_name=result.output_file_name or "",
            pdf_size_bytes=result.pdf_size_bytes,
            detected_type=result.detected_type,
            duration_ms=round(result.duration_s * 1000, 2),
        )


class FailedFileModel(BaseModel):
    file_name: str
    error_message: str


class ErrorResponse(BaseModel):
    title: str
    detail: str | None = None
    code: str | None = None
    failed_files: list[FailedFileModel] | None = None


class MergeResponse(BaseModel):
    success: bool
    output_path: str
    output_file_name: str
    total_files: int
    files_processed: int
    successful_files: list[str]
    failed_files: list[FailedFileModel]
    page_count: int
    duration_ms: float

    @classmethod
    def from_result(cls, result: MergeResult) -> "MergeResponse":
        return cls(
            success=result.success,
            output_path=str(result.output_path),
            output_file_name=result.output_file_name or "",
            total_files=result.total_files,
            files_processed=result.files_processed,
            successful_files=list(result.successful_files),
            failed_files=[
                FailedFileModel(file_name=item.file_name, error_message=item.error_message)
                for item in result.failed_files
            ],
            page_count=result.page_count,
            duration_ms=round(result.duration_s * 1000, 2),
        )


class ValidationResponse(BaseModel):
    valid: bool
    reason: str | None = None
    code: str | None = None


class HealthStatus(BaseModel):
    status: str
    timestamp: str
    version: str


class BackendHealth(BaseModel):
    status: str
    initialized: bool
    components: dict[str, bool] = Field(default_factory=dict)
    detail: str | None = None


__all__ = [
    "BackendHealth",
    "ByteConversionResponse",
    "BytesConvertRequest",
    "ConversionResponse",
    "ConvertRequest",
    "ErrorResponse",
    "FailedFileModel",
    "HealthStatus",
    "MergeRequest",
    "MergeResponse",
    "UrlConvertRequest",
    "ValidationResponse",
]
