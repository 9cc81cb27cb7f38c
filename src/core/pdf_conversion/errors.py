"""Error taxonomy for the conversion engine."""

from __future__ import annotations


class ConversionError(RuntimeError):
    """Base error carrying a machine code, a short title and a detail string."""

    default_code = "CONVERSION_FAILED"

    def __init__(self, message: str, detail: str | None = None, *, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code or self.default_code
        self.message = message
        self.detail = detail


class ValidationError(ConversionError):
    default_code = "INVALID_INPUT"


class DetectionError(ConversionError):
    default_code = "UNDETECTABLE"


class BackendError(ConversionError):
    default_code = "BACKEND_FAILURE"


class ModuleMissingError(BackendError):
    default_code = "MODULE_MISSING"


class DownloadError(ConversionError):
    default_code = "DOWNLOAD_FAILED"

    def __init__(self, message: str, detail: str | None = None, *, status_code: int | None = None) -> None:
        super().__init__(message, detail)
        self.status_code = status_code


class StorageError(ConversionError):
    default_code = "IO_ERROR"


class MergeError(ConversionError):
    default_code = "MERGE_FAILED"


__all__ = [
    "BackendError",
    "ConversionError",
    "DetectionError",
    "DownloadError",
    "MergeError",
    "ModuleMissingError",
    "StorageError",
    "ValidationError",
]
