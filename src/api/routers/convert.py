from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from fastapi.responses import FileResponse, Response

from api.dependencies import get_config, get_service
from api.errors import RequestFailed
from api.utils import run_sync
from core.constraint import API_PREFIX
from core.pdf_conversion.config import AppConfig, dump_config
from core.pdf_conversion.core import ConversionService
from core.pdf_conversion.models import ByteConversionResult, ConversionResult, MergeResult
from models.schemas import (
    ByteConversionResponse,
    BytesConvertRequest,
    ConversionResponse,
    ConvertRequest,
    ErrorResponse,
    FailedFileModel,
    MergeRequest,
    MergeResponse,
    UrlConvertRequest,
    ValidationResponse,
)

PDF_MEDIA_TYPE = "application/pdf"

router = APIRouter(prefix=API_PREFIX, tags=["conversion"])


@router.post("/convert", summary="Convert a file from the input directory")
async def convert(
    request: ConvertRequest,
    service: ConversionService = Depends(get_service),
    config: AppConfig = Depends(get_config),
) -> ConversionResponse:
    source = _resolve_source(request.source_file_path, config)
    result = await run_sync(service.convert_file, source, request.output_name)
    return ConversionResponse.from_result(_ensure_converted(result))


@router.post("/convert-and-download", summary="Convert a file and return the PDF")
async def convert_and_download(
    request: ConvertRequest,
    service: ConversionService = Depends(get_service),
    config: AppConfig = Depends(get_config),
) -> FileResponse:
    source = _resolve_source(request.source_file_path, config)
    result = await run_sync(service.convert_file, source, request.output_name)
    return _pdf_file(_ensure_converted(result))


@router.post("/upload-and-convert", summary="Upload a file and return the PDF")
async def upload_and_convert(
    file: UploadFile = File(...),
    output_name: str | None = Form(None),
    service: ConversionService = Depends(get_service),
) -> FileResponse:
    payload = await file.read()
    if not file.filename or not payload:
        raise RequestFailed(
            ErrorResponse(
                title="No file provided",
                detail="Please select a file to convert",
                code="INVALID_INPUT",
            )
        )
    result = await run_sync(service.convert_upload, file.filename, payload, output_name)
    return _pdf_file(_ensure_converted(result))


@router.post("/merge", summary="Merge input-directory files into one PDF")
async def merge(
    request: MergeRequest,
    service: ConversionService = Depends(get_service),
) -> MergeResponse:
    result = await run_sync(service.merge_files, request.source_files, request.output_name)
    return MergeResponse.from_result(_ensure_merged(result))


@router.post("/merge-and-download", summary="Merge files and return the PDF")
async def merge_and_download(
    request: MergeRequest,
    service: ConversionService = Depends(get_service),
) -> FileResponse:
    result = await run_sync(service.merge_files, request.source_files, request.output_name)
    result = _ensure_merged(result)
    return FileResponse(
        result.output_path, media_type=PDF_MEDIA_TYPE, filename=result.output_file_name
    )


@router.post("/convert-from-url", summary="Download an HTML page and return it as PDF")
async def convert_from_url(
    request: UrlConvertRequest,
    service: ConversionService = Depends(get_service),
) -> FileResponse:
    result = await run_sync(service.convert_url, request.url, request.output_name)
    return _pdf_file(_ensure_converted(result))


@router.post("/convert-from-bytes", summary="Convert Base64 content and return Base64 PDF")
async def convert_from_bytes(
    request: BytesConvertRequest,
    service: ConversionService = Depends(get_service),
) -> ByteConversionResponse:
    result = await _convert_bytes(request, service)
    return ByteConversionResponse.from_result(result)


@router.post("/convert-from-bytes-and-download", summary="Convert Base64 content and return the PDF")
async def convert_from_bytes_and_download(
    request: BytesConvertRequest,
    service: ConversionService = Depends(get_service),
) -> Response:
    result = await _convert_bytes(request, service)
    return Response(
        content=result.pdf_bytes,
        media_type=PDF_MEDIA_TYPE,
        headers={"Content-Disposition": _attachment(result.output_file_name)},
    )


@router.get("/validate", summary="Check whether a file can be converted")
async def validate(
    file_path: str = Query(""),
    service: ConversionService = Depends(get_service),
    config: AppConfig = Depends(get_config),
) -> ValidationResponse:
    if not file_path.strip():
        raise RequestFailed(
            ErrorResponse(
                title="Missing parameter", detail="File path is required", code="INVALID_INPUT"
            )
        )
    outcome = await run_sync(service.validate_file, _resolve_source(file_path, config))
    if not outcome:
        raise RequestFailed(
            ErrorResponse(title="File validation failed", detail=outcome.reason, code=outcome.code)
        )
    return ValidationResponse(valid=True)


@router.get("/settings", summary="Show effective configuration and backend status")
async def settings(
    request: Request,
    service: ConversionService = Depends(get_service),
    config: AppConfig = Depends(get_config),
) -> dict[str, Any]:
    status = await run_sync(service.backend_status)
    endpoints = sorted(
        route.path for route in request.app.routes if route.path.startswith(router.prefix)
    )
    return {
        **json.loads(dump_config(config)),
        "backend_status": status,
        "endpoints": endpoints,
    }


async def _convert_bytes(
    request: BytesConvertRequest, service: ConversionService
) -> ByteConversionResult:
    if not request.file_bytes.strip():
        raise RequestFailed(
            ErrorResponse(
                title="No file data provided",
                detail="file_bytes string is empty",
                code="INVALID_INPUT",
            )
        )
    try:
        payload = request.payload()
    except ValueError as exc:
        raise RequestFailed(
            ErrorResponse(
                title="Invalid file data",
                detail="file_bytes must be a valid Base64 encoded string",
                code="INVALID_INPUT",
            )
        ) from exc
    result = await run_sync(
        service.convert_bytes, payload, request.original_file_name, request.output_name
    )
    if not result.success:
        raise RequestFailed(
            ErrorResponse(
                title=result.error_message or "Conversion failed",
                detail=result.error_detail,
                code=result.error_code,
            )
        )
    return result


def _resolve_source(value: str, config: AppConfig) -> Path:
    path = Path(value.strip())
    return path if path.is_absolute() else config.runtime.input_dir / path


def _ensure_converted(result: ConversionResult) -> ConversionResult:
    if not result.success:
        raise RequestFailed(
            ErrorResponse(
                title=result.error_message or "Conversion failed",
                detail=result.error_detail,
                code=result.error_code,
            )
        )
    return result


def _ensure_merged(result: MergeResult) -> MergeResult:
    if not result.success:
        raise RequestFailed(
            ErrorResponse(
                title=result.error_message or "Merge failed",
                detail=result.error_detail,
                code=result.error_code,
                failed_files=[
                    FailedFileModel(file_name=item.file_name, error_message=item.error_message)
                    for item in result.failed_files
                ],
            )
        )
    return result


def _attachment(file_name: str) -> str:
    # Same header shape FileResponse(filename=...) produces.
    quoted = quote(file_name)
    if quoted != file_name:
        return f"attachment; filename*=utf-8''{quoted}"
    return f'attachment; filename="{file_name}"'


def _pdf_file(result: ConversionResult) -> FileResponse:
    return FileResponse(
        result.output_path, media_type=PDF_MEDIA_TYPE, filename=result.output_file_name
    )


__all__ = ["router"]
