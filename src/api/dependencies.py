"""FastAPI dependency providers for application services."""

from __future__ import annotations

from fastapi import Request

from core.pdf_conversion.config import AppConfig
from core.pdf_conversion.core import ConversionService
from models.schemas import ErrorResponse

from .errors import RequestFailed


def _unavailable(code: str) -> RequestFailed:
    return RequestFailed(
        ErrorResponse(title="Service unavailable", detail="Service is not initialized", code=code),
        status_code=503,
    )


def get_config(request: Request) -> AppConfig:
    config = getattr(request.app.state, "config", None)
    if config is None:
        raise _unavailable("CONFIG_UNAVAILABLE")
    return config


def get_service(request: Request) -> ConversionService:
    service = getattr(request.app.state, "service", None)
    if service is None:
        raise _unavailable("SERVICE_UNAVAILABLE")
    return service


__all__ = ["get_config", "get_service"]
