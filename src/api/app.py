from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from fastapi import FastAPI

from core.constraint import API_TITLE, API_VERSION
from core.pdf_conversion.config import AppConfig, load_config
from core.pdf_conversion.core import ConversionService
from core.pdf_conversion.rendering import RenderingBackend
from core.settings import Settings, get_settings

from .errors import install_error_handlers
from .routers import convert, health
from .utils import run_sync

LOGGER = logging.getLogger("pdf_conversion.api")


def create_app(
    config: AppConfig | None = None,
    *,
    backend: RenderingBackend | None = None,
    transport: httpx.BaseTransport | None = None,
) -> FastAPI:
    config = config or _prepare_config(get_settings())
    if not config.runtime.enable_api:
        raise RuntimeError("PDF conversion API is disabled. Enable it via configuration or environment.")

    service = ConversionService(config, backend, transport=transport)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        status = await run_sync(service.backend_status)
        if status["initialized"]:
            LOGGER.info("Rendering backend ready: %s", status.get("components"))
        else:
            LOGGER.error("Rendering backend not ready at startup: %s", status.get("detail"))
        yield

    app = FastAPI(title=API_TITLE, version=API_VERSION, lifespan=lifespan)
    app.state.config = config
    app.state.service = service

    install_error_handlers(app)
    app.include_router(health.router)
    app.include_router(convert.router)
    return app


def _prepare_config(settings: Settings) -> AppConfig:
    config = load_config(settings.config_path)
    if settings.enable_api is not None:
        config.runtime.enable_api = settings.enable_api
    if settings.input_dir is not None:
        config.runtime.input_dir = settings.input_dir
    if settings.output_dir is not None:
        config.runtime.output_dir = settings.output_dir
    if settings.license_key:
        config.backend.license_key = settings.license_key
    return config


__all__ = ["create_app"]
