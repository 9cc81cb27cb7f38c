from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from models.schemas import ErrorResponse

LOGGER = logging.getLogger("pdf_conversion.api")


class RequestFailed(Exception):
    """Raised by route handlers to answer with a structured error body."""

    def __init__(self, body: ErrorResponse, status_code: int = 400) -> None:
        super().__init__(body.title)
        self.body = body
        self.status_code = status_code


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestFailed)
    async def _request_failed(_: Request, exc: RequestFailed) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.body.model_dump(exclude_none=True))

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception) -> JSONResponse:
        LOGGER.exception("Unhandled error processing %s", request.url.path)
        body = ErrorResponse(
            title="Internal server error",
            detail="An unexpected error occurred. Please try again.",
            code="INTERNAL_ERROR",
        )
        return JSONResponse(status_code=500, content=body.model_dump(exclude_none=True))


__all__ = ["RequestFailed", "install_error_handlers"]
