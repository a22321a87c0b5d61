"""Render core errors as uniform JSON responses."""

from __future__ import annotations

import logging
import traceback

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core import ApiError, ErrorDetail, ErrorResponse, Settings

logger = logging.getLogger(__name__)


def _render(payload: ErrorResponse) -> JSONResponse:
    content = payload.model_dump(mode="json")
    if content["stack"] is None:
        content.pop("stack")
    return JSONResponse(status_code=payload.status_code, content=content)


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """Install handlers mapping every failure onto ``ErrorResponse``."""

    async def handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
        return _render(exc.to_response(include_stack=settings.debug))

    async def handle_request_validation(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = [
            ErrorDetail(
                field=".".join(str(part) for part in error.get("loc", ())) or None,
                message=error.get("msg", "Invalid value"),
            )
            for error in exc.errors()
        ]
        return _render(
            ErrorResponse(
                status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
                message="Validation failed",
                errors=errors,
            )
        )

    async def handle_http_exception(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return _render(ErrorResponse(status_code=exc.status_code, message=str(exc.detail)))

    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        error = ApiError(stack="".join(traceback.format_exception(exc)))
        return _render(error.to_response(include_stack=settings.debug))

    app.add_exception_handler(ApiError, handle_api_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, handle_request_validation)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, handle_unexpected)
