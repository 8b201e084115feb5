"""Exception handlers mapping errors to the error envelope."""

from __future__ import annotations

import logging
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from shiftdesk.api.schemas import ErrorResponse, FieldErrorItem
from shiftdesk.tasks.errors import TaskError

logger = logging.getLogger(__name__)


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TaskError, _handle_task_error)
    app.add_exception_handler(RequestValidationError, _handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)
    app.add_exception_handler(Exception, _handle_unexpected_error)


async def _handle_task_error(request: Request, exc: TaskError) -> JSONResponse:
    status_code = int(exc.http_status)
    if status_code >= HTTPStatus.INTERNAL_SERVER_ERROR:
        logger.error("Task error for request [%s]: %s", request.url.path, exc)
    else:
        logger.warning("Task error for request [%s]: %s", request.url.path, exc)
    return _error_response(request, status_code, exc.error_code, str(exc))


async def _handle_validation_error(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    field_errors = [
        FieldErrorItem(
            field=".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            rejected_value=error.get("input"),
            message=error.get("msg", ""),
        )
        for error in exc.errors()
    ]
    logger.warning(
        "Validation failed for request [%s]: %d errors",
        request.url.path,
        len(field_errors),
    )
    return _error_response(
        request,
        HTTPStatus.BAD_REQUEST,
        "VALIDATION_ERROR",
        "Validation failed",
        field_errors=field_errors,
    )


async def _handle_http_exception(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    logger.warning("HTTP %d for request [%s]: %s", exc.status_code, request.url.path, exc.detail)
    return _error_response(
        request,
        exc.status_code,
        HTTPStatus(exc.status_code).name,
        str(exc.detail),
    )


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unexpected error for request [%s]: %s", request.url.path, exc, exc_info=exc)
    return _error_response(
        request,
        HTTPStatus.INTERNAL_SERVER_ERROR,
        "INTERNAL_ERROR",
        "An unexpected error occurred. Please try again later.",
    )


def _error_response(
    request: Request,
    status_code: int,
    error: str,
    message: str,
    *,
    field_errors: list[FieldErrorItem] | None = None,
) -> JSONResponse:
    body = ErrorResponse(
        status=int(status_code),
        error=error,
        message=message,
        path=request.url.path,
        field_errors=field_errors,
    )
    return JSONResponse(
        status_code=int(status_code),
        content=jsonable_encoder(body.model_dump(mode="json", by_alias=True, exclude_none=True)),
    )
