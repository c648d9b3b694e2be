"""Exception handlers: translate domain errors into ``{error, errorCode}`` bodies."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from tms_core.domain.errors import AssignmentError
from tms_core.domain.value_objects.enums import ErrorCode

logger = logging.getLogger(__name__)


async def _assignment_error(request: Request, exc: AssignmentError) -> JSONResponse:
    logger.info("%s %s rejected: %s (%s)", request.method, request.url.path, exc.code.value, exc.message)
    return JSONResponse(status_code=exc.http_status, content=jsonable_encoder(exc.to_dict()))


async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={
            "error": "Invalid request data",
            "errorCode": ErrorCode.VALIDATION.value,
            "details": jsonable_encoder(exc.errors()),
        },
    )


async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "errorCode": "INTERNAL"},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AssignmentError, _assignment_error)
    app.add_exception_handler(RequestValidationError, _request_validation_error)
    app.add_exception_handler(Exception, _unexpected_error)
