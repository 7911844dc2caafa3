"""
Exception handlers mapping errors to the failure envelope.

    {"ok": false, "error": {"code": ..., "message": ..., "trace_id": ...}}

Only code, message and trace id leave the process; the full error context is
logged under the same trace id.
"""

import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from core.exceptions import ServiceError, ValidationError
from schemas.api import ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)


def error_response(error: ServiceError) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(**error.to_response()))
    return JSONResponse(status_code=error.status_code, content=body.model_dump())


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "-")


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"[{_request_id(request)}] {exc.code} ({exc.trace_id}): {exc.message}",
        extra={"error_context": exc.to_dict()}
    )
    return error_response(exc)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    error = ValidationError(
        "Invalid request parameters",
        context={"errors": [
            {"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in exc.errors()
        ]}
    )
    return await service_error_handler(request, error)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    error = ServiceError("Internal server error", original_exception=exc)
    logger.error(f"[{_request_id(request)}] Unhandled error ({error.trace_id})", exc_info=exc)
    return error_response(error)


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
